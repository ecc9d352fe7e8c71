"""
Tests for the command line entry point using records files.
"""

import asyncio
import json

import pytest

from facade_scout.cli import main, parse_args

RECORDS = {
    "url": "https://example.com",
    "requests": [
        {"url": "https://example.com", "startTime": 100, "headersReceivedTime": 101, "transferSize": 2000},
        {"url": "https://widget.intercom.io/widget/1", "startTime": 200, "headersReceivedTime": 201,
         "endTime": 202, "transferSize": 4000},
        {"url": "https://js.intercomcdn.com/frame-modern.a.js", "startTime": 300,
         "headersReceivedTime": 301, "endTime": 302, "transferSize": 8000},
    ],
}


@pytest.fixture
def records_path(tmp_path):
    path = tmp_path / "records.json"
    path.write_text(json.dumps(RECORDS))
    return path


def run_cli(argv):
    return asyncio.run(main(parse_args(argv)))


class TestParseArgs:

    def test_source_is_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_records_and_url_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--records", "a.json", "--url", "https://example.com"])


class TestMain:

    def test_json_output(self, tmp_path, records_path, capsys):
        code = run_cli(["--records", str(records_path), "--config", str(tmp_path / "config.yaml"), "--json"])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["isApplicable"] is True
        assert data["opportunities"][0]["productName"] == "Intercom Widget"
        assert data["summary"]["wastedBytes"] == 12000

    def test_text_report_save_and_chart(self, tmp_path, records_path, capsys):
        code = run_cli([
            "--records", str(records_path),
            "--config", str(tmp_path / "config.yaml"),
            "--save", "--chart", "charts",
        ])

        assert code == 0
        assert "Intercom Widget (Intercom)" in capsys.readouterr().out
        assert (tmp_path / "data" / "facade_scout.db").exists()
        assert (tmp_path / "charts" / "facade_opportunities.png").exists()

    def test_invalid_records_file_exits_1(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"requests": []}))

        assert run_cli(["--records", str(path), "--config", str(tmp_path / "config.yaml")]) == 1

    def test_string_timing_does_not_crash(self, tmp_path, capsys):
        records = json.loads(json.dumps(RECORDS))
        records["requests"][2]["startTime"] = "300"
        path = tmp_path / "records.json"
        path.write_text(json.dumps(records))

        code = run_cli(["--records", str(path), "--config", str(tmp_path / "config.yaml"), "--json"])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["wastedBytes"] == 4000

    def test_missing_records_file_exits_1(self, tmp_path):
        assert run_cli(["--records", str(tmp_path / "nope.json"),
                        "--config", str(tmp_path / "config.yaml")]) == 1
