"""
Unit tests for result rendering.
"""

import json

from facade_scout.models import AuditSummary, Facade, FacadeAuditResult, Opportunity, SubItem
from facade_scout.report import chart_opportunities, format_report, result_to_dict


def make_result():
    return FacadeAuditResult(
        page_url="https://example.com",
        opportunities=[
            Opportunity(
                product_name="YouTube Embedded Player",
                entity_name="YouTube",
                facade=Facade("Lite YouTube", "https://github.com/paulirish/lite-youtube-embed"),
                total_transfer_size=10000,
                total_blocking_time=0.0,
                sub_items=[
                    SubItem(url="https://i.ytimg.com/b/maxresdefault.jpg", transfer_size=7000,
                            first_start_time=310, first_end_time=312),
                    SubItem(url="Other resources", transfer_size=3000),
                ],
            ),
        ],
        summary=AuditSummary(wasted_bytes=10000, wasted_ms=0.0),
        is_applicable=True,
        score=0,
        display_value="1 facade alternative available",
    )


class TestResultToDict:

    def test_shape(self):
        data = result_to_dict(make_result())

        assert data["isApplicable"] is True
        assert data["score"] == 0
        assert data["summary"] == {"wastedBytes": 10000, "wastedMs": 0.0}
        opp = data["opportunities"][0]
        assert opp["productName"] == "YouTube Embedded Player"
        assert opp["facade"] == {"name": "Lite YouTube", "link": "https://github.com/paulirish/lite-youtube-embed"}
        assert opp["totalTransferSize"] == 10000
        assert opp["subItems"][0] == {
            "url": "https://i.ytimg.com/b/maxresdefault.jpg",
            "transferSize": 7000,
            "blockingTime": 0.0,
            "mainThreadTime": 0.0,
            "firstStartTime": 310,
            "firstEndTime": 312,
        }
        # Condensed entry has no timing
        assert "firstStartTime" not in opp["subItems"][1]
        json.dumps(data)

    def test_not_applicable(self):
        data = result_to_dict(FacadeAuditResult(page_url="https://example.com"))

        assert data["isApplicable"] is False
        assert data["score"] == 1
        assert data["opportunities"] == []


class TestFormatReport:

    def test_lists_products_and_items(self):
        text = format_report(make_result())

        assert "1 facade alternative available" in text
        assert "YouTube Embedded Player (YouTube)" in text
        assert "Lite YouTube" in text
        assert "9.8 KiB" in text
        assert "Other resources" in text

    def test_not_applicable(self):
        text = format_report(FacadeAuditResult(page_url="https://example.com"))

        assert "No third-party embeds with facade alternatives found." in text


class TestChart:

    def test_writes_png(self, tmp_path):
        path = chart_opportunities(make_result(), tmp_path / "charts")

        assert path == tmp_path / "charts" / "facade_opportunities.png"
        assert path.stat().st_size > 0

    def test_nothing_to_chart(self, tmp_path):
        assert chart_opportunities(FacadeAuditResult(page_url="https://example.com"), tmp_path) is None
