"""CLI entry point and audit orchestration."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from playwright.async_api import async_playwright

from .audit import FacadeAudit
from .capture import CapturedPage, capture_page, load_records_file
from .config import FacadeScoutConfig, load_config
from .db import Database
from .entity_db import EntityDatabase
from .report import chart_opportunities, format_report, result_to_dict
from .utils import normalize_url

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="facade_scout",
        description="Facade Scout — find third-party embeds that could be lazy loaded behind a facade",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--records", type=str, default=None,
        help="Records JSON file with the page URL, requests and tasks",
    )
    source.add_argument(
        "--url", type=str, default=None,
        help="Load this page in a headless browser and audit it",
    )
    parser.add_argument(
        "--config", type=str, default="config.yaml",
        help="Path to config.yaml (default: ./config.yaml)",
    )
    parser.add_argument(
        "--entities", type=str, default=None,
        help="Override entities JSON file path",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print the result as JSON instead of a text report",
    )
    parser.add_argument(
        "--chart", type=str, default=None, metavar="DIR",
        help="Write a bar chart of the opportunities to DIR",
    )
    parser.add_argument(
        "--save", action="store_true",
        help="Store the result in the SQLite database",
    )
    parser.add_argument(
        "--headed", action="store_true",
        help="Run the browser in headed mode (with --url)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


async def _load_page(args: argparse.Namespace, config: FacadeScoutConfig) -> CapturedPage:
    if args.records:
        return load_records_file(args.records)

    if args.headed:
        config.capture.headless = False
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=config.capture.headless)
        logger.info("Browser launched (headless=%s)", config.capture.headless)
        try:
            return await capture_page(browser, normalize_url(args.url), config.capture)
        finally:
            await browser.close()


async def main(args: argparse.Namespace) -> int:
    """Load or capture one page, audit it and emit the result."""
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy loggers
    logging.getLogger("playwright").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)

    config = load_config(Path(args.config).resolve())

    if args.entities:
        entities_path = Path(args.entities)
    elif config.entities.entities_path:
        entities_path = config.resolve_path(config.entities.entities_path)
    else:
        entities_path = None
    entity_db = EntityDatabase(entities_path=entities_path)

    try:
        page = await _load_page(args, config)
    except (OSError, ValueError) as e:
        logger.error("Failed to load page records: %s", e)
        return 1
    except Exception as e:
        logger.error("Failed to capture %s: %s", args.url, e)
        return 1

    audit = FacadeAudit(entity_db, config.audit)
    result = audit.audit(page.url, page.network_records, page.tasks)

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
    else:
        print(format_report(result))

    if args.chart:
        chart_opportunities(result, config.resolve_path(args.chart))

    if args.save:
        db = Database(config.resolve_path(config.database.path))
        await db.connect()
        try:
            audit_id = await db.save_audit_result(result)
            logger.info("Saved audit %d to %s", audit_id, db.db_path)
        finally:
            await db.close()

    return 0


def run() -> None:
    """Console script entry point."""
    args = parse_args(sys.argv[1:])
    sys.exit(asyncio.run(main(args)))
