"""Network record capture for a single page load.

Records come either from a live Playwright page load or from a records JSON
file written by another tool. Live capture creates a fresh browser context,
navigates, waits for embeds to settle and returns every finished request with
its timing and transfer size.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from playwright.async_api import Browser, Request as PWRequest

from .config import CaptureSettings
from .models import MainThreadTask, NetworkRecord

logger = logging.getLogger(__name__)


@dataclass
class CapturedPage:
    url: str
    network_records: list[NetworkRecord] = field(default_factory=list)
    tasks: list[MainThreadTask] = field(default_factory=list)


def network_record_from_timing(
    url: str,
    timing: dict,
    sizes: dict | None = None,
    resource_type: str | None = None,
) -> NetworkRecord:
    """Convert Playwright resource timing (ms) into a NetworkRecord (seconds).

    ``startTime`` is epoch ms; the phase fields are ms relative to it, with
    -1 meaning unavailable.
    """
    start_ms = timing.get("startTime")
    start = start_ms / 1000 if start_ms is not None and start_ms >= 0 else None

    def _offset(key: str) -> float | None:
        value = timing.get(key, -1)
        if start is None or value is None or value < 0:
            return None
        return start + value / 1000

    transfer_size = 0
    if sizes:
        transfer_size = max(0, sizes.get("responseBodySize", 0)) + max(0, sizes.get("responseHeadersSize", 0))

    return NetworkRecord(
        url=url,
        start_time=start,
        headers_received_time=_offset("responseStart"),
        end_time=_offset("responseEnd"),
        transfer_size=transfer_size,
        resource_type=resource_type,
    )


def _number(entry: dict, key: str, default: float | None = None) -> float | None:
    value = entry.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if value is not None:
        logger.debug("Ignoring non-numeric %s=%r for %s", key, value, entry.get("url"))
    return default


def load_records_file(path: str | Path) -> CapturedPage:
    """Load a page's requests and tasks from a records JSON file.

    Raises:
        ValueError: If the file lacks a page ``url`` or ``requests`` list.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or not data.get("url"):
        raise ValueError(f"Records file {path} has no page 'url'")
    requests = data.get("requests", [])
    if not isinstance(requests, list):
        raise ValueError(f"Records file {path}: 'requests' must be a list")

    page = CapturedPage(url=data["url"])
    for entry in requests:
        if not isinstance(entry, dict) or "url" not in entry:
            logger.warning("Skipping malformed request entry in %s: %r", path, entry)
            continue
        page.network_records.append(NetworkRecord(
            url=entry["url"],
            start_time=_number(entry, "startTime"),
            headers_received_time=_number(entry, "headersReceivedTime"),
            end_time=_number(entry, "endTime"),
            transfer_size=max(0, _number(entry, "transferSize", 0)),
            resource_type=entry.get("resourceType"),
        ))

    for entry in data.get("tasks", []) or []:
        if not isinstance(entry, dict):
            continue
        page.tasks.append(MainThreadTask(
            attributable_url=entry.get("url"),
            self_time=_number(entry, "selfTime", 0.0),
            duration=_number(entry, "duration", 0.0),
            is_top_level=entry.get("topLevel", True),
        ))

    logger.info(
        "Loaded %d requests, %d tasks for %s",
        len(page.network_records), len(page.tasks), page.url,
    )
    return page


async def capture_page(browser: Browser, url: str, settings: CaptureSettings) -> CapturedPage:
    """Load ``url`` in a fresh context and record every finished request."""
    records: list[NetworkRecord] = []
    pending: list[asyncio.Task] = []

    async def _record(request: PWRequest) -> None:
        try:
            sizes = await request.sizes()
        except Exception as e:
            logger.debug("No sizes for %s: %s", request.url, e)
            sizes = None
        records.append(network_record_from_timing(
            request.url, request.timing, sizes, request.resource_type,
        ))

    def on_request_finished(request: PWRequest) -> None:
        pending.append(asyncio.ensure_future(_record(request)))

    context = await browser.new_context(
        viewport={
            "width": settings.viewport.width,
            "height": settings.viewport.height,
        },
        user_agent=settings.user_agent or None,
    )
    try:
        page = await context.new_page()
        page.on("requestfinished", on_request_finished)

        logger.info("Loading %s", url)
        await page.goto(url, timeout=settings.page_timeout_ms, wait_until="load")

        # Give embeds time to pull in their own resources
        if settings.settle_ms > 0:
            await asyncio.sleep(settings.settle_ms / 1000)

        final_url = page.url
        await asyncio.gather(*pending)
    finally:
        await context.close()

    # Finish order differs from request order; the summarizer wants discovery order
    records.sort(key=lambda r: r.start_time if r.start_time is not None else float("inf"))
    logger.info("Captured %d requests on %s", len(records), final_url)
    return CapturedPage(url=final_url, network_records=records)
