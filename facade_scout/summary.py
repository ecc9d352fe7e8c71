"""Per-URL cost summarization.

Collapses a page load's network records and main-thread tasks into one
UrlCostRecord per distinct URL, in order of first appearance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import MainThreadTask, NetworkRecord, UrlCostRecord
from .utils import is_network_url

logger = logging.getLogger(__name__)

# Main-thread work beyond this many ms per top-level task counts as blocking
BLOCKING_THRESHOLD_MS = 50.0


def _starts_earlier(candidate: NetworkRecord, current: UrlCostRecord) -> bool:
    if candidate.start_time is None:
        return False
    if current.first_start_time is None:
        return True
    return candidate.start_time < current.first_start_time


def summarize_by_url(
    network_records: Iterable[NetworkRecord],
    tasks: Iterable[MainThreadTask] = (),
    cpu_multiplier: float = 1.0,
) -> dict[str, UrlCostRecord]:
    """Build the url -> UrlCostRecord mapping for one page load.

    Repeated fetches of a URL are merged: the earliest fetch supplies the
    timing and the transfer size. Sizes of repeats are not summed.
    """
    by_url: dict[str, UrlCostRecord] = {}

    for record in network_records:
        if not is_network_url(record.url):
            continue

        existing = by_url.get(record.url)
        if existing is not None and not _starts_earlier(record, existing):
            logger.debug("Ignoring repeat fetch of %s", record.url)
            continue

        by_url[record.url] = UrlCostRecord(
            url=record.url,
            transfer_size=record.transfer_size or 0,
            first_start_time=record.start_time,
            first_headers_received_time=record.headers_received_time,
            first_end_time=record.end_time,
        )

    for task in tasks:
        cost = by_url.get(task.attributable_url or "")
        if cost is None:
            continue
        cost.main_thread_time += task.self_time * cpu_multiplier
        if task.is_top_level:
            cost.blocking_time += max(0.0, task.duration * cpu_multiplier - BLOCKING_THRESHOLD_MS)

    return by_url
