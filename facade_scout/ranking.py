"""Aggregation and ranking of attribution sets into facade opportunities."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import AttributionSet, AuditSummary, Opportunity, SubItem

logger = logging.getLogger(__name__)

DEFAULT_CONDENSE_THRESHOLD_BYTES = 1024
OTHER_RESOURCES_LABEL = "Other resources"


def condense_sub_items(
    items: list[SubItem],
    threshold_bytes: int = DEFAULT_CONDENSE_THRESHOLD_BYTES,
    label: str = OTHER_RESOURCES_LABEL,
) -> list[SubItem]:
    """Fold items smaller than ``threshold_bytes`` into one trailing entry.

    The folded entry always comes last, whatever its combined size.
    """
    kept: list[SubItem] = []
    other = SubItem(url=label)
    condensed = 0
    for item in items:
        if item.transfer_size >= threshold_bytes:
            kept.append(item)
            continue
        other.transfer_size += item.transfer_size
        other.blocking_time += item.blocking_time
        other.main_thread_time += item.main_thread_time
        condensed += 1

    if condensed:
        kept.append(other)
    return kept


def build_opportunity(
    attribution_set: AttributionSet,
    threshold_bytes: int = DEFAULT_CONDENSE_THRESHOLD_BYTES,
    other_label: str = OTHER_RESOURCES_LABEL,
) -> Opportunity:
    """Total one attribution set and list its resources, largest first."""
    product = attribution_set.product

    items: list[SubItem] = []
    transfer_size = 0
    blocking_time = 0.0
    for url, cost in attribution_set.members.items():
        items.append(SubItem(
            url=url,
            transfer_size=cost.transfer_size,
            blocking_time=cost.blocking_time,
            main_thread_time=cost.main_thread_time,
            first_start_time=cost.first_start_time,
            first_end_time=cost.first_end_time,
        ))
        transfer_size += cost.transfer_size
        blocking_time += cost.blocking_time

    # Stable sort keeps discovery order for equal sizes
    items.sort(key=lambda item: item.transfer_size, reverse=True)

    return Opportunity(
        product_name=product.name,
        entity_name=attribution_set.entity.name,
        # The first facade should always be the best one.
        facade=product.facades[0],
        total_transfer_size=transfer_size,
        total_blocking_time=blocking_time,
        sub_items=condense_sub_items(items, threshold_bytes, other_label),
    )


def rank_opportunities(
    attribution_sets: Iterable[AttributionSet],
    threshold_bytes: int = DEFAULT_CONDENSE_THRESHOLD_BYTES,
    other_label: str = OTHER_RESOURCES_LABEL,
) -> tuple[list[Opportunity], AuditSummary]:
    """One opportunity per non-empty set, in set order, plus overall totals."""
    opportunities: list[Opportunity] = []
    summary = AuditSummary()
    for attribution_set in attribution_sets:
        if not attribution_set.members:
            continue
        opportunity = build_opportunity(attribution_set, threshold_bytes, other_label)
        summary.wasted_bytes += opportunity.total_transfer_size
        summary.wasted_ms += opportunity.total_blocking_time
        opportunities.append(opportunity)

    logger.debug(
        "Ranked %d opportunities: %d bytes, %.0f ms",
        len(opportunities), summary.wasted_bytes, summary.wasted_ms,
    )
    return opportunities, summary
