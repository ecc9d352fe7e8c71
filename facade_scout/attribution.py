"""Attribution of third-party resources to products with facade alternatives.

Entity: set of domains a company or product area uses to deliver resources.
Product: specific piece of software belonging to an entity.
Facade: placeholder that looks like the product and swaps itself for the
real thing when the user needs it.

Attribution works on timing alone. A product's own requests seed a set and
fix its cutoff time, the earliest time one of its responses started
arriving. Resources of the same entity requested at or after the cutoff are
taken to have been loaded by that product.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from .entity_db import ResourceClassifier
from .models import AttributionSet, Entity, Product, UrlCostRecord

logger = logging.getLogger(__name__)


def _is_valid_time(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _classified_entity(
    url: str,
    main_entity: Entity | None,
    classifier: ResourceClassifier,
) -> Entity | None:
    """Entity for a third-party URL, None for unknown or first-party URLs."""
    entity = classifier.entity_of(url)
    if entity is None or classifier.is_first_party(url, main_entity):
        return None
    return entity


def _facadable_product(url: str, classifier: ResourceClassifier) -> Product | None:
    product = classifier.product_of(url)
    if product is None or not product.has_facade:
        return None
    return product


def _seed_product_sets(
    by_url: Mapping[str, UrlCostRecord],
    main_entity: Entity | None,
    classifier: ResourceClassifier,
) -> tuple[dict[str, dict[str, AttributionSet]], list[AttributionSet]]:
    """First pass: one set per facadable product, holding its own requests."""
    sets_by_entity: dict[str, dict[str, AttributionSet]] = {}
    ordered: list[AttributionSet] = []

    for url, cost in by_url.items():
        entity = _classified_entity(url, main_entity, classifier)
        if entity is None:
            continue
        product = _facadable_product(url, classifier)
        if product is None:
            continue

        product_sets = sets_by_entity.setdefault(entity.name, {})
        attribution_set = product_sets.get(product.name)
        if attribution_set is None:
            attribution_set = AttributionSet(product=product, entity=entity)
            product_sets[product.name] = attribution_set
            ordered.append(attribution_set)
            logger.debug("New attribution set for %s (%s)", product.name, entity.name)

        attribution_set.members[url] = cost

        # Any resource of the same entity fetched after the product's response
        # started arriving is counted as part of the product.
        if _is_valid_time(cost.first_headers_received_time):
            attribution_set.cutoff_time = min(
                attribution_set.cutoff_time, cost.first_headers_received_time,
            )

    return sets_by_entity, ordered


def _attribute_entity_resources(
    by_url: Mapping[str, UrlCostRecord],
    main_entity: Entity | None,
    classifier: ResourceClassifier,
    sets_by_entity: dict[str, dict[str, AttributionSet]],
) -> None:
    """Second pass: add same-entity resources started after each cutoff."""
    for url, cost in by_url.items():
        entity = _classified_entity(url, main_entity, classifier)
        if entity is None:
            continue
        if _facadable_product(url, classifier) is not None:
            continue

        product_sets = sets_by_entity.get(entity.name)
        if not product_sets:
            continue

        # Not exclusive: a resource after several sibling cutoffs joins each set.
        for attribution_set in product_sets.values():
            start = cost.first_start_time
            if not _is_valid_time(start) or start < attribution_set.cutoff_time:
                logger.debug(
                    "Not attributing %s to %s (start %s, cutoff %s)",
                    url, attribution_set.product.name, start, attribution_set.cutoff_time,
                )
                continue
            attribution_set.members.setdefault(url, cost)


def get_attribution_sets(
    by_url: Mapping[str, UrlCostRecord],
    main_entity: Entity | None,
    classifier: ResourceClassifier,
) -> list[AttributionSet]:
    """Group a page's cost records by the facadable product that loaded them.

    Args:
        by_url: One cost record per distinct URL, in discovery order.
        main_entity: Entity of the main document; its URLs are first-party.
        classifier: Entity/product lookup service.

    Returns:
        Attribution sets in the order their products were first seen.
    """
    sets_by_entity, ordered = _seed_product_sets(by_url, main_entity, classifier)
    if ordered:
        _attribute_entity_resources(by_url, main_entity, classifier, sets_by_entity)
    return ordered
