"""Facade opportunity audit.

Identifies third-party embeds on a page that could be replaced by a facade
until the user interacts with them, and how many bytes and main-thread
milliseconds that would save.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .attribution import get_attribution_sets
from .config import AuditSettings
from .entity_db import ResourceClassifier
from .models import FacadeAuditResult, MainThreadTask, NetworkRecord, UrlCostRecord
from .ranking import rank_opportunities
from .summary import summarize_by_url

logger = logging.getLogger(__name__)


def format_display_value(count: int) -> str:
    if count == 1:
        return "1 facade alternative available"
    return f"{count} facade alternatives available"


class FacadeAudit:
    """Runs the attribution engine and ranker for one page load."""

    def __init__(self, classifier: ResourceClassifier, settings: AuditSettings | None = None):
        self._classifier = classifier
        self._settings = settings or AuditSettings()

    def audit(
        self,
        page_url: str,
        network_records: Iterable[NetworkRecord],
        tasks: Iterable[MainThreadTask] = (),
    ) -> FacadeAuditResult:
        """Summarize raw records per URL, then audit the summaries."""
        by_url = summarize_by_url(network_records, tasks, self._settings.cpu_multiplier)
        return self.audit_cost_records(page_url, by_url)

    def audit_cost_records(
        self,
        page_url: str,
        by_url: Mapping[str, UrlCostRecord],
    ) -> FacadeAuditResult:
        main_entity = self._classifier.entity_of(page_url)
        attribution_sets = get_attribution_sets(by_url, main_entity, self._classifier)
        opportunities, summary = rank_opportunities(
            attribution_sets,
            self._settings.condense_threshold_bytes,
            self._settings.other_resources_label,
        )

        if not opportunities:
            logger.info("No facade opportunities on %s", page_url)
            return FacadeAuditResult(page_url=page_url, is_applicable=False, score=1)

        logger.info(
            "%d facade opportunities on %s (%d bytes, %.0f ms)",
            len(opportunities), page_url, summary.wasted_bytes, summary.wasted_ms,
        )
        return FacadeAuditResult(
            page_url=page_url,
            opportunities=opportunities,
            summary=summary,
            is_applicable=True,
            score=0,
            display_value=format_display_value(len(opportunities)),
        )
