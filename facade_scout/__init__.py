"""Facade Scout — third-party embeds that could be lazy loaded behind a facade."""

from .attribution import get_attribution_sets
from .audit import FacadeAudit
from .entity_db import EntityDatabase, ResourceClassifier
from .ranking import condense_sub_items, rank_opportunities
from .summary import summarize_by_url

__version__ = "0.1.0"

__all__ = [
    "EntityDatabase",
    "FacadeAudit",
    "ResourceClassifier",
    "condense_sub_items",
    "get_attribution_sets",
    "rank_opportunities",
    "summarize_by_url",
]
