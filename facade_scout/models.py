"""Data models for Facade Scout."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


class ThrottlingMethod(str, Enum):
    SIMULATE = "simulate"
    DEVTOOLS = "devtools"
    PROVIDED = "provided"


# ── Entity database ──

@dataclass(frozen=True)
class Facade:
    name: str
    repo: str


@dataclass(frozen=True)
class Product:
    name: str
    entity_name: str
    url_patterns: tuple[str, ...] = ()
    facades: tuple[Facade, ...] = ()

    @property
    def has_facade(self) -> bool:
        return bool(self.facades)


@dataclass(frozen=True)
class Entity:
    name: str
    domains: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    products: tuple[Product, ...] = ()


# ── Summarizer input ──

@dataclass
class NetworkRecord:
    url: str
    start_time: float | None = None
    headers_received_time: float | None = None
    end_time: float | None = None
    transfer_size: int = 0
    resource_type: str | None = None


@dataclass
class MainThreadTask:
    attributable_url: str | None
    self_time: float = 0.0
    duration: float = 0.0
    is_top_level: bool = True


# ── Attribution ──

@dataclass
class UrlCostRecord:
    """Per-URL cost aggregate. Times are seconds, main-thread values ms."""

    url: str
    transfer_size: int = 0
    blocking_time: float = 0.0
    main_thread_time: float = 0.0
    first_start_time: float | None = None
    first_headers_received_time: float | None = None
    first_end_time: float | None = None


@dataclass
class AttributionSet:
    product: Product
    entity: Entity
    cutoff_time: float = math.inf
    members: dict[str, UrlCostRecord] = field(default_factory=dict)


# ── Report ──

@dataclass
class SubItem:
    url: str
    transfer_size: int = 0
    blocking_time: float = 0.0
    main_thread_time: float = 0.0
    first_start_time: float | None = None
    first_end_time: float | None = None


@dataclass
class Opportunity:
    product_name: str
    entity_name: str
    facade: Facade
    total_transfer_size: int = 0
    total_blocking_time: float = 0.0
    sub_items: list[SubItem] = field(default_factory=list)


@dataclass
class AuditSummary:
    wasted_bytes: int = 0
    wasted_ms: float = 0.0


@dataclass
class FacadeAuditResult:
    page_url: str
    opportunities: list[Opportunity] = field(default_factory=list)
    summary: AuditSummary = field(default_factory=AuditSummary)
    is_applicable: bool = False
    score: int = 1
    display_value: str | None = None
