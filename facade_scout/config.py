"""Configuration loading and typed config dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .models import ThrottlingMethod


@dataclass
class AuditSettings:
    condense_threshold_bytes: int = 1024
    other_resources_label: str = "Other resources"
    throttling_method: str = ThrottlingMethod.SIMULATE.value
    cpu_slowdown_multiplier: float = 4.0

    @property
    def cpu_multiplier(self) -> float:
        """Task-time multiplier; only simulated throttling scales CPU time."""
        if self.throttling_method == ThrottlingMethod.SIMULATE.value:
            return self.cpu_slowdown_multiplier
        return 1.0


@dataclass
class Viewport:
    width: int = 1350
    height: int = 940


@dataclass
class CaptureSettings:
    page_timeout_ms: int = 45000
    settle_ms: int = 5000  # wait after load so embeds finish fetching
    headless: bool = True
    user_agent: str | None = None
    viewport: Viewport = field(default_factory=Viewport)


@dataclass
class DatabaseSettings:
    path: str = "data/facade_scout.db"


@dataclass
class EntitySettings:
    entities_path: str | None = None


@dataclass
class OutputSettings:
    chart_dir: str = "output/charts/"


@dataclass
class FacadeScoutConfig:
    project_root: Path = field(default_factory=lambda: Path.cwd())
    audit: AuditSettings = field(default_factory=AuditSettings)
    capture: CaptureSettings = field(default_factory=CaptureSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    entities: EntitySettings = field(default_factory=EntitySettings)
    output: OutputSettings = field(default_factory=OutputSettings)

    def resolve_path(self, relative_path: str) -> Path:
        """Resolve a relative path against the project root."""
        p = Path(relative_path)
        if p.is_absolute():
            return p
        return self.project_root / p


def _build_nested(cls, data: dict | None):
    """Recursively build a dataclass from a dict, ignoring unknown keys."""
    if not isinstance(data, dict):
        return cls()
    fieldnames = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {}
    for key, val in data.items():
        if key not in fieldnames:
            continue
        default = getattr(cls(), key)
        # Nested dataclass fields recurse on their default's type
        if hasattr(default, "__dataclass_fields__"):
            filtered[key] = _build_nested(type(default), val)
        else:
            filtered[key] = val
    return cls(**filtered)


def load_config(path: str | Path) -> FacadeScoutConfig:
    """Load configuration from a YAML file, falling back to defaults."""
    config_path = Path(path)
    project_root = config_path.parent

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        raw = {}

    return FacadeScoutConfig(
        project_root=project_root,
        audit=_build_nested(AuditSettings, raw.get("audit")),
        capture=_build_nested(CaptureSettings, raw.get("capture")),
        database=_build_nested(DatabaseSettings, raw.get("database")),
        entities=_build_nested(EntitySettings, raw.get("entities")),
        output=_build_nested(OutputSettings, raw.get("output")),
    )
