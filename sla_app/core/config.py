"""Central configuration, constants, and settings loading."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .models import MilestoneType

logger = logging.getLogger(__name__)

# =============================================================================
# Milestone Types
# =============================================================================
# Display order is stable across the counter panel and the drill-down table.
MILESTONE_TYPES: Sequence[MilestoneType] = (
    MilestoneType("Response Time", "RT", "RT_Remaining"),
    MilestoneType("Analysis and Timeline", "A&T", "AT_Remaining"),
    MilestoneType("Update or Workaround", "UoW", "UoW_Remaining"),
    MilestoneType("Fix Resolution", "Fx", "Fx_Remaining"),
)

MILESTONE_BY_NAME: dict[str, MilestoneType] = {m.name: m for m in MILESTONE_TYPES}
SLA_FIELDS: Sequence[str] = tuple(m.field_name for m in MILESTONE_TYPES)

# =============================================================================
# Priority Configuration
# =============================================================================
PRIORITY_ORDER: Sequence[str] = ("Urgent", "High", "Normal", "Low")
DEFAULT_PRIORITY = "Normal"

# Heat-map background for a counter, picked by the most urgent priority present
PRIORITY_HEATMAP: dict[str, str] = {
    "Urgent": "rgba(229, 115, 115, 0.3)",
    "High": "rgba(255, 183, 77, 0.3)",
    "Normal": "rgba(129, 199, 132, 0.3)",
}

# =============================================================================
# Column Configuration
# =============================================================================
CASE_ID_FIELD = "CaseNumber"
SUBJECT_FIELD = "Subject"
JIRA_FIELD = "jira"
JIRA_LABEL = "Jira Tickets"
DOT_SEP = "__DOT__"
DEFAULT_CASE_ID_WIDTH = 100
DEFAULT_SLA_WIDTH = 150
MIN_COLUMN_WIDTH = 50

# Fields that render as checkboxes even when no metadata is available
KNOWN_BOOLEAN_FIELDS: frozenset[str] = frozenset({"IsEscalated"})

DEFAULT_COLUMN_SPEC = "CaseNumber, Subject, Priority, Status, Account.Name, CreatedDate, jira"

# Relationship holding external ticket references on each case record
TICKET_RELATION = "Jira_Tickets__r"
MILESTONE_RELATION = "CaseMilestones"

# =============================================================================
# Data source / paging
# =============================================================================
DEFAULT_PAGE_SIZE = 50
EXPORT_ROW_CAP = 1000
EXPORT_FILENAME = "SLA_Export.csv"
SCROLL_LOAD_THRESHOLD_PX = 50
FLASH_INTERVAL_SECONDS = 1.0

TIMEZONE = "UTC"
DEFAULT_TICKET_BASE_URL = "https://aviobook.atlassian.net"

SETTINGS_FILENAME = "sla_dashboard.yaml"


@dataclass(slots=True)
class ThresholdSettings:
    green_min: float = 24.0
    yellow_min: float = 12.0
    orange_min: float = 1.0


@dataclass(slots=True)
class AppSettings:
    polling_interval: float = 60.0
    thresholds: ThresholdSettings = field(default_factory=ThresholdSettings)
    column_spec: str = DEFAULT_COLUMN_SPEC
    verbose_logging: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    export_row_cap: int = EXPORT_ROW_CAP
    ticket_base_url: str = DEFAULT_TICKET_BASE_URL
    threshold_color: str = "#ff0000"
    normal_color: str = "#000000"
    timezone: str = TIMEZONE


_CACHE: AppSettings | None = None


def thresholds_are_descending(t: ThresholdSettings) -> bool:
    return t.green_min >= t.yellow_min >= t.orange_min


def _thresholds_from_mapping(value: dict) -> ThresholdSettings:
    defaults = ThresholdSettings()
    try:
        parsed = ThresholdSettings(
            green_min=float(value.get("green_min", defaults.green_min)),
            yellow_min=float(value.get("yellow_min", defaults.yellow_min)),
            orange_min=float(value.get("orange_min", defaults.orange_min)),
        )
    except (TypeError, ValueError) as exc:
        logger.warning("Invalid threshold values %r, using defaults: %s", value, exc)
        return defaults
    if not thresholds_are_descending(parsed):
        logger.warning("Thresholds %r are not descending, using defaults", value)
        return defaults
    return parsed


def _settings_from_mapping(data: dict) -> AppSettings:
    settings = AppSettings()
    known = {f.name for f in fields(AppSettings)}
    for key, value in data.items():
        if key == "thresholds":
            if isinstance(value, dict):
                settings.thresholds = _thresholds_from_mapping(value)
            continue
        if key not in known:
            logger.debug("Ignoring unknown setting %r", key)
            continue
        setattr(settings, key, value)
    settings.polling_interval = float(settings.polling_interval or 60.0)
    settings.page_size = int(settings.page_size)
    settings.export_row_cap = int(settings.export_row_cap)
    settings.verbose_logging = bool(settings.verbose_logging)
    return settings


def load_settings(base_path: str | Path | None = None, *, refresh: bool = False) -> AppSettings:
    """Load ``sla_dashboard.yaml`` from ``base_path`` (with fallbacks).

    A missing or malformed file yields the defaults; the result is cached for
    the lifetime of the process unless ``refresh`` is set.
    """
    global _CACHE
    if _CACHE is not None and not refresh:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parents[2])
    yaml_path = base / SETTINGS_FILENAME
    if not yaml_path.exists():
        _CACHE = AppSettings()
        return _CACHE
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
        _CACHE = _settings_from_mapping(data.get("sla", data))
    except Exception as exc:
        logger.warning("Failed to read %s, using defaults: %s", yaml_path, exc)
        _CACHE = AppSettings()
    return _CACHE


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Set the package logger level from the verbose-logging toggle."""
    root = logging.getLogger("sla_app")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not logging.getLogger().handlers and not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    return root
