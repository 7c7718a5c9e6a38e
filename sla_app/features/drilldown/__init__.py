"""Drill-down feature module: case table state machine and view model."""

from sla_app.features.drilldown.session import DrilldownSession
from sla_app.features.drilldown.state import (
    DrilldownPhase,
    DrilldownState,
    DrilldownViewModel,
    HeaderView,
    PartitionState,
    compute_view_model,
)

__all__ = [
    "DrilldownPhase",
    "DrilldownSession",
    "DrilldownState",
    "DrilldownViewModel",
    "HeaderView",
    "PartitionState",
    "compute_view_model",
]
