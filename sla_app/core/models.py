"""Domain data models for milestones, SLA statuses, columns, and case rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

NO_TARGET = "/"


class SeverityBucket(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"

    @property
    def rank(self) -> int:
        return _BUCKET_RANK[self]


_BUCKET_RANK = {
    SeverityBucket.GREEN: 0,
    SeverityBucket.YELLOW: 1,
    SeverityBucket.ORANGE: 2,
    SeverityBucket.RED: 3,
}


class SlaKind(str, Enum):
    NO_TARGET = "no_target"
    COMPLETED = "completed"
    VIOLATED = "violated"
    REMAINING = "remaining"
    OVERDUE = "overdue"


# Combining rule for several instances of one milestone type on a case
SLA_PRECEDENCE: dict[SlaKind, int] = {
    SlaKind.NO_TARGET: 0,
    SlaKind.REMAINING: 1,
    SlaKind.OVERDUE: 1,
    SlaKind.COMPLETED: 2,
    SlaKind.VIOLATED: 3,
}


@dataclass(frozen=True, slots=True)
class MilestoneType:
    name: str
    short_label: str
    field_name: str

    @property
    def column_label(self) -> str:
        return f"{self.short_label} Remaining"


@dataclass(frozen=True, slots=True)
class MilestoneRecord:
    case_id: str | None
    name: str | None
    priority: str | None = None
    target_date: str | None = None
    time_remaining_token: str | None = None
    is_completed: bool = False
    is_violated: bool = False
    is_stopped: bool = False


@dataclass(frozen=True, slots=True)
class SlaStatus:
    kind: SlaKind
    display: str

    @property
    def rank(self) -> int:
        return SLA_PRECEDENCE[self.kind]

    def __str__(self) -> str:
        return self.display


SLA_NO_TARGET = SlaStatus(SlaKind.NO_TARGET, NO_TARGET)
SLA_COMPLETED = SlaStatus(SlaKind.COMPLETED, "Completed")
SLA_VIOLATED = SlaStatus(SlaKind.VIOLATED, "Violated")


@dataclass(slots=True)
class Column:
    field_name: str
    label: str
    data_type: str = "text"
    width: int | None = None
    is_sortable: bool = True
    is_virtual_sla: bool = False
    source_field: str | None = None

    @property
    def style(self) -> str:
        return f"width: {self.width}px;" if self.width else ""


@dataclass(slots=True)
class Cell:
    key: str
    value: Any
    is_url: bool = False
    is_boolean: bool = False
    checked: bool = False
    css_class: str = ""


@dataclass(frozen=True, slots=True)
class TicketRef:
    id: str | None
    name: str
    url: str
    status: str = "-"
    priority: str = "-"
    fix_version: str = "-"
    assignee: str = "-"
    item_class: str = "jira-item-even"


@dataclass(slots=True)
class CaseRow:
    key: str
    record: dict[str, Any]
    sla: dict[str, SlaStatus] = field(default_factory=dict)
    sla_classes: dict[str, str] = field(default_factory=dict)
    cells: list[Cell] = field(default_factory=list)
    row_class: str = "table-row priority-normal"
    tickets: list[TicketRef] = field(default_factory=list)

    @property
    def has_tickets(self) -> bool:
        return bool(self.tickets)

    def value(self, field_name: str) -> Any:
        status = self.sla.get(field_name)
        if status is not None:
            return status.display
        return self.record.get(field_name)


@dataclass(slots=True)
class MilestoneStats:
    count: int = 0
    priority_counts: dict[str, int] = field(default_factory=dict)
    bucket_counts: dict[SeverityBucket, int] = field(
        default_factory=lambda: {b: 0 for b in SeverityBucket}
    )
    completed: int = 0

    @property
    def has_data(self) -> bool:
        return self.count > 0
