"""Mapping raw case/milestone JSON into flattened records and domain models.

The data source encodes nested child collections either as a bare list or as
a ``{"records": [...]}`` envelope. Both are normalised here, at the boundary,
so nothing downstream has to probe shapes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .config import DOT_SEP, MILESTONE_RELATION, TICKET_RELATION
from .models import MilestoneRecord, TicketRef


class MalformedRecordError(ValueError):
    """Raised when a record does not have the shape the data source promises."""


def as_records(value: Any) -> list[dict[str, Any]]:
    """Normalise a nested child collection into a list of dicts."""
    if value is None:
        return []
    if isinstance(value, list):
        items = value
    elif isinstance(value, Mapping):
        items = value.get("records")
        if items is None:
            items = []
        if not isinstance(items, list):
            raise MalformedRecordError(f"Expected 'records' list, got {type(items).__name__}")
    else:
        raise MalformedRecordError(f"Unexpected collection type {type(value).__name__}")
    for item in items:
        if not isinstance(item, Mapping):
            raise MalformedRecordError(f"Collection item is not an object: {item!r}")
    return [dict(item) for item in items]


def _is_collection_envelope(value: Mapping) -> bool:
    return "records" in value and isinstance(value.get("records"), list)


def flatten_record(raw: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Deep-flatten nested objects into ``DOT_SEP``-joined keys.

    Lists are kept as-is (not recursed into); collection envelopes are
    unwrapped to their list; platform ``attributes`` blocks are dropped.

    >>> flatten_record({"Account": {"Name": "ACME"}, "Id": "1"})
    {'Account__DOT__Name': 'ACME', 'Id': '1'}
    """
    if not isinstance(raw, Mapping):
        raise MalformedRecordError(f"Record is not an object: {raw!r}")
    out: dict[str, Any] = {}
    for key, value in raw.items():
        if key == "attributes":
            continue
        full_key = f"{prefix}{DOT_SEP}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            if _is_collection_envelope(value):
                out[full_key] = as_records(value)
            else:
                out.update(flatten_record(value, full_key))
        else:
            out[full_key] = value
    return out


def to_field_key(path: str) -> str:
    return path.replace(".", DOT_SEP)


def to_source_path(field_key: str) -> str:
    return field_key.replace(DOT_SEP, ".")


def _first(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in raw and raw[name] is not None:
            return raw[name]
    return None


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return value is True or value == 1


def milestone_type_name(raw: Mapping[str, Any]) -> str | None:
    mt = _first(raw, "MilestoneType", "milestoneType")
    if isinstance(mt, Mapping):
        name = mt.get("Name") or mt.get("name")
        return str(name) if name else None
    name = _first(raw, "mName", "MilestoneTypeName", "name")
    return str(name) if name else None


def map_milestone(raw: Mapping[str, Any], *, case_id: str | None = None) -> MilestoneRecord:
    """Map one raw milestone (summary feed or case child record) to a model."""
    if not isinstance(raw, Mapping):
        raise MalformedRecordError(f"Milestone is not an object: {raw!r}")
    token = _first(raw, "timeRemaining", "TimeRemainingInMins", "timeRemainingToken")
    return MilestoneRecord(
        case_id=_first(raw, "caseId", "CaseId") or case_id,
        name=milestone_type_name(raw),
        priority=_first(raw, "priority", "Priority"),
        target_date=_first(raw, "targetDate", "TargetDate"),
        time_remaining_token=str(token) if token is not None else None,
        is_completed=_truthy(_first(raw, "isCompleted", "IsCompleted")),
        is_violated=_truthy(_first(raw, "isViolated", "IsViolated")),
        is_stopped=_truthy(_first(raw, "isStopped", "IsStopped")),
    )


def map_milestones(raw_list: Any) -> list[MilestoneRecord]:
    return [map_milestone(m) for m in as_records(raw_list)]


def case_milestones(raw_case: Mapping[str, Any]) -> list[MilestoneRecord]:
    case_id = raw_case.get("Id")
    return [map_milestone(m, case_id=case_id) for m in as_records(raw_case.get(MILESTONE_RELATION))]


def map_tickets(raw_case: Mapping[str, Any], base_url: str) -> list[TicketRef]:
    base = base_url.rstrip("/")
    tickets: list[TicketRef] = []
    for index, raw in enumerate(as_records(raw_case.get(TICKET_RELATION))):
        name = str(raw.get("Name") or "")
        tickets.append(
            TicketRef(
                id=raw.get("Id"),
                name=name,
                url=f"{base}/browse/{name}" if name else "",
                status=raw.get("AVB_Status__c") or "-",
                priority=raw.get("AVB_Priority__c") or "-",
                fix_version=raw.get("AVB_Fix_Versions__c") or "-",
                assignee=raw.get("AVB_Assignee__c") or "-",
                item_class="jira-item-even" if index % 2 == 0 else "jira-item-odd",
            )
        )
    return tickets
