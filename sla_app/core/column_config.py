"""Build the drill-down column list from a declarative column spec string."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from .config import (
    CASE_ID_FIELD,
    DEFAULT_CASE_ID_WIDTH,
    DEFAULT_SLA_WIDTH,
    DOT_SEP,
    JIRA_FIELD,
    JIRA_LABEL,
    KNOWN_BOOLEAN_FIELDS,
    MILESTONE_TYPES,
    SLA_FIELDS,
    SUBJECT_FIELD,
)
from .mappers import to_source_path
from .models import Column

logger = logging.getLogger(__name__)


class ColumnSpecError(ValueError):
    """Raised for an unparseable column spec token."""


@dataclass(frozen=True, slots=True)
class FieldMetadata:
    label: str
    data_type: str = "text"


MetadataLookup = Mapping[str, FieldMetadata] | Callable[[str], FieldMetadata | None]

# Human labels for common case fields when no object metadata is supplied
DEFAULT_FIELD_METADATA: dict[str, FieldMetadata] = {
    "CaseNumber": FieldMetadata("Case Number"),
    "Subject": FieldMetadata("Subject"),
    "Priority": FieldMetadata("Priority"),
    "Status": FieldMetadata("Status"),
    "CreatedDate": FieldMetadata("Created Date", "datetime"),
    "LastModifiedDate": FieldMetadata("Last Modified Date", "datetime"),
    "IsEscalated": FieldMetadata("Escalated", "boolean"),
    "Account": FieldMetadata("Account"),
    "Name": FieldMetadata("Name"),
    "Owner": FieldMetadata("Owner"),
}


def _lookup(metadata: MetadataLookup | None, name: str) -> FieldMetadata | None:
    if metadata is None:
        return None
    if callable(metadata):
        return metadata(name)
    return metadata.get(name)


def parse_column_spec(spec: str) -> list[tuple[str, int | None]]:
    """Split ``"Field[:width], ..."`` into ``(field, width)`` pairs.

    >>> parse_column_spec(" CaseNumber:80 , Subject ")
    [('CaseNumber', 80), ('Subject', None)]
    """
    if not isinstance(spec, str):
        raise ColumnSpecError(f"Column spec must be a string, got {type(spec).__name__}")
    tokens: list[tuple[str, int | None]] = []
    for raw in spec.split(","):
        token = raw.strip()
        if not token:
            continue
        name, sep, width_text = token.partition(":")
        name = name.strip()
        if not name:
            raise ColumnSpecError(f"Empty field name in token {token!r}")
        width: int | None = None
        if sep:
            width_text = width_text.strip()
            if not width_text.isdigit():
                raise ColumnSpecError(f"Invalid width {width_text!r} for {name}")
            width = int(width_text)
        tokens.append((name, width))
    return tokens


def _label_for(name: str, metadata: MetadataLookup | None) -> str:
    meta = _lookup(metadata, name)
    return meta.label if meta and meta.label else name


def _type_for(name: str, metadata: MetadataLookup | None) -> str:
    meta = _lookup(metadata, name)
    if meta is not None and meta.data_type == "boolean":
        return "boolean"
    if name in KNOWN_BOOLEAN_FIELDS:
        return "boolean"
    return "text"


def _field_column(name: str, width: int | None, metadata: MetadataLookup | None) -> Column:
    if name.lower() == JIRA_FIELD:
        return Column(
            field_name=JIRA_FIELD,
            label=JIRA_LABEL,
            data_type="jira",
            width=width,
            is_sortable=False,
        )
    if "." in name:
        parent, child = name.split(".", 1)
        child_label = child.replace(".", " ")
        return Column(
            field_name=name.replace(".", DOT_SEP),
            label=f"{_label_for(parent, metadata)} {child_label}",
            data_type=_type_for(name, metadata),
            width=width,
            source_field=name,
        )
    return Column(
        field_name=name,
        label=_label_for(name, metadata),
        data_type=_type_for(name, metadata),
        width=width,
        source_field=name,
    )


def sla_columns() -> list[Column]:
    return [
        Column(
            field_name=m.field_name,
            label=m.column_label,
            data_type="text",
            width=DEFAULT_SLA_WIDTH,
            is_virtual_sla=True,
        )
        for m in MILESTONE_TYPES
    ]


def fallback_columns() -> list[Column]:
    return [
        Column(CASE_ID_FIELD, "Case Number", "button", DEFAULT_CASE_ID_WIDTH, source_field=CASE_ID_FIELD),
        Column(SUBJECT_FIELD, "Subject", "text", source_field=SUBJECT_FIELD),
    ]


def _build(spec: str, metadata: MetadataLookup | None) -> list[Column]:
    tokens = parse_column_spec(spec)
    case_width = DEFAULT_CASE_ID_WIDTH
    rest: list[tuple[str, int | None]] = []
    seen: set[str] = set()
    for name, width in tokens:
        if name == CASE_ID_FIELD:
            if width is not None:
                case_width = width
            continue
        if name in SLA_FIELDS:
            continue
        key = name.lower() if name.lower() == JIRA_FIELD else name
        if key in seen:
            continue
        seen.add(key)
        rest.append((name, width))

    columns = [
        Column(
            field_name=CASE_ID_FIELD,
            label=_label_for(CASE_ID_FIELD, metadata),
            data_type="button",
            width=case_width,
            source_field=CASE_ID_FIELD,
        )
    ]
    columns.extend(sla_columns())
    columns.extend(_field_column(name, width, metadata) for name, width in rest)
    return columns


def build_columns(
    spec: str,
    metadata_lookup: MetadataLookup | None = None,
    current_sort: str | None = None,
) -> list[Column]:
    """Build the ordered column list for a drill-down session.

    The case-identifier column is always first, followed by the four SLA
    columns in fixed order, then the remaining spec fields in their given
    order. An unparseable spec degrades to identifier + subject.

    Parameters
    ----------
    spec : str
        Comma-separated ``field[:widthPx]`` tokens.
    metadata_lookup : mapping or callable, optional
        Field name -> ``FieldMetadata`` for human labels and field types.
        Defaults to ``DEFAULT_FIELD_METADATA``.
    current_sort : str, optional
        Active sort field; only logged here, header state is derived on demand
        with ``header_state``.
    """
    metadata = DEFAULT_FIELD_METADATA if metadata_lookup is None else metadata_lookup
    try:
        columns = _build(spec, metadata)
    except Exception as exc:
        logger.warning("Column spec %r could not be parsed, using fallback layout: %s", spec, exc)
        return fallback_columns()
    logger.debug("Built %d columns (sorted by %s)", len(columns), current_sort)
    return columns


def header_state(column: Column, sorted_by: str | None) -> tuple[str, bool]:
    """Return ``(header_class, show_sort_icon)`` for a header cell."""
    if sorted_by and column.field_name == sorted_by:
        return "is-sorted", True
    return ("is-sortable" if column.is_sortable else ""), False


def query_fields(columns: Sequence[Column]) -> list[str]:
    """Dotted field names to request from the data source.

    Virtual SLA columns and the ticket aggregate are derived, never queried.
    """
    out: list[str] = []
    for col in columns:
        if col.is_virtual_sla or col.data_type == "jira":
            continue
        path = col.source_field or to_source_path(col.field_name)
        if path not in out:
            out.append(path)
    return out
