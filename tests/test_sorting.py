from sla_app.core.models import CaseRow, SlaKind, SlaStatus
from sla_app.core.sorting import (
    ASC,
    DESC,
    SortState,
    compare,
    parse_duration_minutes,
    sla_score,
    sort_rows,
)

SLA_VALUES = ["Completed", "/", "2h 0m", "Overdue by 5m", "Violated", "30m", "Overdue by 1h 0m"]


def _rows(field, values):
    return [{"id": i, field: v} for i, v in enumerate(values)]


def test_parse_duration_minutes():
    assert parse_duration_minutes("1d 2h 3m") == 1563
    assert parse_duration_minutes("45m") == 45
    assert parse_duration_minutes("") == 0


def test_sla_scores():
    assert sla_score("Violated") < sla_score("Overdue by 1d 0h 0m")
    assert sla_score("Overdue by 1h 0m") < sla_score("Overdue by 5m") < 0
    assert sla_score("30m") == 30
    assert sla_score("/") < sla_score("Completed")
    assert sla_score(None) == sla_score("/")


def test_sla_ascending_order():
    ordered = [r["RT_Remaining"] for r in sort_rows(_rows("RT_Remaining", SLA_VALUES), "RT_Remaining", ASC)]
    assert ordered == [
        "Violated",
        "Overdue by 1h 0m",
        "Overdue by 5m",
        "30m",
        "2h 0m",
        "/",
        "Completed",
    ]


def test_sla_descending_reverses():
    asc = [r["RT_Remaining"] for r in sort_rows(_rows("RT_Remaining", SLA_VALUES), "RT_Remaining", ASC)]
    desc = [r["RT_Remaining"] for r in sort_rows(_rows("RT_Remaining", SLA_VALUES), "RT_Remaining", DESC)]
    assert desc == list(reversed(asc))


def test_empty_values_first_both_directions():
    rows = _rows("Subject", ["beta", None, "Alpha", "", "gamma"])
    asc = [r["Subject"] for r in sort_rows(rows, "Subject", ASC)]
    desc = [r["Subject"] for r in sort_rows(rows, "Subject", DESC)]
    assert asc == [None, "", "Alpha", "beta", "gamma"]
    assert desc == [None, "", "gamma", "beta", "Alpha"]


def test_numbers_compare_numerically():
    rows = _rows("Age", [10, 9, 100])
    assert [r["Age"] for r in sort_rows(rows, "Age", ASC)] == [9, 10, 100]


def test_sort_is_stable_and_idempotent():
    rows = _rows("Status", ["New", "Open", "New", "Open"])
    once = sort_rows(rows, "Status", ASC)
    assert [r["id"] for r in once] == [0, 2, 1, 3]
    assert sort_rows(once, "Status", ASC) == once


def test_no_field_keeps_input_order():
    rows = _rows("Status", ["b", "a"])
    assert sort_rows(rows, None) == rows


def test_case_row_uses_sla_display():
    a = CaseRow("1", {"RT_Remaining": "ignored"}, sla={"RT_Remaining": SlaStatus(SlaKind.REMAINING, "5m")})
    b = CaseRow("2", {}, sla={"RT_Remaining": SlaStatus(SlaKind.VIOLATED, "Violated")})
    assert compare(a, b, "RT_Remaining", ASC) == 1
    assert compare(a, b, "RT_Remaining", DESC) == -1


def test_sort_state_toggle():
    state = SortState("RT_Remaining", ASC)
    flipped = state.toggle("RT_Remaining")
    assert flipped.direction == DESC
    assert flipped.icon == "utility:arrowdown"
    assert flipped.toggle("RT_Remaining").direction == ASC
    assert flipped.toggle("Subject") == SortState("Subject", ASC)


def test_sla_compare_flips_with_direction():
    hour = {"RT_Remaining": "Overdue by 1h 0m"}
    five = {"RT_Remaining": "Overdue by 5m"}
    violated = {"RT_Remaining": "Violated"}
    assert compare(hour, five, "RT_Remaining", ASC) == -1
    assert compare(hour, five, "RT_Remaining", DESC) == 1
    assert compare(violated, hour, "RT_Remaining", ASC) == -1
    assert compare(violated, hour, "RT_Remaining", DESC) == 1
