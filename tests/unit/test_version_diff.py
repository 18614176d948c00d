"""Tests for version snapshot diffing and change summaries."""

from app.application.services.version_diff import (
    INITIAL_VERSION_SUMMARY,
    NO_CHANGES_SUMMARY,
    TRACKED_FIELDS,
    build_change_summary,
    changed_values,
    compute_change_details,
)

BASE = {
    "name": "Notify",
    "description": None,
    "trigger_type": "table_event",
    "trigger_config": {"table_name": "orders", "operation": "update"},
    "conditions": [],
    "actions": [{"action_kind": "log", "parameters": {}}],
    "is_active": True,
}


def test_initial_snapshot_has_no_flags() -> None:
    details = compute_change_details(None, BASE)
    assert details == {field: False for field in TRACKED_FIELDS}
    assert build_change_summary(details, is_initial=True) == INITIAL_VERSION_SUMMARY


def test_identical_snapshots_report_no_changes() -> None:
    details = compute_change_details(BASE, dict(BASE))
    assert not any(details.values())
    assert build_change_summary(details) == NO_CHANGES_SUMMARY


def test_name_and_actions_changed() -> None:
    new = {**BASE, "name": "Notify v2", "actions": []}
    details = compute_change_details(BASE, new)
    assert details["name"] and details["actions"]
    assert not details["conditions"]
    assert build_change_summary(details) == "Name changed, Actions modified"


def test_trigger_type_change_flags_trigger() -> None:
    new = {**BASE, "trigger_type": "manual"}
    assert compute_change_details(BASE, new)["trigger_config"]


def test_description_is_not_tracked() -> None:
    new = {**BASE, "description": "now documented"}
    assert not any(compute_change_details(BASE, new).values())


def test_detection_is_symmetric() -> None:
    new = {**BASE, "is_active": False, "conditions": [{"field": "x", "operator": "is_null"}]}
    assert compute_change_details(BASE, new) == compute_change_details(new, BASE)


def test_changed_values_only_for_flagged_fields() -> None:
    new = {**BASE, "trigger_type": "manual", "trigger_config": {}}
    details = compute_change_details(BASE, new)
    assert changed_values(new, details) == {"trigger_type": "manual", "trigger_config": {}}
