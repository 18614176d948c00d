"""Diff workflow definition snapshots for the version ledger."""

from collections.abc import Mapping
from typing import Any

# Fields whose changes are flagged in change_details and compare results.
TRACKED_FIELDS: tuple[str, ...] = (
    "name",
    "actions",
    "trigger_config",
    "conditions",
    "is_active",
)

_SUMMARY_LABELS: dict[str, str] = {
    "name": "Name changed",
    "actions": "Actions modified",
    "trigger_config": "Trigger changed",
    "conditions": "Conditions modified",
    "is_active": "Status changed",
}

INITIAL_VERSION_SUMMARY = "Initial version"
NO_CHANGES_SUMMARY = "No changes"


def _field_changed(field: str, old: Mapping[str, Any], new: Mapping[str, Any]) -> bool:
    if field == "trigger_config":
        # A trigger is its type plus its config.
        return old.get("trigger_type") != new.get("trigger_type") or old.get(
            "trigger_config"
        ) != new.get("trigger_config")
    return old.get(field) != new.get(field)


def compute_change_details(
    old: Mapping[str, Any] | None, new: Mapping[str, Any]
) -> dict[str, bool]:
    """Return {field: changed} for every tracked field.

    With no previous snapshot every flag is False; the summary carries
    "Initial version" instead.
    """
    if old is None:
        return {field: False for field in TRACKED_FIELDS}
    return {field: _field_changed(field, old, new) for field in TRACKED_FIELDS}


def build_change_summary(details: Mapping[str, bool], *, is_initial: bool = False) -> str:
    """Human-readable summary, e.g. "Name changed, Actions modified"."""
    if is_initial:
        return INITIAL_VERSION_SUMMARY
    labels = [_SUMMARY_LABELS[f] for f in TRACKED_FIELDS if details.get(f)]
    return ", ".join(labels) if labels else NO_CHANGES_SUMMARY


def changed_values(
    snapshot: Mapping[str, Any], details: Mapping[str, bool]
) -> dict[str, Any]:
    """Return the snapshot's values for the flagged fields only."""
    values: dict[str, Any] = {}
    for field in TRACKED_FIELDS:
        if not details.get(field):
            continue
        if field == "trigger_config":
            values["trigger_type"] = snapshot.get("trigger_type")
        values[field] = snapshot.get(field)
    return values
