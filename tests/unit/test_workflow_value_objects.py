"""Tests for workflow value objects (trigger specs, conditions, actions)."""

import pytest

from app.domain.enums import ActionKind, ConditionOperator, TriggerOperation, TriggerType
from app.domain.value_objects.workflow import (
    ActionSpec,
    Condition,
    TriggerSpec,
    is_well_formed_table_name,
    parse_actions,
    parse_conditions,
)


@pytest.mark.parametrize("name", ["orders", "sales.orders", "_audit", "line_items2"])
def test_well_formed_table_names(name: str) -> None:
    assert is_well_formed_table_name(name)


@pytest.mark.parametrize("name", ["", "Orders", "orders;drop", "a.b.c", "1orders", "x" * 129])
def test_malformed_table_names(name: str) -> None:
    assert not is_well_formed_table_name(name)


def test_trigger_spec_table_event_round_trip() -> None:
    trigger = TriggerSpec.from_config("table_event", {"table_name": "orders", "operation": "UPDATE"})
    assert trigger.trigger_type == TriggerType.TABLE_EVENT
    assert trigger.operation == TriggerOperation.UPDATE
    assert trigger.to_config() == {"table_name": "orders", "operation": "update"}


def test_trigger_spec_table_event_requires_table_and_operation() -> None:
    with pytest.raises(ValueError, match="table_name"):
        TriggerSpec.from_config("table_event", {"operation": "insert"})
    with pytest.raises(ValueError, match="operation"):
        TriggerSpec.from_config("table_event", {"table_name": "orders"})


def test_trigger_spec_rejects_unknown_type_and_operation() -> None:
    with pytest.raises(ValueError, match="trigger_type"):
        TriggerSpec.from_config("on_a_whim", {})
    with pytest.raises(ValueError, match="operation"):
        TriggerSpec.from_config("table_event", {"table_name": "orders", "operation": "upsert"})


def test_trigger_spec_schedule_requires_five_field_cron() -> None:
    assert TriggerSpec.from_config("schedule", {"cron": "0 * * * *"}).cron == "0 * * * *"
    with pytest.raises(ValueError, match="cron"):
        TriggerSpec.from_config("schedule", {"cron": "hourly"})


def test_trigger_spec_manual_takes_no_config() -> None:
    assert TriggerSpec.from_config("manual", None).to_config() == {}


def test_trigger_spec_matches_event() -> None:
    trigger = TriggerSpec.from_config("table_event", {"table_name": "orders", "operation": "update"})
    assert trigger.matches_event("orders", "update")
    assert not trigger.matches_event("orders", "insert")
    assert not trigger.matches_event("customers", "update")


def test_trigger_spec_any_operation_matches_every_operation() -> None:
    trigger = TriggerSpec.from_config("table_event", {"table_name": "orders", "operation": "any"})
    assert all(trigger.matches_event("orders", op) for op in ("insert", "update", "delete"))


def test_non_table_trigger_never_matches_events() -> None:
    assert not TriggerSpec.from_config("manual", {}).matches_event("orders", "insert")


def test_condition_from_dict() -> None:
    cond = Condition.from_dict({"field": "customer.tier", "operator": "equals", "value": "gold"})
    assert cond.operator == ConditionOperator.EQUALS
    assert cond.to_dict() == {"field": "customer.tier", "operator": "equals", "value": "gold"}


def test_condition_rejects_unknown_operator() -> None:
    with pytest.raises(ValueError, match="operator"):
        Condition.from_dict({"field": "status", "operator": "matches", "value": "x"})


def test_condition_rejects_bad_field_path() -> None:
    with pytest.raises(ValueError, match="field"):
        Condition.from_dict({"field": "status; drop", "operator": "equals", "value": "x"})


def test_condition_in_requires_list() -> None:
    with pytest.raises(ValueError, match="list"):
        Condition.from_dict({"field": "status", "operator": "in", "value": "cancelled"})


def test_condition_ordering_requires_scalar() -> None:
    with pytest.raises(ValueError, match="number or string"):
        Condition.from_dict({"field": "total", "operator": "greater_than", "value": [1]})
    with pytest.raises(ValueError, match="number or string"):
        Condition.from_dict({"field": "total", "operator": "greater_than", "value": True})


def test_unary_condition_ignores_value() -> None:
    cond = Condition.from_dict({"field": "shipped_at", "operator": "is_null"})
    assert cond.operator.is_unary


def test_action_spec_from_dict_defaults_parameters() -> None:
    action = ActionSpec.from_dict({"action_kind": "send_email"})
    assert action.action_kind == ActionKind.SEND_EMAIL
    assert action.parameters == {}


def test_action_spec_rejects_unknown_kind_and_bad_parameters() -> None:
    with pytest.raises(ValueError, match="action_kind"):
        ActionSpec.from_dict({"action_kind": "launch_rocket"})
    with pytest.raises(ValueError, match="parameters"):
        ActionSpec.from_dict({"action_kind": "log", "parameters": ["x"]})


def test_parse_lists() -> None:
    assert parse_conditions(None) == []
    assert parse_actions(None) == []
    with pytest.raises(ValueError, match="list"):
        parse_conditions({"field": "status"})
    with pytest.raises(ValueError, match="list"):
        parse_actions("log")
