"""Evaluate workflow conditions against mutation event rows.

Conditions are a closed predicate set (see ConditionOperator); there is no
expression language. A missing field resolves to None. A comparison that
cannot be made (e.g. "abc" > 5) raises MatchException so the matcher can
skip the definition without affecting its siblings.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from app.application.dtos.mutation_event import MutationEvent
from app.domain.enums import ConditionOperator
from app.domain.exceptions import MatchException
from app.domain.value_objects.workflow import Condition


def resolve_field(row: Mapping[str, Any] | None, path: str) -> Any:
    """Return the value at a dot-separated path, or None when any segment is missing."""
    current: Any = row
    for part in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def _coerce_pair(actual: Any, expected: Any) -> tuple[Any, Any]:
    """Make actual and expected orderable, or raise TypeError.

    Numbers compare with numbers (numeric strings are converted, since many
    datastores serialize decimals as strings); strings compare with strings.
    """
    def is_number(v: Any) -> bool:
        return isinstance(v, (int, float)) and not isinstance(v, bool)

    if is_number(actual) and is_number(expected):
        return actual, expected
    if isinstance(actual, str) and isinstance(expected, str):
        return actual, expected
    if is_number(expected) and isinstance(actual, str):
        return float(actual), expected
    if is_number(actual) and isinstance(expected, str):
        return actual, float(expected)
    raise TypeError(
        f"cannot compare {type(actual).__name__} with {type(expected).__name__}"
    )


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        if not isinstance(expected, str):
            raise TypeError("string field can only contain a string value")
        return expected in actual
    if isinstance(actual, (list, tuple)):
        return expected in actual
    if isinstance(actual, Mapping):
        return expected in actual
    raise TypeError(f"'contains' is not supported on {type(actual).__name__}")


def evaluate_condition(condition: Condition, event: MutationEvent) -> bool:
    """Return whether one condition holds for the event.

    Raises:
        TypeError: If the field value and comparison value cannot be compared.
        ValueError: If a numeric string cannot be converted.
    """
    op = condition.operator
    if op == ConditionOperator.CHANGED:
        if event.old_row is None or event.new_row is None:
            return False
        return resolve_field(event.old_row, condition.field) != resolve_field(
            event.new_row, condition.field
        )

    actual = resolve_field(event.row, condition.field)
    expected = condition.value

    if op == ConditionOperator.IS_NULL:
        return actual is None
    if op == ConditionOperator.IS_NOT_NULL:
        return actual is not None
    if op == ConditionOperator.EQUALS:
        return actual == expected
    if op == ConditionOperator.NOT_EQUALS:
        return actual != expected
    if op == ConditionOperator.IN:
        return actual in expected
    if actual is None:
        return False
    if op == ConditionOperator.CONTAINS:
        return _contains(actual, expected)

    left, right = _coerce_pair(actual, expected)
    if op == ConditionOperator.GREATER_THAN:
        return left > right
    if op == ConditionOperator.GREATER_THAN_OR_EQUAL:
        return left >= right
    if op == ConditionOperator.LESS_THAN:
        return left < right
    if op == ConditionOperator.LESS_THAN_OR_EQUAL:
        return left <= right
    raise ValueError(f"unsupported operator: {op.value}")


def evaluate_conditions(
    workflow_id: str, conditions: Iterable[Condition], event: MutationEvent
) -> bool:
    """Return True when every condition holds (logical AND; empty list holds).

    Raises:
        MatchException: If any condition cannot be evaluated for this event.
    """
    for condition in conditions:
        try:
            if not evaluate_condition(condition, event):
                return False
        except (TypeError, ValueError) as e:
            raise MatchException(
                workflow_id, f"condition on '{condition.field}' ({condition.operator.value}): {e}"
            ) from e
    return True
