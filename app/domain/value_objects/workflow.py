"""Workflow definition value objects.

Trigger configs, conditions, and actions are stored as JSON but always
pass through these immutable types on the way in (registry writes) and on
the way out (matching, execution). Each type validates itself in
__post_init__ and raises ValueError; the registry maps that to
ValidationException.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from app.domain.enums import ActionKind, ConditionOperator, TriggerOperation, TriggerType

# Optional schema prefix, lowercase snake_case identifiers (e.g. orders, sales.orders).
_TABLE_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*(\.[a-z_][a-z0-9_]*)?$")
# Dot-separated field path into the row (e.g. status, customer.tier).
_FIELD_PATH_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z0-9_]+)*$")
_TABLE_NAME_MAX_LENGTH = 128
_CRON_FIELD_COUNT = 5


def is_well_formed_table_name(value: str) -> bool:
    """Return True if value is a non-empty, syntactically valid table name."""
    return bool(value) and len(value) <= _TABLE_NAME_MAX_LENGTH and bool(
        _TABLE_NAME_RE.fullmatch(value)
    )


@dataclass(frozen=True)
class TriggerSpec:
    """Parsed trigger configuration for one trigger type.

    table_event requires table_name and operation; schedule requires a
    five-field cron expression; manual and webhook take no required keys.
    """

    trigger_type: TriggerType
    table_name: str | None = None
    operation: TriggerOperation | None = None
    cron: str | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        if self.trigger_type == TriggerType.TABLE_EVENT:
            if not self.table_name or not is_well_formed_table_name(self.table_name):
                raise ValueError(
                    "trigger_config.table_name must be a lowercase identifier "
                    "(letters, digits, underscore; optional schema prefix)"
                )
            if self.operation is None:
                raise ValueError("trigger_config.operation is required for table_event triggers")
        elif self.trigger_type == TriggerType.SCHEDULE:
            if not self.cron or len(self.cron.split()) != _CRON_FIELD_COUNT:
                raise ValueError("trigger_config.cron must be a five-field cron expression")

    @classmethod
    def from_config(cls, trigger_type: str | TriggerType, config: dict[str, Any] | None) -> "TriggerSpec":
        """Build from stored/requested trigger_type and trigger_config.

        Raises:
            ValueError: If trigger_type is unknown or config is malformed.
        """
        if not isinstance(config, dict):
            if config is not None:
                raise ValueError("trigger_config must be an object")
            config = {}
        try:
            ttype = TriggerType(trigger_type)
        except ValueError:
            raise ValueError(
                f"trigger_type must be one of {TriggerType.values()}, got {trigger_type!r}"
            ) from None
        raw_op = config.get("operation")
        operation: TriggerOperation | None = None
        if raw_op is not None:
            try:
                operation = TriggerOperation(str(raw_op).lower())
            except ValueError:
                raise ValueError(
                    f"trigger_config.operation must be one of {TriggerOperation.values()}, got {raw_op!r}"
                ) from None
        table_name = config.get("table_name")
        if table_name is not None and not isinstance(table_name, str):
            raise ValueError("trigger_config.table_name must be a string")
        return cls(
            trigger_type=ttype,
            table_name=table_name,
            operation=operation,
            cron=config.get("cron"),
            path=config.get("path"),
        )

    def to_config(self) -> dict[str, Any]:
        """Return the JSON form stored in trigger_config."""
        config: dict[str, Any] = {}
        if self.table_name is not None:
            config["table_name"] = self.table_name
        if self.operation is not None:
            config["operation"] = self.operation.value
        if self.cron is not None:
            config["cron"] = self.cron
        if self.path is not None:
            config["path"] = self.path
        return config

    def matches_event(self, table_name: str, operation: str) -> bool:
        """Return True if this is a table_event trigger for (table_name, operation)."""
        if self.trigger_type != TriggerType.TABLE_EVENT:
            return False
        if self.table_name != table_name:
            return False
        return self.operation == TriggerOperation.ANY or (
            self.operation is not None and self.operation.value == operation
        )


@dataclass(frozen=True)
class Condition:
    """One predicate: field path, operator, comparison value."""

    field: str
    operator: ConditionOperator
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not _FIELD_PATH_RE.fullmatch(self.field):
            raise ValueError(f"condition field must be a dot-separated path, got {self.field!r}")
        if self.operator.is_unary:
            return
        if self.operator == ConditionOperator.IN:
            if not isinstance(self.value, list):
                raise ValueError(f"condition '{self.field}': 'in' requires a list value")
        elif self.operator in (
            ConditionOperator.GREATER_THAN,
            ConditionOperator.GREATER_THAN_OR_EQUAL,
            ConditionOperator.LESS_THAN,
            ConditionOperator.LESS_THAN_OR_EQUAL,
        ):
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, str)):
                raise ValueError(
                    f"condition '{self.field}': '{self.operator.value}' requires a number or string value"
                )
        elif self.value is None and self.operator == ConditionOperator.CONTAINS:
            raise ValueError(f"condition '{self.field}': 'contains' requires a value")

    @classmethod
    def from_dict(cls, data: Any) -> "Condition":
        """Parse {"field", "operator", "value"}. Raises ValueError when malformed."""
        if not isinstance(data, dict):
            raise ValueError("each condition must be an object")
        raw_op = data.get("operator")
        try:
            operator = ConditionOperator(raw_op)
        except ValueError:
            raise ValueError(
                f"condition operator must be one of {ConditionOperator.values()}, got {raw_op!r}"
            ) from None
        return cls(field=data.get("field"), operator=operator, value=data.get("value"))

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


@dataclass(frozen=True)
class ActionSpec:
    """One action: kind plus opaque parameters handed to the executor."""

    action_kind: ActionKind
    parameters: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, dict):
            raise ValueError(f"action '{self.action_kind.value}': parameters must be an object")

    @classmethod
    def from_dict(cls, data: Any) -> "ActionSpec":
        """Parse {"action_kind", "parameters"}. Raises ValueError when malformed."""
        if not isinstance(data, dict):
            raise ValueError("each action must be an object")
        raw_kind = data.get("action_kind")
        try:
            kind = ActionKind(raw_kind)
        except ValueError:
            raise ValueError(
                f"action_kind must be one of {ActionKind.values()}, got {raw_kind!r}"
            ) from None
        parameters = data.get("parameters")
        return cls(action_kind=kind, parameters={} if parameters is None else parameters)

    def to_dict(self) -> dict[str, Any]:
        return {"action_kind": self.action_kind.value, "parameters": dict(self.parameters)}


def parse_conditions(raw: Any) -> list[Condition]:
    """Parse a stored/requested condition list (None means no conditions)."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("conditions must be a list")
    return [Condition.from_dict(c) for c in raw]


def parse_actions(raw: Any) -> list[ActionSpec]:
    """Parse a stored/requested action list."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("actions must be a list")
    return [ActionSpec.from_dict(a) for a in raw]
