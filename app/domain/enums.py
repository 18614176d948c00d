"""Domain enumerations for workflow definitions.

Enums close the set of trigger types, trigger operations, condition
operators, and action kinds that a definition may reference. Anything
outside these sets is rejected at registry-write time.
"""

from enum import Enum


class TriggerType(str, Enum):
    """What causes a workflow to be considered for execution."""

    TABLE_EVENT = "table_event"
    SCHEDULE = "schedule"
    MANUAL = "manual"
    WEBHOOK = "webhook"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid trigger type values as strings."""
        return [t.value for t in cls]


class TriggerOperation(str, Enum):
    """Row operation a table_event trigger listens for ("any" is a wildcard)."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    ANY = "any"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid trigger operation values as strings."""
        return [o.value for o in cls]


class ConditionOperator(str, Enum):
    """Predicate operators available to workflow conditions.

    Operators in UNARY take no comparison value.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    IN = "in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    CHANGED = "changed"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid operator values as strings."""
        return [o.value for o in cls]

    @property
    def is_unary(self) -> bool:
        """True when the operator ignores the comparison value."""
        return self in (
            ConditionOperator.IS_NULL,
            ConditionOperator.IS_NOT_NULL,
            ConditionOperator.CHANGED,
        )


class ActionKind(str, Enum):
    """Kinds of action a workflow may run. Executors are supplied by the host."""

    SEND_EMAIL = "send_email"
    SEND_SMS = "send_sms"
    SEND_NOTIFICATION = "send_notification"
    UPDATE_INVENTORY = "update_inventory"
    UPDATE_RECORD = "update_record"
    CREATE_TASK = "create_task"
    CRM_SYNC = "crm_sync"
    CALL_WEBHOOK = "call_webhook"
    LOG = "log"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid action kind values as strings."""
        return [k.value for k in cls]
