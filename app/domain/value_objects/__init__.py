"""Domain value objects: parsed trigger configs, conditions, and actions."""

from app.domain.value_objects.workflow import (
    ActionSpec,
    Condition,
    TriggerSpec,
    is_well_formed_table_name,
    parse_actions,
    parse_conditions,
)

__all__ = [
    "ActionSpec",
    "Condition",
    "TriggerSpec",
    "is_well_formed_table_name",
    "parse_actions",
    "parse_conditions",
]
