"""Application services: condition evaluation, trigger matching, version diff, retry policy."""

from app.application.services.condition_evaluator import (
    evaluate_condition,
    evaluate_conditions,
    resolve_field,
)
from app.application.services.retry_policy import RetryPolicy
from app.application.services.trigger_matcher import TriggerMatcher
from app.application.services.version_diff import (
    build_change_summary,
    compute_change_details,
)

__all__ = [
    "RetryPolicy",
    "TriggerMatcher",
    "build_change_summary",
    "compute_change_details",
    "evaluate_condition",
    "evaluate_conditions",
    "resolve_field",
]
