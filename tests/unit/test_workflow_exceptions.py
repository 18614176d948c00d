"""Tests for domain exceptions (error_code, message, details)."""

from app.domain.exceptions import (
    ExecutionException,
    InvalidStateTransitionException,
    MatchException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    ValidationException,
    VersionConflictException,
    WorkflowEngineException,
)


def test_base_exception_default_error_code() -> None:
    """Base WorkflowEngineException uses class name as error_code when not provided."""
    exc = WorkflowEngineException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "WorkflowEngineException"
    assert exc.details == {}


def test_base_exception_to_dict() -> None:
    exc = WorkflowEngineException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid trigger", field="trigger_config")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "trigger_config"}
    assert ValidationException("Invalid").details == {}


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("workflow", "wf-1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.message == "workflow not found: wf-1"
    assert exc.details == {"resource_type": "workflow", "resource_id": "wf-1"}


def test_version_conflict_exception() -> None:
    exc = VersionConflictException("wf-1", 4)
    assert exc.error_code == "VERSION_CONFLICT"
    assert exc.details == {"workflow_id": "wf-1", "version_number": 4}


def test_invalid_state_transition_exception() -> None:
    exc = InvalidStateTransitionException("dead_letter_entry", "dl-1", "resolved", "retry")
    assert exc.error_code == "INVALID_STATE_TRANSITION"
    assert "resolved" in exc.message
    assert exc.details["action"] == "retry"


def test_match_exception_carries_reason() -> None:
    exc = MatchException("wf-1", "cannot compare str with int")
    assert exc.error_code == "MATCH_ERROR"
    assert exc.details["reason"] == "cannot compare str with int"


def test_execution_exception_details() -> None:
    """ExecutionException records error_type, action position, and extra keys."""
    exc = ExecutionException(
        "boom", "ActionException", action_index=1, action_kind="log", traceback="tb"
    )
    assert exc.error_code == "EXECUTION_ERROR"
    assert exc.error_type == "ActionException"
    assert exc.details == {
        "error_type": "ActionException",
        "action_index": 1,
        "action_kind": "log",
        "traceback": "tb",
    }


def test_sql_not_configured_exception() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SERVICE_UNAVAILABLE"
    assert isinstance(exc, WorkflowEngineException)
