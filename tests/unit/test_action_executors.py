"""Action executor registry and built-in executor tests."""

import json

import httpx
import pytest

from app.domain.exceptions import ExecutionException
from app.infrastructure.services.action_executors import (
    ActionExecutorRegistry,
    LogActionExecutor,
    WebhookActionExecutor,
    build_default_registry,
)
from tests.helpers import RecordingExecutor

TRIGGER = {"tenant_id": "tenant-acme", "table_name": "orders", "operation": "update"}


def test_default_registry_has_builtin_kinds() -> None:
    registry = build_default_registry()
    assert registry.registered_kinds() == ["call_webhook", "log"]
    assert "log" in registry
    assert "send_email" not in registry


def test_unregistered_kind_raises_executor_not_found() -> None:
    registry = ActionExecutorRegistry()
    with pytest.raises(ExecutionException) as exc_info:
        registry.get("send_email")
    assert exc_info.value.error_type == "ExecutorNotFound"
    assert exc_info.value.details["action_kind"] == "send_email"


def test_register_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        ActionExecutorRegistry().register("teleport", RecordingExecutor())


def test_host_executor_replaces_builtin() -> None:
    registry = build_default_registry()
    custom = RecordingExecutor()
    registry.register("log", custom)
    assert registry.get("log") is custom


async def test_log_executor_always_succeeds() -> None:
    result = await LogActionExecutor().execute("log", {"message": "hello"}, TRIGGER)
    assert result.success
    assert result.output == {"message": "hello"}


async def test_webhook_posts_trigger_data() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await WebhookActionExecutor(http_client=client).execute(
            "call_webhook",
            {
                "url": "https://hooks.example.com/orders",
                "headers": {"X-Hook-Token": "secret"},
                "note": "order cancelled",
            },
            TRIGGER,
        )

    assert result.success
    assert result.output["status_code"] == 204
    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert seen[0].headers["X-Hook-Token"] == "secret"
    assert json.loads(seen[0].content) == {
        "action": "call_webhook",
        "parameters": {"url": "https://hooks.example.com/orders", "note": "order cancelled"},
        "trigger_data": TRIGGER,
    }


async def test_webhook_error_status_is_failure() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="down"))
    async with httpx.AsyncClient(transport=transport) as client:
        result = await WebhookActionExecutor(http_client=client).execute(
            "call_webhook", {"url": "https://hooks.example.com/orders"}, TRIGGER
        )
    assert not result.success
    assert "503" in result.error


@pytest.mark.parametrize("status_code", [301, 302, 304, 307])
async def test_webhook_redirect_is_failure(status_code: int) -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(status_code, headers={"Location": "https://elsewhere.example.com"})
    )
    async with httpx.AsyncClient(transport=transport) as client:
        result = await WebhookActionExecutor(http_client=client).execute(
            "call_webhook", {"url": "https://hooks.example.com/orders"}, TRIGGER
        )
    assert not result.success
    assert result.output["status_code"] == status_code


async def test_webhook_transport_error_is_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await WebhookActionExecutor(http_client=client).execute(
            "call_webhook", {"url": "https://hooks.example.com/orders"}, TRIGGER
        )
    assert not result.success
    assert "webhook request failed" in result.error


async def test_webhook_requires_url() -> None:
    result = await WebhookActionExecutor().execute("call_webhook", {}, TRIGGER)
    assert not result.success
