"""Action executor registry and the engine's built-in executors.

Hosts register their own IActionExecutor implementations (email, SMS,
inventory, CRM sync...) on the registry kept in app.state.action_executors.
The engine ships two: "log" (writes the action to the application log) and
"call_webhook" (POSTs the trigger data to a URL with httpx).
"""

from __future__ import annotations

from typing import Any

import httpx

from app.application.dtos.execution import ActionResult
from app.application.interfaces.services import IActionExecutor
from app.domain.enums import ActionKind
from app.domain.exceptions import ExecutionException
from app.shared.enums import ExecutionErrorType
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ActionExecutorRegistry:
    """Maps action_kind to the executor that runs it."""

    def __init__(self) -> None:
        self._executors: dict[str, IActionExecutor] = {}

    def register(self, action_kind: str | ActionKind, executor: IActionExecutor) -> None:
        """Register (or replace) the executor for an action kind."""
        kind = ActionKind(action_kind).value
        if kind in self._executors:
            logger.info("Replacing executor for action kind %s", kind)
        self._executors[kind] = executor

    def get(self, action_kind: str) -> IActionExecutor:
        """Return the executor for action_kind.

        Raises:
            ExecutionException: ExecutorNotFound when nothing is registered.
        """
        executor = self._executors.get(action_kind)
        if executor is None:
            raise ExecutionException(
                f"No executor registered for action kind '{action_kind}'",
                ExecutionErrorType.EXECUTOR_NOT_FOUND.value,
                action_kind=action_kind,
            )
        return executor

    def registered_kinds(self) -> list[str]:
        return sorted(self._executors)

    def __contains__(self, action_kind: object) -> bool:
        return action_kind in self._executors


class LogActionExecutor:
    """Writes the action and its trigger to the application log. Always succeeds."""

    async def execute(
        self,
        action_kind: str,
        parameters: dict[str, Any],
        trigger_data: dict[str, Any],
    ) -> ActionResult:
        message = parameters.get("message") or f"{action_kind} action"
        logger.info(
            "Workflow action: %s (tenant_id=%s, table=%s, operation=%s)",
            message,
            trigger_data.get("tenant_id"),
            trigger_data.get("table_name"),
            trigger_data.get("operation"),
        )
        return ActionResult.ok(message=message)


class WebhookActionExecutor:
    """POSTs {"action", "parameters", "trigger_data"} as JSON to parameters["url"].

    parameters["headers"] is sent as request headers and left out of the body.
    Anything but a 2xx response (redirects are not followed) or a transport
    error is a failed action, so the execution goes through retry and
    dead-letter handling.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._http = http_client
        self._timeout = timeout_seconds

    async def execute(
        self,
        action_kind: str,
        parameters: dict[str, Any],
        trigger_data: dict[str, Any],
    ) -> ActionResult:
        url = parameters.get("url")
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            return ActionResult.failed("call_webhook requires parameters.url (http/https)")
        headers = parameters.get("headers") or {}
        body = {
            "action": action_kind,
            "parameters": {k: v for k, v in parameters.items() if k != "headers"},
            "trigger_data": trigger_data,
        }
        try:
            if self._http is not None:
                response = await self._http.post(
                    url, json=body, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            return ActionResult.failed(f"webhook request failed: {e}", url=url)
        if not response.is_success:
            return ActionResult.failed(
                f"webhook returned status {response.status_code}",
                url=url,
                status_code=response.status_code,
                response=response.text[:200],
            )
        return ActionResult.ok(url=url, status_code=response.status_code)


def build_default_registry(
    *, http_client: httpx.AsyncClient | None = None
) -> ActionExecutorRegistry:
    """Registry with the built-in executors; hosts add theirs on top."""
    registry = ActionExecutorRegistry()
    registry.register(ActionKind.LOG, LogActionExecutor())
    registry.register(ActionKind.CALL_WEBHOOK, WebhookActionExecutor(http_client=http_client))
    return registry
