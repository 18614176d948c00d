"""Tests for mutation event ingestion (inline path; no bus without lifespan)."""

from httpx import AsyncClient

from tests.helpers import order_cancelled_workflow

URL = "/api/v1/events/mutations"


def _event(status: str, **extra) -> dict:
    return {
        "table_name": "orders",
        "operation": "update",
        "old_row": {"id": "ord-1", "status": "new"},
        "new_row": {"id": "ord-1", "status": status},
        **extra,
    }


async def test_matching_event_queues_execution(client: AsyncClient, write_headers) -> None:
    """A cancelled order triggers the workflow; a shipped one does not."""
    created = await client.post(
        "/api/v1/workflows", json=order_cancelled_workflow(), headers=write_headers
    )
    workflow_id = created.json()["id"]

    cancelled = await client.post(URL, json=_event("cancelled"), headers=write_headers)
    shipped = await client.post(URL, json=_event("shipped"), headers=write_headers)

    assert cancelled.status_code == 202
    assert cancelled.json()["status"] == "ingested"
    assert len(cancelled.json()["queued_execution_ids"]) == 1
    assert shipped.json()["queued_execution_ids"] == []

    history = await client.get(f"/api/v1/workflows/{workflow_id}/executions", headers=write_headers)
    assert [e["id"] for e in history.json()] == cancelled.json()["queued_execution_ids"]


async def test_redelivered_event_id_queues_nothing(client: AsyncClient, write_headers) -> None:
    await client.post("/api/v1/workflows", json=order_cancelled_workflow(), headers=write_headers)
    first = await client.post(URL, json=_event("cancelled", event_id="evt-7"), headers=write_headers)
    again = await client.post(URL, json=_event("cancelled", event_id="evt-7"), headers=write_headers)
    assert len(first.json()["queued_execution_ids"]) == 1
    assert again.json()["queued_execution_ids"] == []


async def test_event_without_workflows_is_accepted(client: AsyncClient, tenant_headers) -> None:
    response = await client.post(URL, json=_event("cancelled"), headers=tenant_headers)
    assert response.status_code == 202
    assert response.json()["queued_execution_ids"] == []


async def test_bad_table_name_returns_400(client: AsyncClient, tenant_headers) -> None:
    response = await client.post(
        URL, json={**_event("cancelled"), "table_name": "Orders; DROP"}, headers=tenant_headers
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "table_name"


async def test_unknown_operation_returns_422(client: AsyncClient, tenant_headers) -> None:
    response = await client.post(
        URL, json={**_event("cancelled"), "operation": "truncate"}, headers=tenant_headers
    )
    assert response.status_code == 422


async def test_event_requires_tenant_header(client: AsyncClient) -> None:
    response = await client.post(URL, json=_event("cancelled"))
    assert response.status_code == 400
