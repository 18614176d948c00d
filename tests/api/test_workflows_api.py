"""Tests for workflow endpoints: CRUD, versions, manual runs, executions."""

from httpx import AsyncClient

from tests.helpers import OTHER_TENANT_ID, order_cancelled_workflow

BASE = "/api/v1/workflows"


async def _create(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    response = await client.post(BASE, json=order_cancelled_workflow(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_workflow_returns_201(client: AsyncClient, write_headers) -> None:
    """POST /workflows stores the definition under the caller's tenant."""
    workflow = await _create(client, write_headers)
    assert workflow["tenant_id"] == write_headers["X-Tenant-ID"]
    assert workflow["created_by"] == write_headers["X-Actor-ID"]
    assert workflow["run_count"] == 0
    assert workflow["trigger_config"] == {"table_name": "orders", "operation": "update"}


async def test_create_requires_tenant_header(client: AsyncClient) -> None:
    """Missing X-Tenant-ID is a 400."""
    response = await client.post(BASE, json=order_cancelled_workflow(), headers={"X-Actor-ID": "u"})
    assert response.status_code == 400
    assert "X-Tenant-ID" in response.json()["message"]


async def test_create_requires_actor_header(client: AsyncClient, tenant_headers) -> None:
    """Writes without X-Actor-ID are rejected."""
    response = await client.post(BASE, json=order_cancelled_workflow(), headers=tenant_headers)
    assert response.status_code == 400


async def test_malformed_tenant_header_returns_400(client: AsyncClient) -> None:
    response = await client.get(BASE, headers={"X-Tenant-ID": "bad tenant!"})
    assert response.status_code == 400


async def test_create_invalid_condition_returns_400_with_field(
    client: AsyncClient, write_headers
) -> None:
    """An unknown operator is a VALIDATION_ERROR naming the conditions field."""
    body = order_cancelled_workflow(
        conditions=[{"field": "status", "operator": "matches", "value": "x"}]
    )
    response = await client.post(BASE, json=body, headers=write_headers)
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "VALIDATION_ERROR"
    assert data["details"]["field"] == "conditions"


async def test_create_missing_name_returns_422(client: AsyncClient, write_headers) -> None:
    body = order_cancelled_workflow()
    del body["name"]
    response = await client.post(BASE, json=body, headers=write_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_get_and_list_are_tenant_scoped(client: AsyncClient, write_headers) -> None:
    """Another tenant gets 404 for the id and an empty list."""
    workflow = await _create(client, write_headers)
    other = {"X-Tenant-ID": OTHER_TENANT_ID}

    own = await client.get(f"{BASE}/{workflow['id']}", headers=write_headers)
    foreign = await client.get(f"{BASE}/{workflow['id']}", headers=other)
    listed = await client.get(BASE, headers=other)

    assert own.status_code == 200
    assert foreign.status_code == 404
    assert foreign.json()["error"] == "RESOURCE_NOT_FOUND"
    assert listed.json() == []


async def test_list_can_exclude_inactive(client: AsyncClient, write_headers) -> None:
    await _create(client, write_headers)
    await _create(client, write_headers, name="Paused", is_active=False)

    everything = await client.get(BASE, headers=write_headers)
    active = await client.get(BASE, params={"include_inactive": "false"}, headers=write_headers)

    assert len(everything.json()) == 2
    assert [w["name"] for w in active.json()] == ["Notify on cancellation"]


async def test_update_records_versions(client: AsyncClient, write_headers) -> None:
    """PUT and PUT /active each add a version with a change summary."""
    workflow = await _create(client, write_headers)
    url = f"{BASE}/{workflow['id']}"

    renamed = await client.put(url, json={"name": "Renamed"}, headers=write_headers)
    paused = await client.put(f"{url}/active", json={"is_active": False}, headers=write_headers)
    versions = await client.get(f"{url}/versions", headers=write_headers)

    assert renamed.json()["name"] == "Renamed"
    assert paused.json()["is_active"] is False
    assert [(v["version_number"], v["change_summary"]) for v in versions.json()] == [
        (3, "Status changed"),
        (2, "Name changed"),
        (1, "Initial version"),
    ]


async def test_update_cannot_change_tenant(client: AsyncClient, write_headers) -> None:
    workflow = await _create(client, write_headers)
    response = await client.put(
        f"{BASE}/{workflow['id']}",
        json={"tenant_id": OTHER_TENANT_ID},
        headers=write_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "tenant_id"


async def test_update_unknown_workflow_returns_404(client: AsyncClient, write_headers) -> None:
    response = await client.put(f"{BASE}/nope", json={"name": "x"}, headers=write_headers)
    assert response.status_code == 404


async def test_version_stats_compare_and_restore(client: AsyncClient, write_headers) -> None:
    """Static version routes resolve before /versions/{n}."""
    workflow = await _create(client, write_headers)
    url = f"{BASE}/{workflow['id']}"
    await client.put(url, json={"name": "Renamed"}, headers=write_headers)

    compare = await client.get(
        f"{url}/versions/compare",
        params={"version_a": 1, "version_b": 2},
        headers=write_headers,
    )
    assert compare.status_code == 200
    assert compare.json()["changed_fields"] == ["name"]
    assert compare.json()["to_values"] == {"name": "Renamed"}

    restored = await client.post(f"{url}/versions/1/restore", headers=write_headers)
    assert restored.status_code == 200
    body = restored.json()
    assert body["workflow"]["name"] == "Notify on cancellation"
    assert body["version"]["version_number"] == 3
    assert body["version"]["restored_from_version"] == 1

    stats = await client.get(f"{url}/versions/stats", headers=write_headers)
    assert stats.json()["total_versions"] == 3
    assert stats.json()["restore_count"] == 1

    version_one = await client.get(f"{url}/versions/1", headers=write_headers)
    assert version_one.json()["name"] == "Notify on cancellation"


async def test_compare_missing_version_returns_404(client: AsyncClient, write_headers) -> None:
    workflow = await _create(client, write_headers)
    response = await client.get(
        f"{BASE}/{workflow['id']}/versions/compare",
        params={"version_a": 1, "version_b": 7},
        headers=write_headers,
    )
    assert response.status_code == 404


async def test_run_queues_execution_visible_in_history(client: AsyncClient, write_headers) -> None:
    """POST /run returns 202 with a queued execution."""
    workflow = await _create(client, write_headers)
    url = f"{BASE}/{workflow['id']}"

    run = await client.post(f"{url}/run", json={"payload": {"order_id": "ord-9"}}, headers=write_headers)
    assert run.status_code == 202
    execution = run.json()
    assert execution["status"] == "queued"
    assert execution["trigger_data"]["payload"] == {"order_id": "ord-9"}

    history = await client.get(f"{url}/executions", headers=write_headers)
    fetched = await client.get(f"{BASE}/executions/{execution['id']}", headers=write_headers)
    foreign = await client.get(
        f"{BASE}/executions/{execution['id']}", headers={"X-Tenant-ID": OTHER_TENANT_ID}
    )

    assert [e["id"] for e in history.json()] == [execution["id"]]
    assert fetched.json()["workflow_version"] == 1
    assert foreign.status_code == 404


async def test_run_inactive_workflow_returns_409(client: AsyncClient, write_headers) -> None:
    workflow = await _create(client, write_headers, is_active=False)
    response = await client.post(f"{BASE}/{workflow['id']}/run", headers=write_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATE_TRANSITION"
