# tests/test_issues.py — Issue router tests
import asyncio

import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers, get_identity_headers, create_issue, create_workspace


async def _activities(client, issue_id):
    return (await client.get(f"/api/v1/issues/{issue_id}/activities")).json()


@pytest.mark.asyncio
async def test_create_issue(client: AsyncClient, workspace, statuses, test_user):
    """Issues get number 1 first and come back enriched"""
    todo = statuses[1]
    issue = await create_issue(
        client, test_user, workspace["id"], todo["id"],
        title="Login page", description="Build it", estimate=3,
        assignee_id=test_user.id,
    )
    assert issue["number"] == 1
    assert issue["archived"] is False
    assert issue["priority"] == "medium"
    assert issue["status"]["id"] == todo["id"]
    assert issue["creator"]["id"] == test_user.id
    assert issue["assignee"]["id"] == test_user.id
    assert issue["estimate"] == 3
    assert issue["created_at"] == issue["updated_at"]

    activities = await _activities(client, issue["id"])
    assert len(activities) == 1
    assert activities[0]["type"] == "created"
    assert activities[0]["user"]["id"] == test_user.id


@pytest.mark.asyncio
async def test_create_then_get_by_number(client: AsyncClient, workspace, statuses, test_user):
    created = await create_issue(client, test_user, workspace["id"], statuses[0]["id"], title="Round trip")
    resp = await client.get(f"/api/v1/workspaces/{workspace['id']}/issues/{created['number']}")
    assert resp.status_code == 200
    assert resp.json() == created


@pytest.mark.asyncio
async def test_get_unknown_number_is_null(client: AsyncClient, workspace):
    resp = await client.get(f"/api/v1/workspaces/{workspace['id']}/issues/999")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_numbers_are_per_workspace(client: AsyncClient, workspace, statuses, test_user):
    other = await create_workspace(client, test_user, name="Globex", identifier="globex")
    other_status = (await client.get(f"/api/v1/workspaces/{other['id']}/statuses")).json()[0]

    a1 = await create_issue(client, test_user, workspace["id"], statuses[0]["id"])
    a2 = await create_issue(client, test_user, workspace["id"], statuses[0]["id"])
    b1 = await create_issue(client, test_user, other["id"], other_status["id"])
    assert (a1["number"], a2["number"], b1["number"]) == (1, 2, 1)


@pytest.mark.asyncio
async def test_concurrent_creates_get_contiguous_numbers(client: AsyncClient, workspace, statuses, test_user):
    """Parallel creates never share or skip a number"""
    status_id = statuses[0]["id"]
    await create_issue(client, test_user, workspace["id"], status_id)

    results = await asyncio.gather(*[
        create_issue(client, test_user, workspace["id"], status_id, title=f"Parallel {i}")
        for i in range(10)
    ])
    numbers = sorted(r["number"] for r in results)
    assert numbers == list(range(2, 12))


@pytest.mark.asyncio
async def test_create_rejects_foreign_status(client: AsyncClient, workspace, test_user, other_user):
    other = await create_workspace(client, other_user, name="Globex", identifier="globex")
    foreign = (await client.get(f"/api/v1/workspaces/{other['id']}/statuses")).json()[0]

    resp = await client.post(
        f"/api/v1/workspaces/{workspace['id']}/issues",
        json={"title": "Misfiled", "status_id": foreign["id"]},
        headers=get_auth_headers(test_user),
    )
    assert resp.status_code == 404

    # The failed create must not consume a number
    own_status = (await client.get(f"/api/v1/workspaces/{workspace['id']}/statuses")).json()[0]
    created = await create_issue(client, test_user, workspace["id"], own_status["id"])
    assert created["number"] == 1


@pytest.mark.asyncio
async def test_create_in_missing_workspace(client: AsyncClient, statuses, test_user):
    resp = await client.post(
        "/api/v1/workspaces/missing/issues",
        json={"title": "Lost", "status_id": statuses[0]["id"]},
        headers=get_auth_headers(test_user),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_synced_user(client: AsyncClient, workspace, statuses):
    resp = await client.post(
        f"/api/v1/workspaces/{workspace['id']}/issues",
        json={"title": "Anon", "status_id": statuses[0]["id"]},
        headers=get_identity_headers("idp|unsynced"),
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User not found"


@pytest.mark.asyncio
async def test_list_issues_newest_first(client: AsyncClient, workspace, statuses, test_user):
    for _ in range(3):
        await create_issue(client, test_user, workspace["id"], statuses[0]["id"])
    resp = await client.get(f"/api/v1/workspaces/{workspace['id']}/issues")
    assert [i["number"] for i in resp.json()] == [3, 2, 1]


@pytest.mark.asyncio
async def test_list_filters_combine(client: AsyncClient, workspace, statuses, test_user, other_user):
    todo, doing = statuses[1]["id"], statuses[2]["id"]
    ws_id = workspace["id"]
    await create_issue(client, test_user, ws_id, todo, assignee_id=test_user.id)
    await create_issue(client, test_user, ws_id, todo, assignee_id=other_user.id)
    await create_issue(client, test_user, ws_id, doing, assignee_id=test_user.id)

    by_status = await client.get(f"/api/v1/workspaces/{ws_id}/issues", params={"status_id": todo})
    assert [i["number"] for i in by_status.json()] == [2, 1]

    both = await client.get(
        f"/api/v1/workspaces/{ws_id}/issues",
        params={"status_id": todo, "assignee_id": test_user.id},
    )
    assert [i["number"] for i in both.json()] == [1]


@pytest.mark.asyncio
async def test_filter_by_project(client: AsyncClient, workspace, statuses, test_user):
    project = (await client.post(
        f"/api/v1/workspaces/{workspace['id']}/projects",
        json={"name": "Website", "identifier": "WEB"},
        headers=get_auth_headers(test_user),
    )).json()
    await create_issue(client, test_user, workspace["id"], statuses[0]["id"], project_id=project["id"])
    await create_issue(client, test_user, workspace["id"], statuses[0]["id"])

    resp = await client.get(
        f"/api/v1/workspaces/{workspace['id']}/issues",
        params={"project_id": project["id"]},
    )
    data = resp.json()
    assert len(data) == 1
    assert data[0]["project"]["identifier"] == "WEB"


@pytest.mark.asyncio
async def test_update_title_logs_once(client: AsyncClient, workspace, statuses, test_user):
    headers = get_auth_headers(test_user)
    issue = await create_issue(client, test_user, workspace["id"], statuses[0]["id"], title="Old")

    resp = await client.patch(f"/api/v1/issues/{issue['id']}", json={"title": "New"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "New"

    updates = [a for a in await _activities(client, issue["id"]) if a["type"] == "updated"]
    assert len(updates) == 1
    assert updates[0]["field"] == "title"
    assert updates[0]["old_value"] == "Old"
    assert updates[0]["new_value"] == "New"

    await client.patch(f"/api/v1/issues/{issue['id']}", json={"title": "New"}, headers=headers)
    updates = [a for a in await _activities(client, issue["id"]) if a["type"] == "updated"]
    assert len(updates) == 1


@pytest.mark.asyncio
async def test_update_multiple_fields(client: AsyncClient, workspace, statuses, test_user):
    headers = get_auth_headers(test_user)
    issue = await create_issue(client, test_user, workspace["id"], statuses[0]["id"], priority="low")

    resp = await client.patch(
        f"/api/v1/issues/{issue['id']}",
        json={"status_id": statuses[2]["id"], "priority": "urgent", "estimate": 5},
        headers=headers,
    )
    data = resp.json()
    assert data["status"]["name"] == "In Progress"
    assert data["priority"] == "urgent"
    assert data["updated_at"] >= issue["updated_at"]

    updates = {a["field"]: a for a in await _activities(client, issue["id"]) if a["type"] == "updated"}
    assert set(updates) == {"status_id", "priority", "estimate"}
    assert updates["priority"]["old_value"] == "low"
    assert updates["priority"]["new_value"] == "urgent"
    assert updates["estimate"]["old_value"] is None


@pytest.mark.asyncio
async def test_update_activities_follow_field_order(client: AsyncClient, workspace, statuses, test_user):
    headers = get_auth_headers(test_user)
    issue = await create_issue(client, test_user, workspace["id"], statuses[0]["id"], title="Old", estimate=3)

    await client.patch(
        f"/api/v1/issues/{issue['id']}",
        json={"estimate": 5, "priority": "high", "title": "New"},
        headers=headers,
    )

    updates = [a for a in await _activities(client, issue["id"]) if a["type"] == "updated"]
    assert [a["field"] for a in updates] == ["title", "priority", "estimate"]
    assert len({a["created_at"] for a in updates}) == 1
    assert (updates[2]["old_value"], updates[2]["new_value"]) == ("3", "5")


@pytest.mark.asyncio
async def test_clearing_assignee_records_absent_value(client: AsyncClient, workspace, statuses, test_user):
    headers = get_auth_headers(test_user)
    issue = await create_issue(
        client, test_user, workspace["id"], statuses[0]["id"], assignee_id=test_user.id,
    )
    resp = await client.patch(f"/api/v1/issues/{issue['id']}", json={"assignee_id": None}, headers=headers)
    assert resp.json()["assignee"] is None

    update = [a for a in await _activities(client, issue["id"]) if a["type"] == "updated"][0]
    assert update["field"] == "assignee_id"
    assert update["old_value"] == test_user.id
    assert update["new_value"] is None


@pytest.mark.asyncio
async def test_update_rejects_null_title(client: AsyncClient, workspace, statuses, test_user):
    issue = await create_issue(client, test_user, workspace["id"], statuses[0]["id"])
    resp = await client.patch(
        f"/api/v1/issues/{issue['id']}",
        json={"title": None},
        headers=get_auth_headers(test_user),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_missing_issue(client: AsyncClient, test_user):
    resp = await client.patch(
        "/api/v1/issues/missing",
        json={"title": "Nope"},
        headers=get_auth_headers(test_user),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_requires_auth(client: AsyncClient, workspace, statuses, test_user):
    issue = await create_issue(client, test_user, workspace["id"], statuses[0]["id"])
    resp = await client.patch(f"/api/v1/issues/{issue['id']}", json={"title": "Anon"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_delete_archives_issue(client: AsyncClient, workspace, statuses, test_user):
    headers = get_auth_headers(test_user)
    issue = await create_issue(client, test_user, workspace["id"], statuses[0]["id"])
    await client.post(f"/api/v1/issues/{issue['id']}/comments", json={"content": "Keep me"}, headers=headers)

    resp = await client.delete(f"/api/v1/issues/{issue['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "archived"

    listed = (await client.get(f"/api/v1/workspaces/{workspace['id']}/issues")).json()
    assert listed == []

    direct = (await client.get(f"/api/v1/workspaces/{workspace['id']}/issues/{issue['number']}")).json()
    assert direct["archived"] is True
    comments = (await client.get(f"/api/v1/issues/{issue['id']}/comments")).json()
    assert len(comments) == 1


@pytest.mark.asyncio
async def test_delete_unknown_issue_is_noop(client: AsyncClient, test_user):
    resp = await client.delete("/api/v1/issues/missing", headers=get_auth_headers(test_user))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_delete_requires_auth(client: AsyncClient):
    resp = await client.delete("/api/v1/issues/missing")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_search_matches_text_and_number(client: AsyncClient, workspace, statuses, test_user):
    ws_id, status_id = workspace["id"], statuses[0]["id"]
    await create_issue(client, test_user, ws_id, status_id, title="Alpha")
    await create_issue(client, test_user, ws_id, status_id, title="Beta release")
    await create_issue(client, test_user, ws_id, status_id, title="Gamma", description="Needs BETA testers")
    archived = await create_issue(client, test_user, ws_id, status_id, title="Old beta")
    await client.delete(f"/api/v1/issues/{archived['id']}", headers=get_auth_headers(test_user))

    by_text = await client.get(f"/api/v1/workspaces/{ws_id}/issues/search", params={"q": "beta"})
    assert sorted(i["number"] for i in by_text.json()) == [2, 3]

    by_number = await client.get(f"/api/v1/workspaces/{ws_id}/issues/search", params={"q": "1"})
    assert [i["title"] for i in by_number.json()] == ["Alpha"]


@pytest.mark.asyncio
async def test_search_caps_results(client: AsyncClient, workspace, statuses, test_user):
    for i in range(52):
        await create_issue(client, test_user, workspace["id"], statuses[0]["id"], title=f"Bulk {i}")

    resp = await client.get(f"/api/v1/workspaces/{workspace['id']}/issues/search", params={"q": "bulk"})
    data = resp.json()
    assert len(data) == 50
    assert all(i["status"] is not None for i in data)


@pytest.mark.asyncio
async def test_search_empty_term_returns_all(client: AsyncClient, workspace, statuses, test_user):
    ws_id, status_id = workspace["id"], statuses[0]["id"]
    await create_issue(client, test_user, ws_id, status_id, title="Alpha")
    await create_issue(client, test_user, ws_id, status_id, title="Beta")
    archived = await create_issue(client, test_user, ws_id, status_id, title="Gamma")
    await client.delete(f"/api/v1/issues/{archived['id']}", headers=get_auth_headers(test_user))

    resp = await client.get(f"/api/v1/workspaces/{ws_id}/issues/search", params={"q": ""})
    assert resp.status_code == 200
    assert [i["title"] for i in resp.json()] == ["Alpha", "Beta"]

    no_param = await client.get(f"/api/v1/workspaces/{ws_id}/issues/search")
    assert no_param.status_code == 200
    assert len(no_param.json()) == 2
