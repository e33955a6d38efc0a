# tests/test_todos_api.py

from __future__ import annotations

from datetime import datetime

import httpx
import pytest

from app.core.dependencies import get_todo_repository
from app.main import app
from app.models.todo import Priority

from .fakes import BrokenTodoRepository, InMemoryTodoRepository, make_record

RANK = {"high": 3, "medium": 2, "low": 1}


def ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


async def create(client: httpx.AsyncClient, **fields) -> dict:
    response = await client.post("/api/todos", json=fields)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_health(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"message": "Server running!"}


@pytest.mark.asyncio
async def test_readiness_checks_database(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/health/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_create_toggle_delete_flow(client: httpx.AsyncClient) -> None:
    response = await client.post("/api/todos", json={"text": "Buy milk", "priority": "high"})
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Todo created successfully"
    todo = body["data"]
    assert todo["priority"] == "high"
    assert todo["completed"] is False
    assert todo["completedAt"] is None
    assert todo["createdAt"] == todo["lastModified"]
    assert todo["age"] == 0
    todo_id = todo["id"]

    response = await client.patch(f"/api/todos/{todo_id}/toggle")
    assert response.status_code == 200
    assert response.json()["message"] == "Todo completed"
    assert response.json()["data"]["completed"] is True
    assert response.json()["data"]["completedAt"] is not None

    response = await client.delete(f"/api/todos/{todo_id}")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Todo deleted successfully",
        "data": {"id": todo_id},
    }

    response = await client.get(f"/api/todos/{todo_id}")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Todo not found"}


@pytest.mark.asyncio
async def test_create_defaults_priority_to_medium(client: httpx.AsyncClient) -> None:
    todo = await create(client, text="  Water plants  ")

    assert todo["text"] == "Water plants"
    assert todo["priority"] == "medium"
    assert todo["category"] is None
    assert todo["dueDate"] is None


@pytest.mark.asyncio
async def test_create_lists_all_validation_errors(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/api/todos", json={"text": "   ", "priority": "urgent", "category": "x" * 60}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation error"
    assert sorted(body["errors"]) == sorted(
        [
            "Todo text is required",
            "Priority must be low, medium, or high",
            "Category cannot exceed 50 characters",
        ]
    )


@pytest.mark.asyncio
async def test_create_rejects_non_object_body(client: httpx.AsyncClient) -> None:
    response = await client.post("/api/todos", json=["Buy milk"])

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_toggle_twice_reopens(client: httpx.AsyncClient) -> None:
    todo = await create(client, text="Call mum")

    first = (await client.patch(f"/api/todos/{todo['id']}/toggle")).json()
    second = (await client.patch(f"/api/todos/{todo['id']}/toggle")).json()

    assert second["message"] == "Todo reopened"
    assert second["data"]["completed"] is False
    assert second["data"]["completedAt"] is None
    assert ts(todo["lastModified"]) < ts(first["data"]["lastModified"]) < ts(second["data"]["lastModified"])


@pytest.mark.asyncio
async def test_due_date_with_offset_is_returned_in_utc(client: httpx.AsyncClient) -> None:
    todo = await create(client, text="Call", dueDate="2026-01-02T10:00:00+02:00")

    stored = (await client.get(f"/api/todos/{todo['id']}")).json()["data"]

    assert todo["dueDate"] == stored["dueDate"]
    assert todo["dueDate"].endswith("Z")
    assert ts(todo["dueDate"]) == ts("2026-01-02T08:00:00+00:00")


@pytest.mark.asyncio
async def test_put_updates_present_fields_only(client: httpx.AsyncClient) -> None:
    todo = await create(client, text="Pay rent", priority="low", category="home", dueDate="2026-11-01")

    response = await client.put(
        f"/api/todos/{todo['id']}", json={"completed": True, "category": None}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Todo updated successfully"
    updated = body["data"]
    assert updated["text"] == "Pay rent"
    assert updated["priority"] == "low"
    assert updated["category"] is None
    assert updated["dueDate"].startswith("2026-11-01")
    assert updated["completed"] is True
    assert updated["completedAt"] is not None
    assert updated["createdAt"] == todo["createdAt"]

    stored = (await client.get(f"/api/todos/{todo['id']}")).json()["data"]
    assert stored == updated


@pytest.mark.asyncio
async def test_put_rejects_invalid_update(client: httpx.AsyncClient) -> None:
    todo = await create(client, text="Keep me")

    response = await client.put(f"/api/todos/{todo['id']}", json={"text": "", "priority": "none"})

    assert response.status_code == 400
    assert sorted(response.json()["errors"]) == [
        "Priority must be low, medium, or high",
        "Todo text is required",
    ]
    stored = (await client.get(f"/api/todos/{todo['id']}")).json()["data"]
    assert stored["text"] == "Keep me"


@pytest.mark.asyncio
async def test_priority_route(client: httpx.AsyncClient) -> None:
    todo = await create(client, text="Renew passport")

    response = await client.patch(f"/api/todos/{todo['id']}/priority", json={"priority": "high"})

    assert response.status_code == 200
    assert response.json()["data"]["priority"] == "high"

    response = await client.patch(f"/api/todos/{todo['id']}/priority", json={"priority": "asap"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_but_well_formed_id_is_404(client: httpx.AsyncClient) -> None:
    missing = "a" * 24

    assert (await client.get(f"/api/todos/{missing}")).status_code == 404
    assert (await client.put(f"/api/todos/{missing}", json={"text": "x"})).status_code == 404
    assert (await client.patch(f"/api/todos/{missing}/toggle")).status_code == 404
    assert (await client.delete(f"/api/todos/{missing}")).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path", "body"),
    [
        ("GET", "/api/todos/abc", None),
        ("PUT", "/api/todos/abc", {"text": "x"}),
        ("PATCH", "/api/todos/abc/toggle", None),
        ("PATCH", "/api/todos/abc/priority", {"priority": "high"}),
        ("DELETE", "/api/todos/abc", None),
        ("GET", "/api/todos/" + "g" * 24, None),
    ],
)
async def test_malformed_id_never_reaches_the_store(
    fake_client: httpx.AsyncClient,
    fake_repository: InMemoryTodoRepository,
    method: str,
    path: str,
    body,
) -> None:
    response = await fake_client.request(method, path, json=body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid todo ID format"}
    assert fake_repository.calls == []


@pytest.mark.asyncio
async def test_invalid_update_never_reaches_the_store(
    fake_client: httpx.AsyncClient, fake_repository: InMemoryTodoRepository
) -> None:
    todo = fake_repository.add(make_record())

    response = await fake_client.put(f"/api/todos/{todo.id}", json={"priority": "urgent"})

    assert response.status_code == 400
    assert fake_repository.calls == []


@pytest.mark.asyncio
async def test_list_filters(client: httpx.AsyncClient) -> None:
    for text in ("one", "two", "three"):
        await create(client, text=text)
    done = await create(client, text="four")
    await client.patch(f"/api/todos/{done['id']}/toggle")

    everything = (await client.get("/api/todos", params={"filter": "all"})).json()
    active = (await client.get("/api/todos", params={"filter": "active"})).json()
    completed = (await client.get("/api/todos", params={"filter": "completed"})).json()

    assert all(not todo["completed"] for todo in active["data"])
    assert all(todo["completed"] for todo in completed["data"])
    assert [todo["text"] for todo in completed["data"]] == ["four"]
    assert everything["total"] == active["total"] + completed["total"] == 4


@pytest.mark.asyncio
async def test_list_sorted_by_priority(client: httpx.AsyncClient) -> None:
    for i, priority in enumerate(["low", "high", "medium", "high", "low", "medium"]):
        await create(client, text=f"todo {i}", priority=priority)

    body = (await client.get("/api/todos", params={"sortBy": "priority"})).json()

    keys = [(RANK[todo["priority"]], ts(todo["createdAt"])) for todo in body["data"]]
    assert keys == sorted(keys, reverse=True)


@pytest.mark.asyncio
async def test_list_recent_and_oldest(client: httpx.AsyncClient) -> None:
    for text in ("first", "second", "third"):
        await create(client, text=text)

    recent = (await client.get("/api/todos")).json()
    oldest = (await client.get("/api/todos", params={"sortBy": "oldest"})).json()

    assert [todo["text"] for todo in recent["data"]] == ["third", "second", "first"]
    assert [todo["text"] for todo in oldest["data"]] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_list_by_last_modified(client: httpx.AsyncClient) -> None:
    first = await create(client, text="first")
    await create(client, text="second")
    await client.put(f"/api/todos/{first['id']}", json={"text": "first, edited"})

    body = (await client.get("/api/todos", params={"sortBy": "lastModified"})).json()

    assert [todo["text"] for todo in body["data"]] == ["first, edited", "second"]


@pytest.mark.asyncio
async def test_list_ignores_malformed_priority(client: httpx.AsyncClient) -> None:
    await create(client, text="a", priority="high")
    await create(client, text="b", priority="low")

    body = (await client.get("/api/todos", params={"priority": "urgent"})).json()
    high = (await client.get("/api/todos", params={"priority": "high"})).json()

    assert body["total"] == 2
    assert [todo["text"] for todo in high["data"]] == ["a"]


@pytest.mark.asyncio
async def test_list_clamps_limit(
    fake_client: httpx.AsyncClient, fake_repository: InMemoryTodoRepository
) -> None:
    for minutes in range(120):
        fake_repository.add(make_record(text=f"todo {minutes}", minutes=minutes))

    body = (await fake_client.get("/api/todos", params={"limit": 500})).json()

    assert body["count"] == len(body["data"]) == 100
    assert body["total"] == 120
    assert body["totalPages"] == 2


@pytest.mark.asyncio
async def test_list_pagination(
    fake_client: httpx.AsyncClient, fake_repository: InMemoryTodoRepository
) -> None:
    for minutes in range(25):
        fake_repository.add(make_record(text=f"todo {minutes}", minutes=minutes))

    page_3 = (await fake_client.get("/api/todos", params={"limit": 10, "page": 3})).json()
    page_9 = (await fake_client.get("/api/todos", params={"limit": 10, "page": 9})).json()

    assert [todo["text"] for todo in page_3["data"]] == [f"todo {m}" for m in range(4, -1, -1)]
    assert (page_3["page"], page_3["count"], page_3["total"], page_3["totalPages"]) == (3, 5, 25, 3)
    assert page_9["data"] == []
    assert page_9["count"] == 0
    assert page_9["total"] == 25


@pytest.mark.asyncio
async def test_list_page_far_past_the_end_is_empty(client: httpx.AsyncClient) -> None:
    await create(client, text="only one")

    response = await client.get("/api/todos", params={"page": 10**19})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == []
    assert (body["page"], body["count"], body["total"], body["totalPages"]) == (10**19, 0, 1, 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"page": "two"}])
async def test_list_rejects_bad_pagination(client: httpx.AsyncClient, params) -> None:
    response = await client.get("/api/todos", params=params)

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_delete_completed(client: httpx.AsyncClient) -> None:
    await create(client, text="stay")
    for text in ("done 1", "done 2"):
        todo = await create(client, text=text)
        await client.patch(f"/api/todos/{todo['id']}/toggle")
    completed_before = (await client.get("/api/todos", params={"filter": "completed"})).json()["total"]

    response = await client.delete("/api/todos")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "2 completed todos deleted",
        "deletedCount": completed_before,
    }
    after = (await client.get("/api/todos", params={"filter": "completed"})).json()
    assert after["data"] == []
    assert (await client.get("/api/todos")).json()["total"] == 1


@pytest.mark.asyncio
async def test_stats_summary(client: httpx.AsyncClient) -> None:
    empty = (await client.get("/api/todos/stats/summary")).json()
    assert empty["data"] == {
        "total": 0,
        "active": 0,
        "completed": 0,
        "completionRate": 0,
        "priorityBreakdown": {},
    }

    await create(client, text="a", priority="high")
    await create(client, text="b", priority="high")
    done = await create(client, text="c", priority="low")
    await client.patch(f"/api/todos/{done['id']}/toggle")

    body = (await client.get("/api/todos/stats/summary")).json()

    assert body["success"] is True
    assert body["data"] == {
        "total": 3,
        "active": 2,
        "completed": 1,
        "completionRate": 33,
        "priorityBreakdown": {"high": 2, "low": 1},
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path", "body", "failing", "message"),
    [
        ("GET", "", None, "list", "Error fetching todos"),
        ("GET", "/stats/summary", None, "count", "Error fetching statistics"),
        ("GET", "/stats/summary", None, "priority_breakdown", "Error fetching statistics"),
        ("GET", "/{id}", None, "get_by_id", "Error fetching todo"),
        ("POST", "", {"text": "x"}, "create", "Error creating todo"),
        ("PUT", "/{id}", {"text": "Renamed"}, "update", "Error updating todo"),
        ("PATCH", "/{id}/toggle", None, "update", "Error toggling todo"),
        ("PATCH", "/{id}/priority", {"priority": "high"}, "update", "Error updating todo priority"),
        ("DELETE", "/{id}", None, "delete", "Error deleting todo"),
        ("DELETE", "", None, "delete_where", "Error deleting completed todos"),
    ],
)
async def test_store_errors_become_500_envelopes(
    fake_client: httpx.AsyncClient,
    method: str,
    path: str,
    body: dict | None,
    failing: str,
    message: str,
) -> None:
    repository = BrokenTodoRepository(failing=frozenset({failing}))
    todo = repository.add(make_record(text="Seeded", completed=True))
    app.dependency_overrides[get_todo_repository] = lambda: repository

    response = await fake_client.request(
        method, "/api/todos" + path.format(id=todo.id), json=body
    )

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": message,
        "error": "connection refused",
    }
    assert failing in repository.calls


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


@pytest.mark.asyncio
async def test_get_returns_stored_todo(
    fake_client: httpx.AsyncClient, fake_repository: InMemoryTodoRepository
) -> None:
    todo = fake_repository.add(make_record(text="Stored", priority=Priority.HIGH, category="work"))

    body = (await fake_client.get(f"/api/todos/{todo.id}")).json()

    assert body["success"] is True
    assert body["data"]["id"] == todo.id
    assert body["data"]["category"] == "work"
    assert body["data"]["priority"] == "high"
