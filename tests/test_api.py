"""
HTTP surface tests for /api/todos, /api/settings and /health.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text

from todo_api.database import get_database
from todo_api.main import create_app


async def _create(client, **body) -> dict:
    response = await client.post("/api/todos", json=body)
    assert response.status_code == 200, response.text
    return response.json()


class TestTodoRoutes:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_create_returns_full_task(self, client):
        todo = await _create(client, title="Buy milk", priority=2, due_date="2026-10-20")

        assert todo == {
            "id": todo["id"],
            "parent_id": None,
            "title": "Buy milk",
            "completed": False,
            "sort_order": 0,
            "description": "",
            "priority": 2,
            "due_date": "2026-10-20",
        }

    @pytest.mark.asyncio
    async def test_create_without_title_is_400(self, client):
        response = await client.post("/api/todos", json={"description": "no title"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"]

    @pytest.mark.asyncio
    async def test_create_with_empty_title_is_400(self, client):
        response = await client.post("/api/todos", json={"title": ""})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_fields_are_rejected(self, client):
        response = await client.post("/api/todos", json={"title": "x", "colour": "red"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_is_ordered(self, client):
        first = await _create(client, title="first")
        second = await _create(client, title="second")
        await client.put("/api/todos/reorder", json={"updates": [
            {"id": first["id"], "sort_order": 1},
            {"id": second["id"], "sort_order": 0},
        ]})

        response = await client.get("/api/todos")

        assert response.status_code == 200
        assert [t["title"] for t in response.json()] == ["second", "first"]

    @pytest.mark.asyncio
    async def test_patch_reports_updated_count(self, client):
        todo = await _create(client, title="Draft")

        response = await client.put(f"/api/todos/{todo['id']}", json={"completed": True})

        assert response.status_code == 200
        assert response.json() == {"updated": 1}
        [stored] = (await client.get("/api/todos")).json()
        assert stored["completed"] is True
        assert stored["title"] == "Draft"

    @pytest.mark.asyncio
    async def test_patch_missing_id_is_zero_not_error(self, client):
        response = await client.put("/api/todos/999", json={"title": "ghost"})

        assert response.status_code == 200
        assert response.json() == {"updated": 0}

    @pytest.mark.asyncio
    async def test_patch_with_no_fields_is_400(self, client):
        todo = await _create(client, title="Draft")

        response = await client.put(f"/api/todos/{todo['id']}", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "No update fields provided"

    @pytest.mark.asyncio
    async def test_patch_null_title_is_400(self, client):
        todo = await _create(client, title="Draft")

        response = await client.put(f"/api/todos/{todo['id']}", json={"title": None})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_status_recursive_cascades(self, client):
        a = await _create(client, title="A")
        b = await _create(client, title="B", parent_id=a["id"])
        await _create(client, title="C", parent_id=b["id"])

        response = await client.put(
            f"/api/todos/{a['id']}/status-recursive", json={"completed": True}
        )

        assert response.status_code == 200
        assert response.json() == {"updated": 3}
        todos = (await client.get("/api/todos")).json()
        assert all(t["completed"] for t in todos)

    @pytest.mark.asyncio
    async def test_status_recursive_missing_id(self, client):
        response = await client.put(
            "/api/todos/404/status-recursive", json={"completed": True}
        )

        assert response.status_code == 200
        assert response.json() == {"updated": 0}

    @pytest.mark.asyncio
    async def test_reorder_requires_an_array(self, client):
        response = await client.put("/api/todos/reorder", json={"updates": {"id": 1}})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_reorder_cycle_is_400_and_nothing_changes(self, client):
        a = await _create(client, title="A")
        b = await _create(client, title="B", parent_id=a["id"])
        before = (await client.get("/api/todos")).json()

        response = await client.put("/api/todos/reorder", json={"updates": [
            {"id": b["id"], "parent_id": None, "sort_order": 3},
            {"id": a["id"], "parent_id": b["id"], "sort_order": 0},
            {"id": b["id"], "parent_id": a["id"], "sort_order": 1},
        ]})

        assert response.status_code == 400
        assert response.json()["error"] == "cycle_detected"
        assert (await client.get("/api/todos")).json() == before

    @pytest.mark.asyncio
    async def test_reorder_success(self, client):
        a = await _create(client, title="A")
        b = await _create(client, title="B")

        response = await client.put("/api/todos/reorder", json={"updates": [
            {"id": b["id"], "parent_id": a["id"], "sort_order": 2},
        ]})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        todos = {t["id"]: t for t in (await client.get("/api/todos")).json()}
        assert todos[b["id"]]["parent_id"] == a["id"]
        assert todos[b["id"]]["sort_order"] == 2

    @pytest.mark.asyncio
    async def test_delete_cascades(self, client):
        a = await _create(client, title="A")
        b = await _create(client, title="B", parent_id=a["id"])
        await _create(client, title="C", parent_id=b["id"])
        keep = await _create(client, title="Keep")

        response = await client.delete(f"/api/todos/{a['id']}")

        assert response.status_code == 200
        assert response.json() == {"deleted": 3}
        assert [t["id"] for t in (await client.get("/api/todos")).json()] == [keep["id"]]

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, client):
        response = await client.post(
            "/api/todos",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400


class TestSettingsRoutes:

    @pytest.mark.asyncio
    async def test_empty_settings(self, client):
        response = await client.get("/api/settings")

        assert response.status_code == 200
        assert response.json() == {}

    @pytest.mark.asyncio
    async def test_save_and_read_back_as_text(self, client):
        response = await client.post(
            "/api/settings",
            json={"intro_shown": True, "theme": "dark", "font_size": 14},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert (await client.get("/api/settings")).json() == {
            "intro_shown": "true",
            "theme": "dark",
            "font_size": "14",
        }

    @pytest.mark.asyncio
    async def test_last_write_wins(self, client):
        await client.post("/api/settings", json={"theme": "dark"})
        await client.post("/api/settings", json={"theme": "light"})

        assert (await client.get("/api/settings")).json() == {"theme": "light"}

    @pytest.mark.asyncio
    async def test_non_object_body_is_400(self, client):
        response = await client.post("/api/settings", json=["theme", "dark"])

        assert response.status_code == 400


class TestLifespan:

    @pytest.mark.asyncio
    async def test_lifespan_opens_and_closes_store(self, app_settings):
        app = create_app(app_settings)

        async with app.router.lifespan_context(app):
            database = app.state.database
            assert database.is_open
            assert database.path == app_settings.database_path

        assert not database.is_open


class TestDueDate:

    @pytest.mark.asyncio
    async def test_empty_due_date_is_stored_as_null(self, client):
        todo = await _create(client, title="Someday", due_date="")

        assert todo["due_date"] is None

    @pytest.mark.asyncio
    async def test_patch_with_empty_due_date_clears_it(self, client):
        todo = await _create(client, title="Dated", due_date="2026-10-20")

        response = await client.put(f"/api/todos/{todo['id']}", json={"due_date": ""})

        assert response.status_code == 200
        [stored] = (await client.get("/api/todos")).json()
        assert stored["due_date"] is None


class TestErrorResponses:

    @pytest.mark.asyncio
    async def test_unexpected_error_is_json_500(self, app_settings):
        class _BrokenDatabase:
            def session(self):
                raise RuntimeError("driver went away")

        app = create_app(app_settings)
        app.dependency_overrides[get_database] = lambda: _BrokenDatabase()

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/todos")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": None,
        }

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_leak_sql(self, app_settings, database, make_todo):
        await make_todo("A")

        class _FailingDatabase:
            @asynccontextmanager
            async def session(self):
                async with database.session() as session:
                    yield session
                    await session.execute(text("UPDATE todos SET title = NULL"))

        app = create_app(app_settings)
        app.dependency_overrides[get_database] = lambda: _FailingDatabase()

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/todos")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "storage_error"
        assert body["message"] == "Storage operation failed"
        assert "UPDATE" not in response.text

    @pytest.mark.asyncio
    async def test_error_envelope_is_documented(self, client):
        schema = (await client.get("/openapi.json")).json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/todos/reorder"]["put"]["responses"]
        for code in ("400", "500"):
            ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
            assert ref == "#/components/schemas/ErrorResponse"


class TestConcurrentRequests:

    @pytest.mark.asyncio
    async def test_interleaved_reorders_and_deletes_all_succeed(self, client):
        moved = [(await _create(client, title=f"move {i}"))["id"] for i in range(10)]
        doomed = [(await _create(client, title=f"drop {i}"))["id"] for i in range(10)]

        requests = []
        for position, (move_id, drop_id) in enumerate(zip(moved, doomed)):
            requests.append(client.put("/api/todos/reorder", json={"updates": [
                {"id": move_id, "parent_id": None, "sort_order": position},
            ]}))
            requests.append(client.delete(f"/api/todos/{drop_id}"))

        responses = await asyncio.gather(*requests)

        assert [r.status_code for r in responses] == [200] * len(requests)
        remaining = (await client.get("/api/todos")).json()
        assert [t["id"] for t in remaining] == moved
