"""HTTP surface tests over ASGITransport (the lifespan does not run)."""

from __future__ import annotations

import asyncio
import json

from httpx import ASGITransport, AsyncClient

from cipherstudio.engine.app import app
from cipherstudio.engine.events import EventBus
from cipherstudio.engine.models.enums import EventType
from cipherstudio.engine.routers.events import stream_events


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_engine_not_initialised() -> None:
    app.state.studio = None
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/api/workspace/get")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "Engine not initialised."


# -- Workspace -----------------------------------------------------------------


async def test_get_workspace(client: AsyncClient) -> None:
    resp = await client.get("/api/workspace/get")

    assert resp.status_code == 200
    body = resp.json()
    assert body["language_id"] == "Python"
    assert body["phase"] == "ready"
    assert body["owner_id"] == "token-user"
    assert body["selected_path"] == "/main.py"
    assert body["visible_paths"] == ["/main.py"]
    assert body["project_id"]
    assert body["editable"] is True


async def test_switch_language(client: AsyncClient) -> None:
    before = (await client.get("/api/workspace/get")).json()["project_id"]

    resp = await client.post("/api/workspace/switch-language", json={"language_id": "Go"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["language_id"] == "Go"
    assert body["selected_path"] == "/main.go"
    assert body["project_id"] != before
    assert body["status"] == "Switched to Go. Start a new project or save your work."


async def test_switch_to_unknown_language(client: AsyncClient) -> None:
    resp = await client.post("/api/workspace/switch-language", json={"language_id": "COBOL"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Language 'COBOL' not found."


async def test_autosave_toggle_and_set(client: AsyncClient) -> None:
    resp = await client.post("/api/workspace/autosave", json={})
    assert resp.json()["autosave_enabled"] is False

    resp = await client.post("/api/workspace/autosave", json={"enabled": True})
    assert resp.json()["autosave_enabled"] is True


async def test_list_languages(client: AsyncClient) -> None:
    resp = await client.get("/api/languages/list")

    assert resp.status_code == 200
    languages = {entry["language_id"]: entry for entry in resp.json()}
    assert len(languages) == 9
    assert languages["React.js"]["live"] is True
    assert languages["React.js"]["entry_path"] == "/src/index.js"
    targets = languages["Python"]["conversion_targets"]
    assert "Python" not in targets
    assert "React.js" not in targets
    assert "Go" in targets


# -- Files ---------------------------------------------------------------------


async def test_create_file(client: AsyncClient) -> None:
    resp = await client.post("/api/files/create", json={"path": "util.py"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["path"] == "/util.py"
    assert body["is_folder"] is False
    workspace = (await client.get("/api/workspace/get")).json()
    assert workspace["selected_path"] == "/util.py"


async def test_create_duplicate_is_conflict(client: AsyncClient) -> None:
    resp = await client.post("/api/files/create", json={"path": "/main.py"})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Path '/main.py' already exists."


async def test_rename_folder_to_file_path_is_rejected(client: AsyncClient) -> None:
    await client.post("/api/files/create", json={"path": "/pkg/"})
    await client.post("/api/files/create", json={"path": "/pkg/mod.py"})

    resp = await client.post("/api/files/rename", json={"old_path": "/pkg/", "new_path": "/lib"})
    assert resp.status_code == 422

    resp = await client.post("/api/files/rename", json={"old_path": "/pkg/", "new_path": "/lib/"})
    assert resp.status_code == 200
    assert resp.json()["selected_path"] == "/lib/mod.py"


async def test_rename_missing_path(client: AsyncClient) -> None:
    resp = await client.post("/api/files/rename", json={"old_path": "/nope.py", "new_path": "/yes.py"})
    assert resp.status_code == 404


async def test_update_select_and_delete(client: AsyncClient) -> None:
    resp = await client.post("/api/files/update", json={"path": "/main.py", "content": "x = 1"})
    assert resp.status_code == 200
    assert resp.json()["content"] == "x = 1"

    await client.post("/api/files/create", json={"path": "/lib/"})
    resp = await client.post("/api/files/select", json={"path": "/lib/"})
    assert resp.status_code == 422

    resp = await client.post("/api/files/delete", json={"path": "/lib/"})
    assert resp.json() == {"removed": ["/lib/"]}

    resp = await client.post("/api/files/delete", json={"path": "/missing.py"})
    assert resp.json() == {"removed": []}


# -- Projects ------------------------------------------------------------------


async def test_save_list_and_load(client: AsyncClient) -> None:
    resp = await client.post("/api/projects/save", json={"name": "Demo"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["ok"] is True
    assert body["status"] == "Project 'Demo' saved successfully!"
    project_id = body["project"]["id"]

    listed = (await client.get("/api/projects/list")).json()
    assert [entry["name"] for entry in listed] == ["Demo"]

    await client.post("/api/workspace/switch-language", json={"language_id": "Rust"})
    resp = await client.post(f"/api/projects/{project_id}/load")
    body = resp.json()
    assert body["ok"] is True
    assert body["workspace"]["language_id"] == "Python"
    assert body["workspace"]["project_id"] == project_id


async def test_load_missing_project(client: AsyncClient) -> None:
    resp = await client.post("/api/projects/nope/load")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is False
    assert body["status"] == "Project ID nope not found."
    assert body["workspace"]["language_id"] == "Python"


async def test_delete_malformed_project_id(client: AsyncClient) -> None:
    body = (await client.post("/api/projects/has space/delete")).json()
    assert body["ok"] is False
    assert body["status"] == "Project ID has space not found."


async def test_save_failure_reports_status(client: AsyncClient, store) -> None:
    store.fail = True
    body = (await client.post("/api/projects/save", json={})).json()
    assert body["ok"] is False
    assert body["status"] == "Error saving project. Check console for details."


async def test_delete_active_project(client: AsyncClient) -> None:
    saved = (await client.post("/api/projects/save", json={"name": "Gone"})).json()
    project_id = saved["project"]["id"]

    body = (await client.post(f"/api/projects/{project_id}/delete")).json()

    assert body["ok"] is True
    assert body["status"] == f"Project {project_id} deleted."
    assert body["workspace"]["project_id"] != project_id


async def test_new_project(client: AsyncClient) -> None:
    body = (await client.post("/api/projects/new")).json()
    assert body["ok"] is True
    assert body["status"] == 'New Python project created. Use "Save" to persist.'


# -- Tools ---------------------------------------------------------------------


async def test_invoke_tool(client: AsyncClient, inference) -> None:
    resp = await client.post("/api/tools/explain", json={})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "succeeded"
    assert body["title"] == "Code Explanation"
    assert len(inference.calls) == 1


async def test_invalid_tool_invocations(client: AsyncClient, inference) -> None:
    assert (await client.post("/api/tools/convert", json={})).status_code == 422
    assert (await client.post("/api/tools/convert", json={"target": "Python"})).status_code == 422
    assert (await client.post("/api/tools/generate", json={"description": " "})).status_code == 422
    assert (await client.post("/api/tools/simulate_execution", json={})).status_code == 422
    assert (await client.post("/api/tools/dance", json={})).status_code == 422
    assert inference.calls == []


async def test_get_channels(client: AsyncClient) -> None:
    resp = await client.get("/api/tools/channels")
    assert resp.status_code == 200
    assert set(resp.json()) == {"explain", "review", "generate", "convert", "simulate_execution"}


# -- Events --------------------------------------------------------------------


class _ConnectedRequest:
    async def is_disconnected(self) -> bool:
        return False


async def test_event_stream_relays_bus_events() -> None:
    bus = EventBus()
    stream = stream_events(bus, _ConnectedRequest())  # type: ignore[arg-type]

    pending = asyncio.ensure_future(anext(stream))
    await asyncio.sleep(0)
    bus.publish(EventType.STATUS_CHANGED, message="Saved", busy=False)
    item = await pending

    assert item["event"] == "status_changed"
    assert json.loads(item["data"])["payload"] == {"message": "Saved", "busy": False}

    await stream.aclose()
    assert bus.subscriber_count == 0
