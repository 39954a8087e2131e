from __future__ import annotations

import json

import pytest

from task_portal.domain.models import MAX_ID
from task_portal.infra.db.json_file import JsonFilePersistence
from task_portal.infra.db.persistence import SaveResult, StoreNotFoundError
from task_portal.infra.db.store import Store, StoreSnapshot


def test_task_lifecycle_scenario(client):
    r = client.post("/task", json={"id": 1, "name": "a", "complete": False})
    assert r.status_code == 200
    assert r.content == b""

    r = client.get("/task/1")
    assert r.status_code == 200
    assert r.json() == {"id": 1, "name": "a", "complete": False}

    r = client.put("/task", json={"id": 1, "name": "b", "complete": True})
    assert r.status_code == 200

    assert client.get("/task/1").json() == {"id": 1, "name": "b", "complete": True}

    assert client.delete("/task/1").status_code == 200

    r = client.get("/task/1")
    assert r.status_code == 404
    assert r.content == b""


def test_list_tasks(client):
    for i in (1, 2, 3):
        client.post("/task", json={"id": i, "name": f"t{i}", "complete": False})

    r = client.get("/task")

    assert r.status_code == 200
    assert sorted(t["id"] for t in r.json()) == [1, 2, 3]


def test_delete_missing_task_is_ok(client):
    assert client.delete("/task/42").status_code == 200


def test_invalid_bodies_are_rejected(client):
    assert client.post("/task", json={"id": 1, "name": "a"}).status_code == 422
    assert client.post("/task", json={"id": -1, "name": "a", "complete": False}).status_code == 422
    assert client.get("/task/abc").status_code == 422


def test_every_mutation_is_persisted(client, persistence: JsonFilePersistence, app):
    guard = app.state.store_guard

    def assert_file_matches_memory():
        with guard.locked() as store:
            assert persistence.load() == store

    client.post("/task", json={"id": 1, "name": "a", "complete": False})
    assert_file_matches_memory()
    client.put("/task", json={"id": 1, "name": "b", "complete": True})
    assert_file_matches_memory()
    client.post("/register", json={"id": 5, "username": "ann", "password": "pw"})
    assert_file_matches_memory()
    client.delete("/task/1")
    assert_file_matches_memory()


def test_save_failure_does_not_fail_request(tmp_path, settings):
    from fastapi.testclient import TestClient

    from task_portal.app.main import create_app

    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    app = create_app(settings, JsonFilePersistence(blocker / "database.json"))

    with TestClient(app) as c:
        assert c.post("/task", json={"id": 1, "name": "a", "complete": False}).status_code == 200
        assert c.get("/task/1").json()["name"] == "a"


def test_existing_file_is_loaded_on_startup(settings, persistence):
    from fastapi.testclient import TestClient

    from task_portal.app.main import create_app

    with TestClient(create_app(settings, persistence)) as c:
        c.post("/task", json={"id": 3, "name": "kept", "complete": True})

    with TestClient(create_app(settings, JsonFilePersistence(settings.db_path))) as c:
        assert c.get("/task/3").json() == {"id": 3, "name": "kept", "complete": True}


def test_corrupt_file_starts_empty(settings):
    from fastapi.testclient import TestClient

    from task_portal.app.main import create_app

    settings.db_path.write_text("garbage", encoding="utf-8")

    with TestClient(create_app(settings)) as c:
        assert c.get("/task").json() == []


def test_poisoned_store_returns_500(app, client):
    guard = app.state.store_guard
    try:
        with guard.locked():
            raise ValueError("crash mid-operation")
    except ValueError:
        pass

    r = client.get("/task")

    assert r.status_code == 500
    assert r.text == "Store unavailable"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_request_id_header_is_echoed(client):
    r = client.get("/task", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_unencodable_name_is_rejected_and_saving_continues(client, persistence: JsonFilePersistence):
    # a lone surrogate is valid JSON text but can never be written back out as UTF-8
    r = client.post(
        "/task",
        content=b'{"id": 1, "name": "\\ud800", "complete": false}',
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 422
    assert r.json()["detail"][0]["loc"] == ["body", "name"]

    assert client.post("/task", json={"id": 2, "name": "ok", "complete": False}).status_code == 200
    assert [t.id for t in persistence.load().list_tasks()] == [2]
    assert client.get("/task").status_code == 200


@pytest.mark.parametrize(
    "path, body",
    [
        ("/register", b'{"id": 1, "username": "\\udfff", "password": "pw"}'),
        ("/register", b'{"id": 1, "username": "ann", "password": "\\ud800"}'),
        ("/login", b'{"username": "\\ud800", "password": "pw"}'),
    ],
)
def test_unencodable_user_strings_are_rejected(client, path, body):
    r = client.post(path, content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 422


def test_ids_are_bounded_to_u64(client, persistence: JsonFilePersistence):
    assert client.post("/task", json={"id": MAX_ID + 1, "name": "big", "complete": False}).status_code == 422
    assert client.post("/register", json={"id": 2**70, "username": "a", "password": "b"}).status_code == 422
    assert client.get(f"/task/{MAX_ID + 1}").status_code == 422
    assert client.delete(f"/task/{MAX_ID + 1}").status_code == 422

    assert client.post("/task", json={"id": MAX_ID, "name": "max", "complete": False}).status_code == 200
    assert client.get(f"/task/{MAX_ID}").json() == {"id": MAX_ID, "name": "max", "complete": False}
    assert persistence.load().get_task(MAX_ID) is not None


def _log_lines(settings):
    text = (settings.log_dir / "task_portal.jsonl").read_text(encoding="utf-8")
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def test_access_log_records_route_template(client, settings):
    client.get("/task/7", headers={"X-Request-ID": "rid-7"})

    [end] = [e for e in _log_lines(settings) if e.get("event") == "request.end" and e.get("request_id") == "rid-7"]
    assert end["route"] == "/task/{task_id}"
    assert end["path"] == "/task/7"
    assert end["status_code"] == 404
    assert end["store_poisoned"] is False
    assert end["level"] == "INFO"


def test_access_log_flags_poisoned_store(app, client, settings):
    with pytest.raises(ValueError):
        with app.state.store_guard.locked():
            raise ValueError("crash mid-operation")

    client.get("/task", headers={"X-Request-ID": "rid-p"})

    [end] = [e for e in _log_lines(settings) if e.get("event") == "request.end" and e.get("request_id") == "rid-p"]
    assert end["store_poisoned"] is True
    assert end["status_code"] == 500
    assert end["level"] == "ERROR"


def test_app_accepts_any_persistence_backend(settings):
    from fastapi.testclient import TestClient

    from task_portal.app.main import create_app

    class MemoryPersistence:
        def __init__(self):
            self.saved = None

        def save(self, store: Store) -> SaveResult:
            self.saved = store.snapshot().model_dump_json()
            return SaveResult(ok=True)

        def load(self) -> Store:
            if self.saved is None:
                raise StoreNotFoundError("memory")
            return Store.from_snapshot(StoreSnapshot.model_validate_json(self.saved))

    backend = MemoryPersistence()
    with TestClient(create_app(settings, backend)) as c:
        c.post("/task", json={"id": 1, "name": "a", "complete": False})

    with TestClient(create_app(settings, backend)) as c:
        assert c.get("/task/1").json() == {"id": 1, "name": "a", "complete": False}
    assert not settings.db_path.exists()
