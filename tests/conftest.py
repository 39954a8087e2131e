# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from task_portal.app.main import create_app
from task_portal.config import Settings
from task_portal.infra.db.json_file import JsonFilePersistence


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every path at the per-test tmp dir."""
    return Settings(
        db_path=tmp_path / "database.json",
        log_level="INFO",
        log_dir=tmp_path / "logs",
        host="127.0.0.1",
        port=8080,
    )


@pytest.fixture()
def persistence(settings: Settings) -> JsonFilePersistence:
    return JsonFilePersistence(settings.db_path)


@pytest.fixture()
def app(settings: Settings, persistence: JsonFilePersistence):
    return create_app(settings, persistence)


@pytest.fixture()
def client(app) -> TestClient:
    with TestClient(app) as c:
        yield c
