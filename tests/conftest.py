from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from methoddocs.config import Settings
from methoddocs.store import MemoryMethodStore, SQLiteMethodStore
from methoddocs.webui.app import create_app


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        gateway = MemoryMethodStore()
    else:
        gateway = SQLiteMethodStore(tmp_path / "store" / "methods.sqlite")
    gateway.open()
    yield gateway
    gateway.close()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(db_path=str(tmp_path / "api.sqlite"))


@pytest.fixture
def client(settings: Settings):
    app = create_app(settings, SQLiteMethodStore(settings.db_path))
    with TestClient(app) as test_client:
        yield test_client
