import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import MemoryStore, Store
from errors import StoreError
from main import create_app

ADMIN_TOKEN = "secret-token-123"


class FailingStore(Store):
    """Every call fails the way an unreachable database does."""

    name = "failing"

    def _fail(self, *args, **kwargs):
        raise StoreError("connection refused")

    list_records = _fail
    replace_all = _fail
    get_page_config = _fail
    list_page_configs = _fail
    upsert_page_config = _fail
    ping = _fail


@pytest.fixture
def settings(tmp_path):
    return Settings(admin_token=ADMIN_TOKEN, upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(settings, store):
    return TestClient(create_app(settings, store))


@pytest.fixture
def unconfigured_client(settings):
    return TestClient(create_app(settings, None))


@pytest.fixture
def failing_client(settings):
    return TestClient(create_app(settings, FailingStore()))


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
