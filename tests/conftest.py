import os
import tempfile
from pathlib import Path

# Ambiente de teste: precisa estar definido antes de importar o pacote
_tmp_root = Path(tempfile.mkdtemp(prefix="pharmaportal-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_root / 'test.db'}"
os.environ["STORAGE_URL"] = f"file://{_tmp_root / 'blobs'}"
os.environ["SESSION_STORE_URL"] = "memory://"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["DB_AUTO_CREATE"] = "true"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from pharmaportal.db.session import create_tables, drop_tables, engine
from pharmaportal.main import app
from pharmaportal.storage.config import StorageConfig
from pharmaportal.storage.service import StorageService

PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def clean_database():
    drop_tables()
    create_tables()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def storage(tmp_path):
    service = StorageService(StorageConfig(f"file://{tmp_path / 'blobs'}"))
    service.open()
    yield service
    service.close()


def _register(client: TestClient, email: str = "owner@pharmacy.test", password: str = PASSWORD):
    return client.post("/api/auth/register", json={"email": email, "password": password})


@pytest.fixture
def register():
    return _register


@pytest.fixture
def logged_client(client):
    response = _register(client)
    assert response.status_code == 200
    return client
