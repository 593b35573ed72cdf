"""
Pytest configuration and shared fixtures.

Environment is set before ``ota_server`` is imported because its settings
and engine are built at import time.
"""
import os
import tempfile

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="ota-server-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "test-access-key"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test-secret-key"
os.environ["S3_BUCKET_NAME"] = "bundles"
os.environ["API_KEY"] = "s3cr3t"
os.environ["ENV"] = "test"
os.environ.pop("BASE_PATH", None)

from unittest.mock import Mock

from fastapi.testclient import TestClient

from ota_server.config import settings
from ota_server.db import Base, ENGINE, init_db
from ota_server.main import app
from ota_server.services.storage import S3BundleStorage, get_storage


@pytest.fixture(autouse=True)
def _fresh_database():
    Base.metadata.drop_all(bind=ENGINE)
    init_db()
    yield


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "s3cr3t")
    return "s3cr3t"


@pytest.fixture
def auth_headers(api_key):
    return {"Authorization": f"Bearer {api_key}"}


@pytest.fixture
def storage():
    mock_storage = Mock(spec=S3BundleStorage)
    app.dependency_overrides[get_storage] = lambda: mock_storage
    yield mock_storage
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def client(storage):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sample_bundle():
    return {
        "id": "0195a408-8f13-7d9b-8df4-123456789abc",
        "platform": "ios",
        "shouldForceUpdate": False,
        "enabled": True,
        "fileHash": "a3f1c9e2b7d4",
        "gitCommitHash": "9f2c1e7",
        "message": "Fix checkout crash",
        "channel": "production",
        "storageUri": "s3://bundles/0195a408-8f13-7d9b-8df4-123456789abc/bundle.zip",
        "targetAppVersion": "1.2.x",
        "fingerprintHash": None,
        "metadata": {"app_version": "1.2.3"},
    }
