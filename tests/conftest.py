# tests/conftest.py
"""
Shared fixtures: the app runs against an in-memory mongomock database and a
temporary upload directory.
"""

import os
import shutil
import tempfile

# Must be set before config.py is imported by the app modules. An empty
# DATABASE_URL also keeps a developer's .env from pointing the suite at a
# real server.
UPLOAD_ROOT = tempfile.mkdtemp(prefix="uploads-")
os.environ["UPLOAD_DIR"] = UPLOAD_ROOT
os.environ["DATABASE_URL"] = ""
os.environ["DEBUG_MODE"] = "False"

import mongomock
import pytest
from fastapi.testclient import TestClient


def pytest_unconfigure(config):
    shutil.rmtree(UPLOAD_ROOT, ignore_errors=True)


@pytest.fixture
def mongo(monkeypatch):
    """Swap the module-level database handle for an in-memory one."""
    import database

    mock_db = mongomock.MongoClient()["community_test"]
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    import storage

    target = tmp_path / "uploads"
    target.mkdir()
    monkeypatch.setattr(storage, "UPLOAD_DIR", str(target))
    return target


@pytest.fixture
def client(mongo, upload_dir):
    from main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def png():
    """Factory for a multipart image tuple."""
    def _make(name="photo.png", content=b"\x89PNG fake image bytes"):
        return (name, content, "image/png")
    return _make
