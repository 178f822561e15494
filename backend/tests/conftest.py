# tests/conftest.py
import base64
import json
import os
import shutil
import tempfile
from datetime import datetime

# Keep the application engine and log files away from the working directory
_TEST_STORAGE = tempfile.mkdtemp(prefix="docflow-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("STORAGE_PATH", _TEST_STORAGE)

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docflow.api.deps import get_bridge, get_storage
from docflow.config import BridgeConfig
from docflow.database import Base, get_db
from docflow.errors import DownloadFailed
from docflow.main import app
from docflow.models import Document, Profile, UserDocumentVersion
from docflow.services.bridge import BridgeClient

SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

BRIDGE_CONFIG = BridgeConfig(url="https://bridge.test/exec", secret="bridge-secret", timeout_seconds=5)
EXPORTED_DOCX = b"PK\x03\x04 fake docx bytes"

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
ADMIN_ID = "admin-1"
SUBADMIN_ID = "subadmin-1"


class FakeBridge:
    """httpx.MockTransport handler standing in for the bridge endpoint"""

    def __init__(self):
        self.requests = []
        self.responses = {
            "upload": {"id": "template-file-1"},
            "copy": {"id": "drive-file-1"},
            "export": {"base64": base64.b64encode(EXPORTED_DOCX).decode("ascii")},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)

        response = self.responses[body["action"]]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def actions(self):
        return [body["action"] for body in self.requests]

    def client(self, config: BridgeConfig = BRIDGE_CONFIG) -> BridgeClient:
        return BridgeClient(config, transport=httpx.MockTransport(self))


class FakeStorage:
    """In-memory object storage with the same contract as ObjectStorage"""

    def __init__(self):
        self.objects = {}
        self.deleted = []

    def write(self, path, data, content_type="application/octet-stream"):
        self.objects[path] = (data, content_type)
        return path

    def read(self, path):
        if path not in self.objects:
            raise DownloadFailed("Object does not exist")
        return self.objects[path][0]

    def signed_url(self, path, ttl_seconds=None):
        return f"https://storage.test/{path}?expires={ttl_seconds or 3600}"

    def delete(self, path):
        self.deleted.append(path)
        self.objects.pop(path, None)


@pytest.fixture(scope="session")
def engine():
    """Create test database engine"""
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool  # Needed for SQLite in-memory database
    )

    # pysqlite manages transactions on its own; take over so SAVEPOINTs behave
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="session")
def tables(engine):
    """Create all tables in the test database"""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine, tables):
    """Creates a new database session for a test; commits become savepoints"""
    connection = engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection, join_transaction_mode="create_savepoint")()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def fake_bridge():
    return FakeBridge()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def client(db_session, fake_bridge, fake_storage):
    """Test client using the test database, a fake bridge and in-memory storage"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_bridge] = lambda: fake_bridge.client()
    app.dependency_overrides[get_storage] = lambda: fake_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": USER_ID}


@pytest.fixture
def other_user_headers():
    return {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def admin_headers(db_session):
    db_session.add(Profile(id=ADMIN_ID, email="admin@example.com", role="admin"))
    db_session.commit()
    return {"X-User-Id": ADMIN_ID}


@pytest.fixture
def subadmin_headers(db_session):
    db_session.add(Profile(
        id=SUBADMIN_ID,
        email="subadmin@example.com",
        role="subadmin",
        can_upload_documents=True
    ))
    db_session.commit()
    return {"X-User-Id": SUBADMIN_ID}


def make_document(db_session, **overrides):
    values = {
        "title": "Employment Contract",
        "description": "Standard employment contract template",
        "category": "contracts",
        "tags": ["hr", "legal"],
        "file_name": "contract.docx",
        "file_path": "admin-1/1700000000000_abcd1234.docx",
        "file_size": 2048,
        "file_type": "document",
        "mime_type": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "version": "1.0",
        "created_at": datetime(2024, 1, 10, 9, 0, 0),
    }
    values.update(overrides)
    document = Document(**values)
    db_session.add(document)
    db_session.commit()
    db_session.refresh(document)
    return document


@pytest.fixture
def sample_document(db_session):
    """Create a root document"""
    return make_document(db_session)


@pytest.fixture
def sample_family(db_session, sample_document):
    """A root with two children, created on consecutive days"""
    children = [
        make_document(
            db_session,
            title="Employment Contract",
            file_path=f"admin-1/child_{index}.docx",
            version=f"1.{index}",
            parent_document_id=sample_document.id,
            created_at=datetime(2024, 1, 10 + index, 9, 0, 0)
        )
        for index in (1, 2)
    ]
    return sample_document, children


@pytest.fixture
def draft_version(db_session, sample_document):
    """A draft version owned by USER_ID with a bridge file attached"""
    version = UserDocumentVersion(
        original_document_id=sample_document.id,
        user_id=USER_ID,
        version_number=1,
        version_name="Draft 1",
        original_file_type="google",
        is_draft=True,
        google_drive_file_id="drive-file-1",
        google_edit_link="https://docs.google.com/document/d/drive-file-1/edit"
    )
    db_session.add(version)
    db_session.commit()
    db_session.refresh(version)
    return version


@pytest.fixture(scope="session", autouse=True)
def cleanup_test_files():
    """Clean up test files after all tests are done"""
    yield
    shutil.rmtree(_TEST_STORAGE, ignore_errors=True)
