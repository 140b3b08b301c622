"""
Pytest configuration and shared fixtures.
"""

import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.database import BookDatabaseService
from api.main import create_app
from utilities.config import BookStoreConfig


class FakeCursor:
    """Stands in for a motor cursor."""

    def __init__(self, docs):
        self._docs = docs

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """
    In-memory collection implementing the motor calls the record store makes.

    Set ``fail_with`` to an exception to make every call raise it.
    """

    def __init__(self):
        self.docs = {}
        self.calls = 0
        self.fail_with = None

    def _enter(self):
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with

    def _match(self, query):
        if not query:
            return list(self.docs.values())
        doc = self.docs.get(query.get("_id"))
        return [doc] if doc is not None else []

    def find(self, query=None):
        self._enter()
        return FakeCursor([copy.deepcopy(d) for d in self._match(query)])

    async def find_one(self, query):
        self._enter()
        found = self._match(query)
        return copy.deepcopy(found[0]) if found else None

    async def insert_one(self, doc):
        self._enter()
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one_and_update(self, query, update, return_document=None):
        self._enter()
        found = self._match(query)
        if not found:
            return None
        found[0].update(copy.deepcopy(update["$set"]))
        return copy.deepcopy(found[0])

    async def delete_one(self, query):
        self._enter()
        found = self._match(query)
        if found:
            del self.docs[found[0]["_id"]]
        return SimpleNamespace(deleted_count=len(found))


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.ping_error = None

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    async def command(self, name):
        if self.ping_error is not None:
            raise self.ping_error
        return {"ok": 1}


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def books_collection(fake_db):
    return fake_db["bookstores"]


@pytest.fixture
def book_service(fake_db):
    return BookDatabaseService(fake_db, "bookstores")


@pytest.fixture
def settings(tmp_path):
    return BookStoreConfig(
        _env_file=None,
        upload_dir=str(tmp_path / "uploads"),
        log_format="console",
    )


@pytest.fixture
def app(settings, book_service):
    """Application wired to the in-memory record store."""
    application = create_app(settings)
    application.state.book_service = book_service
    return application


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def sample_book():
    return {"Title": "Dune", "Author": "Frank Herbert", "Pages": 412}
