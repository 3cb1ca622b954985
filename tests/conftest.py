"""
Pytest configuration and shared fixtures.
"""

import os

# Cheap hashing and a fixed secret for tests; must be set before config is imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-unit-tests-1234567890")

from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from api.main import app, get_auth_service, get_book_service
from services.auth_service import AuthService
from services.book_service import BookService
from store.books import BookStore
from store.users import UserStore


class FakeCursor:
    """Stand-in for a motor cursor."""

    def __init__(self, docs):
        self.docs = docs

    async def to_list(self, length=None):
        docs = [dict(doc) for doc in self.docs]
        return docs if length is None else docs[:length]


class FakeCollection:
    """
    In-memory subset of the motor collection API used by the stores.
    Unique indexes raise DuplicateKeyError like the server does.
    """

    def __init__(self, unique_fields=()):
        self.docs = []
        self.unique_fields = set(unique_fields)

    @staticmethod
    def _matches(doc, query):
        for key, condition in query.items():
            if key == "$or":
                if not any(FakeCollection._matches(doc, sub) for sub in condition):
                    return False
            elif isinstance(condition, dict) and "$ne" in condition:
                if doc.get(key) == condition["$ne"]:
                    return False
            elif doc.get(key) != condition:
                return False
        return True

    def _check_unique(self, candidate, ignore_id=None):
        for field in self.unique_fields:
            value = candidate.get(field)
            for doc in self.docs:
                if doc["_id"] != ignore_id and value is not None and doc.get(field) == value:
                    raise DuplicateKeyError(f"E11000 duplicate key error dup key: {{ {field}: {value!r} }}")

    async def create_index(self, field, unique=False):
        if unique:
            self.unique_fields.add(field)
        return f"{field}_1"

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    def find(self, query=None):
        return FakeCursor([doc for doc in self.docs if self._matches(doc, query or {})])

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        for index, doc in enumerate(self.docs):
            if self._matches(doc, query):
                updated = {**doc, **update["$set"]}
                self._check_unique(updated, ignore_id=doc["_id"])
                self.docs[index] = updated
                return dict(updated if return_document == ReturnDocument.AFTER else doc)
        return None

    async def find_one_and_delete(self, query):
        for index, doc in enumerate(self.docs):
            if self._matches(doc, query):
                return self.docs.pop(index)
        return None

    async def count_documents(self, query):
        return len([doc for doc in self.docs if self._matches(doc, query)])


@pytest.fixture
def users_collection():
    return FakeCollection(unique_fields=("username", "email"))


@pytest.fixture
def books_collection():
    return FakeCollection(unique_fields=("title",))


@pytest.fixture
def user_store(users_collection):
    return UserStore(users_collection)


@pytest.fixture
def book_store(books_collection):
    return BookStore(books_collection)


@pytest.fixture
def auth_service(user_store):
    return AuthService(user_store)


@pytest.fixture
def book_service(book_store):
    return BookService(book_store)


@pytest.fixture
def client(auth_service, book_service):
    """Test client wired to in-memory stores. Lifespan (and MongoDB) is not started."""
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_book_service] = lambda: book_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_user():
    return {"username": "alice", "email": "alice@example.com", "password": "pass1234"}


@pytest.fixture
def sample_book():
    return {"title": "T", "author": "A", "year": 2000}
