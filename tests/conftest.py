from __future__ import annotations

import os

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "labor_management_test")

from types import SimpleNamespace
from typing import Any

import pytest
from beanie import init_beanie
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import DuplicateKeyError

from labor_app.core.database import DOCUMENT_MODELS
from labor_app.main import create_app
from labor_app.routers.auth import get_current_user
from labor_app.services.query_cache import query_cache


def _matches(doc: dict, flt: dict) -> bool:
    for key, cond in (flt or {}).items():
        value = doc.get(key)
        if isinstance(cond, dict) and "$in" in cond:
            if value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs
        self._limit = None

    def limit(self, n: int) -> "FakeCursor":
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs
        if self._limit:
            docs = docs[: self._limit]
        if length:
            docs = docs[:length]
        return [dict(d) for d in docs]

    def __aiter__(self):
        self._iter = iter(list(self._docs))
        return self

    async def __anext__(self):
        try:
            return dict(next(self._iter))
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """In-memory stand-in for the subset of the Motor collection API the scripts use."""

    def __init__(self, name: str):
        self.name = name
        self.docs: list[dict] = []
        self.unique_fields: dict[str, bool] = {}

    def seed(self, *docs: dict) -> None:
        for doc in docs:
            self.docs.append(dict(doc))

    async def create_index(self, field: str, unique: bool = False, sparse: bool = False, **_kw):
        if unique:
            self.unique_fields[field] = sparse
        return f"{field}_1"

    def _check_unique(self, doc: dict, ignore_id: Any = None) -> None:
        if any(d["_id"] == doc["_id"] and d["_id"] != ignore_id for d in self.docs):
            raise DuplicateKeyError(f"duplicate _id {doc['_id']}")
        for field, sparse in self.unique_fields.items():
            if sparse and field not in doc:
                continue
            for d in self.docs:
                if d["_id"] != ignore_id and d.get(field) == doc.get(field):
                    raise DuplicateKeyError(f"duplicate {field} {doc.get(field)}")

    def find(self, flt: dict | None = None, projection: dict | None = None) -> FakeCursor:
        return FakeCursor([d for d in self.docs if _matches(d, flt or {})])

    async def find_one(self, flt: dict | None = None):
        for d in self.docs:
            if _matches(d, flt or {}):
                return dict(d)
        return None

    async def insert_one(self, doc: dict):
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def replace_one(self, flt: dict, doc: dict):
        for i, d in enumerate(self.docs):
            if _matches(d, flt):
                new_doc = {**dict(doc), "_id": d["_id"]}
                self._check_unique(new_doc, ignore_id=d["_id"])
                self.docs[i] = new_doc
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, flt: dict):
        for i, d in enumerate(self.docs):
            if _matches(d, flt):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, flt: dict):
        keep = [d for d in self.docs if not _matches(d, flt)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep
        return SimpleNamespace(deleted_count=deleted)


class FakeDatabase:
    def __init__(self):
        self._collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


def make_user(role_id: str | None = "AM", **overrides) -> SimpleNamespace:
    data = {
        "id": ObjectId(),
        "employee_id": "EMP100",
        "username": f"user-{(role_id or 'none').lower()}",
        "name": "Test User",
        "role_id": role_id,
        "department": "PD01",
        "project_location_ids": [],
        "is_active": True,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture(autouse=True)
def clear_query_cache():
    query_cache.clear()
    yield
    query_cache.clear()


@pytest.fixture
def app():
    return create_app(with_database=False)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login_as(app):
    """Override the authenticated user for guarded endpoints."""
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    yield _login
    app.dependency_overrides.clear()


@pytest.fixture
async def beanie_db():
    """Beanie documents bound to a fresh in-memory Mongo database."""
    client = AsyncMongoMockClient()
    db = client["labor_management_test"]
    await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    yield db
