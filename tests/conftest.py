"""
Event Guide Service - Test Configuration and Fixtures

Handlers receive their Firestore client as an argument, so tests hand them an
in-memory stand-in exposing the subset of the client API the service uses.
"""
import copy
import datetime
import itertools
import os
from typing import Any, Dict, Optional

import pytest
from faker import Faker
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")

from event_service.firestore_client import get_db
from event_service.main import app
from event_service.models import Identity
from event_service.services.user_service import initial_user_record
from event_service.session import get_optional_identity

fake = Faker()

FIXED_NOW = datetime.datetime(2024, 1, 10, 12, 0, tzinfo=datetime.timezone.utc)


class FakeSnapshot:
    def __init__(self, reference: "FakeDocumentRef", data: Optional[Dict[str, Any]]):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data)

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)


def _merge(target: Dict[str, Any], updates: Dict[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


class FakeDocumentRef:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str):
        self._db = db
        self.collection_name = collection
        self.id = doc_id

    @property
    def _store(self) -> Dict[str, Dict[str, Any]]:
        return self._db.data.setdefault(self.collection_name, {})

    def get(self) -> FakeSnapshot:
        self._db.check_available()
        return FakeSnapshot(self, self._store.get(self.id))

    def set(self, document_data: Dict[str, Any], merge: bool = False) -> None:
        self._db.check_available()
        resolved = self._db.resolve_sentinels(document_data)
        if merge and self.id in self._store:
            _merge(self._store[self.id], resolved)
        else:
            self._store[self.id] = resolved
        self._db.write_count += 1

    def update(self, field_updates: Dict[str, Any]) -> None:
        self._db.check_available()
        if self.id not in self._store:
            raise google_exceptions.NotFound(f"No document to update: {self.id}")
        self._store[self.id].update(self._db.resolve_sentinels(field_updates))
        self._db.write_count += 1


class FakeQuery:
    def __init__(self, collection: "FakeCollection", filters=None, orders=None):
        self._collection = collection
        self._filters = list(filters or [])
        self._orders = list(orders or [])

    def where(self, *, filter) -> "FakeQuery":
        return FakeQuery(self._collection, self._filters + [filter], self._orders)

    def order_by(self, field_path: str, direction: str = firestore.Query.ASCENDING):
        return FakeQuery(
            self._collection, self._filters, self._orders + [(field_path, direction)]
        )

    def stream(self):
        db = self._collection.db
        db.check_available()
        documents = list(db.data.get(self._collection.name, {}).items())

        for field_filter in self._filters:
            assert field_filter.op_string == "==", "fake supports equality filters only"
            documents = [
                (doc_id, doc)
                for doc_id, doc in documents
                if doc.get(field_filter.field_path) == field_filter.value
            ]

        for field_path, direction in reversed(self._orders):
            # Firestore leaves out documents missing an order_by field
            documents = [(i, d) for i, d in documents if field_path in d]
            # null sorts before every other value, as in Firestore
            documents.sort(
                key=lambda item: (
                    item[1][field_path] is not None,
                    item[1][field_path] if item[1][field_path] is not None else 0,
                ),
                reverse=direction == firestore.Query.DESCENDING,
            )

        for doc_id, doc in documents:
            yield FakeSnapshot(self._collection.document(doc_id), doc)


class FakeCollection(FakeQuery):
    def __init__(self, db: "FakeFirestore", name: str):
        self.db = db
        self.name = name
        super().__init__(self)

    def document(self, document_id: Optional[str] = None) -> FakeDocumentRef:
        if document_id is None:
            document_id = f"auto-{next(self.db.id_counter)}"
        return FakeDocumentRef(self.db, self.name, document_id)

    def add(self, document_data: Dict[str, Any]):
        doc_ref = self.document()
        doc_ref.set(document_data)
        return self.db.now, doc_ref


class FakeFirestore:
    def __init__(self, now: datetime.datetime = FIXED_NOW):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.now = now
        self.write_count = 0
        self.failure: Optional[Exception] = None
        self.id_counter = itertools.count(1)

    def check_available(self) -> None:
        if self.failure is not None:
            raise self.failure

    def resolve_sentinels(self, document_data: Dict[str, Any]) -> Dict[str, Any]:
        resolved = {}
        for key, value in document_data.items():
            if value is firestore.SERVER_TIMESTAMP:
                resolved[key] = self.now
            elif isinstance(value, dict):
                resolved[key] = self.resolve_sentinels(value)
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def get_all(self, references):
        self.check_available()
        for reference in references:
            yield reference.get()

    # --- test helpers ---

    def seed(self, collection: str, doc_id: str, document_data: Dict[str, Any]) -> None:
        self.data.setdefault(collection, {})[doc_id] = copy.deepcopy(document_data)

    def doc(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self.data.get(collection, {}).get(doc_id)


@pytest.fixture
def fake_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def identity() -> Identity:
    return Identity(uid=fake.uuid4(), email=fake.email())


@pytest.fixture
def registered_user(fake_db: FakeFirestore, identity: Identity) -> Dict[str, Any]:
    """Seeds users/{uid} with the initial profile shape."""
    record = initial_user_record("Alice", FIXED_NOW)
    fake_db.seed("users", identity.uid, record)
    return record


@pytest.fixture
def store_down() -> Exception:
    return google_exceptions.ServiceUnavailable("Firestore unavailable")


@pytest.fixture
async def client(fake_db: FakeFirestore, identity: Identity):
    """App client signed in as `identity`, backed by the fake store."""
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_optional_identity] = lambda: identity

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def anonymous_client(fake_db: FakeFirestore):
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_optional_identity] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
