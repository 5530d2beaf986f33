"""
Shared fixtures: an in-memory Firestore stand-in and a fully wired app
whose outside services (Stripe, FCM) are mocks.
"""
import copy
import hashlib
import hmac
import time
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import NotFound

from fanmunch.core.config import Settings
from fanmunch.main import create_app
from fanmunch.Notification.service import NotificationService
from fanmunch.payment.stripe_service import StripeService

WEBHOOK_SECRET = "whsec_test_secret"


# ==============================
# In-memory Firestore
# ==============================
class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)


class FakeDocument:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str):
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self) -> Dict[str, Dict[str, Any]]:
        return self._db.data.setdefault(self._collection, {})

    def get(self) -> FakeSnapshot:
        self._db.check()
        return FakeSnapshot(self.id, copy.deepcopy(self._docs.get(self.id)))

    def set(self, data: Dict[str, Any], merge: bool = False) -> None:
        self._db.check()
        if merge and self.id in self._docs:
            self._docs[self.id].update(copy.deepcopy(data))
        else:
            self._docs[self.id] = copy.deepcopy(data)

    def update(self, data: Dict[str, Any]) -> None:
        self._db.check()
        if self.id not in self._docs:
            raise NotFound(f"No document to update: {self._collection}/{self.id}")
        self._docs[self.id].update(copy.deepcopy(data))


def lookup(data: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted field path the way Firestore does."""
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _matches(actual: Any, op: str, expected: Any) -> bool:
    if op == "array_contains":
        return isinstance(actual, list) and expected in actual
    return actual == expected


class FakeQuery:
    def __init__(self, db: "FakeFirestore", collection: str):
        self._db = db
        self._collection = collection
        self._filters: List = []
        self._order: List = []
        self._limit: Optional[int] = None

    def _copy(self) -> "FakeQuery":
        q = FakeQuery(self._db, self._collection)
        q._filters = list(self._filters)
        q._order = list(self._order)
        q._limit = self._limit
        return q

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        assert op in ("==", "array_contains"), f"unsupported filter: {op}"
        q = self._copy()
        q._filters.append((field, op, value))
        return q

    def order_by(self, field: str, direction: str = "ASCENDING") -> "FakeQuery":
        q = self._copy()
        q._order.append((field, direction == "DESCENDING"))
        return q

    def limit(self, count: int) -> "FakeQuery":
        q = self._copy()
        q._limit = count
        return q

    def stream(self):
        self._db.check()
        docs = self._db.data.get(self._collection, {})
        rows = [
            (doc_id, data) for doc_id, data in docs.items()
            if all(_matches(lookup(data, f), op, v) for f, op, v in self._filters)
        ]
        for field, descending in reversed(self._order):
            rows.sort(key=lambda r: lookup(r[1], field), reverse=descending)
        if self._limit is not None:
            rows = rows[: self._limit]
        return iter([FakeSnapshot(doc_id, copy.deepcopy(data)) for doc_id, data in rows])


class FakeCollection(FakeQuery):
    def document(self, doc_id: Optional[str] = None) -> FakeDocument:
        return FakeDocument(self._db, self._collection, doc_id or self._db.next_id())

    def add(self, data: Dict[str, Any]):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeFirestore:
    project = "fanmunch-test"

    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.fail = False
        self._ids = 0

    def next_id(self) -> str:
        self._ids += 1
        return f"auto-{self._ids}"

    def check(self) -> None:
        if self.fail:
            raise RuntimeError("Firestore unavailable")

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.data.setdefault(collection, {})[doc_id] = copy.deepcopy(data)


# ==============================
# Helpers
# ==============================
def stripe_signature(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    ts = timestamp or int(time.time())
    mac = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={mac}"


# ==============================
# Fixtures
# ==============================
@pytest.fixture
def db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        stripe_vendor_account_id="acct_vendor",
        airwallex_env="mock",
    )


@pytest.fixture
def stripe_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def stripe_service(settings, stripe_client) -> StripeService:
    return StripeService(settings, client=stripe_client)


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=NotificationService)


@pytest.fixture
def app(settings, db, stripe_service, notifier):
    return create_app(
        settings,
        db=db,
        http=httpx.AsyncClient(),
        stripe_service=stripe_service,
        notification_service=notifier,
        start_scheduler=False,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sign():
    return stripe_signature
