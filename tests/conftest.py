# tests/conftest.py
import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

# Tests run on a shared in-memory SQLite database and the in-process cache unless
# TEST_DATABASE_URL points at a real Postgres.
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["CACHE_BACKEND"] = "memory"
os.environ.setdefault("STARTUP_RETRY_ATTEMPTS", "1")
os.environ.setdefault("STARTUP_RETRY_DELAY_SECONDS", "0")

from phonebook.main import app  # import after env is set
from phonebook.database import Base, engine
from phonebook.services.cache import Cache
from phonebook.services.cache_factory import get_cache
from phonebook.services.lru_cache import LRUCacheImpl


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingCache(Cache):
    """In-process cache that records every call as (operation, key)."""
    def __init__(self, clock: FakeClock):
        self._lru = LRUCacheImpl(capacity=1000, clock=clock)
        self.calls: list[tuple[str, str]] = []
        self.ttls: dict[str, int | None] = {}

    def get(self, key):
        self.calls.append(("get", key))
        return self._lru.get(key)

    def set(self, key, value, ttl_seconds=None):
        self.calls.append(("set", key))
        self.ttls[key] = ttl_seconds
        self._lru.set(key, value, ttl_seconds)

    def delete(self, key):
        self.calls.append(("delete", key))
        self._lru.delete(key)

    def delete_prefix(self, prefix):
        self.calls.append(("delete_prefix", prefix))
        return self._lru.delete_prefix(prefix)

    def peek(self, key):
        """Read without recording the call."""
        return self._lru.get(key)

    def ops(self, name: str) -> list[str]:
        return [k for (op, k) in self.calls if op == name]

    def reset(self) -> None:
        self.calls.clear()


class StoreQueryLog:
    """Collects (statement, parameters) for every statement touching the contacts table."""
    def __init__(self):
        self.statements: list[tuple[str, object]] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        if "contacts" in statement:
            self.statements.append((statement, parameters))

    @property
    def selects(self) -> list[tuple[str, object]]:
        return [s for s in self.statements if s[0].lstrip().upper().startswith("SELECT")]

    def reset(self) -> None:
        self.statements.clear()


@pytest.fixture(autouse=True)
def _schema():
    """Fresh contacts table for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return RecordingCache(clock)


@pytest.fixture
def store_queries():
    """Record SQL sent to the database while the test runs."""
    log = StoreQueryLog()
    event.listen(engine, "before_cursor_execute", log)
    try:
        yield log
    finally:
        event.remove(engine, "before_cursor_execute", log)


@pytest.fixture(scope="function")
def client(cache):
    """A FastAPI TestClient whose routes use the recording cache."""
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_cache, None)


def contact_payload(first_name="John", last_name="Doe", phone="1234567890", address="Test Street") -> dict:
    return {"first_name": first_name, "last_name": last_name, "phone": phone, "address": address}


def seed_contacts(client, count: int, prefix: str = "Person") -> None:
    for i in range(1, count + 1):
        resp = client.post("/contacts", json=contact_payload(first_name=f"{prefix}{i}", last_name=f"Last{i}"))
        assert resp.status_code == 201, resp.text
