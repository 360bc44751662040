import os
import threading

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.notification.errors import DeliveryError


class RecordingSender:
    """In-memory mail sender; fails for addresses in *fail_for*."""

    def __init__(self, fail_for: set[str] | None = None, fail_all: bool = False) -> None:
        self.fail_for = fail_for or set()
        self.fail_all = fail_all
        self.sent: list[tuple[str, str, str]] = []
        self.attempted: list[str] = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, body: str) -> None:
        with self._lock:
            self.attempted.append(to)
        if self.fail_all or to in self.fail_for:
            raise DeliveryError(to, "mailbox unavailable")
        with self._lock:
            self.sent.append((to, subject, body))


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    from app.core.settings import get_settings

    get_settings.cache_clear()

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()
    os.environ.pop("DATABASE_URL", None)


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def make_sender():
    """Factory for :class:`RecordingSender` instances."""
    return RecordingSender
