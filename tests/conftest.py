"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from studyplan.sessions.store import SessionStore
from studyplan.sessions.types import (
    SessionCategory,
    SessionDraft,
    SessionPriority,
    SessionRecord,
    SessionStatus,
)


class RecordingStore(SessionStore):
    """In-memory store that records every create call.

    fail_when decides per draft whether create raises instead of storing.
    """

    def __init__(self, fail_when: Callable[[SessionDraft], bool] | None = None):
        self.calls: list[tuple[str, SessionDraft]] = []
        self.records: list[SessionRecord] = []
        self._fail_when = fail_when

    def create(self, owner_id: str, draft: SessionDraft) -> SessionRecord:
        self.calls.append((owner_id, draft))
        if self._fail_when is not None and self._fail_when(draft):
            raise RuntimeError(f"store rejected {draft.title}")

        now = datetime.now(timezone.utc)
        record = SessionRecord(
            id=f"session-{len(self.records) + 1}",
            user_id=owner_id,
            title=draft.title,
            description=draft.description,
            category=SessionCategory(draft.category),
            status=SessionStatus(draft.status),
            priority=SessionPriority(draft.priority),
            duration_minutes=draft.duration_minutes,
            color=draft.color,
            tags=list(draft.tags),
            notes=draft.notes,
            scheduled_for=None,
            created_at=now,
            updated_at=now,
        )
        self.records.append(record)
        return record


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def failing_store() -> Callable[[Callable[[SessionDraft], bool]], RecordingStore]:
    """Factory for a RecordingStore that raises for drafts matching a predicate."""
    return lambda fail_when: RecordingStore(fail_when=fail_when)


@pytest.fixture
def make_draft() -> Callable[..., SessionDraft]:
    """Factory for valid drafts; keyword arguments override fields."""

    def _make(**overrides) -> SessionDraft:
        fields = {
            "title": "Study session",
            "category": "programming",
            "duration_minutes": 60,
        }
        fields.update(overrides)
        return SessionDraft(**fields)

    return _make


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """
    Provides a transactional in-memory SQLite DB session for tests.

    This fixture:
    - Creates an isolated in-memory SQLite database per test
    - Patches the engine getter to use it
    - Patches get_session() to yield the test session
    - Rolls back the outer transaction on teardown

    Usage:
        def test_something(db_session):
            store = SqlSessionStore()
            store.create("user-1", draft)
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    def mock_get_engine():
        return engine

    monkeypatch.setattr("studyplan.db.session._get_engine", mock_get_engine)

    from studyplan.db.models import Base

    Base.metadata.create_all(engine)

    connection = engine.connect()
    transaction = connection.begin()

    test_session_local = sessionmaker(bind=connection, autocommit=False, autoflush=False)
    session = test_session_local()

    @contextmanager
    def mock_get_session():
        yield session

    # Patch where it's imported/used, not just where it's defined
    import studyplan.db.session as session_module
    import studyplan.sessions.store as store_module

    monkeypatch.setattr(session_module, "get_session", mock_get_session)
    monkeypatch.setattr(store_module, "get_session", mock_get_session)

    try:
        yield session
    finally:
        session.rollback()
        if transaction.is_active:
            transaction.rollback()
        session.close()
        connection.close()
