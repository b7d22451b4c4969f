"""Persistence collaborator for learning sessions.

Stores must be swappable: the bulk committer depends only on SessionStore.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractContextManager

from loguru import logger
from sqlalchemy.orm import Session

from studyplan.db.models import LearningSession
from studyplan.db.session import get_session
from studyplan.sessions.types import (
    SessionCategory,
    SessionDraft,
    SessionPriority,
    SessionRecord,
    SessionStatus,
)
from studyplan.utils.timestamps import ensure_aware_utc, parse_timestamp

SessionFactory = Callable[[], AbstractContextManager[Session]]


class SessionStore(ABC):
    """Interface for learning-session persistence."""

    @abstractmethod
    def create(self, owner_id: str, draft: SessionDraft) -> SessionRecord:
        """Persist one draft for owner_id and return the stored record.

        Each call is atomic on its own; callers never get a multi-record
        transaction.

        Raises:
            ValueError: If the draft violates a storage constraint
        """
        ...


def _to_record(row: LearningSession) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        category=SessionCategory(row.category),
        status=SessionStatus(row.status),
        priority=SessionPriority(row.priority),
        duration_minutes=row.duration_minutes,
        color=row.color,
        tags=list(row.tags or []),
        notes=row.notes,
        scheduled_for=ensure_aware_utc(row.scheduled_for) if row.scheduled_for else None,
        created_at=ensure_aware_utc(row.created_at),
        updated_at=ensure_aware_utc(row.updated_at),
    )


class SqlSessionStore(SessionStore):
    """SQLAlchemy-backed store writing to the learning_sessions table."""

    def __init__(self, session_factory: SessionFactory | None = None):
        self._session_factory = session_factory

    @staticmethod
    def _to_row(owner_id: str, draft: SessionDraft) -> LearningSession:
        """Convert a draft into a LearningSession row, enforcing enum columns."""
        try:
            category = SessionCategory(draft.category)
        except ValueError as e:
            raise ValueError(f"Invalid category: {draft.category}") from e
        try:
            status = SessionStatus(draft.status)
        except ValueError as e:
            raise ValueError(f"Invalid status: {draft.status}") from e
        try:
            priority = SessionPriority(draft.priority)
        except ValueError as e:
            raise ValueError(f"Invalid priority: {draft.priority}") from e

        scheduled_for = None
        if draft.scheduled_for:
            scheduled_for = parse_timestamp(draft.scheduled_for)
            if scheduled_for is None:
                raise ValueError(f"Invalid scheduled_for: {draft.scheduled_for}")

        return LearningSession(
            user_id=owner_id,
            title=draft.title.strip(),
            description=draft.description or None,
            category=category.value,
            status=status.value,
            priority=priority.value,
            duration_minutes=draft.duration_minutes,
            color=draft.color or None,
            tags=list(draft.tags),
            notes=draft.notes or None,
            scheduled_for=scheduled_for,
        )

    def create(self, owner_id: str, draft: SessionDraft) -> SessionRecord:
        row = self._to_row(owner_id, draft)
        session_factory = self._session_factory or get_session
        with session_factory() as session:
            session.add(row)
            session.flush()
            record = _to_record(row)
            session.commit()

        logger.debug("[STORE] Session created", session_id=record.id, user_id=owner_id)
        return record
