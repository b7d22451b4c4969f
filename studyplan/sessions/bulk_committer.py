"""Bulk commit of session drafts with partial-success semantics.

Drafts are persisted one at a time, in input order. A failing draft is
recorded and skipped; it never stops the loop or undoes earlier writes.
Nothing wraps the batch in a transaction.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

from loguru import logger

from studyplan.sessions.errors import LimitExceededError
from studyplan.sessions.store import SessionStore
from studyplan.sessions.types import BulkOutcome, FailedDraft, SessionDraft
from studyplan.utils.timestamps import parse_timestamp

MAX_BULK_SESSIONS = 500
TIMEOUT_MESSAGE = "Bulk commit timed out before this session was processed"


def validate_bulk_draft(draft: SessionDraft) -> str | None:
    """Check the minimal invariants a draft needs before it is persisted.

    This is narrower than import row validation because bulk input may come
    from recurrence expansion rather than a parsed file.

    Returns:
        Error message for the first violated invariant, or None if valid
    """
    if not draft.title or not draft.title.strip():
        return "Title is required"
    if not draft.category:
        return "Category is required"
    if draft.duration_minutes <= 0:
        return "Duration must be greater than 0"
    if draft.scheduled_for and parse_timestamp(draft.scheduled_for) is None:
        return "Invalid scheduledFor date"
    return None


class BulkCommitter:
    """Persists drafts sequentially through a SessionStore."""

    def __init__(
        self,
        store: SessionStore,
        max_sessions: int = MAX_BULK_SESSIONS,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._max_sessions = max_sessions
        self._monotonic = monotonic

    def commit(
        self,
        drafts: Sequence[SessionDraft],
        owner_id: str,
        *,
        deadline: float | None = None,
    ) -> BulkOutcome:
        """Persist drafts for owner_id, collecting successes and failures.

        Args:
            drafts: Drafts in the order they should be written
            owner_id: Owner of the new sessions
            deadline: Optional monotonic-clock deadline; once it passes, no
                further store calls are made and the remaining drafts are
                recorded as failed

        Returns:
            BulkOutcome whose successful/failed lists follow input order

        Raises:
            LimitExceededError: If more than the cap is submitted (nothing is written)
        """
        if len(drafts) > self._max_sessions:
            raise LimitExceededError(requested=len(drafts), limit=self._max_sessions)

        logger.info(f"[BULK] Commit started: {len(drafts)} drafts", user_id=owner_id)
        outcome = BulkOutcome()

        for index, draft in enumerate(drafts):
            if deadline is not None and self._monotonic() >= deadline:
                remaining = drafts[index:]
                logger.warning(
                    f"[BULK] Deadline reached, skipping {len(remaining)} remaining drafts",
                    user_id=owner_id,
                )
                outcome.failed.extend(FailedDraft(draft=pending, error=TIMEOUT_MESSAGE) for pending in remaining)
                break

            error = validate_bulk_draft(draft)
            if error is not None:
                outcome.failed.append(FailedDraft(draft=draft, error=error))
                continue

            try:
                record = self._store.create(owner_id, draft)
            except Exception as e:
                logger.warning(
                    "[BULK] Persisting draft failed: {}",
                    e,
                    user_id=owner_id,
                    position=index,
                    title=draft.title,
                )
                outcome.failed.append(FailedDraft(draft=draft, error=str(e) or type(e).__name__))
                continue

            outcome.successful.append(record)

        logger.info(
            "[BULK] Commit finished",
            user_id=owner_id,
            total_created=outcome.total_created,
            total_failed=outcome.total_failed,
        )
        return outcome
