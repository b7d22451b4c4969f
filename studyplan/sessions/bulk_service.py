"""Bulk-create orchestration: optional recurrence expansion, then commit."""

from __future__ import annotations

import time

from loguru import logger

from studyplan.config.settings import settings
from studyplan.sessions.bulk_committer import MAX_BULK_SESSIONS, BulkCommitter
from studyplan.sessions.errors import LimitExceededError
from studyplan.sessions.recurrence import RecurrenceExpander
from studyplan.sessions.store import SessionStore
from studyplan.sessions.types import BulkCreateRequest, BulkOutcome, SessionDraft


def expand_request(request: BulkCreateRequest, expander: RecurrenceExpander) -> list[SessionDraft]:
    """Apply the request's recurrence rule to its drafts.

    With apply_to_all every draft is expanded and the results concatenated in
    request order. Otherwise only the first draft is expanded and the others
    follow unexpanded.
    """
    if request.recurrence is None or not request.sessions:
        return list(request.sessions)

    if request.apply_to_all:
        drafts: list[SessionDraft] = []
        for base in request.sessions:
            drafts.extend(expander.expand(base, request.recurrence))
        return drafts

    first, *rest = request.sessions
    return [*expander.expand(first, request.recurrence), *rest]


def create_bulk(
    request: BulkCreateRequest,
    owner_id: str,
    store: SessionStore,
    expander: RecurrenceExpander | None = None,
    timeout_seconds: float | None = None,
) -> BulkOutcome:
    """Expand and persist a bulk-create request.

    Args:
        request: Drafts plus optional recurrence rule
        owner_id: Owner of the new sessions
        store: Persistence collaborator
        expander: Recurrence expander (defaults to a UTC-clock expander)
        timeout_seconds: Commit deadline in seconds; defaults to the
            configured BULK_COMMIT_TIMEOUT_SECONDS, 0 disables it

    Returns:
        BulkOutcome with per-item results

    Raises:
        LimitExceededError: If the raw or expanded draft count exceeds the cap
    """
    if len(request.sessions) > MAX_BULK_SESSIONS:
        raise LimitExceededError(requested=len(request.sessions), limit=MAX_BULK_SESSIONS)

    drafts = expand_request(request, expander or RecurrenceExpander())
    logger.info(
        f"[BULK] Request for {len(request.sessions)} drafts expanded to {len(drafts)}",
        user_id=owner_id,
        has_recurrence=request.recurrence is not None,
        apply_to_all=request.apply_to_all,
    )

    if timeout_seconds is None:
        timeout_seconds = settings.bulk_commit_timeout_seconds
    deadline = time.monotonic() + timeout_seconds if timeout_seconds > 0 else None

    return BulkCommitter(store).commit(drafts, owner_id, deadline=deadline)
