"""Duplicate detection within a single import."""

from __future__ import annotations

from loguru import logger

from studyplan.sessions.types import ImportRow


def duplicate_key(row: ImportRow) -> str:
    """Key rows by title and the raw scheduled_for string (empty if absent)."""
    return f"{row.draft.title}-{row.draft.scheduled_for or ''}"


def mark_duplicates(rows: list[ImportRow]) -> None:
    """Flag rows whose (title, scheduled_for) repeats an earlier row.

    Rows are visited in order. Error rows neither contribute a key nor get
    checked. A repeat gets is_duplicate=True, a "Duplicate of row N" warning
    naming the first occurrence, and success is downgraded to warning. The
    first occurrence is never flagged. Running this twice on the same rows
    leaves them as they were after the first run.
    """
    first_seen: dict[str, int] = {}
    duplicates = 0

    for row in rows:
        if row.status == "error":
            continue

        key = duplicate_key(row)
        first_row_number = first_seen.get(key)
        if first_row_number is None:
            first_seen[key] = row.row_number
            continue

        row.is_duplicate = True
        message = f"Duplicate of row {first_row_number}"
        if message not in row.warnings:
            row.warnings.append(message)
        if row.status == "success":
            row.status = "warning"
        duplicates += 1

    if duplicates:
        logger.info(f"[IMPORT] Flagged {duplicates} duplicate rows")
