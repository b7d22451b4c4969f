"""Per-row validation for session imports.

Turns one extracted field map into an ImportRow. Every check appends to an
errors or warnings list; nothing is raised, so one bad row never aborts the
import and a row reports all of its issues at once.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from studyplan.sessions.types import (
    ImportRow,
    RowStatus,
    SessionCategory,
    SessionDraft,
    SessionPriority,
    SessionStatus,
)
from studyplan.utils.timestamps import parse_timestamp

FieldMap = dict[str, Any]

VALID_CATEGORIES: tuple[str, ...] = tuple(c.value for c in SessionCategory)
VALID_STATUSES: frozenset[str] = frozenset(s.value for s in SessionStatus)
VALID_PRIORITIES: frozenset[str] = frozenset(p.value for p in SessionPriority)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: str) -> int:
    """Parse the leading integer of a string ("90 min" -> 90); 0 if there is none."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict)):
        return None
    return str(value)


def _coerce_duration(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        return parse_leading_int(value)
    return 0


# Delimited-text header mapping: normalized header -> setter writing into a
# wire-named field map. Headers missing from this table are ignored.
def _set_title(fields: FieldMap, value: str) -> None:
    fields["title"] = value


def _set_description(fields: FieldMap, value: str) -> None:
    fields["description"] = value or None


def _set_category(fields: FieldMap, value: str) -> None:
    fields["category"] = value


def _set_status(fields: FieldMap, value: str) -> None:
    fields["status"] = value or SessionStatus.PLANNED.value


def _set_priority(fields: FieldMap, value: str) -> None:
    fields["priority"] = value or SessionPriority.MEDIUM.value


def _set_duration(fields: FieldMap, value: str) -> None:
    fields["duration"] = parse_leading_int(value)


def _set_color(fields: FieldMap, value: str) -> None:
    fields["color"] = value or None


def _set_tags(fields: FieldMap, value: str) -> None:
    fields["tags"] = [tag.strip() for tag in value.split(",") if tag.strip()] if value else []


def _set_notes(fields: FieldMap, value: str) -> None:
    fields["notes"] = value or None


def _set_scheduled_for(fields: FieldMap, value: str) -> None:
    fields["scheduledFor"] = value or None


HEADER_SETTERS: dict[str, Callable[[FieldMap, str], None]] = {
    "title": _set_title,
    "description": _set_description,
    "category": _set_category,
    "status": _set_status,
    "priority": _set_priority,
    "duration": _set_duration,
    "color": _set_color,
    "tags": _set_tags,
    "notes": _set_notes,
    "scheduledfor": _set_scheduled_for,
    "scheduled_for": _set_scheduled_for,
}


def map_delimited_record(record: dict[str | None, Any]) -> FieldMap:
    """Map a CSV record keyed by raw headers to a wire-named field map.

    Headers are matched case-insensitively after trimming. When two headers
    normalize to the same field, the first column wins.
    """
    fields: FieldMap = {}
    seen: set[str] = set()
    for header, raw_value in record.items():
        if header is None:
            continue
        normalized = header.strip().lower()
        setter = HEADER_SETTERS.get(normalized)
        if setter is None or normalized in seen:
            continue
        seen.add(normalized)
        if normalized in ("scheduledfor", "scheduled_for"):
            seen.update(("scheduledfor", "scheduled_for"))
        value = raw_value.strip() if isinstance(raw_value, str) else ""
        setter(fields, value)
    return fields


class RowValidator:
    """Validates one field map into an ImportRow with errors and warnings."""

    def validate(self, field_map: FieldMap, row_number: int) -> ImportRow:
        """Validate a wire-named field map (JSON/XML shape).

        Args:
            field_map: Loosely typed session fields
            row_number: 1-based row position in the source file

        Returns:
            ImportRow carrying the (possibly partial) draft and all issues found
        """
        errors: list[str] = []
        warnings: list[str] = []

        title = _as_text(field_map.get("title")) or ""
        if not title.strip():
            errors.append("Title is required")

        category = _as_text(field_map.get("category")) or None
        if not category:
            errors.append("Category is required")
        elif category not in VALID_CATEGORIES:
            errors.append(f"Invalid category: {category}. Must be one of: {', '.join(VALID_CATEGORIES)}")

        duration = _coerce_duration(field_map.get("duration"))
        if duration <= 0:
            errors.append("Duration must be a positive number")

        status = _as_text(field_map.get("status")) or SessionStatus.PLANNED.value
        if status not in VALID_STATUSES:
            warnings.append(f"Invalid status: {status}. Using default: {SessionStatus.PLANNED.value}")
            status = SessionStatus.PLANNED.value

        priority = _as_text(field_map.get("priority")) or SessionPriority.MEDIUM.value
        if priority not in VALID_PRIORITIES:
            warnings.append(f"Invalid priority: {priority}. Using default: {SessionPriority.MEDIUM.value}")
            priority = SessionPriority.MEDIUM.value

        scheduled_for = _as_text(field_map.get("scheduledFor")) or None
        if scheduled_for is not None and parse_timestamp(scheduled_for) is None:
            warnings.append(f"Invalid date format for scheduledFor: {scheduled_for}")
            scheduled_for = None

        raw_tags = field_map.get("tags")
        tags: list[str] = []
        if raw_tags is not None:
            if isinstance(raw_tags, list):
                tags = [str(tag) for tag in raw_tags if tag is not None]
            else:
                warnings.append("Tags should be an array")

        draft = SessionDraft(
            title=title,
            description=_as_text(field_map.get("description")) or None,
            category=category,
            status=status,
            priority=priority,
            duration_minutes=duration,
            color=_as_text(field_map.get("color")) or None,
            tags=tags,
            notes=_as_text(field_map.get("notes")) or None,
            scheduled_for=scheduled_for,
        )

        row_status: RowStatus = "error" if errors else "warning" if warnings else "success"
        return ImportRow(
            row_number=row_number,
            draft=draft,
            status=row_status,
            errors=errors,
            warnings=warnings,
        )

    def validate_delimited(self, record: dict[str | None, Any], row_number: int) -> ImportRow:
        """Validate a CSV record keyed by raw header names."""
        return self.validate(map_delimited_record(record), row_number)
