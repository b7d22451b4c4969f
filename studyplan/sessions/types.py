"""Value objects for session ingestion.

All models here are request-scoped: built and consumed within one import or
bulk-create request, never shared across requests.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from studyplan.utils.timestamps import ensure_aware_utc


class SessionCategory(StrEnum):
    SCHOOL = "school"
    PROGRAMMING = "programming"
    LANGUAGE = "language"
    PERSONAL = "personal"
    OTHER = "other"


class SessionStatus(StrEnum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    MISSED = "missed"
    CANCELLED = "cancelled"


class SessionPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ImportFormat(StrEnum):
    CSV = "csv"
    JSON = "json"
    XML = "xml"


class Frequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class EndType(StrEnum):
    COUNT = "count"
    DATE = "date"
    NEVER = "never"


RowStatus = Literal["success", "warning", "error"]


class SessionDraft(BaseModel):
    """A not-yet-persisted learning session.

    Category, status and priority are kept as raw strings so an invalid
    value survives into the import review table. scheduled_for is the
    timestamp string as supplied (or as generated by recurrence expansion).
    """

    title: str = ""
    description: str | None = None
    category: str | None = None
    status: str = SessionStatus.PLANNED.value
    priority: str = SessionPriority.MEDIUM.value
    duration_minutes: int = 0
    color: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    scheduled_for: str | None = None


class ImportRow(BaseModel):
    """Outcome of the import pipeline for one source row."""

    row_number: int
    draft: SessionDraft
    status: RowStatus
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    is_duplicate: bool = False


class ImportSummary(BaseModel):
    total_rows: int
    successful_rows: int
    failed_rows: int
    warning_rows: int
    duplicate_rows: int


class ImportResult(BaseModel):
    """Rows plus summary returned to the caller for review before commit."""

    summary: ImportSummary
    rows: list[ImportRow]
    errors: list[str]


class RecurrenceRule(BaseModel):
    """Recurrence description for bulk creation.

    Exactly one end condition is active, selected by end_type. days_of_week
    uses Sunday=0 and only matters for weekly rules; day_of_month only
    matters for monthly rules.
    """

    frequency: Frequency
    interval: int = Field(default=1, ge=1)
    days_of_week: list[int] | None = None
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    end_type: EndType = EndType.NEVER
    end_count: int | None = Field(default=None, ge=1)
    end_date: datetime | None = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: list[int] | None) -> list[int] | None:
        """Validate weekday numbers are 0 (Sunday) through 6 (Saturday)."""
        if v is None:
            return v
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"days_of_week values must be 0-6, got {day}")
        return sorted(set(v))

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: datetime | None) -> datetime | None:
        """Normalize end_date to aware UTC."""
        if v is None:
            return v
        return ensure_aware_utc(v)

    @model_validator(mode="after")
    def validate_end_condition(self) -> RecurrenceRule:
        """Require the field that backs the selected end condition."""
        if self.end_type == EndType.COUNT and self.end_count is None:
            raise ValueError("end_count is required when end_type is 'count'")
        if self.end_type == EndType.DATE and self.end_date is None:
            raise ValueError("end_date is required when end_type is 'date'")
        return self


class SessionRecord(BaseModel):
    """A persisted learning session as returned by the store."""

    id: str
    user_id: str
    title: str
    description: str | None = None
    category: SessionCategory
    status: SessionStatus
    priority: SessionPriority
    duration_minutes: int
    color: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    scheduled_for: datetime | None = None
    created_at: datetime
    updated_at: datetime


class FailedDraft(BaseModel):
    draft: SessionDraft
    error: str


class BulkOutcome(BaseModel):
    """Partial-success result of a bulk commit, in input order."""

    successful: list[SessionRecord] = Field(default_factory=list)
    failed: list[FailedDraft] = Field(default_factory=list)

    @computed_field
    @property
    def total_created(self) -> int:
        return len(self.successful)

    @computed_field
    @property
    def total_failed(self) -> int:
        return len(self.failed)

    @computed_field
    @property
    def total_attempted(self) -> int:
        return self.total_created + self.total_failed


class BulkCreateRequest(BaseModel):
    """Bulk-create payload: raw drafts, optionally expanded by a recurrence rule.

    With apply_to_all, every draft is expanded by the rule; otherwise only the
    first draft is expanded and the rest are passed through unchanged.
    """

    sessions: list[SessionDraft]
    recurrence: RecurrenceRule | None = None
    apply_to_all: bool = True
