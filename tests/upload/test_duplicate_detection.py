"""Tests for in-file duplicate detection."""

from studyplan.sessions.types import ImportRow, SessionDraft
from studyplan.upload.duplicates import duplicate_key, mark_duplicates


def _row(row_number, title, scheduled_for=None, status="success", warnings=None):
    return ImportRow(
        row_number=row_number,
        draft=SessionDraft(title=title, category="school", duration_minutes=30, scheduled_for=scheduled_for),
        status=status,
        errors=["Category is required"] if status == "error" else [],
        warnings=list(warnings or []),
    )


class TestMarkDuplicates:
    def test_repeat_is_flagged_against_first_occurrence(self):
        rows = [
            _row(1, "Algebra", "2025-01-15T10:00:00Z"),
            _row(2, "Algebra", "2025-01-15T10:00:00Z"),
        ]
        mark_duplicates(rows)

        assert rows[0].is_duplicate is False
        assert rows[0].status == "success"
        assert rows[1].is_duplicate is True
        assert rows[1].status == "warning"
        assert rows[1].warnings == ["Duplicate of row 1"]

    def test_every_repeat_names_the_first_row(self):
        rows = [_row(1, "A"), _row(2, "B"), _row(3, "A"), _row(4, "A")]
        mark_duplicates(rows)
        assert [r.is_duplicate for r in rows] == [False, False, True, True]
        assert rows[2].warnings == ["Duplicate of row 1"]
        assert rows[3].warnings == ["Duplicate of row 1"]

    def test_different_schedule_is_not_duplicate(self):
        rows = [
            _row(1, "Algebra", "2025-01-15T10:00:00Z"),
            _row(2, "Algebra", "2025-01-16T10:00:00Z"),
        ]
        mark_duplicates(rows)
        assert not any(r.is_duplicate for r in rows)

    def test_error_rows_are_ignored(self):
        rows = [_row(1, "Algebra", status="error"), _row(2, "Algebra"), _row(3, "Algebra", status="error")]
        mark_duplicates(rows)

        assert rows[0].is_duplicate is False
        assert rows[1].is_duplicate is False
        assert rows[2].is_duplicate is False
        assert rows[2].status == "error"

    def test_warning_row_keeps_existing_warnings(self):
        rows = [_row(1, "A"), _row(2, "A", status="warning", warnings=["Tags should be an array"])]
        mark_duplicates(rows)
        assert rows[1].status == "warning"
        assert rows[1].warnings == ["Tags should be an array", "Duplicate of row 1"]

    def test_running_twice_changes_nothing(self):
        rows = [_row(1, "A"), _row(2, "A"), _row(3, "B")]
        mark_duplicates(rows)
        first_pass = [r.model_copy(deep=True) for r in rows]
        mark_duplicates(rows)
        assert rows == first_pass

    def test_key_uses_raw_schedule_string(self):
        assert duplicate_key(_row(1, "A")) == "A-"
        assert duplicate_key(_row(1, "A", "2025-01-15")) == "A-2025-01-15"
