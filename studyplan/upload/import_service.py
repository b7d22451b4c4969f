"""Import pipeline for uploaded session files.

extract -> validate each row -> flag duplicates -> summarize. The result is
returned for review; nothing is persisted here.
"""

from __future__ import annotations

from loguru import logger

from studyplan.sessions.errors import ParseError, UnsupportedFormatError
from studyplan.sessions.types import ImportFormat, ImportResult, ImportRow, ImportSummary
from studyplan.upload.duplicates import mark_duplicates
from studyplan.upload.row_extractor import RowExtractor
from studyplan.upload.row_validator import RowValidator

CONTENT_TYPE_FORMATS: dict[str, ImportFormat] = {
    "text/csv": ImportFormat.CSV,
    "application/json": ImportFormat.JSON,
    "text/xml": ImportFormat.XML,
    "application/xml": ImportFormat.XML,
}

EXTENSION_FORMATS: dict[str, ImportFormat] = {
    ".csv": ImportFormat.CSV,
    ".json": ImportFormat.JSON,
    ".xml": ImportFormat.XML,
}


def detect_format(filename: str | None, content_type: str | None) -> ImportFormat:
    """Determine the import format of an upload.

    A recognized content type wins; otherwise the file extension decides.

    Raises:
        UnsupportedFormatError: If neither identifies CSV, JSON or XML
    """
    if content_type:
        media_type = content_type.split(";", 1)[0].strip().lower()
        fmt = CONTENT_TYPE_FORMATS.get(media_type)
        if fmt is not None:
            return fmt

    if filename:
        filename_lower = filename.lower()
        for extension, fmt in EXTENSION_FORMATS.items():
            if filename_lower.endswith(extension):
                return fmt

    raise UnsupportedFormatError("Unsupported file format. Expected .csv, .json, or .xml")


def summarize(rows: list[ImportRow]) -> ImportSummary:
    return ImportSummary(
        total_rows=len(rows),
        successful_rows=sum(1 for row in rows if row.status == "success"),
        failed_rows=sum(1 for row in rows if row.status == "error"),
        warning_rows=sum(1 for row in rows if row.status == "warning"),
        duplicate_rows=sum(1 for row in rows if row.is_duplicate),
    )


def import_sessions(
    content: bytes | str,
    fmt: ImportFormat,
    extractor: RowExtractor | None = None,
    validator: RowValidator | None = None,
) -> ImportResult:
    """Run the import pipeline over raw file content.

    Args:
        content: Uploaded file content
        fmt: Import format
        extractor: Row extractor (default instance if omitted)
        validator: Row validator (default instance if omitted)

    Returns:
        ImportResult with every row, a summary and the flattened row errors

    Raises:
        ParseError: If the content is empty or not readable as fmt
    """
    stripped = content.strip() if isinstance(content, str) else content.strip(b" \t\r\n\xef\xbb\xbf")
    if not stripped:
        raise ParseError("File is empty")

    extractor = extractor or RowExtractor()
    validator = validator or RowValidator()

    records = extractor.extract(content, fmt)
    if fmt == ImportFormat.CSV:
        rows = [validator.validate_delimited(record, index + 1) for index, record in enumerate(records)]
    else:
        rows = [validator.validate(record, index + 1) for index, record in enumerate(records)]

    mark_duplicates(rows)

    summary = summarize(rows)
    logger.info(
        f"[IMPORT] File parsing completed: {summary.successful_rows} parsed successfully, "
        f"{summary.failed_rows} failed to parse, {summary.warning_rows} with warnings, "
        f"{summary.duplicate_rows} duplicates found",
        format=str(fmt),
        total_rows=summary.total_rows,
    )

    return ImportResult(
        summary=summary,
        rows=rows,
        errors=[error for row in rows if row.status == "error" for error in row.errors],
    )
