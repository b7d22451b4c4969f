"""Row extraction for session imports in CSV, JSON and XML formats.

Pure parsing module with no database access or validation rules.
Converts raw upload content into an ordered list of loosely typed field maps:
- CSV: one dict per data row, keyed by the raw header names
- JSON: the session objects as given
- XML: one dict per <session> element, leaf text unwrapped to strings
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from loguru import logger
from lxml import etree

from studyplan.sessions.errors import ParseError
from studyplan.sessions.types import ImportFormat

FieldMap = dict[str, Any]


def _decode(raw_content: bytes | str) -> str:
    if isinstance(raw_content, str):
        return raw_content
    try:
        return raw_content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8 text: {e!s}") from e


def _is_blank_line(cells: list[str]) -> bool:
    return not cells or (len(cells) == 1 and not cells[0].strip())


def extract_csv(content: str) -> list[FieldMap]:
    """Parse CSV content into one field map per data row.

    The header row names the columns. Empty or whitespace-only lines are
    skipped; a line of empty cells such as ",," is kept as a row. Ragged rows are
    tolerated (missing cells read as empty, surplus cells are dropped) and
    cells are trimmed. Backslash escapes the next character inside cells.

    Args:
        content: CSV text

    Returns:
        Field maps in file order

    Raises:
        ParseError: If the content has no data rows or is not readable as CSV
    """
    reader = csv.reader(io.StringIO(content), escapechar="\\", skipinitialspace=True)

    try:
        rows = [row for row in reader if not _is_blank_line(row)]
    except csv.Error as e:
        raise ParseError(f"CSV parsing failed: {e!s}") from e

    if len(rows) < 2:
        raise ParseError("CSV file must contain at least one data row")

    headers = [header.strip() for header in rows[0]]
    records: list[FieldMap] = []
    for cells in rows[1:]:
        if len(cells) != len(headers):
            logger.debug(
                "[IMPORT] Ragged CSV row tolerated",
                expected_columns=len(headers),
                actual_columns=len(cells),
            )
        record: FieldMap = {}
        for index, header in enumerate(headers):
            record[header] = cells[index].strip() if index < len(cells) else ""
        records.append(record)

    return records


def extract_json(content: str) -> list[FieldMap]:
    """Parse JSON content into one field map per session object.

    Accepts a bare list of sessions or an object with a "sessions" list.
    List items that are not objects become empty field maps so that they fail
    row validation instead of rejecting the whole file.

    Raises:
        ParseError: If the content is not JSON or has neither shape
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON parsing failed: {e.msg} (line {e.lineno}, column {e.colno})") from e

    if isinstance(data, list):
        sessions = data
    elif isinstance(data, dict) and isinstance(data.get("sessions"), list):
        sessions = data["sessions"]
    else:
        raise ParseError('JSON must contain an array of sessions or a "sessions" array property')

    return [item if isinstance(item, dict) else {} for item in sessions]


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _leaf_text(element: etree._Element) -> str:
    return (element.text or "").strip()


def _session_element_to_field_map(element: etree._Element) -> FieldMap:
    """Unwrap one <session> element into a field map.

    Each leaf child becomes a plain string. <tags> becomes the list of its
    <tag> children's text. Repeated leaves keep the first value.
    """
    field_map: FieldMap = {}
    for child in element:
        if not isinstance(child.tag, str):
            continue
        name = _local_name(child)
        if name in field_map:
            continue
        if name == "tags":
            field_map["tags"] = [_leaf_text(tag) for tag in child if isinstance(tag.tag, str) and _local_name(tag) == "tag"]
        else:
            field_map[name] = _leaf_text(child)
    return field_map


def extract_xml(content: str | bytes) -> list[FieldMap]:
    """Parse XML content into one field map per <session> element.

    Accepts a <sessions> root holding <session> children, or a bare
    <session> root. The parse is a single blocking call.

    Raises:
        ParseError: If the XML is malformed or holds no session elements
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    data = content.encode("utf-8") if isinstance(content, str) else content

    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(f"XML parsing failed: {e!s}") from e

    if root is None:
        raise ParseError("XML parsing failed: document is empty")

    root_name = _local_name(root)
    if root_name == "sessions":
        elements = [child for child in root if isinstance(child.tag, str) and _local_name(child) == "session"]
    elif root_name == "session":
        elements = [root]
    else:
        elements = []

    if not elements:
        raise ParseError("XML must contain session elements")

    return [_session_element_to_field_map(element) for element in elements]


class RowExtractor:
    """Dispatches raw upload content to the parser for its format."""

    def extract(self, raw_content: bytes | str, fmt: ImportFormat) -> list[FieldMap]:
        """Extract ordered field maps from raw content.

        Args:
            raw_content: Uploaded file content
            fmt: Declared or detected format

        Returns:
            Field maps in source order

        Raises:
            ParseError: If the content cannot be interpreted as fmt
        """
        if fmt == ImportFormat.XML:
            # lxml reads the encoding declaration itself when given bytes
            if isinstance(raw_content, bytes) and raw_content.startswith(b"\xef\xbb\xbf"):
                raw_content = raw_content[3:]
            records = extract_xml(raw_content)
        elif fmt == ImportFormat.JSON:
            records = extract_json(_decode(raw_content))
        elif fmt == ImportFormat.CSV:
            records = extract_csv(_decode(raw_content))
        else:
            raise ParseError(f"Unsupported import format: {fmt}")

        logger.debug(f"[IMPORT] Extracted {len(records)} rows", format=str(fmt))
        return records
