"""Example import files in each supported format."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass

from lxml import etree

from studyplan.sessions.types import ImportFormat, SessionCategory

SAMPLE_SESSIONS: list[dict] = [
    {
        "title": "Learn React Fundamentals",
        "description": "Study React components, state, and props",
        "category": SessionCategory.PROGRAMMING.value,
        "status": "planned",
        "priority": "high",
        "duration": 120,
        "color": "#61dafb",
        "tags": ["react", "javascript", "frontend"],
        "notes": "Focus on hooks and functional components",
        "scheduledFor": "2025-01-15T10:00:00Z",
    },
    {
        "title": "French Language Practice",
        "description": "Practice French vocabulary and grammar",
        "category": SessionCategory.LANGUAGE.value,
        "status": "planned",
        "priority": "medium",
        "duration": 90,
        "color": "#ff6b6b",
        "tags": ["french", "language", "vocabulary"],
        "notes": "Use language learning app",
        "scheduledFor": "2025-01-16T14:00:00Z",
    },
    {
        "title": "Personal Development Reading",
        "description": "Read personal development book",
        "category": SessionCategory.PERSONAL.value,
        "status": "planned",
        "priority": "low",
        "duration": 60,
        "color": "#4ecdc4",
        "tags": ["reading", "personal-growth"],
        "notes": "Take notes on key insights",
        "scheduledFor": "2025-01-17T16:00:00Z",
    },
]

SAMPLE_FIELDS = [
    "title",
    "description",
    "category",
    "status",
    "priority",
    "duration",
    "color",
    "tags",
    "notes",
    "scheduledFor",
]


@dataclass(frozen=True)
class SampleFile:
    filename: str
    content_type: str
    content: str


def _render_csv() -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(SAMPLE_FIELDS)
    for session in SAMPLE_SESSIONS:
        writer.writerow([",".join(session[field]) if field == "tags" else session[field] for field in SAMPLE_FIELDS])
    return buffer.getvalue()


def _render_json() -> str:
    return json.dumps(SAMPLE_SESSIONS, indent=2)


def _render_xml() -> str:
    root = etree.Element("sessions")
    for session in SAMPLE_SESSIONS:
        element = etree.SubElement(root, "session")
        for field in SAMPLE_FIELDS:
            if field == "tags":
                tags = etree.SubElement(element, "tags")
                for tag in session["tags"]:
                    etree.SubElement(tags, "tag").text = tag
            else:
                etree.SubElement(element, field).text = str(session[field])
    return etree.tostring(root, pretty_print=True, xml_declaration=True, encoding="UTF-8").decode("utf-8")


def render_sample(fmt: ImportFormat) -> SampleFile:
    """Render the sample sessions as a downloadable file in fmt."""
    if fmt == ImportFormat.CSV:
        return SampleFile("sessions-sample.csv", "text/csv", _render_csv())
    if fmt == ImportFormat.JSON:
        return SampleFile("sessions-sample.json", "application/json", _render_json())
    return SampleFile("sessions-sample.xml", "application/xml", _render_xml())
