"""
Section assembly (field arrays -> SectionRecord objects).

Each column index of the extracted table becomes exactly one SectionRecord.
Cell values are small HTML fragments, so every field has its own parser:

- instructors: "Last, First" names separated by <br>, rejoined with " & "
- schedule: the catalog appends a 4 character artifact that is cut off
- location: room directory links or a single literal room name
- enrollment: "current/max", optionally followed by a waitlist marker

Important rules:
- off-campus entries are dropped
- index 0 is the table header and never becomes a section
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup

from coursecatalog.model import Enrollment, SectionInternal, SectionLocation, SectionRecord
from coursecatalog.table import FieldTable


INSTRUCTOR_SEPARATOR = " & "
SCHEDULE_SUFFIX_LENGTH = 4
OFF_CAMPUS = "off-campus"

_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_ROOM_DIRECTORY = re.compile(r"classrooms\.(?:[a-z]+\.)*uconn\.edu", re.IGNORECASE)
_ENROLLMENT = re.compile(r"^\s*(\d+)\s*/\s*(\d+)")
_WAITLIST = re.compile(r"Waitlist Spaces:\s*(\d*)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _soup(raw: str) -> BeautifulSoup:
    return BeautifulSoup(raw or "", "html.parser")


def _text(raw: str) -> str:
    """
    Decode an HTML fragment to plain text (entities resolved, tags removed).
    """
    return _soup(raw).get_text(" ", strip=True).replace("\xa0", " ")


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def parse_internal(raw: str) -> SectionInternal:
    soup = _soup(raw.strip() if raw else "")

    def span(cls: str) -> str:
        el = soup.select_one(f"span.{cls}")
        return el.get_text(strip=True) if el else ""

    return SectionInternal(
        term_code=span("term-code"),
        class_number=span("class-number"),
        class_section=span("class-section"),
        session_code=span("session-code"),
    )


def normalize_instructor(raw: str) -> str:
    """
    Turn the raw instructor cell into "First Last & First Last".

    Example:
        "Smith, John<br>Doe, Jane" -> "John Smith & Jane Doe"
    """
    cleaned = (raw or "").replace("&nbsp;", " ")

    names: List[str] = []
    for part in _BREAK.split(cleaned):
        text = _text(part)
        if not text:
            continue
        names.append(" ".join(reversed(text.split(", "))))

    return INSTRUCTOR_SEPARATOR.join(names)


def parse_session(raw: str) -> str:
    soup = _soup(raw)
    anchor = soup.find("a")
    if anchor:
        return anchor.get_text(strip=True)
    return soup.get_text(strip=True)


def parse_schedule(raw: str) -> str:
    raw = raw or ""
    return raw[: max(0, len(raw) - SCHEDULE_SUFFIX_LENGTH)]


def dedupe_locations(locations: List[SectionLocation]) -> List[SectionLocation]:
    """
    Keep the first location of every name, drop nameless ones.
    """
    seen = set()
    out: List[SectionLocation] = []
    for loc in locations:
        if not loc.name or loc.name in seen:
            continue
        seen.add(loc.name)
        out.append(loc)
    return out


def parse_locations(raw: str) -> List[SectionLocation]:
    """
    Parse the location cell.

    Rooms listed in the classroom directory come as one or more links
    (cross-listed rooms are separated by <br>). Anything else is a single
    literal location such as "Online" or "TBA".
    """
    raw = raw or ""
    locations: List[SectionLocation] = []

    if _ROOM_DIRECTORY.search(raw):
        for a in _soup(raw).find_all("a"):
            locations.append(SectionLocation(name=a.get_text(strip=True), url=a.get("href")))
    else:
        locations.append(SectionLocation(name=_text(raw)))

    return dedupe_locations(locations)


def parse_enrollment(raw: str) -> Enrollment:
    """
    Parse "current/max" (and an optional waitlist marker).

    Example:
        "15/20<br>Waitlist Spaces: 3" -> current=15, max=20, full=False, waitlist=3
    """
    raw = raw or ""
    current = 0
    seats = 0

    m = _ENROLLMENT.match(raw.split("<")[0])
    if m:
        current = int(m.group(1))
        seats = int(m.group(2))

    waitlist: Optional[int] = None
    w = _WAITLIST.search(raw)
    if w:
        waitlist = int(w.group(1) or 0)

    return Enrollment(max=seats, current=current, full=current >= seats, waitlist=waitlist)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def normalize_campus(campus: str) -> str:
    return campus.replace(" ", "_").lower()


def build_section(table: FieldTable, index: int) -> SectionRecord:
    """
    Build the SectionRecord for one column index of the table.
    """
    return SectionRecord(
        internal=parse_internal(table.field("internal", index)),
        term=_text(table.field("term", index)),
        mode=_text(table.field("mode", index)),
        campus=_text(table.field("campus", index)),
        instructor=normalize_instructor(table.field("instructor", index)),
        section=_text(table.field("section", index)),
        session=parse_session(table.field("session", index)),
        schedule=parse_schedule(table.field("schedule", index)),
        location=parse_locations(table.field("location", index)),
        enrollment=parse_enrollment(table.field("enrollment", index)),
        notes=_text(table.field("notes", index)),
    )


def assemble_sections(table: Optional[FieldTable], campus: str = "any") -> List[SectionRecord]:
    """
    Build all sections of a table.

    Off-campus entries are dropped, the header entry is removed, and if a
    campus other than "any" is given only sections held there are kept.
    """
    if table is None:
        return []

    sections: List[SectionRecord] = []
    for i in range(len(table)):
        record = build_section(table, i)
        if record.campus.lower() == OFF_CAMPUS:
            continue
        sections.append(record)

    sections = sections[1:]

    if campus.lower() != "any":
        target = campus.lower()
        sections = [s for s in sections if normalize_campus(s.campus) == target]

    return sections
