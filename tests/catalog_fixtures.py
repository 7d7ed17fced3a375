"""
HTML builders for catalog pages used across the tests.
"""

from __future__ import annotations

from typing import List, Optional


UNDERGRAD_HEADERS = [
    "Codes", "Term", "Campus", "Mode", "Instructor", "Section",
    "Session", "Schedule", "Location", "Enrollment", "Notes",
]

GRAD_HEADERS = [
    "Codes", "Term", "Career", "Campus", "Mode", "Instructor", "Section",
    "Session", "Schedule", "Enrollment", "Location", "Component", "Credits", "Notes",
]


def internal_codes(term: str = "1248", number: str = "12345", section: str = "001", session: str = "1") -> str:
    return (
        f'<span class="term-code">{term}</span>'
        f'<span class="class-number">{number}</span>'
        f'<span class="class-section">{section}</span>'
        f'<span class="session-code">{session}</span>'
    )


def room_link(name: str, slug: Optional[str] = None) -> str:
    slug = slug or name.lower().replace(" ", "-")
    return f'<a href="https://classrooms.uconn.edu/classroom/{slug}/">{name}</a>'


def entry(
    instructor: str = "Smith, John",
    section: str = "001",
    campus: str = "Storrs",
    enrollment: str = "15/20",
    location: str = "",
    schedule: str = "MWF 10:00-10:50",
    notes: str = "",
    term: str = "Fall 2024",
    mode: str = "In Person",
) -> dict:
    return {
        "internal": internal_codes(section=section),
        "term": term,
        "campus": campus,
        "mode": mode,
        "instructor": instructor,
        "section": section,
        "session": '<a href="#">Reg</a>',
        "schedule": schedule + "<br>",
        "location": location or room_link("OAK 101"),
        "enrollment": enrollment,
        "notes": notes,
    }


def _undergrad_cells(e: dict) -> List[str]:
    return [
        e["internal"], e["term"], e["campus"], e["mode"], e["instructor"], e["section"],
        e["session"], e["schedule"], e["location"], e["enrollment"], e["notes"],
    ]


def _grad_cells(e: dict) -> List[str]:
    return [
        e["internal"], e["term"], "GRAD", e["campus"], e["mode"], e["instructor"], e["section"],
        e["session"], e["schedule"], e["enrollment"], e["location"], "LEC", "3", e["notes"],
    ]


def catalog_table(entries: List[dict], grad: bool = False) -> str:
    headers = GRAD_HEADERS if grad else UNDERGRAD_HEADERS
    cells = _grad_cells if grad else _undergrad_cells

    rows = ["<tr>" + "".join(f"<th>{h}</th>" for h in headers) + "</tr>"]
    for e in entries:
        rows.append("<tr>" + "".join(f"<td>{c}</td>" for c in cells(e)) + "</tr>")

    return '<table class="tablesorter"><thead>' + rows[0] + "</thead><tbody>" + "".join(rows[1:]) + "</tbody></table>"


def catalog_page(
    entries: Optional[List[dict]] = None,
    grad: bool = False,
    title: str = "CSE 1010. Introduction to Computing for Engineers",
    grading: str = "Grading Basis: Graded",
    credits: str = "3.00 credits",
    prereqs: str = "Prerequisites: MATH 1131Q. Recommended Preparation: CSE 1000.",
    refresh: str = "14-OCT-21 09.02.01.123456 PM",
    description: str = "Introduction to computing logic and programming.",
    with_table: bool = True,
) -> str:
    table = catalog_table(entries or [], grad) if with_table else ""
    return f"""
    <html><body>
    <div class="single-course">
        <span class="crumb">Courses</span>
        <h3>{title}</h3>
        <div class="grading-basis">{grading}</div>
        <div class="credits">{credits}</div>
        <div class="prerequisites">{prereqs}</div>
        <div class="description">{description}</div>
    </div>
    <div class="last-refresh">{refresh}</div>
    {table}
    </body></html>
    """
