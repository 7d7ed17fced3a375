"""
Central data model definitions used across the project.

This module defines the canonical structure of every record so that:
- the table extractor, section assembler and resolver share the same field names
- persisted snapshots (courses.json, rmp_ids.json) round-trip through one place
- the payloads handed to consumers stay consistent
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_PREREQS = "There are no prerequisites for this course."
DEFAULT_DESC = "There is no description provided for this course."
DEFAULT_GRADING = "Graded"
DEFAULT_CREDITS = "Unknown Credits"

PLACEHOLDERS = (DEFAULT_PREREQS, DEFAULT_DESC)


class SearchParts(Enum):
    """
    Optional parts of a CoursePayload.

    PROFESSORS is only honoured when SECTIONS is requested too.
    """

    SECTIONS = "sections"
    PROFESSORS = "professors"


DEFAULT_SEARCH_PARTS = (SearchParts.SECTIONS, SearchParts.PROFESSORS)


CAMPUS_TYPES = ("any", "storrs", "hartford", "stamford", "waterbury", "avery_point")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass
class SectionInternal:
    """
    Internal catalog codes embedded in the first table row as <span> tags.
    """

    term_code: str
    class_number: str
    class_section: str
    session_code: str


@dataclass
class SectionLocation:
    name: str
    url: Optional[str] = None


@dataclass
class Enrollment:
    """
    Seat counts of one section.

    `full` is derived from current/max and `waitlist` is only set when the
    catalog printed a waitlist marker.
    """

    max: int
    current: int
    full: bool
    waitlist: Optional[int] = None


@dataclass
class SectionRecord:
    """
    One scheduled offering of a course (one column of the catalog table).
    """

    internal: SectionInternal
    term: str
    mode: str
    campus: str
    instructor: str
    section: str
    session: str
    schedule: str
    location: List[SectionLocation]
    enrollment: Enrollment
    notes: str

    def instructors(self) -> List[str]:
        return self.instructor.split(" & ")


@dataclass
class ProfessorRecord:
    name: str
    sections: List[SectionRecord]
    rmp_ids: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


@dataclass
class CoursePayload:
    name: str
    grading: str
    credits: str
    prereqs: str
    last_data_marker: datetime
    description: str
    sections: List[SectionRecord] = field(default_factory=list)
    professors: List[ProfessorRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_data_marker"] = self.last_data_marker.isoformat()
        return data


@dataclass
class SectionPayload:
    name: str
    grading: str
    credits: str
    prereqs: str
    last_data_marker: datetime
    description: str
    section: SectionRecord

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_data_marker"] = self.last_data_marker.isoformat()
        return data


@dataclass
class EnrollmentPayload:
    term: str
    class_number: str
    section: str
    available: int
    total: int
    overfill: bool
    percent: float


# ---------------------------------------------------------------------------
# Rating index
# ---------------------------------------------------------------------------


@dataclass
class RmpIndexEntry:
    """
    One entry of the local instructor index (rmp_ids.json).
    """

    name: str
    rmp_ids: List[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RmpIndexEntry":
        ids = data.get("rmpIds", [])
        if isinstance(ids, str):
            ids = [ids]
        return cls(name=str(data.get("name", "")), rmp_ids=[str(x) for x in ids])

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "rmpIds": list(self.rmp_ids)}


@dataclass
class RmpResponse:
    name: str
    rmp_ids: List[str]


@dataclass
class RmpRating:
    id: str
    course: str
    comment: str
    date: str
    difficulty: Optional[float]
    helpful: Optional[float]
    clarity: Optional[float]
    thumbs_up: int
    thumbs_down: int
    would_take_again: Optional[int]
    attendance_mandatory: Optional[str]
    grade: Optional[str]
    for_credit: Optional[bool]
    online: Optional[bool]
    tags: List[str]


@dataclass
class RatingReport:
    name: str
    average: Optional[float]
    ratings: int
    take_again: Optional[float]
    difficulty: Optional[float]
    tags: List[str]
    reviews: List[RmpRating] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Course mappings (offline snapshots)
# ---------------------------------------------------------------------------


@dataclass
class CourseAttributes:
    lab: Optional[bool] = None
    writing: Optional[bool] = None
    quantitative: Optional[bool] = None
    environmental: Optional[bool] = None
    content_areas: Optional[List[str]] = None
    graduate: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CourseAttributes":
        return cls(
            lab=data.get("lab"),
            writing=data.get("writing"),
            quantitative=data.get("quantitative"),
            environmental=data.get("environmental"),
            content_areas=data.get("contentAreas"),
            graduate=data.get("graduate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "lab": self.lab,
            "writing": self.writing,
            "quantitative": self.quantitative,
            "environmental": self.environmental,
            "contentAreas": self.content_areas,
        }
        if self.graduate is not None:
            out["graduate"] = self.graduate
        return out


@dataclass
class CourseMapping:
    """
    Represents one course as stored in courses.json.
    """

    name: str
    catalog_name: str
    catalog_number: str
    prerequisites: Optional[str]
    credits: Optional[int]
    grading: Optional[str]
    description: Optional[str]
    attributes: Optional[CourseAttributes] = None

    def key(self) -> tuple:
        return (self.name, self.catalog_name, self.catalog_number)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CourseMapping":
        attrs = data.get("attributes")
        return cls(
            name=str(data.get("name") or ""),
            catalog_name=str(data.get("catalogName") or ""),
            catalog_number=str(data.get("catalogNumber") or ""),
            prerequisites=data.get("prerequisites"),
            credits=data.get("credits"),
            grading=data.get("grading"),
            description=data.get("description"),
            attributes=CourseAttributes.from_dict(attrs) if isinstance(attrs, dict) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "catalogName": self.catalog_name,
            "catalogNumber": self.catalog_number,
            "prerequisites": self.prerequisites,
            "attributes": self.attributes.to_dict() if self.attributes else None,
            "credits": self.credits,
            "grading": self.grading,
            "description": self.description,
        }
