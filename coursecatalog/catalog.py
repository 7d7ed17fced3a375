"""
Catalog pages: identifiers, URLs, fetching and course metadata.

A course page carries a handful of labelled blocks (title, grading basis,
credits, prerequisites, last refresh, description) and one pivoted table
with all offerings. This module handles everything except the table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import requests
from bs4 import BeautifulSoup

from coursecatalog.config import DEFAULT_CONFIG, CatalogConfig
from coursecatalog.model import (
    CAMPUS_TYPES,
    DEFAULT_CREDITS,
    DEFAULT_DESC,
    DEFAULT_GRADING,
    DEFAULT_PREREQS,
)
from coursecatalog.table import CatalogVariant


COURSE_IDENTIFIER = re.compile(r"^([a-zA-Z]{2,4})(\d{3,4}(?:Q|E|W)*)$")
SECTION_IDENTIFIER = re.compile(r"^(H|Z|W|N)*\d{2,3}(L|D|X)*$")

GRAD_THRESHOLD = 5000
PHRX_GRAD_LIMIT = 5199

_TITLE_CODE = re.compile(r"\d{4}(?:Q|E|W)*\.\s")
_PREREQ_LABEL = re.compile(r"Prerequisites?:\s")
_REFRESH = re.compile(
    r"(\d{1,2}-[A-Za-z]{3}-\d{2})\s+(\d{1,2})[.:](\d{2})[.:](\d{2})(?:[.:]\d+)?\s*([AaPp][Mm])"
)

_CAMPUS_PREFIXES = {
    "h": "hartford",
    "z": "stamford",
    "w": "waterbury",
    "n": "avery_point",
}


# ---------------------------------------------------------------------------
# Identifiers & campuses
# ---------------------------------------------------------------------------


def split_identifier(identifier: str) -> Optional[Tuple[str, str]]:
    """
    Split "CSE1010W" into ("CSE", "1010W"). Returns None for invalid input.
    """
    m = COURSE_IDENTIFIER.match(identifier.strip())
    if not m:
        return None
    return m.group(1).upper(), m.group(2)


def is_section_identifier(section: str) -> bool:
    return bool(SECTION_IDENTIFIER.match(section.strip().upper()))


def detect_campus_by_section(section: str) -> str:
    """
    Guess the campus of a section from its letter prefix.

    Off-campus and Storrs sections both start with a digit, so anything
    without a known prefix is reported as "storrs".
    """
    return _CAMPUS_PREFIXES.get(section[:1].lower(), "storrs")


def is_campus_type(value: str) -> bool:
    return value.lower() in CAMPUS_TYPES


def catalog_variant(prefix: str, number: str) -> CatalogVariant:
    digits = re.sub(r"[^0-9]", "", number)
    num = int(digits) if digits else 0
    if num > GRAD_THRESHOLD and (prefix != "PHRX" or num < PHRX_GRAD_LIMIT):
        return CatalogVariant.GRADUATE
    return CatalogVariant.UNDERGRADUATE


def get_catalog_url(prefix: str, number: str, config: CatalogConfig = DEFAULT_CONFIG) -> str:
    if catalog_variant(prefix, number) is CatalogVariant.GRADUATE:
        return f"{config.grad_catalog_url}/{prefix}/{number}/"
    padded = " " + number if len(number) == 3 else number
    return f"{config.catalog_url}/{prefix}/{padded}/"


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def fetch_page(
    url: str,
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """
    Download a catalog page. Returns None on network errors or non-HTML responses.
    """
    getter = session.get if session is not None else requests.get
    try:
        resp = getter(url, headers={"User-Agent": config.user_agent}, timeout=config.timeout)
        resp.raise_for_status()
    except requests.RequestException:
        return None

    content_type = resp.headers.get("Content-Type", "text/html")
    if "html" not in content_type.lower():
        return None

    return resp.text


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


@dataclass
class CourseMetadata:
    name: str
    grading: str
    credits: str
    prereqs: str
    last_data_marker: datetime
    description: str


def _block_text(soup: BeautifulSoup, selector: str) -> str:
    el = soup.select_one(selector)
    return el.get_text() if el else ""


def parse_name(soup: BeautifulSoup) -> str:
    title = soup.select_one(".single-course > h3:nth-child(2)") or soup.select_one(".single-course > h3")
    if not title:
        return ""
    parts = _TITLE_CODE.split(title.get_text().strip(), maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def parse_prereqs(raw: str) -> str:
    """
    Normalize the prerequisites block.

    "Prerequisite(s): " labels are removed, "None." maps to the default
    sentinel, and recommended preparation notes are cut off.
    """
    raw = raw.strip()
    if not raw or raw == DEFAULT_PREREQS:
        return DEFAULT_PREREQS

    parts = _PREREQ_LABEL.split(raw)
    prereqs = parts[0] if len(parts) == 1 else parts[1]

    if "None." in prereqs:
        return DEFAULT_PREREQS

    if "Recommended Preparation" in prereqs:
        prereqs = prereqs.split("Recommended Preparation")[0].strip()

    return prereqs


def parse_last_refresh(raw: str, now: Optional[datetime] = None) -> datetime:
    """
    Parse the catalog refresh stamp, e.g. "14-OCT-21 09.02.01.123456 PM".

    Falls back to `now` when the stamp is missing or unreadable.
    """
    now = now or datetime.now()
    m = _REFRESH.search(raw or "")
    if not m:
        return now

    day, hour, minute, second, meridiem = m.groups()
    try:
        return datetime.strptime(f"{day} {hour}:{minute}:{second} {meridiem.upper()}", "%d-%b-%y %I:%M:%S %p")
    except ValueError:
        return now


def parse_metadata(soup: BeautifulSoup, now: Optional[datetime] = None) -> CourseMetadata:
    grading_parts = _block_text(soup, ".grading-basis").strip().split("Grading Basis: ")
    grading = grading_parts[1].strip() if len(grading_parts) > 1 and grading_parts[1].strip() else DEFAULT_GRADING

    credits = _block_text(soup, ".credits").strip().split(" ")[0] or DEFAULT_CREDITS

    return CourseMetadata(
        name=parse_name(soup),
        grading=grading,
        credits=credits,
        prereqs=parse_prereqs(_block_text(soup, ".prerequisites")),
        last_data_marker=parse_last_refresh(_block_text(soup, ".last-refresh"), now),
        description=_block_text(soup, ".description").strip() or DEFAULT_DESC,
    )
