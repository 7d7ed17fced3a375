"""
Mapping generation (catalog listings -> CourseMapping snapshots).

Two batch sources feed the offline snapshots:

- the undergraduate course search page: one `.tablesorter` row per course
  with subject, number, title and attribute links (CA1, CA3LAB, COMPW, ...)
- the graduate catalog, one listing page per subject prefix

Every listed course is then looked up on its catalog page for grading,
credits, prerequisites and description. A failed lookup still produces a
record, with "Unavailable" in place of the catalog texts, so that a later
merge can patch it.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import requests
from bs4 import BeautifulSoup
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn

from coursecatalog.catalog import fetch_page
from coursecatalog.config import DEFAULT_CONFIG, CatalogConfig
from coursecatalog.course import search_course
from coursecatalog.model import DEFAULT_PREREQS, CourseAttributes, CourseMapping, CoursePayload
from coursecatalog.table import parse_table


UNAVAILABLE = "Unavailable"

CONTENT_AREAS = ("CA1", "CA2", "CA3", "CA4", "CA4INT")

# course search table columns
LINK_COLUMN = 1
SUBJECT_COLUMN = 3
NUMBER_COLUMN = 4
NAME_COLUMN = 5
ATTRIBUTE_COLUMN = 6

GRAD_PREFIXES = (
    "ACCT", "ADMN", "AMES", "AFRI", "AFRA", "ARE", "AGNR", "AH", "AMST", "ANSC",
    "ANTH", "ALDS", "ART", "ARTH", "BASC", "BME", "BIST", "BADM", "BLAW", "CHEG",
    "CHEM", "CE", "CAMS", "CLTR", "COGS", "COMM", "CORG", "CLCS", "CSE", "CHIP",
    "DENT", "DMD", "DSEL", "DRAM", "ERTH", "EEB", "ECON", "EGEN", "EDCI", "EDLR",
    "EPSY", "ECE", "ENGR", "ENGL", "ENVE", "ES", "EMBA", "FED", "FNCE", "FREN",
    "GEOG", "GERM", "GRAD", "HCMI", "HEJS", "HIST", "HBEL", "HDFS", "HRTS", "IS",
    "INDS", "IGFP", "ISKM", "ISG", "IMS", "IMED", "INTS", "ILCS", "KINS", "LLAS",
    "LING", "LCL", "MENT", "MFGE", "MARN", "MKTG", "MSE", "MATH", "ME", "MLSC",
    "MEDS", "MCB", "MUSI", "NRE", "NURS", "NUSC", "OPIM", "PATH", "PHAR", "PHIL",
    "PT", "PHYS", "PNB", "PLSC", "POPR", "POLS", "POLY", "PSYC", "PUBH", "PP",
    "RSCH", "ROML", "SSW", "SWEL", "SOCI", "SPAN", "SPTP", "SLHS", "STAT", "SE",
    "TRST", "WGSS",
)

_LEADING_INT = re.compile(r"^\s*(\d+)")
_LISTING_TITLE = re.compile(r"(\d{4}[QEW]*)\.\s*(.+)")


@dataclass
class CourseListing:
    """
    One course as listed by a batch source, before its catalog lookup.
    """

    subject: str
    number: str
    name: str
    href: Optional[str] = None
    attributes: List[str] = field(default_factory=list)
    graduate: bool = False

    @property
    def identifier(self) -> str:
        return self.subject + self.number


# ---------------------------------------------------------------------------
# Listing parsers
# ---------------------------------------------------------------------------


def _cell_text(raw: str) -> str:
    return BeautifulSoup(raw or "", "html.parser").get_text(" ", strip=True)


def parse_attribute_codes(raw: str) -> List[str]:
    """
    Attribute codes from the link texts of a cell, e.g. ["CA3LAB", "COMPQ"].
    """
    soup = BeautifulSoup(raw or "", "html.parser")
    return " ".join(a.get_text() for a in soup.find_all("a")).split()


def parse_course_search(html: str) -> List[CourseListing]:
    """
    Read the undergraduate course search table. Row 0 is the header.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one(".tablesorter")
    if not table:
        return []

    columns = parse_table(table)

    def cell(column: int, row: int) -> str:
        values = columns.get(column, [])
        return values[row] if row < len(values) else ""

    listings: List[CourseListing] = []
    for row in range(1, len(columns.get(SUBJECT_COLUMN, []))):
        link = BeautifulSoup(cell(LINK_COLUMN, row), "html.parser").find("a")
        listings.append(
            CourseListing(
                subject=_cell_text(cell(SUBJECT_COLUMN, row)),
                number=_cell_text(cell(NUMBER_COLUMN, row)),
                name=_cell_text(cell(NAME_COLUMN, row)),
                href=link.get("href") if link else None,
                attributes=parse_attribute_codes(cell(ATTRIBUTE_COLUMN, row)),
            )
        )

    return listings


def parse_grad_listing(prefix: str, html: str) -> List[CourseListing]:
    """
    Read a graduate catalog subject page ("5095. Special Topics" titles).
    """
    soup = BeautifulSoup(html, "html.parser")
    listings: List[CourseListing] = []
    for title in soup.select(".single-course > h3"):
        m = _LISTING_TITLE.search(title.get_text().strip())
        if not m:
            continue
        listings.append(CourseListing(subject=prefix, number=m.group(1), name=m.group(2).strip(), graduate=True))
    return listings


# ---------------------------------------------------------------------------
# Record assembly
# ---------------------------------------------------------------------------


def has_competency(listing: CourseListing, competency: str) -> bool:
    return competency.upper() in listing.attributes


def derive_attributes(listing: CourseListing) -> CourseAttributes:
    """
    Map catalog attribute codes to flags.

    CA3LAB marks a lab and also counts as content area CA3. Graduate
    listings carry no attribute codes and are only flagged as graduate.
    """
    if listing.graduate:
        return CourseAttributes(
            lab=False, writing=False, quantitative=False, environmental=False, content_areas=[], graduate=True
        )

    areas: List[str] = []
    for code in listing.attributes:
        code = "CA3" if code == "CA3LAB" else code.upper()
        if code in CONTENT_AREAS and code not in areas:
            areas.append(code)

    return CourseAttributes(
        lab=has_competency(listing, "CA3LAB"),
        writing=has_competency(listing, "COMPW"),
        quantitative=has_competency(listing, "COMPQ"),
        environmental=has_competency(listing, "COMPE"),
        content_areas=areas,
    )


def parse_credits(raw: str) -> Optional[int]:
    """
    Leading integer of a credits string ("3.00" -> 3), None if there is none.
    """
    m = _LEADING_INT.match(raw or "")
    return int(m.group(1)) if m else None


def build_mapping(listing: CourseListing, payload: Optional[CoursePayload]) -> CourseMapping:
    mapping = CourseMapping(
        name=listing.identifier,
        catalog_name=listing.name,
        catalog_number=listing.number,
        prerequisites=UNAVAILABLE,
        credits=None,
        grading=UNAVAILABLE,
        description=UNAVAILABLE,
        attributes=derive_attributes(listing),
    )

    if payload is not None:
        mapping.prerequisites = payload.prereqs or DEFAULT_PREREQS
        mapping.credits = parse_credits(payload.credits)
        mapping.grading = payload.grading
        mapping.description = payload.description

    return mapping


def lookup_listing(
    listing: CourseListing,
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
) -> Optional[CoursePayload]:
    return search_course(listing.identifier, include=(), config=config, session=session)


# ---------------------------------------------------------------------------
# Batch generation
# ---------------------------------------------------------------------------


def build_mappings(
    listings: List[CourseListing],
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
    max_workers: int = 1,
    console: Optional[Console] = None,
) -> List[CourseMapping]:
    """
    Look up every listing and assemble its mapping, in listing order.
    """
    console = console or Console()

    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeRemainingColumn(),
        console=console,
    )

    def build(listing: CourseListing) -> CourseMapping:
        mapping = build_mapping(listing, lookup_listing(listing, config, session))
        progress.advance(task)
        return mapping

    with progress:
        task = progress.add_task("Generating mappings...", total=len(listings))
        if max_workers <= 1:
            return [build(listing) for listing in listings]
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(build, listings))


def generate_mappings(
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
    max_workers: int = 1,
    console: Optional[Console] = None,
) -> Optional[List[CourseMapping]]:
    """
    Build mappings for every course of the undergraduate course search.

    Returns None if the course search page cannot be retrieved.
    """
    console = console or Console()

    html = fetch_page(config.course_search_url, config, session)
    if html is None:
        return None

    listings = parse_course_search(html)
    console.print(f"[*] Ready to generate mappings for {len(listings):,} courses.")
    return build_mappings(listings, config, session, max_workers, console)


def generate_grad_mappings(
    prefixes: Iterable[str] = GRAD_PREFIXES,
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
    max_workers: int = 1,
    console: Optional[Console] = None,
) -> List[CourseMapping]:
    """
    Build mappings for the graduate catalog listings of the given prefixes.

    Unreachable prefix pages are skipped; courses whose catalog page
    cannot be read are left out.
    """
    console = console or Console()

    listings: List[CourseListing] = []
    for prefix in prefixes:
        html = fetch_page(f"{config.grad_catalog_url}/{prefix}/", config, session)
        if html is None:
            console.print(f"[!] Could not load graduate listing for {prefix}")
            continue
        listings.extend(parse_grad_listing(prefix, html))

    console.print(f"[*] Ready to generate mappings for {len(listings):,} courses.")
    mappings = build_mappings(listings, config, session, max_workers, console)

    out: List[CourseMapping] = []
    for mapping in mappings:
        if mapping.grading == UNAVAILABLE:
            console.print(f"[!] Could not find course {mapping.name}")
            continue
        out.append(mapping)
    return out
