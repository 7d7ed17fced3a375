"""
Course assembly (catalog page -> CoursePayload).

Pipeline:
    fetch page -> metadata -> table -> sections -> professors

Professors are built per distinct instructor name, in order of first
appearance in the (filtered) section list. Each one is resolved against
the rating index exactly once.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import requests
from bs4 import BeautifulSoup

from coursecatalog.catalog import (
    catalog_variant,
    detect_campus_by_section,
    fetch_page,
    get_catalog_url,
    is_section_identifier,
    parse_metadata,
    split_identifier,
)
from coursecatalog.config import DEFAULT_CONFIG, CatalogConfig
from coursecatalog.model import (
    DEFAULT_DESC,
    DEFAULT_GRADING,
    DEFAULT_PREREQS,
    DEFAULT_SEARCH_PARTS,
    CourseMapping,
    CoursePayload,
    ProfessorRecord,
    SearchParts,
    SectionPayload,
    SectionRecord,
)
from coursecatalog.rmp import InstructorResolver
from coursecatalog.sections import assemble_sections
from coursecatalog.storage import get_mapping_by_attribute, load_mappings, load_rmp_index
from coursecatalog.table import extract_table


# ---------------------------------------------------------------------------
# Professors
# ---------------------------------------------------------------------------


def distinct_instructors(sections: List[SectionRecord]) -> List[str]:
    names: List[str] = []
    for section in sections:
        for name in section.instructors():
            if name.strip() and name not in names:
                names.append(name)
    return names


def sections_taught_by(name: str, sections: List[SectionRecord]) -> List[SectionRecord]:
    teaching = [s for s in sections if name in s.instructors()]
    return sorted(teaching, key=lambda s: s.section)


def assemble_professors(
    sections: List[SectionRecord],
    resolver: InstructorResolver,
    max_workers: int = 1,
) -> List[ProfessorRecord]:
    """
    Group sections by instructor and resolve every instructor once.

    With max_workers > 1 the (independent) resolver calls run in a thread
    pool; the output order is still the order of first appearance.
    """
    names = distinct_instructors(sections)

    def build(name: str) -> ProfessorRecord:
        rmp = resolver.resolve(name)
        return ProfessorRecord(name=name, sections=sections_taught_by(name, sections), rmp_ids=rmp.rmp_ids)

    if max_workers <= 1 or len(names) <= 1:
        return [build(name) for name in names]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(build, names))


# ---------------------------------------------------------------------------
# Offline mappings
# ---------------------------------------------------------------------------


def mapping_marker(now: Optional[datetime] = None) -> datetime:
    """
    Refresh marker for mapping-based payloads.

    Mappings are regenerated nightly, so before 06:00 the data is reported
    as of 18:00 the previous day, otherwise as of midnight today.
    """
    now = now or datetime.now()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if now.hour < 6:
        return midnight - timedelta(hours=6)
    return midnight


def payload_from_mapping(mapping: CourseMapping, now: Optional[datetime] = None) -> CoursePayload:
    return CoursePayload(
        name=mapping.name,
        grading=mapping.grading or DEFAULT_GRADING,
        credits=str(mapping.credits) if mapping.credits is not None else "",
        prereqs=mapping.prerequisites or DEFAULT_PREREQS,
        last_data_marker=mapping_marker(now),
        description=mapping.description or DEFAULT_DESC,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def search_course(
    identifier: str,
    campus: str = "any",
    use_mappings: bool = False,
    include: Iterable[SearchParts] = DEFAULT_SEARCH_PARTS,
    resolver: Optional[InstructorResolver] = None,
    mappings: Optional[List[CourseMapping]] = None,
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
    max_workers: int = 1,
) -> Optional[CoursePayload]:
    """
    Retrieve a course with its sections and professors.

    - invalid identifiers return None without touching the network
    - use_mappings=True answers from the offline snapshot (no sections or
      professors); unknown courses fall back to a bare catalog lookup
    - include controls which optional parts are filled in; professors are
      only available together with sections
    """
    parts = split_identifier(identifier)
    if parts is None:
        return None

    prefix, number = parts
    include = set(include)

    if use_mappings:
        mappings = load_mappings() if mappings is None else mappings
        mapping = get_mapping_by_attribute("name", identifier, mappings)
        if mapping is None:
            return search_course(identifier, campus, False, (), config=config, session=session)
        return payload_from_mapping(mapping)

    html = fetch_page(get_catalog_url(prefix, number, config), config, session)
    if html is None:
        return None

    soup = BeautifulSoup(html, "html.parser")
    meta = parse_metadata(soup)
    payload = CoursePayload(
        name=meta.name,
        grading=meta.grading,
        credits=meta.credits,
        prereqs=meta.prereqs,
        last_data_marker=meta.last_data_marker,
        description=meta.description,
    )

    if SearchParts.SECTIONS not in include:
        return payload

    table = extract_table(soup, catalog_variant(prefix, number))
    payload.sections = assemble_sections(table, campus)

    if SearchParts.PROFESSORS not in include or not payload.sections:
        return payload

    if resolver is None:
        resolver = InstructorResolver(load_rmp_index(), config=config)

    payload.professors = assemble_professors(payload.sections, resolver, max_workers)
    return payload


def search_by_section(identifier: str, section: str, **kwargs) -> Optional[SectionPayload]:
    """
    Retrieve a single section of a course, e.g. ("CSE1010", "H01").

    The campus is guessed from the section prefix.
    """
    if not is_section_identifier(section):
        return None

    kwargs.setdefault("campus", detect_campus_by_section(section))
    res = search_course(identifier, **kwargs)
    if res is None:
        return None

    match = next((s for s in res.sections if s.section.lower() == section.lower()), None)
    if match is None:
        return None

    return SectionPayload(
        name=res.name,
        grading=res.grading,
        credits=res.credits,
        prereqs=res.prereqs,
        last_data_marker=res.last_data_marker,
        description=res.description,
        section=match,
    )
