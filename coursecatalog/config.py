"""
Runtime configuration (URLs, timeouts, target institution).

All network-facing functions accept an optional CatalogConfig; when it is
omitted DEFAULT_CONFIG is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"


@dataclass(frozen=True)
class CatalogConfig:
    catalog_url: str = "https://catalog.uconn.edu/directory-of-courses/course"
    grad_catalog_url: str = "https://gradcatalog.uconn.edu/course-descriptions/course"
    course_search_url: str = "https://catalog.uconn.edu/course-search/"
    enrollment_url: str = "https://catalog.uconn.edu/wp-content/plugins/uc-courses/soap.php"
    rmp_url: str = "https://www.ratemyprofessors.com/graphql"
    rmp_authorization: str = "Basic dGVzdDp0ZXN0"
    institution: str = "University of Connecticut"
    user_agent: str = "coursecatalog/0.1"
    timeout: float = 30.0


DEFAULT_CONFIG = CatalogConfig()
