"""
Course catalog extraction: sections, professors and offline course mappings.
"""

from coursecatalog.course import search_by_section, search_course
from coursecatalog.enrollment import get_raw_enrollment
from coursecatalog.merge import merge_mappings
from coursecatalog.rmp import InstructorResolver, RmpClient

__all__ = [
    "InstructorResolver",
    "RmpClient",
    "get_raw_enrollment",
    "merge_mappings",
    "search_by_section",
    "search_course",
]
