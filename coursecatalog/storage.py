"""
Persistent snapshot storage.

This module manages two JSON files:

    data/courses.json   -> list of CourseMapping records (canonical snapshot)
    data/rmp_ids.json   -> list of {"name", "rmpIds"} instructor index entries

Both are read-only for the live pipeline; only the merge tool writes them.
"""

from __future__ import annotations

import json
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from coursecatalog.config import DATA_DIR
from coursecatalog.model import CourseMapping, RmpIndexEntry


def default_mappings_path() -> Path:
    """
    Return the default path of courses.json inside the package.

    Using a function instead of a constant lets tests pass their own paths.
    """
    return DATA_DIR / "courses.json"


def default_rmp_index_path() -> Path:
    return DATA_DIR / "rmp_ids.json"


def load_json_list(path: str | Path) -> List[Dict[str, Any]]:
    """
    Load a JSON array of objects.

    Returns an empty list if the file does not exist or is invalid.
    """
    p = Path(path)
    if not p.exists():
        return []

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return []

    if not isinstance(data, list):
        return []
    return [x for x in data if isinstance(x, dict)]


def write_json_list(items: List[Dict[str, Any]], path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(items, indent=3, ensure_ascii=False), encoding="utf-8")


# ---------------------------------------------------------------------------
# Course mappings
# ---------------------------------------------------------------------------


def load_mappings(path: str | Path | None = None) -> List[CourseMapping]:
    p = Path(path) if path is not None else default_mappings_path()
    return [CourseMapping.from_dict(x) for x in load_json_list(p)]


def save_mappings(mappings: List[CourseMapping], path: str | Path | None = None) -> None:
    p = Path(path) if path is not None else default_mappings_path()
    write_json_list([m.to_dict() for m in mappings], p)


def backup_snapshot(path: str | Path) -> Path:
    """
    Copy a snapshot to <stem>-<unix millis><suffix> next to it and return the copy's path.
    """
    p = Path(path)
    backup = p.with_name(f"{p.stem}-{int(time.time() * 1000)}{p.suffix}")
    shutil.copyfile(p, backup)
    return backup


def replace_mappings(mappings: List[CourseMapping], path: str | Path) -> None:
    """
    Write mappings to a sibling temp file, then move it over `path`.

    A failed write leaves the previous file untouched.
    """
    p = Path(path)
    pending = p.with_name(p.name + ".tmp")
    save_mappings(mappings, pending)
    pending.replace(p)


def get_mapping_by_attribute(
    attribute: str,
    value: Any,
    mappings: Optional[List[CourseMapping]] = None,
) -> Optional[CourseMapping]:
    """
    Return the first mapping whose `attribute` equals `value`.
    """
    mappings = load_mappings() if mappings is None else mappings
    for m in mappings:
        if getattr(m, attribute, None) == value:
            return m
    return None


def get_mapping_matches(
    attribute: str,
    predicate: Callable[[Any], bool],
    mappings: Optional[List[CourseMapping]] = None,
) -> List[CourseMapping]:
    mappings = load_mappings() if mappings is None else mappings
    return [m for m in mappings if predicate(getattr(m, attribute, None))]


# ---------------------------------------------------------------------------
# Instructor index
# ---------------------------------------------------------------------------


def load_rmp_index(path: str | Path | None = None) -> List[RmpIndexEntry]:
    p = Path(path) if path is not None else default_rmp_index_path()
    return [RmpIndexEntry.from_dict(x) for x in load_json_list(p)]


def save_rmp_index(entries: List[RmpIndexEntry], path: str | Path | None = None) -> None:
    p = Path(path) if path is not None else default_rmp_index_path()
    write_json_list([e.to_dict() for e in entries], p)
