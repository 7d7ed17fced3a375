"""
Snapshot merging.

Batch scrapes produce several course mapping files over time
(courses.json, courses-grad.json, ...). Merging folds all of them into the
canonical courses.json:

- records are matched on (name, catalog name, catalog number)
- unknown records are appended
- known records are only patched: gaps and placeholder texts are filled,
  attribute flags are OR-ed, real values are never overwritten
- the result drops nameless records and is sorted by name

merge_mappings() is the pure part; merge_snapshot_files() adds the file
handling (backup of the previous canonical file, dry runs).
"""

from __future__ import annotations

import copy
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rich.console import Console

from coursecatalog.model import PLACEHOLDERS, CourseAttributes, CourseMapping, RmpIndexEntry
from coursecatalog.storage import backup_snapshot, load_json_list, load_mappings, replace_mappings


CANONICAL_NAME = "courses.json"

# generation tools write "Unavailable" when a catalog lookup failed
MERGE_PLACEHOLDERS = PLACEHOLDERS + ("Unavailable",)

_BACKUP = re.compile(r"^courses(?:-[^.]+)?-\d+\.json$")
_FLAGS = ("lab", "writing", "quantitative", "environmental", "graduate")


class MergeError(Exception):
    pass


# ---------------------------------------------------------------------------
# Patch rule
# ---------------------------------------------------------------------------


def _missing(value: Any) -> bool:
    return value is None or value == ""


def _placeholder(value: Any) -> bool:
    return isinstance(value, str) and value.strip() in MERGE_PLACEHOLDERS


def _patched_value(existing: Any, target: Any) -> Tuple[Any, bool]:
    """
    Decide the merged value of one field. Returns (value, changed).
    """
    if _missing(target) or not (_missing(existing) or _placeholder(existing)):
        return existing, False
    if _placeholder(target) and not _missing(existing):
        return existing, False
    return target, existing != target


def _patch_attributes(existing: CourseAttributes, target: CourseAttributes) -> bool:
    changed = False
    for flag in _FLAGS:
        if not getattr(existing, flag) and getattr(target, flag):
            setattr(existing, flag, True)
            changed = True

    if not existing.content_areas and target.content_areas:
        existing.content_areas = list(target.content_areas)
        changed = True

    return changed


def patch_mapping(existing: CourseMapping, target: CourseMapping) -> bool:
    """
    Fill the gaps of `existing` from `target` in place. Returns True if anything changed.
    """
    changed = False
    for name in ("description", "prerequisites", "credits", "grading"):
        value, did = _patched_value(getattr(existing, name), getattr(target, name))
        if did:
            setattr(existing, name, value)
            changed = True

    if existing.attributes is None and target.attributes is not None:
        existing.attributes = copy.deepcopy(target.attributes)
        changed = True
    elif existing.attributes is not None and target.attributes is not None:
        changed = _patch_attributes(existing.attributes, target.attributes) or changed

    return changed


# ---------------------------------------------------------------------------
# Pure merge
# ---------------------------------------------------------------------------


@dataclass
class MergeStats:
    added: List[str] = field(default_factory=list)
    patched: List[str] = field(default_factory=list)


def merge_mappings(
    canonical: List[CourseMapping],
    candidates: Iterable[CourseMapping],
    stats: Optional[MergeStats] = None,
) -> List[CourseMapping]:
    """
    Merge candidate records into a copy of the canonical snapshot.

    Neither input list is modified. Canonical records sharing a key are
    folded into the first of them, so every key appears once.
    """
    merged: List[CourseMapping] = []
    by_key: Dict[tuple, CourseMapping] = {}
    for record in copy.deepcopy(canonical):
        first = by_key.get(record.key())
        if first is None:
            merged.append(record)
            by_key[record.key()] = record
        else:
            patch_mapping(first, record)

    for candidate in candidates:
        existing = by_key.get(candidate.key())
        if existing is None:
            record = copy.deepcopy(candidate)
            merged.append(record)
            by_key[record.key()] = record
            if stats is not None:
                stats.added.append(record.name)
            continue

        if patch_mapping(existing, candidate) and stats is not None:
            stats.patched.append(existing.name)

    merged = [m for m in merged if m.name]
    return sorted(merged, key=lambda m: m.name)


# ---------------------------------------------------------------------------
# File level
# ---------------------------------------------------------------------------


@dataclass
class MergeResult:
    canonical_path: Path
    sources: List[Path]
    before: int
    after: int
    stats: MergeStats
    backup_path: Optional[Path] = None
    written: bool = False


def find_snapshot_files(directory: str | Path) -> List[Path]:
    """
    All mapping snapshots in a directory (courses*.json), excluding backups.
    """
    d = Path(directory)
    return sorted(
        p for p in d.glob("courses*.json") if p.is_file() and not _BACKUP.match(p.name)
    )


def merge_snapshot_files(
    directory: str | Path,
    dry_run: bool = False,
    force: bool = False,
    console: Optional[Console] = None,
) -> MergeResult:
    """
    Merge every snapshot in `directory` into its courses.json.

    Without `force` at least two snapshot files are required. With
    `dry_run` nothing is written. The previous canonical file is kept as
    courses-<unix millis>.json before it is replaced.
    """
    console = console or Console()
    start = time.time()

    files = find_snapshot_files(directory)
    if not files:
        raise MergeError("could not find any course mapping files")

    canonical_path = Path(directory) / CANONICAL_NAME
    if canonical_path not in files:
        raise MergeError(f"missing canonical snapshot {CANONICAL_NAME}")

    if len(files) == 1 and not force:
        raise MergeError("merging requires two or more files (use --force to rewrite a single file)")

    console.print(f"[*] Canonical payload: {canonical_path.name}")
    console.print(f"[*] Located {len(files)} mapping payloads:")
    for f in files:
        console.print(f"    - {f.name}")

    canonical = load_mappings(canonical_path)
    sources = [f for f in files if f != canonical_path]

    candidates: List[CourseMapping] = []
    for source in sources:
        records = load_mappings(source)
        console.print(f"[*] [Manifest] {source.name} :: {len(records)} entr{'y' if len(records) == 1 else 'ies'}")
        candidates.extend(records)

    stats = MergeStats()
    merged = merge_mappings(canonical, candidates, stats)

    for name in stats.patched:
        console.print(f"[*] [Patch] {name} was patched.")
    console.print(
        f"[*] Canonical: {len(canonical)}, merged: {len(merged)}, "
        f"added: {len(stats.added)}, patched: {len(stats.patched)}"
    )

    result = MergeResult(
        canonical_path=canonical_path,
        sources=sources,
        before=len(canonical),
        after=len(merged),
        stats=stats,
    )

    if dry_run:
        console.print("[*] Dry run, nothing written.")
        return result

    backup = backup_snapshot(canonical_path)
    console.print(f"[*] Saved previous payload to {backup.name}")

    replace_mappings(merged, canonical_path)
    result.backup_path = backup
    result.written = True

    console.print(f"[*] Merged payload written to {canonical_path.name} in {int((time.time() - start) * 1000)}ms.")
    return result


# ---------------------------------------------------------------------------
# Instructor index
# ---------------------------------------------------------------------------


def consolidate_rmp_index(sources: Iterable[List[Dict[str, Any]]]) -> List[RmpIndexEntry]:
    """
    Combine per-campus lists of {"name", "id"} into one index.

    Entries are sorted by name, and every name appears once with all of
    its ids in first-seen order.
    """
    rows: List[Dict[str, Any]] = []
    for source in sources:
        rows.extend(r for r in source if r.get("name"))

    rows.sort(key=lambda r: str(r["name"]))

    entries: Dict[str, RmpIndexEntry] = {}
    for row in rows:
        name = str(row["name"])
        ids = row.get("id", row.get("rmpIds", []))
        ids = ids if isinstance(ids, list) else [ids]

        entry = entries.setdefault(name, RmpIndexEntry(name=name, rmp_ids=[]))
        for rmp_id in ids:
            if rmp_id and str(rmp_id) not in entry.rmp_ids:
                entry.rmp_ids.append(str(rmp_id))

    return list(entries.values())


def load_rmp_sources(paths: Iterable[str | Path]) -> List[List[Dict[str, Any]]]:
    return [load_json_list(p) for p in paths]
