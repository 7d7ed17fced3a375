"""
CLI (Command Line Interface).

Quick terminal commands for lookups and the offline tools, e.g.:

    coursecatalog course CSE1010 --campus storrs
    coursecatalog section CSE1010 H01
    coursecatalog rmp "John Smith"
    coursecatalog report VGVhY2hlci0xMjM0
    coursecatalog enrollment 1228 12345 001
    coursecatalog merge --dir data --dry-run
    coursecatalog mappings --grad --prefix CSE
    coursecatalog index rmpIds-storrs.json rmpIds-hartford.json

Results are printed as JSON.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from rich.console import Console

from coursecatalog.catalog import is_campus_type, split_identifier
from coursecatalog.course import search_by_section, search_course
from coursecatalog.enrollment import get_raw_enrollment
from coursecatalog.mappings import GRAD_PREFIXES, generate_grad_mappings, generate_mappings
from coursecatalog.merge import MergeError, consolidate_rmp_index, load_rmp_sources, merge_snapshot_files
from coursecatalog.model import DEFAULT_SEARCH_PARTS, SearchParts
from coursecatalog.rmp import InstructorResolver, RmpClient
from coursecatalog.storage import (
    backup_snapshot,
    default_rmp_index_path,
    load_rmp_index,
    replace_mappings,
    save_rmp_index,
)


console = Console()


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data, ensure_ascii=False, default=str))


def _cmd_course(args: argparse.Namespace) -> int:
    """
    Print the full payload of one course.
    """
    if split_identifier(args.identifier) is None:
        console.print(f"[!] Invalid course identifier: {args.identifier}")
        return 1

    if not is_campus_type(args.campus):
        console.print(f"[!] Invalid campus: {args.campus}")
        return 1

    include = list(DEFAULT_SEARCH_PARTS)
    if args.no_professors:
        include = [SearchParts.SECTIONS]
    if args.no_sections:
        include = []

    payload = search_course(
        args.identifier,
        campus=args.campus.lower(),
        use_mappings=args.mappings,
        include=include,
        max_workers=args.workers,
    )
    if payload is None:
        console.print(f"[!] Could not find course {args.identifier}")
        return 1

    _print_json(payload.to_dict())
    return 0


def _cmd_section(args: argparse.Namespace) -> int:
    payload = search_by_section(args.identifier, args.section)
    if payload is None:
        console.print(f"[!] Could not find section {args.section} of {args.identifier}")
        return 1

    _print_json(payload.to_dict())
    return 0


def _cmd_rmp(args: argparse.Namespace) -> int:
    name = (args.name or "").strip()
    if not name:
        console.print("Please provide an instructor name.")
        return 1

    resolver = InstructorResolver(load_rmp_index(args.index))
    _print_json(asdict(resolver.resolve(name)))
    return 0


def _cmd_report(args: argparse.Namespace) -> int:
    report = RmpClient().report(args.rmp_id)
    if report is None:
        console.print(f"[!] Could not load report for {args.rmp_id}")
        return 1

    _print_json(asdict(report))
    return 0


def _cmd_enrollment(args: argparse.Namespace) -> int:
    payload = get_raw_enrollment(args.term, args.class_number, args.section)
    if payload is None:
        console.print("[!] Enrollment lookup failed.")
        return 1

    _print_json(asdict(payload))
    return 0


def _cmd_merge(args: argparse.Namespace) -> int:
    try:
        merge_snapshot_files(args.dir, dry_run=args.dry_run, force=args.force, console=console)
    except (MergeError, OSError) as e:
        console.print(f"[!] Exited with status code 1, {e}.")
        return 1
    return 0


def _cmd_mappings(args: argparse.Namespace) -> int:
    """
    Generate a mapping snapshot from the catalog listings.
    """
    if args.grad:
        prefixes = [p.upper() for p in args.prefix] if args.prefix else GRAD_PREFIXES
        mappings = generate_grad_mappings(prefixes, max_workers=args.workers, console=console)
    else:
        mappings = generate_mappings(max_workers=args.workers, console=console)

    if mappings is None:
        console.print("[!] Failed to retrieve data from the web.")
        return 1

    out = args.out or Path("courses-grad.json" if args.grad else "courses.json")
    try:
        if out.exists():
            backup = backup_snapshot(out)
            console.print(f"[*] Existing mappings saved to {backup.name}")
        replace_mappings(mappings, out)
    except OSError as e:
        console.print(f"[!] Could not write {out}: {e}")
        return 1

    console.print(f"[*] Finished generating mappings for {len(mappings)} courses.")
    return 0


def _cmd_index(args: argparse.Namespace) -> int:
    """
    Build the local instructor index from per-campus id lists.
    """
    missing = [p for p in args.sources if not p.exists()]
    if missing:
        console.print(f"[!] Missing source files: {', '.join(str(p) for p in missing)}")
        return 1

    entries = consolidate_rmp_index(load_rmp_sources(args.sources))
    save_rmp_index(entries, args.out)
    console.print(f"[*] Wrote {len(entries)} instructors to {args.out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursecatalog", description="Course catalog extraction tools")
    sub = parser.add_subparsers(dest="command", required=True)

    p_course = sub.add_parser("course", help="Look up a course")
    p_course.add_argument("identifier", type=str, help="Course identifier (e.g. CSE1010)")
    p_course.add_argument("--campus", "-c", type=str, default="any", help="Campus filter (default: any)")
    p_course.add_argument("--mappings", action="store_true", help="Answer from offline mappings if possible")
    p_course.add_argument("--no-sections", action="store_true", help="Omit sections and professors")
    p_course.add_argument("--no-professors", action="store_true", help="Omit professors")
    p_course.add_argument("--workers", type=int, default=1, help="Parallel instructor lookups")

    p_section = sub.add_parser("section", help="Look up one section of a course")
    p_section.add_argument("identifier", type=str, help="Course identifier (e.g. CSE1010)")
    p_section.add_argument("section", type=str, help="Section (e.g. 001, H01)")

    p_rmp = sub.add_parser("rmp", help="Resolve an instructor to RateMyProfessors ids")
    p_rmp.add_argument("name", type=str, help="Instructor name (First Last)")
    p_rmp.add_argument("--index", type=Path, default=None, help="Local index file (default: packaged rmp_ids.json)")

    p_report = sub.add_parser("report", help="Show the rating report of an RMP id")
    p_report.add_argument("rmp_id", type=str)

    p_enroll = sub.add_parser("enrollment", help="Live enrollment of a class")
    p_enroll.add_argument("term", type=str)
    p_enroll.add_argument("class_number", type=str)
    p_enroll.add_argument("section", type=str)

    p_merge = sub.add_parser("merge", help="Merge course mapping snapshots into courses.json")
    p_merge.add_argument("--dir", type=Path, default=Path("."), help="Directory holding courses*.json")
    p_merge.add_argument("--dry-run", action="store_true", help="Report only, do not write")
    p_merge.add_argument("--force", action="store_true", help="Allow merging a single snapshot")

    p_mappings = sub.add_parser("mappings", help="Generate a course mapping snapshot from the catalog")
    p_mappings.add_argument("--grad", action="store_true", help="Use the graduate catalog listings")
    p_mappings.add_argument("--prefix", action="append", default=[], help="Graduate subject prefix (repeatable, default: all)")
    p_mappings.add_argument("--out", type=Path, default=None, help="Output file (default: courses.json or courses-grad.json)")
    p_mappings.add_argument("--workers", type=int, default=1, help="Parallel catalog lookups")

    p_index = sub.add_parser("index", help="Build rmp_ids.json from per-campus id lists")
    p_index.add_argument("sources", type=Path, nargs="+")
    p_index.add_argument("--out", type=Path, default=default_rmp_index_path())

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    handlers = {
        "course": _cmd_course,
        "section": _cmd_section,
        "rmp": _cmd_rmp,
        "report": _cmd_report,
        "enrollment": _cmd_enrollment,
        "merge": _cmd_merge,
        "mappings": _cmd_mappings,
        "index": _cmd_index,
    }

    handler = handlers.get(args.command)
    if handler is None:
        raise SystemExit(2)
    raise SystemExit(handler(args))
