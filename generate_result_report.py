#!/usr/bin/env python3
"""Print semester, subject backlog and student lookup analytics for a results workbook."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import pandas as pd

from backlog_analysis import (
    compute_backlog_distribution,
    compute_subject_failures,
    lookup_students,
    subject_label,
)
from ingest_results import ingest_path, load_config
from result_records import ParsedData, ResultIngestError
from semester_analytics import (
    ALL_DEPARTMENTS,
    compare_semesters,
    compute_semester_analytics,
    filter_by_department,
    semester_overview,
)

logger = logging.getLogger(__name__)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--input", required=True, help="Path to the results workbook (first sheet is read)")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the JSON configuration file (default: config.json next to this script)",
    )
    parser.add_argument(
        "--department",
        default=ALL_DEPARTMENTS,
        help="Only report on this department (default: %(default)s)",
    )
    parser.add_argument(
        "--semester",
        default=None,
        help="Semester used for the subject and backlog sections (default: first semester)",
    )
    parser.add_argument("--lookup", default=None, help="Roll number to show the full result of")
    parser.add_argument("--verbose", action="store_true", help="Log debug details while parsing")
    return parser.parse_args(argv)


def format_subject_failures(data: ParsedData, semester: str) -> pd.DataFrame:
    students = [s for s in data.students if s.semester == semester]
    failures = compute_subject_failures(students)
    rows = [
        {
            "subject": subject_label(subject, data.subject_catalog),
            "failed": len(rolls),
            "roll_numbers": ", ".join(rolls),
        }
        for subject, rolls in sorted(failures.items(), key=lambda item: (-len(item[1]), item[0]))
    ]
    return pd.DataFrame(rows, columns=["subject", "failed", "roll_numbers"])


def format_backlog_distribution(data: ParsedData, semester: str) -> pd.DataFrame:
    students = [s for s in data.students if s.semester == semester]
    rows = [
        {
            "backlogs": group.backlog_count,
            "students": group.student_count,
            "roll_numbers": ", ".join(group.roll_numbers),
        }
        for group in compute_backlog_distribution(students)
    ]
    return pd.DataFrame(rows, columns=["backlogs", "students", "roll_numbers"])


def format_lookup(data: ParsedData, roll_number: str) -> List[str]:
    lines = []
    for student in lookup_students(data.students, roll_number):
        lines.append(
            f"{student.roll_number} {student.student_name or 'Name not available'} | "
            f"{student.semester} | {student.department or '-'} | {student.overall_status.upper()}"
        )
        for code, result in student.subject_results.items():
            name = data.subject_catalog.get(code) or "Name not available"
            marks = "" if result.marks is None else f" ({result.marks:g})"
            lines.append(f"    {code:<12} {name:<30} {result.status}{marks}")
    return lines


def print_section(title: str, frame: pd.DataFrame) -> None:
    print(f"\n== {title} ==")
    if frame.empty:
        print("(none)")
    else:
        print(frame.to_string(index=False))


def render_report(data: ParsedData, semester: Optional[str] = None, lookup: Optional[str] = None) -> None:
    analytics = compute_semester_analytics(data)
    print_section("Semester overview", semester_overview(analytics))
    if len(analytics) > 1:
        print_section("Semester comparison", compare_semesters(analytics))

    semester = semester or (data.semesters[0] if data.semesters else None)
    if semester and semester in analytics:
        print_section(f"Subject failures ({semester})", format_subject_failures(data, semester))
        print_section(f"Backlog distribution ({semester})", format_backlog_distribution(data, semester))
    elif semester:
        print(f"\n[WARN] Semester not found: {semester}")

    if lookup is not None:
        print(f"\n== Student lookup: {lookup.strip()} ==")
        lines = format_lookup(data, lookup)
        print("\n".join(lines) if lines else "Student record not found.")

    if data.issues:
        print(f"\n[WARN] {len(data.issues)} rows were skipped while reading the workbook")


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        cfg = load_config(args.config)
        parsed = ingest_path(args.input, config=cfg)
    except (FileNotFoundError, ResultIngestError) as exc:
        print(f"[ERROR] {exc}")
        return 1

    data = filter_by_department(parsed, args.department)
    if not data.students:
        print(f"[ERROR] No students found for department: {args.department}")
        return 1

    render_report(data, semester=args.semester, lookup=args.lookup)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
