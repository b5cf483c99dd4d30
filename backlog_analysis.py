"""Backlog grouping, subject failure lists and roll-number lookup."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from result_records import BacklogGroup, StudentRecord

DIGITS_RX = re.compile(r"(\d+)")


def natural_key(value: str) -> Tuple:
    """Sort key ordering digit runs numerically and letters case-insensitively."""

    parts = DIGITS_RX.split(str(value).strip().lower())
    key = tuple((0, int(part), "") if DIGITS_RX.fullmatch(part) else (1, 0, part) for part in parts if part)
    return key, str(value)


def natural_sorted(values: Iterable[str]) -> List[str]:
    return sorted(values, key=natural_key)


def compute_subject_failures(students: Iterable[StudentRecord]) -> Dict[str, List[str]]:
    """Map each subject to the naturally sorted roll numbers with a backlog in it."""

    failures: Dict[str, set] = {}
    for student in students:
        for subject in student.backlog_subjects:
            failures.setdefault(subject, set()).add(student.roll_number)
    return {subject: natural_sorted(rolls) for subject, rolls in failures.items()}


def compute_backlog_distribution(students: Iterable[StudentRecord]) -> List[BacklogGroup]:
    """Group students carrying backlogs by how many they carry, fewest first."""

    groups: Dict[int, set] = {}
    for student in students:
        count = student.backlog_count
        if count > 0:
            groups.setdefault(count, set()).add(student.roll_number)

    distribution = []
    for count in sorted(groups):
        rolls = natural_sorted(groups[count])
        distribution.append(BacklogGroup(backlog_count=count, student_count=len(rolls), roll_numbers=rolls))
    return distribution


def lookup_students(students: Sequence[StudentRecord], query: str) -> List[StudentRecord]:
    """Return every record whose roll number equals *query*, ignoring case and padding.

    A roll number recurring across semesters returns one record per semester.
    """

    needle = (query or "").strip().lower()
    if not needle or not students:
        return []
    return [s for s in students if s.roll_number.strip().lower() == needle]


def subject_abbreviation(subject_name: str) -> str:
    # "Digital Electronics" -> "DE"
    words = (subject_name or "").split()
    return "".join(word[0].upper() for word in words)


def subject_label(subject_code: str, subject_catalog: Mapping[str, str]) -> str:
    """Return ``"CODE (ABBR)"`` when the catalog names the subject, else the code."""

    abbreviation = subject_abbreviation(subject_catalog.get(subject_code, ""))
    if not abbreviation:
        return subject_code
    return f"{subject_code} ({abbreviation})"
