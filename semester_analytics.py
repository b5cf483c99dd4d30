"""Per-semester pass/fail rollups and semester-over-semester comparison."""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from result_records import FAIL, ParsedData, SemesterAnalytics, StudentRecord

ALL_DEPARTMENTS = "all"

STUDENT_COLUMNS = ["roll_number", "semester", "failed", "backlog_count"]

OVERVIEW_COLUMNS = [
    "semester",
    "total_students",
    "passed_count",
    "failed_count",
    "pass_percentage",
    "failure_percentage",
    "total_backlogs",
    "students_with_backlogs",
]

COMPARISON_COLUMNS = [
    "from_semester",
    "to_semester",
    "pass_change",
    "pass_trend",
    "failure_change",
    "failure_trend",
]


def _students_frame(students: Iterable[StudentRecord]) -> pd.DataFrame:
    rows = [
        {
            "roll_number": s.roll_number,
            "semester": s.semester,
            "failed": int(s.overall_status == FAIL),
            "backlog_count": s.backlog_count,
        }
        for s in students
    ]
    return pd.DataFrame(rows, columns=STUDENT_COLUMNS)


def _percentage(part: np.ndarray, total: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(total > 0, part / total * 100, 0.0)


def _subject_backlogs(students: Iterable[StudentRecord]) -> Dict[str, Dict[str, int]]:
    counts: Dict[str, Dict[str, int]] = {}
    for student in students:
        per_subject = counts.setdefault(student.semester, {})
        for subject in student.backlog_subjects:
            per_subject[subject] = per_subject.get(subject, 0) + 1
    return counts


def compute_semester_analytics(data: ParsedData) -> "OrderedDict[str, SemesterAnalytics]":
    """Return one :class:`SemesterAnalytics` per semester listed in *data*.

    Semesters without students yield all-zero statistics.
    """

    semesters = list(data.semesters)
    frame = _students_frame(data.students)

    if frame.empty:
        grouped = pd.DataFrame(0, index=semesters, columns=["total_students", "failed_count",
                                                            "total_backlogs", "students_with_backlogs"])
    else:
        frame["has_backlog"] = (frame["backlog_count"] > 0).astype(int)
        grouped = (
            frame.groupby("semester")
            .agg(
                total_students=("roll_number", "size"),
                failed_count=("failed", "sum"),
                total_backlogs=("backlog_count", "sum"),
                students_with_backlogs=("has_backlog", "sum"),
            )
            .reindex(semesters, fill_value=0)
        )

    total = grouped["total_students"].to_numpy(dtype=float)
    failed = grouped["failed_count"].to_numpy(dtype=float)
    passed = total - failed
    pass_pct = _percentage(passed, total)
    fail_pct = _percentage(failed, total)
    subject_counts = _subject_backlogs(data.students)

    analytics: "OrderedDict[str, SemesterAnalytics]" = OrderedDict()
    for pos, semester in enumerate(semesters):
        row = grouped.iloc[pos]
        analytics[semester] = SemesterAnalytics(
            semester=semester,
            total_students=int(row["total_students"]),
            passed_count=int(passed[pos]),
            failed_count=int(row["failed_count"]),
            pass_percentage=float(pass_pct[pos]),
            failure_percentage=float(fail_pct[pos]),
            total_backlogs=int(row["total_backlogs"]),
            students_with_backlogs=int(row["students_with_backlogs"]),
            subject_wise_backlogs=subject_counts.get(semester, {}),
        )
    return analytics


def semester_overview(analytics: Dict[str, SemesterAnalytics]) -> pd.DataFrame:
    """Flatten *analytics* into one row per semester."""

    rows = [
        {column: getattr(item, column) for column in OVERVIEW_COLUMNS}
        for item in analytics.values()
    ]
    overview = pd.DataFrame(rows, columns=OVERVIEW_COLUMNS)
    overview["pass_percentage"] = overview["pass_percentage"].astype(float).round(2)
    overview["failure_percentage"] = overview["failure_percentage"].astype(float).round(2)
    return overview


def _change(current: float, previous: float):
    if previous == 0:
        return 0.0, "neutral"
    delta = current - previous
    if delta > 0:
        return delta, "up"
    if delta < 0:
        return delta, "down"
    return 0.0, "neutral"


def compare_semesters(analytics: Dict[str, SemesterAnalytics]) -> pd.DataFrame:
    """Return pass/failure rate changes between consecutive semesters.

    A change against a previous rate of 0 is reported as neutral.
    """

    semesters = sorted(analytics)
    rows: List[Dict[str, object]] = []
    for previous, current in zip(semesters, semesters[1:]):
        before, after = analytics[previous], analytics[current]
        pass_change, pass_trend = _change(after.pass_percentage, before.pass_percentage)
        fail_change, fail_trend = _change(after.failure_percentage, before.failure_percentage)
        rows.append({
            "from_semester": previous,
            "to_semester": current,
            "pass_change": round(pass_change, 2),
            "pass_trend": pass_trend,
            "failure_change": round(fail_change, 2),
            "failure_trend": fail_trend,
        })
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def filter_by_department(data: ParsedData, department: Optional[str]) -> ParsedData:
    """Restrict *data* to one department, keeping the full department list."""

    if not department or department == ALL_DEPARTMENTS:
        return data
    students = [s for s in data.students if s.department == department]
    return ParsedData.from_students(
        students,
        subject_catalog=data.subject_catalog,
        issues=data.issues,
        departments=data.departments,
    )
