#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reduce wide- or long-format result sheets to canonical student records.

A *wide* sheet carries one row per student and one column per subject. A
*long* sheet carries one row per student per subject, with the subject code,
subject name and grade letter in their own columns. Both layouts end up as a
:class:`result_records.ParsedData`.
"""

from __future__ import annotations

import logging
import math
import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from result_records import (
    FAIL,
    PASS,
    MissingColumn,
    ParsedData,
    RowSkipped,
    StudentRecord,
    SubjectResult,
)

logger = logging.getLogger(__name__)

WIDE_FORMAT = "wide"
LONG_FORMAT = "long"

PASS_MARK = 40.0
DEFAULT_SEMESTER = "Semester 1"

# Grade tokens that mark a subject as failed, shared by both layouts
FAIL_GRADES = {"F", "AB", "ABSENT", "FAIL"}

ROLL_PATTERNS = [r"htno", r"hall.*ticket", r"roll", r"student.*id", r"enrollment", r"id"]
HALL_TICKET_PATTERNS = [r"htno", r"hall.*ticket"]
NAME_PATTERNS = [r"student.*name", r"name"]
SEMESTER_PATTERNS = [r"semester", r"sem"]
DEPARTMENT_PATTERNS = [r"branch", r"department", r"dept"]
SUBJECT_CODE_PATTERNS = [r"subcode", r"sub.*code", r"subject.*code"]
SUBJECT_NAME_PATTERNS = [r"subname", r"sub.*name", r"subject.*name"]
GRADE_LETTER_PATTERNS = [r"grade.*letter", r"letter", r"grade"]
GRADE_POINT_PATTERNS = [r"grade.*point", r"point"]

# Wide-format headers that describe the student rather than a subject
METADATA_COLUMNS = {
    "backlog",
    "backlogs",
    "status",
    "result",
    "total",
    "percentage",
    "grade",
    "branch",
    "department",
    "dept",
    "htno",
}

UNNAMED_HEADER_RX = re.compile(r"^unnamed:\s*\d+", flags=re.I)

Row = Mapping[str, object]


def cell_text(value: object) -> str:
    """Return the stripped text of a cell, ``""`` for empty or NaN cells."""

    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (list, tuple, set, dict)):
        raise RowSkipped(f"unexpected cell value {value!r}")
    return str(value).replace("\u00A0", " ").strip()


def parse_number(text: str) -> Optional[float]:
    """Parse *text* as a finite number, returning ``None`` for anything else."""

    if not text:
        return None
    try:
        number = float(text)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def is_blank_header(header: str) -> bool:
    text = str(header).strip()
    return not text or bool(UNNAMED_HEADER_RX.match(text))


def find_col(headers: Sequence[str], patterns: Iterable[str], exclude: Iterable[str] = ()) -> str:
    """Return the first header matching *patterns*, trying each pattern in turn.

    A later pattern is only consulted when no header matches an earlier one,
    so ``grade.*letter`` wins over a plain ``grade`` column. Headers listed in
    *exclude* are never returned.
    """

    skip = {h for h in exclude if h}
    for pattern in patterns:
        pat = re.compile(pattern, flags=re.I)
        for header in headers:
            if header in skip:
                continue
            if pat.search(str(header).strip()):
                return header
    return ""


def has_col(headers: Sequence[str], patterns: Iterable[str]) -> bool:
    return bool(find_col(headers, patterns))


def detect_format(headers: Sequence[str]) -> str:
    """Classify *headers* as :data:`LONG_FORMAT` or :data:`WIDE_FORMAT`."""

    has_roll = has_col(headers, HALL_TICKET_PATTERNS)
    has_subject = has_col(headers, SUBJECT_CODE_PATTERNS) or has_col(headers, SUBJECT_NAME_PATTERNS)
    has_grade = has_col(headers, GRADE_LETTER_PATTERNS)
    if has_roll and has_subject and has_grade:
        return LONG_FORMAT
    return WIDE_FORMAT


def _row_cell(row: Row, column: str) -> str:
    if not column:
        return ""
    if not isinstance(row, Mapping):
        raise RowSkipped(f"expected a mapping of header to value, got {type(row).__name__}")
    return cell_text(row.get(column, ""))


def classify_mark(text: str, pass_mark: float = PASS_MARK) -> SubjectResult:
    """Classify a wide-format subject cell holding marks or a result word."""

    marks = parse_number(text)
    if marks is not None:
        return SubjectResult(status=PASS if marks >= pass_mark else FAIL, marks=marks)
    token = text.strip().upper()
    if token in FAIL_GRADES or "FAIL" in token:
        return SubjectResult(status=FAIL)
    return SubjectResult(status=PASS)


def classify_grade_letter(letter: str, grade_point: str = "") -> Optional[SubjectResult]:
    """Classify a long-format grade letter; ``None`` when no grade was recorded."""

    token = letter.strip().upper()
    if not token:
        return None
    status = FAIL if token in FAIL_GRADES else PASS
    return SubjectResult(status=status, marks=parse_number(grade_point))


class _Accumulator:
    """Collects per (roll, semester) drafts in first-appearance order."""

    def __init__(self) -> None:
        self.drafts: "OrderedDict[Tuple[str, str], Dict[str, object]]" = OrderedDict()
        self.issues: List[Dict[str, object]] = []

    def draft(self, roll: str, semester: str, name: str, department: str) -> Dict[str, object]:
        key = (roll, semester)
        if key not in self.drafts:
            self.drafts[key] = {
                "roll_number": roll,
                "student_name": name,
                "semester": semester,
                "department": department or None,
                "subject_results": OrderedDict(),
            }
        return self.drafts[key]

    def skip(self, row_number: int, reason: object) -> None:
        logger.warning("Skipping row %d: %s", row_number, reason)
        self.issues.append({"row": row_number, "issue": str(reason)})

    def students(self) -> List[StudentRecord]:
        return [StudentRecord(**draft) for draft in self.drafts.values()]


def normalize_wide(
    rows: Sequence[Row],
    headers: Sequence[str],
    *,
    pass_mark: float = PASS_MARK,
    default_semester: str = DEFAULT_SEMESTER,
) -> ParsedData:
    """Normalize a one-row-per-student sheet."""

    roll_col = find_col(headers, ROLL_PATTERNS)
    if not roll_col:
        raise MissingColumn(
            "roll number",
            'Please ensure the sheet has a column with "Roll", "ID", "Student ID" or "HTNO" in the header.',
        )
    name_col = find_col(headers, NAME_PATTERNS, exclude=[roll_col])
    sem_col = find_col(headers, SEMESTER_PATTERNS, exclude=[roll_col, name_col])
    dept_col = find_col(headers, DEPARTMENT_PATTERNS, exclude=[roll_col, name_col, sem_col])

    resolved = {c for c in (roll_col, name_col, sem_col, dept_col) if c}
    subject_cols = [
        col
        for col in headers
        if col not in resolved
        and not is_blank_header(col)
        and str(col).strip().lower() not in METADATA_COLUMNS
    ]
    if not subject_cols:
        raise MissingColumn("subject", "No subject columns remain after excluding student details.")

    logger.debug("Wide format: roll=%r name=%r semester=%r department=%r subjects=%s",
                 roll_col, name_col, sem_col, dept_col, subject_cols)

    acc = _Accumulator()
    blank_rolls = 0
    for idx, row in enumerate(rows, start=1):
        try:
            roll = _row_cell(row, roll_col)
            if not roll:
                blank_rolls += 1
                continue
            semester = _row_cell(row, sem_col) or default_semester
            name = _row_cell(row, name_col)
            department = _row_cell(row, dept_col)

            outcomes = []
            for col in subject_cols:
                value = _row_cell(row, col)
                if not value:
                    continue
                outcomes.append((col, classify_mark(value, pass_mark)))
        except RowSkipped as exc:
            acc.skip(idx, exc)
            continue

        draft = acc.draft(roll, semester, name, department)
        draft["subject_results"].update(outcomes)

    if blank_rolls:
        logger.debug("Ignored %d rows without a roll number", blank_rolls)

    catalog = {str(col): "" for col in subject_cols}
    return ParsedData.from_students(acc.students(), subject_catalog=catalog, issues=acc.issues)


def normalize_long(
    rows: Sequence[Row],
    headers: Sequence[str],
    *,
    default_semester: str = DEFAULT_SEMESTER,
) -> ParsedData:
    """Normalize a one-row-per-student-per-subject sheet.

    Rows sharing a (roll, semester) pair are folded into one record; the
    first such row supplies the student name and department. Subject codes
    seen alongside a subject name populate the subject catalog.
    """

    roll_col = find_col(headers, HALL_TICKET_PATTERNS)
    if not roll_col:
        raise MissingColumn(
            "HTNO (Hall Ticket Number)",
            'Please ensure the sheet has a column with "HTNO" or "Hall Ticket" in the header.',
        )
    code_col = find_col(headers, SUBJECT_CODE_PATTERNS, exclude=[roll_col])
    subname_col = find_col(headers, SUBJECT_NAME_PATTERNS, exclude=[roll_col, code_col])
    point_col = find_col(headers, GRADE_POINT_PATTERNS, exclude=[roll_col, code_col, subname_col])
    grade_col = find_col(headers, GRADE_LETTER_PATTERNS, exclude=[roll_col, code_col, subname_col, point_col])
    if not grade_col:
        raise MissingColumn(
            "grade letter",
            'Please ensure the sheet has a column with "Grade" or "Grade Letter" in the header.',
        )
    taken = [roll_col, code_col, subname_col, point_col, grade_col]
    name_col = find_col(headers, NAME_PATTERNS, exclude=taken)
    dept_col = find_col(headers, DEPARTMENT_PATTERNS, exclude=taken + [name_col])
    sem_col = find_col(headers, SEMESTER_PATTERNS, exclude=taken + [name_col, dept_col])

    logger.debug("Long format: roll=%r code=%r subject=%r grade=%r point=%r name=%r department=%r semester=%r",
                 roll_col, code_col, subname_col, grade_col, point_col, name_col, dept_col, sem_col)

    acc = _Accumulator()
    catalog: Dict[str, str] = {}
    for idx, row in enumerate(rows, start=1):
        try:
            roll = _row_cell(row, roll_col)
            if not roll:
                continue
            code = _row_cell(row, code_col)
            subject_name = _row_cell(row, subname_col)
            subject_id = code or subject_name
            if not subject_id:
                raise RowSkipped("missing both subject code and subject name")
            semester = _row_cell(row, sem_col) or default_semester
            name = _row_cell(row, name_col)
            department = _row_cell(row, dept_col)
            outcome = classify_grade_letter(_row_cell(row, grade_col), _row_cell(row, point_col))
        except RowSkipped as exc:
            acc.skip(idx, exc)
            continue

        if code and subject_name:
            catalog[code] = subject_name
        elif code:
            catalog.setdefault(code, "")

        draft = acc.draft(roll, semester, name, department)
        if outcome is not None:
            draft["subject_results"][subject_id] = outcome

    return ParsedData.from_students(acc.students(), subject_catalog=catalog, issues=acc.issues)


def normalize_rows(
    rows: Sequence[Row],
    headers: Optional[Sequence[str]] = None,
    *,
    pass_mark: float = PASS_MARK,
    default_semester: str = DEFAULT_SEMESTER,
) -> ParsedData:
    """Detect the layout of *rows* and normalize them with the matching normalizer."""

    if headers is None:
        headers = [str(h) for h in rows[0].keys()] if rows else []
    kind = detect_format(headers)
    logger.info("Detected %s-format sheet (%d rows, %d columns)", kind, len(rows), len(headers))
    if kind == LONG_FORMAT:
        return normalize_long(rows, headers, default_semester=default_semester)
    return normalize_wide(rows, headers, pass_mark=pass_mark, default_semester=default_semester)
