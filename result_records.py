"""Canonical student result records shared by ingestion and analytics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

PASS = "pass"
FAIL = "fail"


class ResultIngestError(RuntimeError):
    """Raised when a workbook cannot be turned into a dataset."""


class LibraryUnavailable(ResultIngestError):
    """Raised when the spreadsheet decoding engine cannot be imported."""


class UnreadableWorkbook(ResultIngestError):
    """Raised when the uploaded bytes are not a readable workbook."""


class EmptyWorkbook(ResultIngestError):
    """Raised when the workbook contains no sheets."""


class EmptyData(ResultIngestError):
    """Raised when the first sheet has no data rows."""


class NoValidRecords(ResultIngestError):
    """Raised when every row of the sheet was skipped."""


class InvalidConfig(ResultIngestError):
    """Raised when a configuration value cannot be used."""


class MissingColumn(ResultIngestError):
    """Raised when a required column category cannot be located."""

    def __init__(self, category: str, hint: str = "") -> None:
        self.category = category
        message = f"Could not find {category} column."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class RowSkipped(ValueError):
    """Raised while parsing a single row; the row is dropped and ingestion continues."""


@dataclass(frozen=True)
class SubjectResult:
    status: str
    marks: Optional[float] = None

    @property
    def failed(self) -> bool:
        return self.status == FAIL


@dataclass(frozen=True)
class StudentRecord:
    """One student's results within a single semester.

    ``backlog_subjects`` is derived from ``subject_results`` at construction
    time, so the overall status can never disagree with the subject outcomes.
    """

    roll_number: str
    student_name: str = ""
    semester: str = "Semester 1"
    department: Optional[str] = None
    subject_results: Dict[str, SubjectResult] = field(default_factory=dict)
    backlog_subjects: List[str] = field(init=False)

    def __post_init__(self) -> None:
        backlogs = [code for code, result in self.subject_results.items() if result.failed]
        object.__setattr__(self, "backlog_subjects", backlogs)

    @property
    def overall_status(self) -> str:
        return FAIL if self.backlog_subjects else PASS

    @property
    def backlog_count(self) -> int:
        return len(self.backlog_subjects)


@dataclass(frozen=True)
class ParsedData:
    students: List[StudentRecord]
    semesters: List[str]
    subjects: List[str]
    departments: List[str]
    subject_catalog: Dict[str, str] = field(default_factory=dict)
    issues: List[Dict[str, object]] = field(default_factory=list)

    @classmethod
    def from_students(
        cls,
        students: Iterable[StudentRecord],
        subject_catalog: Optional[Mapping[str, str]] = None,
        issues: Optional[List[Dict[str, object]]] = None,
        departments: Optional[Iterable[str]] = None,
    ) -> "ParsedData":
        """Build a dataset, deriving the sorted semester/subject/department sets.

        When *departments* is given it is used as-is instead of being derived,
        which lets a filtered view keep the full department list.
        """

        students = list(students)
        semesters = sorted({s.semester for s in students})
        subjects = sorted({code for s in students for code in s.subject_results})
        if departments is None:
            departments = sorted({s.department for s in students if s.department})
        else:
            departments = list(departments)
        return cls(
            students=students,
            semesters=semesters,
            subjects=subjects,
            departments=departments,
            subject_catalog=dict(subject_catalog or {}),
            issues=list(issues or []),
        )


@dataclass(frozen=True)
class SemesterAnalytics:
    semester: str
    total_students: int
    passed_count: int
    failed_count: int
    pass_percentage: float
    failure_percentage: float
    total_backlogs: int
    students_with_backlogs: int
    subject_wise_backlogs: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BacklogGroup:
    backlog_count: int
    student_count: int
    roll_numbers: List[str]
