import io

import pandas as pd
import pytest

from result_records import SubjectResult, StudentRecord


@pytest.fixture
def workbook_bytes():
    """Build an in-memory .xlsx from one or more DataFrames (first one is the first sheet)."""

    def build(frame, sheet_name="Results", extra_sheets=None):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            frame.to_excel(writer, index=False, sheet_name=sheet_name)
            for name, other in (extra_sheets or {}).items():
                other.to_excel(writer, index=False, sheet_name=name)
        return buffer.getvalue()

    return build


def make_student(roll, semester="Semester 1", fails=(), passes=(), department=None, name=""):
    results = {}
    for subject in passes:
        results[subject] = SubjectResult(status="pass", marks=75.0)
    for subject in fails:
        results[subject] = SubjectResult(status="fail", marks=20.0)
    return StudentRecord(
        roll_number=roll,
        student_name=name,
        semester=semester,
        department=department,
        subject_results=results,
    )


@pytest.fixture
def students():
    return [
        make_student("10", fails=["Maths"], passes=["Physics"], department="CSE"),
        make_student("2", fails=["Maths", "Physics"], department="CSE"),
        make_student("1", passes=["Maths", "Physics"], department="ECE"),
        make_student("21A5", fails=["Maths"], department="ECE"),
        make_student("10", semester="Semester 2", fails=["Chemistry"], department="CSE"),
        make_student("3", semester="Semester 2", passes=["Chemistry"], department="ECE"),
    ]
