import pytest

from result_records import ParsedData, SemesterAnalytics
from semester_analytics import (
    compare_semesters,
    compute_semester_analytics,
    filter_by_department,
    semester_overview,
)

from conftest import make_student


def analytics_for(semester, total, passed):
    failed = total - passed
    return SemesterAnalytics(
        semester=semester,
        total_students=total,
        passed_count=passed,
        failed_count=failed,
        pass_percentage=passed / total * 100 if total else 0.0,
        failure_percentage=failed / total * 100 if total else 0.0,
        total_backlogs=failed,
        students_with_backlogs=failed,
    )


def test_semester_counts(students):
    analytics = compute_semester_analytics(ParsedData.from_students(students))

    assert list(analytics) == ["Semester 1", "Semester 2"]
    first = analytics["Semester 1"]
    assert first.total_students == 4
    assert first.passed_count == 1
    assert first.failed_count == 3
    assert first.pass_percentage == pytest.approx(25.0)
    assert first.failure_percentage == pytest.approx(75.0)
    assert first.total_backlogs == 4
    assert first.students_with_backlogs == 3
    assert first.subject_wise_backlogs == {"Maths": 3, "Physics": 1}

    second = analytics["Semester 2"]
    assert second.total_students == 2
    assert second.subject_wise_backlogs == {"Chemistry": 1}


def test_pass_and_fail_counts_add_up(students):
    for item in compute_semester_analytics(ParsedData.from_students(students)).values():
        assert item.passed_count + item.failed_count == item.total_students


def test_semester_without_students_is_all_zero():
    data = ParsedData(students=[], semesters=["Semester 9"], subjects=[], departments=[])
    item = compute_semester_analytics(data)["Semester 9"]
    assert item.total_students == 0
    assert item.pass_percentage == 0
    assert item.failure_percentage == 0
    assert item.subject_wise_backlogs == {}


def test_listed_semester_missing_from_students_is_all_zero(students):
    base = ParsedData.from_students(students)
    data = ParsedData(
        students=base.students,
        semesters=base.semesters + ["Semester 3"],
        subjects=base.subjects,
        departments=base.departments,
    )
    item = compute_semester_analytics(data)["Semester 3"]
    assert (item.total_students, item.passed_count, item.failed_count) == (0, 0, 0)
    assert item.pass_percentage == 0.0


def test_semester_overview(students):
    overview = semester_overview(compute_semester_analytics(ParsedData.from_students(students)))
    assert list(overview["semester"]) == ["Semester 1", "Semester 2"]
    assert list(overview["pass_percentage"]) == [25.0, 50.0]
    assert list(overview["total_students"]) == [4, 2]


def test_compare_semesters_reports_trends():
    analytics = {
        "Semester 2": analytics_for("Semester 2", 4, 3),
        "Semester 1": analytics_for("Semester 1", 4, 2),
        "Semester 3": analytics_for("Semester 3", 4, 1),
    }
    comparison = compare_semesters(analytics)

    assert list(comparison["from_semester"]) == ["Semester 1", "Semester 2"]
    assert list(comparison["to_semester"]) == ["Semester 2", "Semester 3"]
    assert list(comparison["pass_change"]) == [25.0, -50.0]
    assert list(comparison["pass_trend"]) == ["up", "down"]
    assert list(comparison["failure_trend"]) == ["down", "up"]


def test_compare_semesters_against_zero_rate_is_neutral():
    analytics = {
        "Semester 1": analytics_for("Semester 1", 2, 0),
        "Semester 2": analytics_for("Semester 2", 2, 2),
    }
    row = compare_semesters(analytics).iloc[0]
    assert row["pass_change"] == 0
    assert row["pass_trend"] == "neutral"
    assert row["failure_trend"] == "down"


def test_compare_single_semester_is_empty():
    assert compare_semesters({"Semester 1": analytics_for("Semester 1", 2, 1)}).empty


def test_filter_by_department_keeps_department_list(students):
    data = ParsedData.from_students(students, subject_catalog={"Maths": ""})
    cse = filter_by_department(data, "CSE")

    assert {s.department for s in cse.students} == {"CSE"}
    assert cse.departments == ["CSE", "ECE"]
    assert cse.semesters == ["Semester 1", "Semester 2"]
    assert cse.subjects == ["Chemistry", "Maths", "Physics"]
    assert cse.subject_catalog == {"Maths": ""}


def test_filter_recomputes_semesters():
    data = ParsedData.from_students([
        make_student("1", department="CSE", passes=["Maths"]),
        make_student("2", semester="Semester 2", department="ECE", fails=["Physics"]),
    ])
    ece = filter_by_department(data, "ECE")
    assert ece.semesters == ["Semester 2"]
    assert ece.subjects == ["Physics"]
    assert list(compute_semester_analytics(ece)) == ["Semester 2"]


def test_filter_all_returns_dataset_unchanged(students):
    data = ParsedData.from_students(students)
    assert filter_by_department(data, "all") is data
    assert filter_by_department(data, None) is data
