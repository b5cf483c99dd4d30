from backlog_analysis import (
    compute_backlog_distribution,
    compute_subject_failures,
    lookup_students,
    natural_sorted,
    subject_abbreviation,
    subject_label,
)

from conftest import make_student


def test_natural_sort_orders_digit_runs_numerically():
    assert natural_sorted(["10", "2", "1", "21A5", "21a10"]) == ["1", "2", "10", "21A5", "21a10"]
    assert natural_sorted(["b", "A", "a1", "a"]) == ["A", "a", "a1", "b"]


def test_natural_sort_treats_superscript_digits_as_text():
    assert natural_sorted(["1²", "10", "2"]) == ["1²", "2", "10"]
    failures = compute_subject_failures([make_student("1²", fails=["Maths"]), make_student("2", fails=["Maths"])])
    assert failures == {"Maths": ["1²", "2"]}
    groups = compute_backlog_distribution([make_student("①", fails=["Maths"]), make_student("3", fails=["Maths"])])
    assert groups[0].roll_numbers == ["3", "①"]


def test_subject_failures(students):
    failures = compute_subject_failures([s for s in students if s.semester == "Semester 1"])
    assert failures == {
        "Maths": ["2", "10", "21A5"],
        "Physics": ["2"],
    }


def test_subject_failures_never_repeat_a_roll_number():
    records = [
        make_student("5", fails=["Maths"]),
        make_student("5", fails=["Maths"]),
        make_student("5", semester="Semester 2", fails=["Maths"]),
    ]
    assert compute_subject_failures(records) == {"Maths": ["5"]}


def test_subject_failures_empty():
    assert compute_subject_failures([make_student("1", passes=["Maths"])]) == {}


def test_backlog_distribution(students):
    groups = compute_backlog_distribution([s for s in students if s.semester == "Semester 1"])

    assert [g.backlog_count for g in groups] == [1, 2]
    assert groups[0].roll_numbers == ["10", "21A5"]
    assert groups[0].student_count == 2
    assert groups[1].roll_numbers == ["2"]


def test_backlog_distribution_deduplicates_and_skips_clear_students():
    records = [
        make_student("7", fails=["Maths"]),
        make_student("7", fails=["Physics"]),
        make_student("8", passes=["Maths"]),
    ]
    groups = compute_backlog_distribution(records)
    assert len(groups) == 1
    assert groups[0].roll_numbers == ["7"]
    assert groups[0].student_count == 1


def test_lookup_is_case_and_whitespace_insensitive():
    records = [make_student("AB123"), make_student("AB124")]
    matches = lookup_students(records, " ab123 ")
    assert [s.roll_number for s in matches] == ["AB123"]


def test_lookup_returns_every_semester(students):
    matches = lookup_students(students, "10")
    assert [s.semester for s in matches] == ["Semester 1", "Semester 2"]


def test_lookup_blank_query_returns_nothing(students):
    assert lookup_students(students, "") == []
    assert lookup_students(students, "   ") == []
    assert lookup_students([], "10") == []


def test_lookup_requires_exact_match(students):
    assert lookup_students(students, "1") != lookup_students(students, "10")
    assert lookup_students(students, "21A") == []


def test_subject_abbreviation():
    assert subject_abbreviation("Digital Electronics") == "DE"
    assert subject_abbreviation("  data  structures and algorithms ") == "DSAA"
    assert subject_abbreviation("") == ""


def test_subject_label():
    catalog = {"CS101": "Computer Science", "CS102": ""}
    assert subject_label("CS101", catalog) == "CS101 (CS)"
    assert subject_label("CS102", catalog) == "CS102"
    assert subject_label("CS103", catalog) == "CS103"
