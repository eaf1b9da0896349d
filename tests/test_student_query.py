# /tests/test_student_query.py

import pytest

from student_records.models.student_model import Student, StudentFilters
from student_records.services.database_helpers.student_query import (
    MAX_ROW_INDEX,
    page_bounds,
    query_students,
    summarize_students,
)


def make_student(id, first, last, code=None, status="active", grade=10, email=None):
    return Student(
        id=id,
        studentId=code or f"ST{10000 + id}",
        firstName=first,
        lastName=last,
        email=email or f"{first.lower()}.{last.lower()}@example.com",
        grade=grade,
        status=status,
    )


@pytest.fixture
def roster():
    """A small mixed roster, deliberately inserted out of name order."""
    return [
        make_student(1, "Mia", "Lopez", status="active", grade=9),
        make_student(2, "aaron", "Baker", status="pending", grade=10),
        make_student(3, "Zoe", "Adams", status="inactive", grade=10),
        make_student(4, "Aaron", "Abbott", status="active", grade=11),
        make_student(5, "Liam", "Chen", code="XK-55", status="active", grade=10, email="lchen@school.org"),
    ]


# --- Filtering ---

@pytest.mark.parametrize("status", ["active", "inactive", "pending"])
def test_status_filter_returns_only_that_status(roster, status):
    result = query_students(roster, StudentFilters(status=status))
    expected_ids = {s.id for s in roster if s.status == status}
    assert {s.id for s in result} == expected_ids
    assert all(s.status == status for s in result)


def test_status_all_and_grade_zero_do_not_filter(roster):
    result = query_students(roster, StudentFilters(status="all", grade=0))
    assert len(result) == len(roster)


def test_grade_filter(roster):
    result = query_students(roster, StudentFilters(grade=10))
    assert {s.id for s in result} == {2, 3, 5}


@pytest.mark.parametrize("term", ["AAR", "chen", "school.org", "xk-5", "adams", "zzz"])
def test_search_matches_iff_any_field_contains_term(roster, term):
    """A record is returned exactly when first name, last name, email or code contains the term."""
    result = query_students(roster, StudentFilters(search=term))
    needle = term.lower()
    expected_ids = {
        s.id for s in roster
        if any(needle in value.lower() for value in (s.firstName, s.lastName, s.email, s.studentId))
    }
    assert {s.id for s in result} == expected_ids


def test_filters_are_combined(roster):
    result = query_students(roster, StudentFilters(status="active", grade=10, search="li"))
    assert [s.id for s in result] == [5]


# --- Sorting ---

def test_default_sort_is_first_then_last_name_case_insensitive(roster):
    result = query_students(roster, StudentFilters())
    assert [s.id for s in result] == [4, 2, 5, 1, 3]


def test_name_desc(roster):
    result = query_students(roster, StudentFilters(sort="name_desc"))
    assert [s.id for s in result] == [3, 1, 5, 2, 4]


def test_id_sort_orders_by_student_code(roster):
    asc = query_students(roster, StudentFilters(sort="id_asc"))
    desc = query_students(roster, StudentFilters(sort="id_desc"))
    assert [s.studentId for s in asc] == sorted(s.studentId for s in roster)
    assert [s.studentId for s in desc] == sorted((s.studentId for s in roster), reverse=True)


def test_unknown_sort_falls_back_to_default(roster):
    assert query_students(roster, StudentFilters(sort="grade_up")) == query_students(roster, StudentFilters())


def test_name_sort_is_idempotent_and_stable():
    """Two students with identical names keep their original relative order."""
    twins = [
        make_student(1, "Sam", "Lee"),
        make_student(2, "Ann", "Ray"),
        make_student(3, "sam", "lee"),
    ]
    once = query_students(twins, StudentFilters(sort="name_asc"))
    twice = query_students(once, StudentFilters(sort="name_asc"))
    assert [s.id for s in once] == [2, 1, 3]
    assert twice == once

    reverse = query_students(twins, StudentFilters(sort="name_desc"))
    assert [s.id for s in reverse] == [1, 3, 2]


# --- Pagination ---

@pytest.fixture
def big_roster():
    return [make_student(n, f"Student{n:02d}", "Test") for n in range(25, 0, -1)]


def test_second_page_returns_records_11_to_20(big_roster):
    result = query_students(big_roster, StudentFilters(page=2, limit=10))
    assert [s.firstName for s in result] == [f"Student{n:02d}" for n in range(11, 21)]


def test_page_beyond_data_is_empty(big_roster):
    assert query_students(big_roster, StudentFilters(page=4, limit=10)) == []


def test_page_bounds_are_capped_to_64_bit_range():
    assert page_bounds(3, 10) == (20, 10)
    assert page_bounds(None, 10) is None
    assert page_bounds(10**15, 10**5) == (MAX_ROW_INDEX, 10**5)
    assert page_bounds(1, 10**20) == (0, MAX_ROW_INDEX)


def test_page_without_limit_returns_everything(big_roster):
    assert len(query_students(big_roster, StudentFilters(page=2))) == 25


def test_query_does_not_mutate_input(roster):
    original = list(roster)
    query_students(roster, StudentFilters(sort="name_desc", page=1, limit=2))
    assert roster == original


# --- Stats ---

def test_summarize_counts_inactive_as_issues(roster):
    stats = summarize_students(roster)
    assert stats.totalStudents == 5
    assert stats.activeStudents == 3
    assert stats.pendingApprovals == 1
    assert stats.issuesReported == 1
