# /tests/test_cached_repository.py

import pytest

from student_records.core.exceptions import DuplicateStudentCodeError
from student_records.models.student_model import StudentFilters
from student_records.services.database_helpers.cached_repository import CachedRepository
from student_records.services.database_helpers.student_repository_memory import StudentRepositoryMemory


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inner():
    repo = StudentRepositoryMemory()
    repo.create_student({"studentId": "ST1", "firstName": "Ann", "lastName": "Ray", "email": "ann@x.io", "grade": 4})
    return repo


@pytest.fixture
def cached(inner, clock):
    return CachedRepository(inner, ttl_seconds=60, clock=clock)


def new_student(code):
    return {"studentId": code, "firstName": "Bo", "lastName": "Li", "email": "bo@x.io", "grade": 5}


def test_repeated_read_is_served_from_cache(cached, inner, mocker):
    spy = mocker.spy(inner, "list_students")
    first = cached.list_students(StudentFilters(status="active"))
    second = cached.list_students(StudentFilters(status="active"))
    assert first == second
    assert spy.call_count == 1


def test_entries_expire_after_ttl(cached, inner, clock, mocker):
    spy = mocker.spy(inner, "get_student_stats")
    cached.get_student_stats()
    clock.advance(59)
    cached.get_student_stats()
    assert spy.call_count == 1

    clock.advance(1)
    cached.get_student_stats()
    assert spy.call_count == 2


def test_different_arguments_use_different_keys(cached, inner, mocker):
    spy = mocker.spy(inner, "list_students")
    cached.list_students(StudentFilters(grade=4))
    cached.list_students(StudentFilters(grade=5))
    assert spy.call_count == 2


def test_read_after_write_is_never_stale(cached):
    """Every kind of write clears the cache, so the next read sees it."""
    assert len(cached.list_students()) == 1
    assert cached.get_student_stats().totalStudents == 1

    created = cached.create_student(new_student("ST2"))
    assert len(cached.list_students()) == 2
    assert cached.get_student_stats().totalStudents == 2

    cached.update_student(created.id, {"grade": 9})
    assert cached.get_student(created.id).grade == 9

    cached.delete_student(created.id)
    assert [s.studentId for s in cached.list_students()] == ["ST1"]


def test_read_overlapping_a_write_does_not_cache_its_snapshot(cached, inner, mocker):
    load_students = inner.list_students
    writes = []

    def list_while_another_request_writes(filters=None):
        snapshot = load_students(filters)
        if not writes:
            writes.append(cached.create_student(new_student("ST2")))
        return snapshot

    mocker.patch.object(inner, "list_students", side_effect=list_while_another_request_writes)

    assert len(cached.list_students()) == 1
    assert len(cached) == 0
    assert len(cached.list_students()) == 2


def test_user_writes_invalidate_user_reads(cached):
    user = cached.create_user({"username": "kim", "passwordHash": "h"})
    assert cached.get_user_by_username("kim").role == "student"
    cached.update_user(user.id, {"role": "admin"})
    assert cached.get_user_by_username("kim").role == "admin"


def test_absent_results_are_not_cached(cached, inner, mocker):
    spy = mocker.spy(inner, "get_student_by_code")
    assert cached.get_student_by_code("ST2") is None
    inner.create_student(new_student("ST2"))  # written behind the cache's back
    assert cached.get_student_by_code("ST2") is not None
    assert spy.call_count == 2


def test_failed_write_still_clears_cache(cached):
    cached.list_students()
    assert len(cached) == 1
    with pytest.raises(DuplicateStudentCodeError):
        cached.create_student(new_student("ST1"))
    assert len(cached) == 0


def test_callers_cannot_mutate_cached_values(cached):
    students = cached.list_students()
    students.clear()
    assert len(cached.list_students()) == 1
