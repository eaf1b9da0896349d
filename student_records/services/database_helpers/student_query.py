# /student_records/services/database_helpers/student_query.py

"""
The in-process filter / sort / paginate pipeline for student collections.

Backends that cannot push a query down to their storage engine (the in-memory
repository) hand their full collection to `query_students`. The SQL and Mongo
repositories translate the same `StudentFilters` into native queries and must
produce the same ordering; the sort keys defined here are the reference.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ...models.stats_model import StudentStats
from ...models.student_model import Student, StudentFilters

DEFAULT_SORT = "name_asc"
ALL_STATUSES = "all"
# SQLite and MongoDB store OFFSET/LIMIT as signed 64-bit integers.
MAX_ROW_INDEX = 2**63 - 1


def _name_key(student: Student) -> Tuple[str, str]:
    return (student.firstName.casefold(), student.lastName.casefold())


def _code_key(student: Student) -> str:
    return student.studentId


# sort value -> (key function, descending)
SORT_KEYS: Dict[str, Tuple[Callable[[Student], object], bool]] = {
    "name_asc": (_name_key, False),
    "name_desc": (_name_key, True),
    "id_asc": (_code_key, False),
    "id_desc": (_code_key, True),
}


def resolve_sort(sort: Optional[str]) -> str:
    """Unknown or missing sort values fall back to the default ordering."""
    return sort if sort in SORT_KEYS else DEFAULT_SORT


def is_status_filter_active(status: Optional[str]) -> bool:
    return bool(status) and status != ALL_STATUSES


def is_grade_filter_active(grade: Optional[int]) -> bool:
    # 0 means "any grade"
    return bool(grade)


def matches_search(student: Student, search: str) -> bool:
    needle = search.casefold()
    return any(
        needle in value.casefold()
        for value in (student.firstName, student.lastName, student.email, student.studentId)
    )


def page_bounds(page: Optional[int], limit: Optional[int]) -> Optional[Tuple[int, int]]:
    """
    Returns (offset, limit) when both are set, otherwise None (no pagination).

    Both values are capped at MAX_ROW_INDEX so an absurd page number reaches the
    backend as an offset past the end of the data (an empty page) instead of
    overflowing the driver.
    """
    if not page or not limit:
        return None
    return min((page - 1) * limit, MAX_ROW_INDEX), min(limit, MAX_ROW_INDEX)


def query_students(students: Iterable[Student], filters: Optional[StudentFilters] = None) -> List[Student]:
    """
    Applies status, grade and search filters (in that order), sorts with the
    requested comparator, then slices out the requested page.

    Each filter is conjunctive; the search itself matches when ANY of first
    name, last name, email or student code contains the term. Python's sort is
    stable, so records that compare equal keep their incoming order.
    """
    filters = filters or StudentFilters()
    result = list(students)

    if is_status_filter_active(filters.status):
        result = [s for s in result if s.status == filters.status]

    if is_grade_filter_active(filters.grade):
        result = [s for s in result if s.grade == filters.grade]

    if filters.search:
        result = [s for s in result if matches_search(s, filters.search)]

    key, descending = SORT_KEYS[resolve_sort(filters.sort)]
    result.sort(key=key, reverse=descending)

    bounds = page_bounds(filters.page, filters.limit)
    if bounds:
        offset, limit = bounds
        result = result[offset:offset + limit]

    return result


def summarize_students(students: Iterable[Student]) -> StudentStats:
    """Counts students by status. 'issuesReported' is the inactive count."""
    total = active = pending = inactive = 0
    for student in students:
        total += 1
        if student.status == "active":
            active += 1
        elif student.status == "pending":
            pending += 1
        elif student.status == "inactive":
            inactive += 1
    return StudentStats(
        totalStudents=total,
        activeStudents=active,
        pendingApprovals=pending,
        issuesReported=inactive,
    )
