# /student_records/services/student_service.py

"""
Business logic for student records that sits above the repository: input
validation, roster export and demo data for fresh installations.
"""

import io
import logging
from typing import Any, Dict, Optional

import pandas as pd

from ..core.security import hash_password
from ..models.student_model import Student, StudentFilters, validate_student_input
from .database_helpers.base_repository import StudentRepository

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = list(Student.model_fields)

DEMO_PASSWORD = "password"

DEMO_USERS = [
    {"username": "admin", "role": "admin"},
    {"username": "student", "role": "student"},
]

DEMO_STUDENTS = [
    {
        "studentId": "ST10023",
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@example.com",
        "phone": "123-456-7890",
        "grade": 10,
        "classSection": "10A",
        "status": "active",
        "address": "123 Main St",
        "notes": "Honor roll student",
    },
    {
        "studentId": "ST10024",
        "firstName": "Jane",
        "lastName": "Smith",
        "email": "jane.smith@example.com",
        "phone": "123-456-7891",
        "grade": 11,
        "classSection": "11B",
        "status": "active",
        "address": "456 Oak Ave",
        "notes": "",
    },
]


# --- CRUD Facade ---

def create_student(repository: StudentRepository, data: Dict[str, Any]) -> Student:
    """Validates a full student payload and persists it."""
    student_in = validate_student_input(data)
    student = repository.create_student(student_in.model_dump())
    logger.info("Created student %s (id %s)", student.studentId, student.id)
    return student


def update_student(repository: StudentRepository, student_id: int, data: Dict[str, Any]) -> Optional[Student]:
    """
    Validates only the supplied fields and merges them over the stored record.
    Returns None when the student does not exist.
    """
    student_update = validate_student_input(data, partial=True)
    updated = repository.update_student(student_id, student_update.model_dump(exclude_unset=True))
    if updated is not None:
        logger.info("Updated student %s (id %s)", updated.studentId, student_id)
    return updated


def delete_student(repository: StudentRepository, student_id: int) -> bool:
    was_deleted = repository.delete_student(student_id)
    if was_deleted:
        logger.info("Deleted student id %s", student_id)
    return was_deleted


# --- Export ---

def export_students_csv(repository: StudentRepository, filters: Optional[StudentFilters] = None) -> str:
    """
    Renders every student matching `filters` as CSV. Pagination is ignored so
    the export always covers the whole filtered roster.
    """
    filters = (filters or StudentFilters()).model_copy(update={"page": None, "limit": None})
    students = repository.list_students(filters)
    df = pd.DataFrame([student.model_dump() for student in students], columns=EXPORT_COLUMNS)
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    return buffer.getvalue()


# --- Demo Data ---

def seed_demo_data(repository: StudentRepository) -> bool:
    """
    Creates the demo accounts and two sample students, but only on an empty
    installation (no 'admin' user yet). Returns True when anything was created.
    """
    if repository.get_user_by_username("admin") is not None:
        return False

    for demo_user in DEMO_USERS:
        repository.create_user({**demo_user, "passwordHash": hash_password(DEMO_PASSWORD)})

    for demo_student in DEMO_STUDENTS:
        if repository.get_student_by_code(demo_student["studentId"]) is None:
            repository.create_student(demo_student)

    logger.info("Demo accounts created: admin/%s, student/%s", DEMO_PASSWORD, DEMO_PASSWORD)
    return True
