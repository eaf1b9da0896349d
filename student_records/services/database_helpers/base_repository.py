# /student_records/services/database_helpers/base_repository.py

"""
The storage contract shared by every backend.

Routers and services only ever see a `StudentRepository`. Whether records live
in a Python dict, a SQL database or a MongoDB collection is decided once, at
startup, by `database_service.create_repository`.

Conventions every implementation follows:
- Lookups return `None` (and deletes return `False`) when the target is absent.
  Not-found is never an exception.
- Backend failures are re-raised as `PersistenceError`; nothing is swallowed.
- Input records are plain dictionaries using the API's camelCase field names.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...models.stats_model import StudentStats
from ...models.student_model import DEFAULT_STUDENT_STATUS, Student, StudentFilters, coerce_status
from ...models.user_model import DEFAULT_USER_ROLE, USER_ROLES, User

STUDENT_CODE_PREFIX = "ST"
FIRST_STUDENT_CODE_NUMBER = 10001

# Fields an update may change but never clear.
REQUIRED_STUDENT_FIELDS = {"studentId", "firstName", "lastName", "email", "grade"}
STUDENT_FIELDS = set(Student.model_fields) - {"id"}
USER_FIELDS = set(User.model_fields) - {"id"}


def format_student_code(number: int) -> str:
    return f"{STUDENT_CODE_PREFIX}{number}"


def resolve_role(role: Any) -> str:
    return role if role in USER_ROLES else DEFAULT_USER_ROLE


def build_new_student_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalizes a create payload: unknown keys are dropped, empty optional
    strings become None and the status falls back to 'active'.
    """
    fields = {key: value for key, value in data.items() if key in STUDENT_FIELDS}
    for key in ("phone", "classSection", "address", "notes"):
        fields[key] = fields.get(key) or None
    fields.setdefault("userId", None)
    fields["status"] = coerce_status(fields.get("status")) or DEFAULT_STUDENT_STATUS
    return fields


def build_student_changes(existing: Student, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Computes the field changes for a partial update.

    Only supplied keys are applied. A missing or invalid status keeps the
    previous value, and an explicit None for a required field is ignored.
    """
    changes = {}
    for key, value in data.items():
        if key not in STUDENT_FIELDS or key == "status":
            continue
        if value is None and key in REQUIRED_STUDENT_FIELDS:
            continue
        changes[key] = value
    changes["status"] = coerce_status(data.get("status")) or existing.status
    return changes


def build_user_changes(data: Dict[str, Any]) -> Dict[str, Any]:
    changes = {key: value for key, value in data.items() if key in USER_FIELDS}
    if "role" in changes:
        changes["role"] = resolve_role(changes["role"])
    return changes


class StudentRepository(ABC):
    """Abstract CRUD + stats contract for students, plus user lookups for auth."""

    # --- Student Methods ---

    @abstractmethod
    def list_students(self, filters: Optional[StudentFilters] = None) -> List[Student]:
        """Filtered, sorted and (optionally) paginated students."""

    @abstractmethod
    def get_student(self, student_id: int) -> Optional[Student]:
        """Fetches a student by its numeric identifier."""

    @abstractmethod
    def get_student_by_code(self, student_code: str) -> Optional[Student]:
        """Fetches a student by its human-facing code (e.g. 'ST10023')."""

    @abstractmethod
    def create_student(self, data: Dict[str, Any]) -> Student:
        """Persists a new student, assigning an id and, if missing, a code."""

    @abstractmethod
    def update_student(self, student_id: int, data: Dict[str, Any]) -> Optional[Student]:
        """Merges `data` over the stored record. Returns None for an unknown id."""

    @abstractmethod
    def delete_student(self, student_id: int) -> bool:
        """Removes a student. False when there was nothing to remove."""

    @abstractmethod
    def get_student_stats(self) -> StudentStats:
        """Counts students by status."""

    # --- User Methods ---

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    def create_user(self, data: Dict[str, Any]) -> User:
        """Persists a user. `data['passwordHash']` must already be hashed."""

    @abstractmethod
    def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        pass

    # --- Lifecycle ---

    def close(self) -> None:
        """Releases backend resources. Backends without any keep this no-op."""
