# /student_records/services/database_helpers/student_repository_memory.py

"""
An in-process repository backed by plain dictionaries.

Used for local development, demos and tests. Identifiers come from
monotonically increasing counters; nothing survives a restart.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...core.exceptions import DuplicateStudentCodeError, DuplicateUsernameError
from ...models.stats_model import StudentStats
from ...models.student_model import Student, StudentFilters
from ...models.user_model import User
from .base_repository import (
    FIRST_STUDENT_CODE_NUMBER,
    StudentRepository,
    build_new_student_fields,
    build_student_changes,
    build_user_changes,
    format_student_code,
    resolve_role,
)
from .student_query import query_students, summarize_students


class StudentRepositoryMemory(StudentRepository):
    def __init__(self):
        self.students: Dict[int, Student] = {}
        self.users: Dict[int, User] = {}
        self._next_student_id = 1
        self._next_student_code = FIRST_STUDENT_CODE_NUMBER
        self._next_user_id = 1
        # Sync endpoints share this instance across the thread pool; the lock is
        # re-entrant because writes call the lookup methods.
        self._lock = threading.RLock()

    # --- Student Methods ---

    def list_students(self, filters: Optional[StudentFilters] = None) -> List[Student]:
        with self._lock:
            return query_students(self.students.values(), filters)

    def get_student(self, student_id: int) -> Optional[Student]:
        with self._lock:
            return self.students.get(student_id)

    def get_student_by_code(self, student_code: str) -> Optional[Student]:
        with self._lock:
            return next((s for s in self.students.values() if s.studentId == student_code), None)

    def _allocate_student_code(self) -> str:
        # Caller holds the lock.
        code = format_student_code(self._next_student_code)
        while self.get_student_by_code(code) is not None:
            self._next_student_code += 1
            code = format_student_code(self._next_student_code)
        self._next_student_code += 1
        return code

    def create_student(self, data: Dict[str, Any]) -> Student:
        fields = build_new_student_fields(data)
        with self._lock:
            if fields.get("studentId"):
                if self.get_student_by_code(fields["studentId"]) is not None:
                    raise DuplicateStudentCodeError(fields["studentId"])
            else:
                fields["studentId"] = self._allocate_student_code()

            student = Student(id=self._next_student_id, **fields)
            self._next_student_id += 1
            self.students[student.id] = student
            return student

    def update_student(self, student_id: int, data: Dict[str, Any]) -> Optional[Student]:
        with self._lock:
            existing = self.students.get(student_id)
            if existing is None:
                return None

            changes = build_student_changes(existing, data)
            new_code = changes.get("studentId")
            if new_code and new_code != existing.studentId and self.get_student_by_code(new_code) is not None:
                raise DuplicateStudentCodeError(new_code)

            updated = Student.model_validate({**existing.model_dump(), **changes})
            self.students[student_id] = updated
            return updated

    def delete_student(self, student_id: int) -> bool:
        with self._lock:
            return self.students.pop(student_id, None) is not None

    def get_student_stats(self) -> StudentStats:
        with self._lock:
            return summarize_students(self.students.values())

    # --- User Methods ---

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self.users.values() if u.username == username), None)

    def create_user(self, data: Dict[str, Any]) -> User:
        with self._lock:
            if self.get_user_by_username(data["username"]) is not None:
                raise DuplicateUsernameError(data["username"])

            user = User(
                id=self._next_user_id,
                username=data["username"],
                passwordHash=data["passwordHash"],
                role=resolve_role(data.get("role")),
                createdAt=datetime.now(timezone.utc),
                lastLogin=None,
            )
            self._next_user_id += 1
            self.users[user.id] = user
            return user

    def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        with self._lock:
            existing = self.users.get(user_id)
            if existing is None:
                return None
            updated = User.model_validate({**existing.model_dump(), **build_user_changes(data)})
            self.users[user_id] = updated
            return updated
