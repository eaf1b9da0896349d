# /student_records/services/database_helpers/student_repository_mongo.py

"""
A document-store repository backed by MongoDB (pymongo).

MongoDB keys documents by an opaque ObjectId, but the API exposes numeric ids.
Rather than deriving a number from the ObjectId (which can collide), every
document carries its own `id` field, allocated from an atomic `$inc` on a
`counters` collection and protected by a unique index.
"""

import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collation import Collation
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from ...core.exceptions import DuplicateStudentCodeError, DuplicateUsernameError, PersistenceError
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
from .student_query import is_grade_filter_active, is_status_filter_active, page_bounds, resolve_sort

logger = logging.getLogger(__name__)

STUDENT_SEQUENCE = "students"
STUDENT_CODE_SEQUENCE = "student_codes"
USER_SEQUENCE = "users"

# Strength 2 compares letters case-insensitively, matching the in-process sort.
CASE_INSENSITIVE = Collation(locale="en", strength=2)

NO_OBJECT_ID = {"_id": 0}


def build_student_query(filters: StudentFilters) -> Dict[str, Any]:
    """Translates a StudentFilters into a MongoDB filter document."""
    query: Dict[str, Any] = {}
    if is_status_filter_active(filters.status):
        query["status"] = filters.status
    if is_grade_filter_active(filters.grade):
        query["grade"] = filters.grade
    if filters.search:
        # Search terms are literal text, never regex syntax.
        pattern = {"$regex": re.escape(filters.search), "$options": "i"}
        query["$or"] = [
            {"firstName": pattern},
            {"lastName": pattern},
            {"email": pattern},
            {"studentId": pattern},
        ]
    return query


def build_student_sort(sort: Optional[str]) -> Tuple[List[Tuple[str, int]], Optional[Collation]]:
    """Returns the sort specification and the collation it needs."""
    field, _, direction = resolve_sort(sort).partition("_")
    order = ASCENDING if direction == "asc" else DESCENDING
    if field == "name":
        return [("firstName", order), ("lastName", order), ("id", ASCENDING)], CASE_INSENSITIVE
    return [("studentId", order), ("id", ASCENDING)], None


class StudentRepositoryMongo(StudentRepository):
    def __init__(self, database: Database, client: Optional[MongoClient] = None):
        self.client = client
        self.students = database["students"]
        self.users = database["users"]
        self.counters = database["counters"]

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except PyMongoError as e:
            logger.exception("MongoDB error while trying to %s", action)
            raise PersistenceError(f"Failed to {action}") from e

    def ensure_indexes(self) -> None:
        with self._guard("create indexes"):
            self.students.create_index("id", unique=True)
            self.students.create_index("studentId", unique=True)
            self.students.create_index("status")
            self.users.create_index("id", unique=True)
            self.users.create_index("username", unique=True)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    def _next_sequence(self, name: str) -> int:
        counter = self.counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"value": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["value"]

    def _allocate_student_code(self) -> str:
        while True:
            code = format_student_code(FIRST_STUDENT_CODE_NUMBER - 1 + self._next_sequence(STUDENT_CODE_SEQUENCE))
            if self.students.find_one({"studentId": code}, {"_id": 1}) is None:
                return code

    # --- Student Methods ---

    def list_students(self, filters: Optional[StudentFilters] = None) -> List[Student]:
        filters = filters or StudentFilters()
        sort_spec, collation = build_student_sort(filters.sort)
        with self._guard("fetch students"):
            cursor = self.students.find(build_student_query(filters), NO_OBJECT_ID).sort(sort_spec)
            if collation is not None:
                cursor = cursor.collation(collation)
            bounds = page_bounds(filters.page, filters.limit)
            if bounds:
                offset, limit = bounds
                cursor = cursor.skip(offset).limit(limit)
            return [Student.model_validate(doc) for doc in cursor]

    def get_student(self, student_id: int) -> Optional[Student]:
        with self._guard("fetch student"):
            doc = self.students.find_one({"id": student_id}, NO_OBJECT_ID)
        return Student.model_validate(doc) if doc else None

    def get_student_by_code(self, student_code: str) -> Optional[Student]:
        with self._guard("fetch student"):
            doc = self.students.find_one({"studentId": student_code}, NO_OBJECT_ID)
        return Student.model_validate(doc) if doc else None

    def create_student(self, data: Dict[str, Any]) -> Student:
        fields = build_new_student_fields(data)
        with self._guard("create student"):
            if not fields.get("studentId"):
                fields["studentId"] = self._allocate_student_code()
            student = Student(id=self._next_sequence(STUDENT_SEQUENCE), **fields)
            try:
                # insert_one adds `_id` to the dict it is given; hand it a throwaway.
                self.students.insert_one(student.model_dump())
            except DuplicateKeyError as e:
                raise DuplicateStudentCodeError(student.studentId) from e
        return student

    def update_student(self, student_id: int, data: Dict[str, Any]) -> Optional[Student]:
        existing = self.get_student(student_id)
        if existing is None:
            return None

        changes = build_student_changes(existing, data)
        with self._guard("update student"):
            try:
                doc = self.students.find_one_and_update(
                    {"id": student_id},
                    {"$set": changes},
                    projection=NO_OBJECT_ID,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError as e:
                raise DuplicateStudentCodeError(changes.get("studentId", existing.studentId)) from e
        # Deleted between the read and the write.
        return Student.model_validate(doc) if doc else None

    def delete_student(self, student_id: int) -> bool:
        with self._guard("delete student"):
            result = self.students.delete_one({"id": student_id})
        return result.deleted_count == 1

    def get_student_stats(self) -> StudentStats:
        with self._guard("fetch student statistics"):
            counts = {
                group["_id"]: group["count"]
                for group in self.students.aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}])
            }
        return StudentStats(
            totalStudents=sum(counts.values()),
            activeStudents=counts.get("active", 0),
            pendingApprovals=counts.get("pending", 0),
            issuesReported=counts.get("inactive", 0),
        )

    # --- User Methods ---

    def get_user(self, user_id: int) -> Optional[User]:
        with self._guard("fetch user"):
            doc = self.users.find_one({"id": user_id}, NO_OBJECT_ID)
        return User.model_validate(doc) if doc else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._guard("fetch user"):
            doc = self.users.find_one({"username": username}, NO_OBJECT_ID)
        return User.model_validate(doc) if doc else None

    def create_user(self, data: Dict[str, Any]) -> User:
        with self._guard("create user"):
            user = User(
                id=self._next_sequence(USER_SEQUENCE),
                username=data["username"],
                passwordHash=data["passwordHash"],
                role=resolve_role(data.get("role")),
                createdAt=datetime.now(timezone.utc),
                lastLogin=None,
            )
            try:
                self.users.insert_one(user.model_dump())
            except DuplicateKeyError as e:
                raise DuplicateUsernameError(user.username) from e
        return user

    def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        changes = build_user_changes(data)
        with self._guard("update user"):
            if not changes:
                doc = self.users.find_one({"id": user_id}, NO_OBJECT_ID)
            else:
                doc = self.users.find_one_and_update(
                    {"id": user_id},
                    {"$set": changes},
                    projection=NO_OBJECT_ID,
                    return_document=ReturnDocument.AFTER,
                )
        return User.model_validate(doc) if doc else None
