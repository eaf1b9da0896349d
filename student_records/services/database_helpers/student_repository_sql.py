# /student_records/services/database_helpers/student_repository_sql.py

"""
This module contains all the SQLAlchemy queries for the Student and User
tables. The database assigns numeric identifiers natively (autoincrement), and
filtering, sorting and pagination are pushed down into SQL with the same
semantics as the in-process pipeline in `student_query`.

Each public method opens its own short-lived session, so one repository
instance can be shared by every request.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import asc, desc, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...core.exceptions import DuplicateStudentCodeError, DuplicateUsernameError, PersistenceError
from ...db.models.student_user_models import StudentRecord, UserRecord
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

SEARCH_COLUMNS = (StudentRecord.firstName, StudentRecord.lastName, StudentRecord.email, StudentRecord.studentId)

# sort value -> ORDER BY columns. `id` breaks ties in insertion order, which is
# what the stable in-process sort does too.
ORDER_BY = {
    "name_asc": (asc(func.lower(StudentRecord.firstName)), asc(func.lower(StudentRecord.lastName)), asc(StudentRecord.id)),
    "name_desc": (desc(func.lower(StudentRecord.firstName)), desc(func.lower(StudentRecord.lastName)), asc(StudentRecord.id)),
    "id_asc": (asc(StudentRecord.studentId), asc(StudentRecord.id)),
    "id_desc": (desc(StudentRecord.studentId), asc(StudentRecord.id)),
}


def _like_pattern(search: str) -> str:
    escaped = search.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class StudentRepositorySQL(StudentRepository):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Database error while trying to %s", action)
            raise PersistenceError(f"Failed to {action}") from e
        finally:
            session.close()

    def close(self) -> None:
        self.session_factory.kw["bind"].dispose()

    # --- Student Methods ---

    def list_students(self, filters: Optional[StudentFilters] = None) -> List[Student]:
        filters = filters or StudentFilters()
        with self._session("fetch students") as session:
            query = session.query(StudentRecord)

            if is_status_filter_active(filters.status):
                query = query.filter(StudentRecord.status == filters.status)

            if is_grade_filter_active(filters.grade):
                query = query.filter(StudentRecord.grade == filters.grade)

            if filters.search:
                pattern = _like_pattern(filters.search)
                query = query.filter(or_(*(func.lower(column).like(pattern, escape="\\") for column in SEARCH_COLUMNS)))

            query = query.order_by(*ORDER_BY[resolve_sort(filters.sort)])

            bounds = page_bounds(filters.page, filters.limit)
            if bounds:
                offset, limit = bounds
                query = query.offset(offset).limit(limit)

            return [Student.model_validate(row) for row in query.all()]

    def get_student(self, student_id: int) -> Optional[Student]:
        with self._session("fetch student") as session:
            row = session.get(StudentRecord, student_id)
            return Student.model_validate(row) if row else None

    def get_student_by_code(self, student_code: str) -> Optional[Student]:
        with self._session("fetch student") as session:
            row = session.query(StudentRecord).filter(StudentRecord.studentId == student_code).first()
            return Student.model_validate(row) if row else None

    def _code_in_use(self, session: Session, student_code: str) -> bool:
        return session.query(StudentRecord.id).filter(StudentRecord.studentId == student_code).first() is not None

    def _allocate_student_code(self, session: Session) -> str:
        number = FIRST_STUDENT_CODE_NUMBER + session.query(func.count(StudentRecord.id)).scalar()
        while self._code_in_use(session, format_student_code(number)):
            number += 1
        return format_student_code(number)

    def create_student(self, data: Dict[str, Any]) -> Student:
        fields = build_new_student_fields(data)
        with self._session("create student") as session:
            if fields.get("studentId"):
                if self._code_in_use(session, fields["studentId"]):
                    raise DuplicateStudentCodeError(fields["studentId"])
            else:
                fields["studentId"] = self._allocate_student_code(session)

            new_student = StudentRecord(**fields)
            session.add(new_student)
            try:
                session.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent insert of the same code.
                session.rollback()
                raise DuplicateStudentCodeError(fields["studentId"]) from e
            session.refresh(new_student)
            return Student.model_validate(new_student)

    def update_student(self, student_id: int, data: Dict[str, Any]) -> Optional[Student]:
        with self._session("update student") as session:
            db_student = session.get(StudentRecord, student_id)
            if db_student is None:
                return None

            changes = build_student_changes(Student.model_validate(db_student), data)
            new_code = changes.get("studentId")
            if new_code and new_code != db_student.studentId and self._code_in_use(session, new_code):
                raise DuplicateStudentCodeError(new_code)

            for key, value in changes.items():
                setattr(db_student, key, value)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateStudentCodeError(new_code or db_student.studentId) from e
            session.refresh(db_student)
            return Student.model_validate(db_student)

    def delete_student(self, student_id: int) -> bool:
        with self._session("delete student") as session:
            db_student = session.get(StudentRecord, student_id)
            if db_student is None:
                return False
            session.delete(db_student)
            session.commit()
            return True

    def get_student_stats(self) -> StudentStats:
        with self._session("fetch student statistics") as session:
            counts = dict(
                session.query(StudentRecord.status, func.count(StudentRecord.id))
                .group_by(StudentRecord.status)
                .all()
            )
        return StudentStats(
            totalStudents=sum(counts.values()),
            activeStudents=counts.get("active", 0),
            pendingApprovals=counts.get("pending", 0),
            issuesReported=counts.get("inactive", 0),
        )

    # --- User Methods ---

    def get_user(self, user_id: int) -> Optional[User]:
        with self._session("fetch user") as session:
            row = session.get(UserRecord, user_id)
            return User.model_validate(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._session("fetch user") as session:
            row = session.query(UserRecord).filter(UserRecord.username == username).first()
            return User.model_validate(row) if row else None

    def create_user(self, data: Dict[str, Any]) -> User:
        with self._session("create user") as session:
            new_user = UserRecord(
                username=data["username"],
                passwordHash=data["passwordHash"],
                role=resolve_role(data.get("role")),
            )
            session.add(new_user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateUsernameError(data["username"]) from e
            session.refresh(new_user)
            return User.model_validate(new_user)

    def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        with self._session("update user") as session:
            db_user = session.get(UserRecord, user_id)
            if db_user is None:
                return None
            for key, value in build_user_changes(data).items():
                setattr(db_user, key, value)
            session.commit()
            session.refresh(db_user)
            return User.model_validate(db_user)
