# /student_records/db/models/student_user_models.py

"""
SQLAlchemy ORM models for the `students` and `users` tables.

Attribute names mirror the API's camelCase fields so rows convert straight
into the pydantic models (`from_attributes=True`); the physical column names
stay snake_case.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudentRecord(Base):
    """A single student. `id` is assigned by the database on insert."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    studentId = Column("student_id", String, unique=True, index=True, nullable=False)
    firstName = Column("first_name", String, index=True, nullable=False)
    lastName = Column("last_name", String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    grade = Column(Integer, index=True, nullable=False)
    classSection = Column("class_section", String, nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String, index=True, nullable=False, default="active")

    # Optional link to the login account of this student. Not a foreign key:
    # deleting a student never touches the user.
    userId = Column("user_id", Integer, nullable=True)


class UserRecord(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, index=True, nullable=False)
    passwordHash = Column("password_hash", String, nullable=False)
    role = Column(String, nullable=False, default="student")
    createdAt = Column("created_at", DateTime(timezone=True), default=_utcnow)
    lastLogin = Column("last_login", DateTime(timezone=True), nullable=True)
