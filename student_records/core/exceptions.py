# /student_records/core/exceptions.py

"""
Domain exceptions raised by the data and service layers.

Routers never build error payloads for these by hand; the handlers registered
in `main.py` translate each class into its HTTP status. "Not found" is not an
exception here: repositories return `None` / `False` and routers raise 404.
"""

from typing import Any, Dict, List, Optional


class StudentRecordsError(Exception):
    """Base class for every error this application raises on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StudentRecordsError):
    """Input failed validation. `errors` carries one entry per violated field."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @property
    def fields(self) -> List[str]:
        return [".".join(str(part) for part in error.get("loc", ())) for error in self.errors]


class PersistenceError(StudentRecordsError):
    """The storage backend was unavailable or rejected a write."""


class DuplicateStudentCodeError(PersistenceError):
    def __init__(self, student_code: str):
        super().__init__(f"Student ID {student_code} already exists")
        self.student_code = student_code


class DuplicateUsernameError(PersistenceError):
    def __init__(self, username: str):
        super().__init__("Username already exists")
        self.username = username


class AuthRejection(StudentRecordsError):
    """Credentials did not match. Deliberately says nothing about which part failed."""

    def __init__(self):
        super().__init__("Invalid credentials")
