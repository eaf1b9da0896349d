# /student_records/models/student_model.py

# --- Core Imports ---
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ValidationError

# --- Enumerations ---

class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


STUDENT_STATUSES = {status.value for status in StudentStatus}
DEFAULT_STUDENT_STATUS = StudentStatus.ACTIVE.value


def coerce_status(value: Any) -> Optional[str]:
    """
    Maps a candidate status onto the enumeration. Anything unrecognised becomes
    None, which the repositories resolve to "active" on create and to the
    previous value on update.
    """
    if isinstance(value, StudentStatus):
        return value.value
    if isinstance(value, str) and value in STUDENT_STATUSES:
        return value
    return None


# --- Model Definitions ---

class StudentCreate(BaseModel):
    """
    The payload for creating a student. Unknown status values are substituted
    rather than rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    studentId: str = Field(..., min_length=1, description="The human-assigned student code, e.g. ST10023.")
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    grade: int = Field(..., ge=1, description="Grade must be a positive number.")
    classSection: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[StudentStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def _substitute_unknown_status(cls, value: Any) -> Optional[str]:
        return coerce_status(value)


class StudentUpdate(BaseModel):
    """
    The payload for a partial update. Every field is optional; only the fields
    present in the request are validated and applied.
    """
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    studentId: Optional[str] = Field(default=None, min_length=1)
    firstName: Optional[str] = Field(default=None, min_length=1)
    lastName: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    grade: Optional[int] = Field(default=None, ge=1)
    classSection: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[StudentStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def _substitute_unknown_status(cls, value: Any) -> Optional[str]:
        return coerce_status(value)


class Student(BaseModel):
    """
    The full representation of a Student resource, as it is stored by a
    repository and returned by the API.
    """
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int = Field(..., description="The backend-assigned numeric identifier.")
    studentId: str
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    grade: int
    classSection: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: StudentStatus = StudentStatus.ACTIVE
    userId: Optional[int] = None


class StudentFilters(BaseModel):
    """Optional query parameters controlling which students are listed and how."""

    status: Optional[str] = None
    grade: Optional[int] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None


# --- Validation Entry Point ---

def validate_student_input(data: Dict[str, Any], partial: bool = False) -> Union[StudentCreate, StudentUpdate]:
    """
    Validates a candidate student record before it reaches a repository.

    Raises the application's ValidationError, carrying one entry per violated
    field, instead of pydantic's own exception type.
    """
    model = StudentUpdate if partial else StudentCreate
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid student data",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e
