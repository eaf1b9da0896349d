# /student_records/models/user_model.py

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ValidationError


class UserRole(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


USER_ROLES = {role.value for role in UserRole}
DEFAULT_USER_ROLE = UserRole.STUDENT.value


class UserCreate(BaseModel):
    """Registration payload. The confirmation field is only checked here and never stored."""
    model_config = ConfigDict(use_enum_values=True)

    username: str = Field(..., min_length=1, description="Username is required")
    password: str = Field(..., min_length=6, description="Password must be at least 6 characters")
    confirmPassword: str
    role: UserRole = UserRole.STUDENT

    @model_validator(mode="after")
    def _passwords_match(self) -> "UserCreate":
        if self.password != self.confirmPassword:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Username is required")
    password: str = Field(..., min_length=1, description="Password is required")


class User(BaseModel):
    """A stored user account. `passwordHash` never leaves the service layer."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    username: str
    passwordHash: str
    role: UserRole = UserRole.STUDENT
    createdAt: Optional[datetime] = None
    lastLogin: Optional[datetime] = None

    def to_public(self) -> "PublicUser":
        return PublicUser.model_validate(self.model_dump(exclude={"passwordHash"}))


class PublicUser(BaseModel):
    """The user representation returned by the API and bound to a session."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    username: str
    role: UserRole
    createdAt: Optional[datetime] = None
    lastLogin: Optional[datetime] = None


def validate_user_input(data: Dict[str, Any]) -> UserCreate:
    try:
        return UserCreate.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        for error in errors:
            # The cross-field check reports at the model root; point it at the confirmation.
            if error.get("msg", "").endswith("Passwords do not match"):
                error["loc"] = ("confirmPassword",)
        raise ValidationError("Invalid user data", errors=errors) from e
