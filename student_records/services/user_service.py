# /student_records/services/user_service.py

"""
Business logic for user accounts: registration and credential checks.

This is the only module that sees plain-text passwords. They are hashed on the
way in and never stored, logged or returned.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..core.exceptions import DuplicateUsernameError
from ..core.security import hash_password, verify_password
from ..models.user_model import PublicUser, validate_user_input
from .database_helpers.base_repository import StudentRepository

logger = logging.getLogger(__name__)


def register_user(repository: StudentRepository, data: Dict[str, Any]) -> PublicUser:
    """
    Validates a registration payload and creates the account.

    Raises ValidationError for a bad payload and DuplicateUsernameError when the
    username is taken.
    """
    user_in = validate_user_input(data)
    if repository.get_user_by_username(user_in.username) is not None:
        raise DuplicateUsernameError(user_in.username)

    user = repository.create_user({
        "username": user_in.username,
        "passwordHash": hash_password(user_in.password),
        "role": user_in.role,
    })
    logger.info("Registered user %s with role %s", user.username, user.role)
    return user.to_public()


def authenticate_user(repository: StudentRepository, username: str, password: str) -> Optional[PublicUser]:
    """
    Returns the user (without password) when the credentials match, otherwise
    None. An unknown username and a wrong password are indistinguishable to the
    caller.
    """
    user = repository.get_user_by_username(username)
    if user is None or not verify_password(password, user.passwordHash):
        logger.info("Rejected login for %s", username)
        return None

    updated = repository.update_user(user.id, {"lastLogin": datetime.now(timezone.utc)})
    logger.info("User %s logged in", username)
    return (updated or user).to_public()


def get_public_user(repository: StudentRepository, user_id: int) -> Optional[PublicUser]:
    user = repository.get_user(user_id)
    return user.to_public() if user else None
