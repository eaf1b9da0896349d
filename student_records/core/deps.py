# /student_records/core/deps.py

"""
Authentication dependencies shared by the routers.

The session cookie (Starlette's SessionMiddleware) stores only the user id.
Each protected request re-loads the user, so a role change takes effect on the
next request.
"""

from fastapi import Depends, HTTPException, Request, status

from ..models.user_model import PublicUser
from ..services import user_service
from ..services.database_helpers.base_repository import StudentRepository
from ..services.database_service import get_repository

SESSION_USER_KEY = "user_id"


def login_session(request: Request, user: PublicUser) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


def get_optional_user(
    request: Request,
    repository: StudentRepository = Depends(get_repository),
):
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    return user_service.get_public_user(repository, user_id)


def get_current_user(user=Depends(get_optional_user)) -> PublicUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


def require_admin(user=Depends(get_optional_user)) -> PublicUser:
    if user is None or user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden - Admin access required")
    return user
