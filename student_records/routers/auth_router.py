# /student_records/routers/auth_router.py

"""
Session lifecycle endpoints: register, login, logout and "who am I".

A successful register or login binds the user's id to the signed session
cookie; every other protected route resolves the user from it through
`core.deps`.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from ..core.deps import get_optional_user, login_session, logout_session
from ..core.exceptions import AuthRejection
from ..models.user_model import LoginRequest, PublicUser
from ..services import user_service
from ..services.database_helpers.base_repository import StudentRepository
from ..services.database_service import get_repository

router = APIRouter()


@router.post("/register", response_model=PublicUser, status_code=status.HTTP_201_CREATED)
def register_user(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    repository: StudentRepository = Depends(get_repository),
):
    """
    Creates an account and logs it in. A taken username or an invalid payload
    is answered with 400 by the application's exception handlers.
    """
    new_user = user_service.register_user(repository, payload)
    login_session(request, new_user)
    return new_user


@router.post("/login", response_model=PublicUser)
def login(
    request: Request,
    credentials: LoginRequest,
    repository: StudentRepository = Depends(get_repository),
):
    user = user_service.authenticate_user(repository, credentials.username, credentials.password)
    if user is None:
        raise AuthRejection()
    login_session(request, user)
    return user


@router.post("/logout")
def logout(request: Request):
    logout_session(request)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/user", response_model=PublicUser)
def read_current_user(user=Depends(get_optional_user)):
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
