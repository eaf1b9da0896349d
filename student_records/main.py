# /student_records/main.py

# Run with: uvicorn student_records.main:create_app --factory

# --- Core FastAPI Imports ---
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

# --- Application-specific Imports ---
from .core import config
from .core.exceptions import (
    AuthRejection,
    DuplicateStudentCodeError,
    DuplicateUsernameError,
    PersistenceError,
    ValidationError,
)
from .core.logging_config import setup_logging
from .routers import auth_router, stats_router, students_router
from .services import student_service
from .services.database_helpers.base_repository import StudentRepository
from .services.database_service import create_repository

logger = logging.getLogger(__name__)


# --- Exception Handlers ---
# Every error leaves the API as {"message": ...}; validation errors add "errors".

async def _validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message, "errors": exc.errors},
    )


async def _request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    in_body = any(error["loc"][:1] == ["body"] for error in errors)
    message = "Invalid request data" if in_body else "Invalid request parameters"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message, "errors": errors})


async def _duplicate_student_code_handler(request: Request, exc: DuplicateStudentCodeError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"message": exc.message})


async def _duplicate_username_handler(request: Request, exc: DuplicateUsernameError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": exc.message})


async def _persistence_error_handler(request: Request, exc: PersistenceError):
    # The details were logged where the backend failed; the client gets a generic message.
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "A storage error occurred. Please try again later."},
    )


async def _auth_rejection_handler(request: Request, exc: AuthRejection):
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"message": exc.message})


async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "An unexpected error occurred. Please try again later."},
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# --- Application Factory ---

def create_app(repository: Optional[StudentRepository] = None, seed_demo_data: Optional[bool] = None) -> FastAPI:
    """
    Builds the FastAPI application around a single repository.

    Tests pass their own repository; otherwise one is created from the
    environment configuration. The repository lives on `app.state` and is
    closed when the application shuts down.
    """
    setup_logging()
    if repository is None:
        repository = create_repository()
    should_seed = config.SEED_DEMO_DATA if seed_demo_data is None else seed_demo_data

    # --- Application Lifecycle Management ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Runs ONCE when the application starts up.
        if should_seed and student_service.seed_demo_data(repository):
            logger.info("Seeded demo data")
        yield
        # Runs ONCE when the application shuts down.
        repository.close()

    app = FastAPI(
        title="Student Records API",
        description="Student record management with session authentication and role-based access.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.repository = repository

    # --- Middleware Configuration ---
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.SESSION_SECRET,
        max_age=config.SESSION_MAX_AGE,
        same_site="lax",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_error_handler)
    app.add_exception_handler(DuplicateStudentCodeError, _duplicate_student_code_handler)
    app.add_exception_handler(DuplicateUsernameError, _duplicate_username_handler)
    app.add_exception_handler(PersistenceError, _persistence_error_handler)
    app.add_exception_handler(AuthRejection, _auth_rejection_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    # --- API Router Inclusion ---
    app.include_router(auth_router.router, prefix="/api", tags=["Auth"])
    app.include_router(stats_router.router, prefix="/api/stats", tags=["Stats"])
    app.include_router(students_router.router, prefix="/api/students", tags=["Students"])

    # --- Root / Health Check Endpoint ---
    @app.get("/", tags=["Health Check"])
    async def read_root():
        """A simple health check endpoint to confirm the API is online."""
        return {"status": "Student Records API is running!", "version": app.version}

    logger.info("Application created with %s", type(repository).__name__)
    return app
