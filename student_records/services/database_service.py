# /student_records/services/database_service.py

"""
Builds the one StudentRepository the application uses.

The backend is chosen by configuration (`STORAGE_BACKEND`), constructed once
at startup by `create_app`, stored on `app.state`, and handed to every router
through the `get_repository` dependency. There is no module-level instance and
no silent fallback: if the configured backend cannot be built, startup fails.
"""

import logging
from typing import Optional

from fastapi import Request
from pymongo import MongoClient

from ..core import config
from ..db.database import build_engine, build_session_factory, init_db
from .database_helpers.base_repository import StudentRepository
from .database_helpers.cached_repository import CachedRepository
from .database_helpers.student_repository_memory import StudentRepositoryMemory
from .database_helpers.student_repository_mongo import StudentRepositoryMongo
from .database_helpers.student_repository_sql import StudentRepositorySQL

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("memory", "sql", "mongo")


def create_repository(
    backend: Optional[str] = None,
    cache_ttl_seconds: Optional[float] = None,
    database_url: Optional[str] = None,
    mongo_url: Optional[str] = None,
    mongo_db_name: Optional[str] = None,
) -> StudentRepository:
    """
    Returns a repository for the requested backend, falling back to the
    configured values for anything not passed explicitly.

    The external backends (sql, mongo) are wrapped in a CachedRepository
    unless the TTL is 0. The in-memory backend is never cached.
    """
    backend = (backend or config.STORAGE_BACKEND).lower()
    ttl = config.CACHE_TTL_SECONDS if cache_ttl_seconds is None else cache_ttl_seconds

    if backend == "memory":
        logger.info("Using in-memory storage")
        return StudentRepositoryMemory()

    if backend == "sql":
        engine = build_engine(database_url or config.DATABASE_URL)
        init_db(engine)
        repository: StudentRepository = StudentRepositorySQL(build_session_factory(engine))
        logger.info("Using SQL storage at %s", engine.url.render_as_string(hide_password=True))
    elif backend == "mongo":
        client = MongoClient(mongo_url or config.MONGO_URL, serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS)
        mongo_repository = StudentRepositoryMongo(client[mongo_db_name or config.MONGO_DB_NAME], client=client)
        mongo_repository.ensure_indexes()
        repository = mongo_repository
        logger.info("Using MongoDB storage (database %s)", mongo_db_name or config.MONGO_DB_NAME)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}; expected one of {', '.join(STORAGE_BACKENDS)}")

    if ttl > 0:
        logger.info("Caching repository reads for %s seconds", ttl)
        return CachedRepository(repository, ttl_seconds=ttl)
    return repository


# --- Dependency Provider ---

def get_repository(request: Request) -> StudentRepository:
    """FastAPI dependency that provides the application's shared repository."""
    return request.app.state.repository
