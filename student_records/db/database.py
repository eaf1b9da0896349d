# /student_records/db/database.py

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import DATABASE_URL

# Every ORM model inherits from this Base.
Base = declarative_base()


def build_engine(database_url: str = DATABASE_URL) -> Engine:
    """
    Creates the SQLAlchemy engine for the "sql" backend.
    The 'check_same_thread' argument is only needed for SQLite, and an
    in-memory SQLite database must share one connection or every session
    would see an empty database.
    """
    engine_args = {}
    if database_url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_args["poolclass"] = StaticPool
    return create_engine(database_url, **engine_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    # Each instance of the returned class is one database session.
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Creates any missing tables. Importing `base` registers every model on Base."""
    from . import base  # noqa: F401
    Base.metadata.create_all(bind=engine)
