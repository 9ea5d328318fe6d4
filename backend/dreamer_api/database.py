"""Database connection and session management."""
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from dreamer_api.config import Settings

Base = declarative_base()


def _sqlite_connect_args(database_url: str) -> dict:
    """SQLite requires check_same_thread=False for FastAPI."""
    if not database_url.startswith("sqlite"):
        return {}
    database_path = make_url(database_url).database
    if database_path and database_path != ":memory:":
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)
    return {"check_same_thread": False}


def build_engine(settings: Settings) -> Engine:
    return create_engine(
        settings.database_url,
        connect_args=_sqlite_connect_args(settings.database_url),
        pool_pre_ping=not settings.database_url.startswith("sqlite"),
        echo=settings.debug,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session from the app's session factory."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for database session (for use outside of FastAPI)."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
