"""
Database engine and session factory.

Request handlers get a session per request through ``get_db``. The
promotion scheduler opens its own sessions from ``SessionLocal`` on a worker
thread, so the SQLite driver must allow connections to cross threads.
"""
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from cleanbook.core.config import get_settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Keyword arguments for ``create_engine`` suited to the database backend."""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Drop connections the server closed while the scheduler sat idle.
    return {"pool_pre_ping": True}


settings = get_settings()

engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
