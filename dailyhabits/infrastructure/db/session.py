"""
Engine and sessions for the habits database.

PostgreSQL (psycopg driver) in production; a sqlite:// URL works for local runs.
"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from dailyhabits.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Scheduler jobs and request threads share one SQLite file
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "connect_args": {"connect_timeout": 3}}


def get_engine() -> Engine:
    """Engine for DATABASE_URL, created on first use"""
    global _engine
    if _engine is None:
        url = get_settings().get_sqlalchemy_url()
        _engine = create_engine(url, **_engine_options(url))
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def dispose_engine() -> None:
    """Close pooled connections and forget the engine (next use rebuilds it)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_db() -> Session:
    """FastAPI dependency: one session per request, always closed."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness check for /ready: SELECT 1 through the application engine.

    Raises:
        sqlalchemy.exc.OperationalError: if the database is unreachable
    """
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
