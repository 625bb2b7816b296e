"""
Engine and sessions for the subscription store.

One engine per process, built lazily from DATABASE_URL. SQLite URLs (local
runs, tests) get `check_same_thread=False` because FastAPI serves sync
routes from a threadpool.
"""
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from subtracker.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def build_engine(url: str) -> Engine:
    if make_url(url).get_backend_name() == "sqlite":
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().get_sqlalchemy_url())
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False)
    return _SessionLocal


def get_db() -> Session:
    """FastAPI dependency: one session per request, closed afterwards."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection(engine: Engine | None = None) -> None:
    """
    Readiness probe: round-trip `SELECT 1` through the engine.

    Raises:
        sqlalchemy.exc.OperationalError: if the database is unreachable
    """
    with (engine or get_engine()).connect() as conn:
        conn.execute(text("SELECT 1"))
