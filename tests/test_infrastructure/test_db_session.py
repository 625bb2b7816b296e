"""Tests for engine construction and the readiness check"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from subtracker.infrastructure.db.session import build_engine, check_db_connection


def test_sqlite_engine_allows_threadpool_access(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'subs.db'}")
    try:
        check_db_connection(engine)
    finally:
        engine.dispose()


def test_check_db_connection_uses_engine(db_engine):
    check_db_connection(db_engine)


def test_check_db_connection_unreachable(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'subs.db'}")
    with pytest.raises(OperationalError):
        check_db_connection(engine)
    engine.dispose()
