"""Shared fixtures: an in-memory SQLite database and a unit-of-work factory.

The engine uses a StaticPool so background threads started by a test see
the same in-memory database as the test itself.
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from thumbsup.database import Base
from thumbsup.infra.db.uow import SqlUnitOfWork

# Force model registration so create_all picks up every table.
import thumbsup.infra.db.models  # noqa: F401


@pytest.fixture
def engine():
    """Function-scoped :memory: SQLite engine with FK enforcement."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _set_fk_pragma(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def session(session_factory):
    """Function-scoped session bound to the in-memory engine."""
    sess = session_factory()
    yield sess
    sess.close()


@pytest.fixture
def uow_factory(session_factory):
    return lambda: SqlUnitOfWork(session_factory)
