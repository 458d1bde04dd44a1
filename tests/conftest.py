"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from draftswiss.db.models import Base
from draftswiss.db.session import enable_sqlite_savepoints
from draftswiss.services.seating import assign_seat, start_draft
from draftswiss.services.tournaments import create_tournament


@pytest.fixture
def test_engine():
    """
    Create a test database engine.

    SQLite in-memory, one connection shared by every session in the test,
    with SAVEPOINT support so round generation runs as in production.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    """A session per test; the database is discarded with the engine."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def t0():
    return datetime(2026, 3, 14, 18, 0, 0, tzinfo=timezone.utc)


def seat_in_order(session, tournament):
    """Seat participants 1..N in registration order."""
    for seat, participant in enumerate(tournament.participants, start=1):
        assign_seat(session, tournament.id, participant.id, seat)


@pytest.fixture
def started_tournament(db_session):
    """
    Factory: create a tournament, seat players in registration order and
    start the draft. Returns the tournament.
    """

    def _start(players, **kwargs):
        tournament = create_tournament(db_session, "Friday Draft", players, **kwargs)
        seat_in_order(db_session, tournament)
        start_draft(db_session, tournament.id)
        db_session.commit()
        return tournament

    return _start
