"""
Database module for DraftSwiss.

Provides SQLAlchemy ORM models and session management.

Usage:
    from draftswiss.db import get_session, Tournament, Match

    with get_session() as session:
        tournament = session.get(Tournament, 1)
"""

from draftswiss.db.models import (
    Base,
    Tournament,
    Participant,
    Round,
    Match,
    MatchParticipant,
    utc_now,
)
from draftswiss.db.session import get_session, get_engine, SessionLocal

__all__ = [
    # Base
    "Base",
    "utc_now",
    # Models
    "Tournament",
    "Participant",
    "Round",
    "Match",
    "MatchParticipant",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
]
