"""
SQLAlchemy ORM models for DraftSwiss.

This module defines all database tables and their relationships.
The schema stores only what the engine needs to recompute everything
else: standings are never persisted, they are derived from match history.

Key design decisions:
- Player references are opaque strings owned by the calling application
- One row per round carries the uniqueness guarantee for round creation
  and the round clock fields
- Match results are an enum with an explicit 'pending' value, never NULL
- A bye is a match with exactly one participant whose result is 'win'
- Timestamps are naive UTC

Tables:
- tournaments: Tournament setup and lifecycle status
- participants: Players registered in a tournament, with draft seats
- rounds: One row per generated round (unique per tournament), timer state
- matches: Pairings within a round
- match_participants: Per-player result and games won for a match
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from draftswiss.scoring import MatchResult, TournamentStatus


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the storage convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Tournament Models
# =============================================================================

class Tournament(Base):
    """
    A Swiss tournament.

    Status moves pending -> active -> completed and never backwards:
    - pending: participants registered, draft seats being chosen
    - active: Round 1 exists, results being reported
    - completed: the final round resolved (or an admin closed the event)
    """
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    format: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")

    status: Mapped[TournamentStatus] = mapped_column(
        Enum(
            TournamentStatus,
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=TournamentStatus.PENDING,
    )

    max_rounds: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    round_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=50)

    # Optional prize descriptions for the top three finishers
    prize_1st: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    prize_2nd: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    prize_3rd: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    participants: Mapped[list["Participant"]] = relationship(
        back_populates="tournament",
        order_by="Participant.id",
        cascade="all, delete-orphan",
    )
    rounds: Mapped[list["Round"]] = relationship(
        back_populates="tournament",
        order_by="Round.round_number",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("max_rounds >= 1", name="ck_tournament_max_rounds"),
        CheckConstraint(
            "round_duration_minutes >= 1 AND round_duration_minutes <= 300",
            name="ck_tournament_round_duration",
        ),
    )

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}', status='{self.status.value}')>"


class Participant(Base):
    """
    A player registered in a tournament.

    draft_seat is only meaningful before Round 1: it fixes the table
    position used for cross-table pairing. Seats are unique per tournament
    (NULLs allowed) and reassignable until the draft starts.
    """
    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    # Reference to the player in the calling application
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)

    draft_seat: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Dropped players keep their history but are no longer paired
    dropped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    tournament: Mapped["Tournament"] = relationship(back_populates="participants")

    __table_args__ = (
        UniqueConstraint("tournament_id", "player_id", name="uq_participant_player"),
        UniqueConstraint("tournament_id", "draft_seat", name="uq_participant_seat"),
        CheckConstraint("draft_seat IS NULL OR draft_seat >= 1", name="ck_participant_seat"),
    )

    def __repr__(self) -> str:
        return f"<Participant(player_id='{self.player_id}', seat={self.draft_seat})>"


# =============================================================================
# Round / Match Models
# =============================================================================

class Round(Base):
    """
    One generated round of a tournament.

    The (tournament_id, round_number) uniqueness constraint is what makes
    next-round creation single-writer: a concurrent second insert fails
    and is treated as "already generated".

    Timer fields (remaining-seconds snapshot strategy):
    - started_at: when the clock last started or resumed (NULL = never started)
    - paused_at: when the clock was paused (NULL = not paused)
    - remaining_seconds: seconds left as of started_at (running) or paused_at
    """
    __tablename__ = "rounds"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paused_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    remaining_seconds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    tournament: Mapped["Tournament"] = relationship(back_populates="rounds")
    matches: Mapped[list["Match"]] = relationship(
        back_populates="round",
        order_by="Match.table_number",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("tournament_id", "round_number", name="uq_round_tournament_number"),
        CheckConstraint("round_number >= 1", name="ck_round_number_positive"),
    )

    def __repr__(self) -> str:
        return f"<Round(tournament_id={self.tournament_id}, round_number={self.round_number})>"


class Match(Base):
    """
    A pairing within a round: two participants, or one for a bye.

    Membership is fixed at creation; only participant results change.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False
    )
    # Denormalized from the round for cheap history queries
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)

    game_type: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    table_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    round: Mapped["Round"] = relationship(back_populates="matches")
    participants: Mapped[list["MatchParticipant"]] = relationship(
        back_populates="match",
        order_by="MatchParticipant.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_matches_tournament_round", "tournament_id", "round_number"),
    )

    @property
    def is_bye(self) -> bool:
        return len(self.participants) == 1

    @property
    def is_resolved(self) -> bool:
        """Every participant has a non-pending result."""
        return bool(self.participants) and all(
            p.result.is_resolved for p in self.participants
        )

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, round={self.round_number}, table={self.table_number})>"


class MatchParticipant(Base):
    """One player's side of a match: result and games won."""
    __tablename__ = "match_participants"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)

    result: Mapped[MatchResult] = mapped_column(
        Enum(
            MatchResult,
            native_enum=False,
            length=10,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=MatchResult.PENDING,
    )
    games_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    match: Mapped["Match"] = relationship(back_populates="participants")

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_participant"),
        CheckConstraint("games_won >= 0", name="ck_games_won_non_negative"),
        Index("idx_match_participants_player", "player_id"),
    )

    def __repr__(self) -> str:
        return f"<MatchParticipant(player_id='{self.player_id}', result='{self.result.value}')>"
