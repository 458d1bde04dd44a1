"""Exceptions raised by the DraftSwiss engine.

Four kinds are distinguished so callers can decide how to react:

- ValidationError: malformed input (out-of-range seat or duration, bad result)
- NotFoundError: a referenced tournament, participant, round or match is missing
- ConflictError: an operation collides with concurrent or current state
- StateError: the operation is invalid for the tournament's current status

Named failures subclass one of the kinds.
"""

from __future__ import annotations


class DraftSwissError(Exception):
    """Base exception for all DraftSwiss errors."""


# ========== Kinds ==========


class ValidationError(DraftSwissError):
    """Raised when input is malformed or out of range."""


class NotFoundError(DraftSwissError):
    """Raised when a referenced record does not exist."""


class ConflictError(DraftSwissError):
    """Raised when an operation conflicts with current or concurrent state."""


class StateError(DraftSwissError):
    """Raised when an operation is invalid for the tournament's status."""


# ========== Validation ==========


class InvalidSeat(ValidationError):
    """Raised when a draft seat lies outside [1, N]."""


class IncompleteSeating(ValidationError):
    """Raised when the draft is started before every participant has a seat."""


class InsufficientPlayers(ValidationError):
    """Raised when fewer than two active players remain to be paired."""


class InvalidResult(ValidationError):
    """Raised when submitted participant results are inconsistent."""


# ========== Not found ==========


class TournamentNotFound(NotFoundError):
    pass


class ParticipantNotFound(NotFoundError):
    pass


class RoundNotFound(NotFoundError):
    pass


class MatchNotFound(NotFoundError):
    pass


# ========== Conflict ==========


class InvalidTimerTransition(ConflictError):
    """Raised when a timer control does not apply to the timer's state."""


class RoundAlreadyGenerated(ConflictError):
    """Raised when a round is explicitly requested that already exists."""


# ========== State ==========


class AlreadyStarted(StateError):
    """Raised when the draft is started a second time."""


class TournamentCompleted(StateError):
    """Raised when results are submitted to a completed tournament."""


class InvalidMatch(StateError):
    """Raised when a match has the wrong participant count for the operation."""


class InvalidStatusTransition(StateError):
    """Raised when a tournament status change would move backwards."""


class ParticipantDropped(StateError):
    """Raised when a dropped participant is given a draft seat."""
