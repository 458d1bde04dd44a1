"""
Persistence-bound tournament operations.

Every function takes a SQLAlchemy Session, flushes its writes and leaves
the commit to the caller (get_session() or the web request handler).
"""

from draftswiss.services.rounds import (
    SubmissionOutcome,
    correct_result,
    current_round_number,
    generate_next_round,
    get_standings,
    retry_next_round,
    submit_result,
)
from draftswiss.services.seating import assign_seat, clear_seat, randomize_seating, start_draft
from draftswiss.services.timer import (
    get_timer,
    pause_timer,
    resume_timer,
    start_timer,
    update_timer_duration,
)
from draftswiss.services.tournaments import (
    complete_tournament,
    create_tournament,
    drop_participant,
    get_tournament,
)

__all__ = [
    # Tournaments
    "complete_tournament",
    "create_tournament",
    "drop_participant",
    "get_tournament",
    # Seating
    "assign_seat",
    "clear_seat",
    "randomize_seating",
    "start_draft",
    # Rounds
    "SubmissionOutcome",
    "correct_result",
    "current_round_number",
    "generate_next_round",
    "get_standings",
    "retry_next_round",
    "submit_result",
    # Timer
    "get_timer",
    "pause_timer",
    "resume_timer",
    "start_timer",
    "update_timer_duration",
]
