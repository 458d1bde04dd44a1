"""
Round timer arithmetic.

The clock is persisted as three fields and every displayed value is
derived from them, never from a client-held countdown:

- started_at: when the clock last started or resumed (None = never started)
- paused_at: when the clock was paused (None = not paused)
- remaining_seconds: seconds left as of started_at, or as of paused_at

States:
    initial  -> running -> paused <-> running
    running/paused -> expired (computed when the remaining time hits zero)
    any -> initial on a duration change (destructive reset)

Display:
    initial: duration_minutes * 60
    paused:  floor(remaining_seconds)
    running: max(0, floor(remaining_seconds - seconds since started_at))

remaining_seconds keeps fractions so repeated pauses never drift; only
the displayed value is floored.

All arithmetic is done on timezone-aware UTC datetimes. Naive values are
taken to be UTC, which is how they are stored.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from draftswiss.exceptions import InvalidTimerTransition, ValidationError

MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 300

Timestamp = Union[datetime, str, None]


class TimerState(str, enum.Enum):
    INITIAL = "initial"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


def ensure_utc(value: Timestamp) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes or ISO-8601 strings. Values without timezone
    information are interpreted as UTC, not local time.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> datetime:
    """Convert to the naive-UTC storage convention."""
    return ensure_utc(value).replace(tzinfo=None)


def elapsed_seconds(since: Timestamp, now: Timestamp) -> float:
    """
    Seconds from ``since`` to ``now``, sub-second precision kept.

    Negative spans (clock skew between writers) count as zero.
    """
    start = ensure_utc(since)
    end = ensure_utc(now)
    return max(0.0, (end - start).total_seconds())


def validate_duration(minutes: int) -> int:
    if minutes < MIN_DURATION_MINUTES or minutes > MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_MINUTES} and "
            f"{MAX_DURATION_MINUTES} minutes, got {minutes}"
        )
    return minutes


@dataclass(frozen=True)
class TimerFields:
    """The persisted clock fields for one round."""
    started_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    remaining_seconds: Optional[float] = None


def _remaining_base(fields: TimerFields, duration_minutes: int) -> float:
    if fields.remaining_seconds is None:
        return duration_minutes * 60
    return fields.remaining_seconds


def display_seconds(fields: TimerFields, duration_minutes: int, now: Timestamp) -> int:
    """Seconds to show on the clock right now."""
    if fields.started_at is None:
        return duration_minutes * 60
    base = _remaining_base(fields, duration_minutes)
    if fields.paused_at is not None:
        return max(0, math.floor(base))
    return max(0, math.floor(base - elapsed_seconds(fields.started_at, now)))


def timer_state(fields: TimerFields, duration_minutes: int, now: Timestamp) -> TimerState:
    if fields.started_at is None:
        return TimerState.INITIAL
    if display_seconds(fields, duration_minutes, now) <= 0:
        return TimerState.EXPIRED
    if fields.paused_at is not None:
        return TimerState.PAUSED
    return TimerState.RUNNING


def start(fields: TimerFields, duration_minutes: int, now: Timestamp) -> TimerFields:
    """Start a fresh countdown of the full duration."""
    state = timer_state(fields, duration_minutes, now)
    if state in (TimerState.RUNNING, TimerState.PAUSED):
        raise InvalidTimerTransition(f"Timer already started ({state.value})")
    return TimerFields(
        started_at=to_storage(ensure_utc(now)),
        paused_at=None,
        remaining_seconds=duration_minutes * 60,
    )


def pause(fields: TimerFields, duration_minutes: int, now: Timestamp) -> TimerFields:
    """Freeze the clock, snapshotting the exact seconds left."""
    state = timer_state(fields, duration_minutes, now)
    if state is TimerState.INITIAL:
        raise InvalidTimerTransition("Timer not started")
    if state is TimerState.PAUSED:
        raise InvalidTimerTransition("Timer already paused")
    if state is TimerState.EXPIRED:
        raise InvalidTimerTransition("Timer has expired")
    return TimerFields(
        started_at=fields.started_at,
        paused_at=to_storage(ensure_utc(now)),
        remaining_seconds=max(
            0.0,
            _remaining_base(fields, duration_minutes) - elapsed_seconds(fields.started_at, now),
        ),
    )


def resume(fields: TimerFields, duration_minutes: int, now: Timestamp) -> TimerFields:
    """
    Restart the clock from the paused snapshot.

    started_at moves to ``now`` so the paused interval never counts
    against the remaining time.
    """
    state = timer_state(fields, duration_minutes, now)
    if state is not TimerState.PAUSED:
        raise InvalidTimerTransition(f"Timer not paused ({state.value})")
    return TimerFields(
        started_at=to_storage(ensure_utc(now)),
        paused_at=None,
        remaining_seconds=fields.remaining_seconds,
    )


def reset() -> TimerFields:
    return TimerFields()


@dataclass(frozen=True)
class TimerView:
    """Derived read model of a round clock."""
    state: TimerState
    display_seconds: int
    duration_minutes: int
    started_at: Optional[datetime]
    paused_at: Optional[datetime]
    remaining_seconds: Optional[float]

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "display_seconds": self.display_seconds,
            "duration_minutes": self.duration_minutes,
            "started_at": _iso(self.started_at),
            "paused_at": _iso(self.paused_at),
            "remaining_seconds": self.remaining_seconds,
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return ensure_utc(value).isoformat() if value is not None else None


def view(fields: TimerFields, duration_minutes: int, now: Timestamp) -> TimerView:
    return TimerView(
        state=timer_state(fields, duration_minutes, now),
        display_seconds=display_seconds(fields, duration_minutes, now),
        duration_minutes=duration_minutes,
        started_at=fields.started_at,
        paused_at=fields.paused_at,
        remaining_seconds=fields.remaining_seconds,
    )
