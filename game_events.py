"""
Game events for UI hooks and logging.
Events describe what happened while the controller processed a request.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict

    def to_dict(self) -> dict:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

SESSION_STARTED = "session_started"
ROLL_STARTED = "roll_started"
OUTCOME_REJECTED = "outcome_rejected"
ROUND_RESOLVED = "round_resolved"
SESSION_COMPLETE = "session_complete"


# ===== Event Factory Functions =====

def session_started(region_count: int) -> GameEvent:
    return GameEvent(SESSION_STARTED, {"region_count": region_count})


def roll_started(round_number: int, started_at: float) -> GameEvent:
    return GameEvent(ROLL_STARTED, {
        "round": round_number,
        "started_at": started_at,
    })


def outcome_rejected(round_number: int, value: Any, reason: str) -> GameEvent:
    return GameEvent(OUTCOME_REJECTED, {
        "round": round_number,
        "value": value,
        "reason": reason,
    })


def round_resolved(snapshot) -> GameEvent:
    """Emitted when an outcome is committed; carries the new GameSnapshot."""
    return GameEvent(ROUND_RESOLVED, {
        "round": snapshot.round,
        "outcome": snapshot.outcomes[-1],
        "survivor_names": [r.name for r in snapshot.survivors],
        "focus": snapshot.focus,
        "snapshot": snapshot,
    })


def session_complete(snapshot) -> GameEvent:
    return GameEvent(SESSION_COMPLETE, {
        "outcomes": list(snapshot.outcomes),
        "survivor_names": [r.name for r in snapshot.survivors],
        "snapshot": snapshot,
    })
