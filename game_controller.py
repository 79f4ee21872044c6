"""
Game controller: the round state machine for one dice session.

Phases:
    IDLE -> AWAITING_ROLL -> RESOLVING -> AWAITING_ROLL ... -> COMPLETE

Requests come in as method calls (begin_roll, submit_outcome); state goes
out as immutable GameSnapshots and GameEvents. The presentation layer never
touches controller fields directly.
"""

import logging
import numbers
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, List, Optional, Sequence, Tuple

from game_events import (
    GameEvent,
    outcome_rejected,
    roll_started,
    round_resolved,
    session_complete,
    session_started,
)
from region_catalog import Region, RegionCatalog
from roll_scheduler import PollingScheduler
from round_filter import resolve_round
from wkt_parser import LatLon

logger = logging.getLogger(__name__)

MAX_ROUNDS = 3
DIE_FACES = 6
MIN_ROLL_SECONDS = 2.0
ZOOM_LEVELS = (5, 7, 9)
DEFAULT_ZOOM = 5
NAMES_SEPARATOR = ", "


class GamePhase(Enum):
    IDLE = "idle"
    AWAITING_ROLL = "awaiting_roll"
    RESOLVING = "resolving"
    COMPLETE = "complete"


@dataclass(frozen=True)
class GameSnapshot:
    """Committed game state, safe to hand to rendering code."""
    phase: GamePhase
    round: int  # completed rounds
    outcomes: Tuple[int, ...]
    survivors: Tuple[Region, ...]
    focus: Optional[LatLon]
    can_roll: bool
    zoom_stage: int
    zoom_level: int
    map_center: Optional[LatLon]


class GameController:
    """
    Drives one session of up to MAX_ROUNDS dice rolls over a region catalog.

    A roll stays in RESOLVING for at least min_roll_seconds after
    begin_roll(), however early the outcome arrives, so the presentation
    layer always gets a minimum rolling time.
    """

    def __init__(
        self,
        catalog: RegionCatalog,
        scheduler=None,
        min_roll_seconds: float = MIN_ROLL_SECONDS,
        max_rounds: int = MAX_ROUNDS,
        zoom_levels: Sequence[int] = ZOOM_LEVELS,
        default_zoom: int = DEFAULT_ZOOM,
        default_center: Optional[LatLon] = None,
    ):
        """
        Initialize controller in the IDLE phase.

        Args:
            catalog: Full region catalog (shared, read-only)
            scheduler: Object with now() and call_later() (default: PollingScheduler())
            min_roll_seconds: Minimum time a roll stays in RESOLVING
            max_rounds: Number of rounds in a session
            zoom_levels: Map zoom per completed round (index = round - 1)
            default_zoom: Zoom before the first round or past the table
            default_center: Map center to report while no focus is set
        """
        self.catalog = catalog
        self.scheduler = scheduler or PollingScheduler()
        self.min_roll_seconds = min_roll_seconds
        self.max_rounds = max_rounds
        self.zoom_levels = tuple(zoom_levels)
        self.default_zoom = default_zoom
        self.default_center = default_center

        self._phase = GamePhase.IDLE
        self._outcomes: List[int] = []
        self._survivors: Tuple[Region, ...] = tuple(catalog)
        self._focus: Optional[LatLon] = None
        self._roll_started_at: Optional[float] = None
        self._pending = None
        self._closed = False
        self._listeners: List[Callable[[GameEvent], None]] = []

    # ===== Read side =====

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def round(self) -> int:
        return len(self._outcomes)

    @property
    def outcomes(self) -> Tuple[int, ...]:
        return tuple(self._outcomes)

    @property
    def survivors(self) -> Tuple[Region, ...]:
        return self._survivors

    @property
    def focus(self) -> Optional[LatLon]:
        return self._focus

    @property
    def is_rolling(self) -> bool:
        return self._phase == GamePhase.RESOLVING

    @property
    def can_roll(self) -> bool:
        return self.round < self.max_rounds and not self.is_rolling and not self._closed

    def zoom_level_for(self, stage: int) -> int:
        """Map a zoom stage (completed rounds) to a map zoom level."""
        if 1 <= stage <= len(self.zoom_levels):
            return self.zoom_levels[stage - 1]
        return self.default_zoom

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self._phase,
            round=self.round,
            outcomes=tuple(self._outcomes),
            survivors=self._survivors,
            focus=self._focus,
            can_roll=self.can_roll,
            zoom_stage=self.round,
            zoom_level=self.zoom_level_for(self.round),
            map_center=self._focus if self._focus is not None else self.default_center,
        )

    def copy_survivor_names(self, separator: str = NAMES_SEPARATOR) -> str:
        """Survivor names joined for the clipboard."""
        return separator.join(region.name for region in self._survivors)

    # ===== Events =====

    def subscribe(self, listener: Callable[[GameEvent], None]) -> Callable[[], None]:
        """
        Register an event listener.

        Returns:
            Zero-argument callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ===== Write side =====

    def start(self) -> bool:
        """Move from IDLE to AWAITING_ROLL."""
        if self._closed or self._phase != GamePhase.IDLE:
            return False
        self._phase = GamePhase.AWAITING_ROLL
        logger.info("Session started with %d regions", len(self.catalog))
        self._emit(session_started(len(self.catalog)))
        return True

    def begin_roll(self) -> bool:
        """
        Request a new roll.

        Ignored while a roll is in progress, once every round is played,
        or after close().

        Returns:
            True if the controller entered RESOLVING
        """
        if self._phase == GamePhase.IDLE:
            self.start()

        if not self.can_roll or self._phase != GamePhase.AWAITING_ROLL:
            logger.debug("Ignoring begin_roll in phase %s (round %d)", self._phase.value, self.round)
            return False

        self._phase = GamePhase.RESOLVING
        self._roll_started_at = self.scheduler.now()
        logger.debug("Round %d roll started", self.round + 1)
        self._emit(roll_started(self.round + 1, self._roll_started_at))
        return True

    def submit_outcome(self, value) -> bool:
        """
        Deliver the finished die value for the roll in progress.

        Values that are not integers in [1, DIE_FACES] are rejected with no
        state change. An accepted value is committed once min_roll_seconds
        have passed since begin_roll().

        Args:
            value: Die value from the dice widget

        Returns:
            True if the value was accepted
        """
        if self._closed or self._phase != GamePhase.RESOLVING or self._pending is not None:
            logger.debug("Ignoring outcome %r in phase %s", value, self._phase.value)
            return False

        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            return self._reject(value, "not an integer")
        if not 1 <= value <= DIE_FACES:
            return self._reject(value, f"outside 1..{DIE_FACES}")

        elapsed = self.scheduler.now() - self._roll_started_at
        remaining = self.min_roll_seconds - elapsed
        if remaining <= 0:
            self._commit(int(value))
        else:
            self._pending = self.scheduler.call_later(remaining, partial(self._commit, int(value)))
        return True

    def close(self) -> None:
        """Tear down the session; a pending commit will not fire."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._closed = True

    def _reject(self, value, reason: str) -> bool:
        logger.warning("Rejected die outcome %r: %s", value, reason)
        self._emit(outcome_rejected(self.round + 1, value, reason))
        return False

    def _commit(self, value: int) -> None:
        self._pending = None
        if self._closed:
            return

        self._outcomes.append(value)
        result = resolve_round(self.catalog, self._outcomes, self._focus)
        self._survivors = result.survivors
        self._focus = result.focus
        self._roll_started_at = None

        if self.round >= self.max_rounds:
            self._phase = GamePhase.COMPLETE
        else:
            self._phase = GamePhase.AWAITING_ROLL

        logger.info(
            "Round %d: rolled %d, %d regions remain",
            self.round, value, len(self._survivors),
        )

        snapshot = self.snapshot()
        self._emit(round_resolved(snapshot))
        if self._phase == GamePhase.COMPLETE:
            self._emit(session_complete(snapshot))
