"""
Tests for the game controller state machine.

Uses a FakeClock-driven PollingScheduler so the minimum roll duration is
deterministic.
"""

import pytest

from game_controller import GameController, GamePhase
from game_events import (
    OUTCOME_REJECTED,
    ROLL_STARTED,
    ROUND_RESOLVED,
    SESSION_COMPLETE,
    SESSION_STARTED,
)
from region_catalog import Region, RegionCatalog
from roll_scheduler import FakeClock, PollingScheduler

RING = (((35.0, 139.0), (35.0, 140.0), (36.0, 140.0)),)

REGION_A = Region(name="A", polygon=RING, center=(35.0, 139.0), round_keys=(3.0, None, None))
REGION_B = Region(name="B", polygon=RING, center=(36.0, 140.0), round_keys=(3.0, 5.0, 2.0))
REGION_C = Region(name="C", polygon=RING, center=(37.0, 141.0), round_keys=(3.0, 5.0, 2.0))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return PollingScheduler(clock=clock)


@pytest.fixture
def controller(scheduler):
    catalog = RegionCatalog([REGION_A, REGION_B, REGION_C])
    return GameController(catalog, scheduler=scheduler, default_center=(36.5, 138.0))


def play_round(controller, clock, scheduler, value, wait=2.0):
    """Begin a roll, deliver a value, let the minimum duration pass."""
    assert controller.begin_roll()
    accepted = controller.submit_outcome(value)
    clock.advance(wait)
    scheduler.run_due()
    return accepted


class TestInitialState:
    """State before any roll."""

    def test_starts_idle_with_full_catalog(self, controller):
        """Fresh controller is idle with every region surviving."""
        snapshot = controller.snapshot()

        assert snapshot.phase == GamePhase.IDLE
        assert snapshot.round == 0
        assert snapshot.outcomes == ()
        assert snapshot.survivors == (REGION_A, REGION_B, REGION_C)
        assert snapshot.focus is None
        assert snapshot.can_roll
        assert snapshot.zoom_stage == 0
        assert snapshot.zoom_level == 5
        assert snapshot.map_center == (36.5, 138.0)

    def test_start(self, controller):
        """Start moves IDLE to AWAITING_ROLL once."""
        assert controller.start()
        assert controller.phase == GamePhase.AWAITING_ROLL
        assert not controller.start()

    def test_begin_roll_from_idle_starts_session(self, controller):
        """Rolling from IDLE starts the session."""
        assert controller.begin_roll()
        assert controller.phase == GamePhase.RESOLVING


class TestRoundProgression:
    """Outcomes narrow survivors round by round."""

    def test_full_session(self, controller, clock, scheduler):
        """Three rounds narrow survivors and end the session."""
        assert play_round(controller, clock, scheduler, 3)
        assert controller.round == 1
        assert controller.phase == GamePhase.AWAITING_ROLL
        assert [r.name for r in controller.survivors] == ["A", "B", "C"]
        assert controller.focus == REGION_A.center

        assert play_round(controller, clock, scheduler, 5)
        assert controller.round == 2
        assert [r.name for r in controller.survivors] == ["B", "C"]
        assert controller.focus == REGION_B.center

        assert play_round(controller, clock, scheduler, 2)
        snapshot = controller.snapshot()
        assert snapshot.round == 3
        assert snapshot.phase == GamePhase.COMPLETE
        assert snapshot.outcomes == (3, 5, 2)
        assert not snapshot.can_roll
        assert snapshot.zoom_level == 9

    def test_scenario_only_b_survives(self, clock, scheduler):
        """A(3), B(3, 5): rolling 3 then 5 leaves B, focused on B."""
        a = Region(name="A", polygon=RING, center=(35.0, 139.0), round_keys=(3.0, None, None))
        b = Region(name="B", polygon=RING, center=(36.0, 140.0), round_keys=(3.0, 5.0, None))
        controller = GameController(RegionCatalog([a, b]), scheduler=scheduler)

        play_round(controller, clock, scheduler, 3)
        play_round(controller, clock, scheduler, 5)

        assert controller.survivors == (b,)
        assert controller.focus == b.center

    def test_scenario_missing_round_key(self, clock, scheduler):
        """A region with no round-1 key never survives round 1."""
        lonely = Region(name="X", polygon=RING, center=(1.0, 2.0))
        controller = GameController(RegionCatalog([lonely]), scheduler=scheduler)

        play_round(controller, clock, scheduler, 4)

        assert controller.survivors == ()
        assert controller.focus is None
        assert controller.snapshot().map_center is None

    def test_focus_kept_after_zero_survivors(self, controller, clock, scheduler):
        """Focus stays put when nothing survives."""
        play_round(controller, clock, scheduler, 3)
        play_round(controller, clock, scheduler, 6)

        assert controller.survivors == ()
        assert controller.focus == REGION_A.center

    def test_zoom_levels_follow_rounds(self, controller, clock, scheduler):
        """Zoom level steps up with each round."""
        levels = []
        for value in (3, 5, 2):
            play_round(controller, clock, scheduler, value)
            levels.append(controller.snapshot().zoom_level)
        assert levels == [5, 7, 9]


class TestInvalidOutcomes:
    """Out-of-range or non-integer die values."""

    @pytest.mark.parametrize("value", [0, 7, 3.5, -1, "3", None, True])
    def test_rejected_without_state_change(self, controller, clock, scheduler, value):
        """Invalid values leave the session unchanged."""
        play_round(controller, clock, scheduler, 3)
        before = controller.snapshot()

        assert controller.begin_roll()
        assert not controller.submit_outcome(value)
        clock.advance(5.0)
        scheduler.run_due()

        after = controller.snapshot()
        assert after.round == before.round
        assert after.survivors == before.survivors
        assert after.focus == before.focus
        assert after.outcomes == before.outcomes
        assert controller.phase == GamePhase.RESOLVING

    def test_retry_after_rejection(self, controller, clock, scheduler):
        """A valid value may follow a rejected one."""
        controller.begin_roll()
        assert not controller.submit_outcome(7)
        assert controller.submit_outcome(3)
        clock.advance(2.0)
        scheduler.run_due()
        assert controller.outcomes == (3,)

    def test_outcome_without_roll_ignored(self, controller):
        """Outcomes are ignored when no roll is in progress."""
        assert not controller.submit_outcome(3)
        controller.start()
        assert not controller.submit_outcome(3)
        assert controller.round == 0


class TestDoubleSubmission:
    """Repeated requests while a roll is in progress."""

    def test_second_begin_roll_refused_while_resolving(self, controller):
        """Only one roll at a time."""
        assert controller.begin_roll()
        assert not controller.begin_roll()
        assert controller.phase == GamePhase.RESOLVING

    def test_second_outcome_ignored_while_pending(self, controller, clock, scheduler):
        """Only the first outcome of a roll counts."""
        controller.begin_roll()
        assert controller.submit_outcome(3)
        assert not controller.submit_outcome(4)
        clock.advance(2.0)
        scheduler.run_due()
        assert controller.outcomes == (3,)

    def test_begin_roll_refused_after_three_rounds(self, controller, clock, scheduler):
        """No rolls after the last round."""
        for value in (3, 5, 2):
            play_round(controller, clock, scheduler, value)

        assert not controller.begin_roll()
        assert not controller.submit_outcome(1)
        assert controller.phase == GamePhase.COMPLETE
        assert controller.round == 3


class TestMinimumRollDuration:
    """Rolls last at least the minimum duration."""

    def test_early_outcome_waits(self, controller, clock, scheduler):
        """An early outcome commits when the duration elapses."""
        controller.begin_roll()
        clock.advance(0.5)
        assert controller.submit_outcome(3)

        clock.advance(1.0)
        scheduler.run_due()
        assert controller.round == 0
        assert controller.phase == GamePhase.RESOLVING

        clock.advance(0.5)
        scheduler.run_due()
        assert controller.round == 1
        assert controller.phase == GamePhase.AWAITING_ROLL

    def test_late_outcome_commits_immediately(self, controller, clock):
        """A late outcome commits at once."""
        controller.begin_roll()
        clock.advance(3.0)
        assert controller.submit_outcome(3)
        assert controller.round == 1

    def test_custom_duration(self, clock, scheduler):
        """Zero duration commits at once."""
        controller = GameController(RegionCatalog([REGION_A]), scheduler=scheduler, min_roll_seconds=0)
        controller.begin_roll()
        controller.submit_outcome(3)
        assert controller.round == 1

    def test_close_cancels_pending_commit(self, controller, clock, scheduler):
        """Closing drops the pending outcome."""
        controller.begin_roll()
        controller.submit_outcome(3)
        controller.close()

        clock.advance(5.0)
        scheduler.run_due()

        assert controller.round == 0
        assert controller.outcomes == ()
        assert not controller.can_roll
        assert not controller.begin_roll()


class TestEvents:
    """Events sent to subscribers."""

    def test_event_sequence(self, controller, clock, scheduler):
        """A full session emits events in order."""
        events = []
        controller.subscribe(events.append)

        for value in (3, 5, 2):
            play_round(controller, clock, scheduler, value)

        types = [e.type for e in events]
        assert types == [
            SESSION_STARTED,
            ROLL_STARTED, ROUND_RESOLVED,
            ROLL_STARTED, ROUND_RESOLVED,
            ROLL_STARTED, ROUND_RESOLVED,
            SESSION_COMPLETE,
        ]
        assert events[2].payload["outcome"] == 3
        assert events[-1].payload["survivor_names"] == ["B", "C"]

    def test_rejection_event(self, controller):
        """Rejected values emit an event."""
        events = []
        controller.subscribe(events.append)
        controller.begin_roll()
        controller.submit_outcome(9)

        assert events[-1].type == OUTCOME_REJECTED
        assert events[-1].payload["value"] == 9

    def test_unsubscribe(self, controller):
        """Unsubscribed listeners get nothing."""
        events = []
        unsubscribe = controller.subscribe(events.append)
        unsubscribe()
        controller.begin_roll()
        assert events == []

    def test_snapshot_in_event_is_committed_state(self, controller, clock, scheduler):
        """Event snapshots match controller state."""
        snapshots = []
        controller.subscribe(lambda e: snapshots.append(e.payload["snapshot"]) if e.type == ROUND_RESOLVED else None)

        play_round(controller, clock, scheduler, 3)

        assert snapshots[0].round == 1
        assert snapshots[0].phase == GamePhase.AWAITING_ROLL
        assert snapshots[0] == controller.snapshot()


class TestCopySurvivorNames:
    """Survivor names as one string."""

    def test_joined_names(self, controller, clock, scheduler):
        """Names join with the separator."""
        play_round(controller, clock, scheduler, 3)
        play_round(controller, clock, scheduler, 5)
        assert controller.copy_survivor_names() == "B, C"
        assert controller.copy_survivor_names(" / ") == "B / C"

    def test_does_not_change_state(self, controller):
        """Copying names is read-only."""
        before = controller.snapshot()
        controller.copy_survivor_names()
        assert controller.snapshot() == before

    def test_empty(self, clock, scheduler):
        """No survivors gives an empty string."""
        controller = GameController(RegionCatalog([REGION_A]), scheduler=scheduler)
        play_round(controller, clock, scheduler, 6)
        assert controller.copy_survivor_names() == ""
