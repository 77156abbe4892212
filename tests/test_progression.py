"""Tests for the level progression state machine.

**Feature: stocky-progression**
"""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stocky.db.store import DataStore
from stocky.engine.errors import InvalidLevelTransition
from stocky.engine.ledger import new_portfolio
from stocky.engine.levels import BASE_FEATURES, LEVEL_COMPLETION_BONUS, cumulative_features
from stocky.engine.progression import ProgressionEngine


START = datetime(2025, 3, 1, 9, 30)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return ProgressionEngine(clock=clock)


class TestInitialState:
    """A fresh engine starts at level 1 with the base features."""

    def test_initial_state(self, engine: ProgressionEngine):
        assert engine.current_level == 1
        assert engine.record.level_start_date == START
        assert engine.record.levels_completed == []
        assert engine.unlocked_features == list(BASE_FEATURES)
        assert [o.id for o in engine.objectives] == ["portfolio_value", "complete_trades"]

    def test_feature_checks(self, engine: ProgressionEngine):
        assert engine.is_feature_unlocked("buy")
        assert not engine.is_feature_unlocked("short_selling")


class TestCompleteLevel:
    """
    **Feature: stocky-progression, Property: Idempotent Completion**

    *For any* number of repeated completion calls for the same level, the
    completion is recorded once and the bonus awarded once.
    """

    def test_completion_advances(self, engine: ProgressionEngine, clock: FakeClock):
        clock.advance(minutes=30)
        assert engine.complete_level(1, 210.0, 5.0, 1800.0)

        assert engine.current_level == 2
        assert engine.is_level_completed(1)
        assert engine.record.level_start_date == clock.now
        assert engine.is_feature_unlocked("research")
        assert engine.is_feature_unlocked("charts")
        assert [o.id for o in engine.objectives] == ["portfolio_value", "diversify_stocks"]
        assert engine.achievements.points == LEVEL_COMPLETION_BONUS

        record = engine.record.levels_completed[0]
        assert record.final_value == 210.0
        assert record.performance == 5.0
        assert record.time_to_complete == 1800.0

    @given(repeats=st.integers(min_value=1, max_value=10))
    @settings(max_examples=20)
    def test_repeated_completion_is_noop(self, repeats: int):
        engine = ProgressionEngine(clock=FakeClock())

        results = [engine.complete_level(1, 210.0, 5.0, 60.0) for _ in range(repeats)]

        assert results[0] is True
        assert not any(results[1:])
        assert len(engine.record.levels_completed) == 1
        assert engine.achievements.points == LEVEL_COMPLETION_BONUS

    def test_non_current_level_ignored(self, engine: ProgressionEngine):
        before = engine.record

        assert not engine.complete_level(3, 1300.0, 30.0, 60.0)
        assert engine.record == before
        assert engine.achievements.points == 0

    def test_check_transition_raises(self, engine: ProgressionEngine):
        with pytest.raises(InvalidLevelTransition):
            engine.check_transition(2)

        engine.check_transition(1)

    def test_level_five_is_terminal(self, engine: ProgressionEngine):
        engine.skip_to_level(5)

        assert engine.complete_level(5, 15000.0, 50.0, 60.0)
        assert engine.current_level == 5
        assert engine.is_level_completed(5)
        assert not engine.is_current_level_complete(new_portfolio(5, 20000.0))

        assert not engine.complete_level(5, 16000.0, 60.0, 60.0)
        assert engine.achievements.points == LEVEL_COMPLETION_BONUS

    def test_features_accumulate(self, engine: ProgressionEngine):
        for level, value in [(1, 210.0), (2, 600.0), (3, 1300.0)]:
            engine.complete_level(level, value, 10.0, 60.0)

        assert engine.current_level == 4
        for feature in ["buy", "research", "limit_orders", "stop_loss", "short_selling"]:
            assert engine.is_feature_unlocked(feature)


class TestSkipAndReset:
    """Skips jump within 1..5; resets keep points."""

    @pytest.mark.parametrize("target", [0, 6, -1, 100])
    def test_out_of_range_skip_ignored(self, engine: ProgressionEngine, target):
        before = engine.record

        assert not engine.skip_to_level(target)
        assert engine.record == before

    def test_backward_skip_ignored(self, engine: ProgressionEngine):
        assert engine.skip_to_level(3)
        before = engine.record

        assert not engine.skip_to_level(1)
        assert not engine.skip_to_level(2)
        assert engine.record == before
        assert engine.current_level == 3

    def test_skip_to_current_level_restarts_it(self, engine: ProgressionEngine, clock: FakeClock):
        engine.skip_to_level(2)
        clock.advance(hours=1)

        assert engine.skip_to_level(2)
        assert engine.record.level_start_date == clock.now

    def test_skip_unlocks_cumulative_features(self, engine: ProgressionEngine):
        assert engine.skip_to_level(4)

        assert engine.current_level == 4
        assert engine.unlocked_features == cumulative_features(4)
        assert engine.is_feature_unlocked("short_selling")
        assert engine.record.levels_completed == []

    def test_skip_to_level_five_unlocks_all(self, engine: ProgressionEngine):
        engine.skip_to_level(5)
        assert engine.is_feature_unlocked("options")
        assert engine.is_feature_unlocked("anything")

    def test_reset_keeps_points(self, engine: ProgressionEngine):
        engine.complete_level(1, 210.0, 5.0, 60.0)
        engine.reset()

        assert engine.current_level == 1
        assert engine.record.levels_completed == []
        assert engine.unlocked_features == list(BASE_FEATURES)
        assert engine.achievements.points == LEVEL_COMPLETION_BONUS


class TestPersistence:
    """Progression survives across engine instances."""

    def test_reload_from_store(self, temp_dir: Path):
        store = DataStore(temp_dir / "test.db")
        engine = ProgressionEngine(store, clock=FakeClock())
        engine.complete_level(1, 210.0, 5.0, 60.0)

        reloaded = ProgressionEngine(store, clock=FakeClock())

        assert reloaded.current_level == 2
        assert reloaded.is_level_completed(1)
        assert reloaded.achievements.points == LEVEL_COMPLETION_BONUS

    def test_elapsed_seconds(self, engine: ProgressionEngine, clock: FakeClock):
        clock.advance(minutes=5)
        assert engine.elapsed_seconds() == 300.0
