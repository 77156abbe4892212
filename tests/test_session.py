"""End-to-end tests for the game session pipeline.

**Feature: stocky-session**
"""

import tempfile
from pathlib import Path

import pytest

from stocky.db.store import DataStore
from stocky.engine.errors import InsufficientFunds, StockyError
from stocky.engine.levels import LEVEL_COMPLETION_BONUS
from stocky.engine.session import GameSession


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield DataStore(Path(tmpdir) / "test.db")


def _play_level_one(session: GameSession):
    """Five round trips, then a buy that is marked up to the 210 target."""
    for _ in range(5):
        session.buy("KO", 1, 50.0)
        session.sell("KO", 1, 50.0)
    session.buy("AAPL", 1, 150.0)
    return session.mark_to_market({"AAPL": 160.0})


class TestLevelOneWalkthrough:
    """Completing level 1 moves the player to level 2."""

    def test_auto_advance(self, temp_db: DataStore):
        session = GameSession(temp_db)

        result = _play_level_one(session)

        assert result.completion is not None
        assert result.completion.applied
        assert result.completion.level == 1
        assert result.completion.final_value == pytest.approx(210.0)
        assert result.completion.performance == pytest.approx(5.0)

        assert session.current_level == 2
        assert session.ledger.level == 2
        assert session.ledger.cash == 500.0
        assert session.progression.is_feature_unlocked("research")
        assert session.achievements.points >= LEVEL_COMPLETION_BONUS
        assert session.achievements.has_badge("first_purchase")
        assert session.achievements.has_badge("level_speedrun")

    def test_level_one_ledger_kept(self, temp_db: DataStore):
        session = GameSession(temp_db)
        _play_level_one(session)

        old = temp_db.load_portfolio(1)
        assert old.total_value == pytest.approx(210.0)

    def test_pending_without_auto_advance(self, temp_db: DataStore):
        session = GameSession(temp_db, auto_advance=False)

        result = _play_level_one(session)

        assert result.completion is not None
        assert not result.completion.applied
        assert session.current_level == 1

        applied = session.complete_level()
        assert applied.applied
        assert session.current_level == 2
        assert session.complete_level() is None

    def test_objectives_progress_reported(self, temp_db: DataStore):
        session = GameSession(temp_db, auto_advance=False)
        session.buy("KO", 1, 50.0)
        result = session.sell("KO", 1, 50.0)

        trades = next(o for o in result.objectives if o.id == "complete_trades")
        assert trades.progress == 1
        assert not trades.completed

    def test_progress_does_not_regress(self, temp_db: DataStore):
        session = GameSession(temp_db, auto_advance=False)
        session.buy("AAPL", 1, 150.0)
        session.mark_to_market({"AAPL": 160.0})
        session.mark_to_market({"AAPL": 100.0})

        value = next(o for o in session.progression.objectives if o.id == "portfolio_value")
        assert value.completed

    def test_lost_value_target_blocks_completion(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.buy("AAPL", 1, 150.0)
        session.mark_to_market({"AAPL": 160.0})
        session.mark_to_market({"AAPL": 100.0})

        for _ in range(5):
            session.buy("KO", 0.1, 10.0)
            result = session.sell("KO", 0.1, 10.0)

        assert result.completion is None
        assert session.pending_completion() is None
        assert session.current_level == 1
        assert not session.progression.is_level_completed(1)

        result = session.mark_to_market({"AAPL": 160.0})
        assert result.completion is not None and result.completion.applied
        assert result.completion.final_value == pytest.approx(210.0)
        assert session.current_level == 2

    def test_rejected_order_changes_nothing(self, temp_db: DataStore):
        session = GameSession(temp_db)
        before = session.ledger.portfolio

        with pytest.raises(InsufficientFunds):
            session.buy("MSFT", 1, 400.0)

        assert session.ledger.portfolio == before
        assert temp_db.load_portfolio(1) == before


class TestCustomPortfolio:
    """Custom ledgers sit outside the level system."""

    def test_custom_does_not_drive_objectives(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.start_custom_portfolio(100000.0)

        result = session.buy("AAPL", 10, 150.0)

        assert result.objectives is None
        assert result.completion is None
        assert session.is_custom
        value = next(o for o in session.progression.objectives if o.id == "portfolio_value")
        assert value.progress == 200.0

    def test_custom_resumed_in_new_session(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.start_custom_portfolio(5000.0)
        session.buy("KO", 1, 60.0)

        resumed = GameSession(temp_db)
        assert resumed.is_custom
        assert resumed.ledger.cash == pytest.approx(4940.0)

        resumed.activate_level(resumed.current_level)
        assert GameSession(temp_db).ledger.level == 1


class TestLevelManagement:
    """Skips, resets and persistence across sessions."""

    def test_state_survives_sessions(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.buy("KO", 1, 50.0)

        again = GameSession(temp_db)
        assert again.ledger.get_position("KO").shares == 1
        assert again.ledger.cash == pytest.approx(150.0)

    def test_skip_activates_level_ledger(self, temp_db: DataStore):
        session = GameSession(temp_db)

        assert session.skip_to_level(4)
        assert session.ledger.level == 4
        assert session.ledger.cash == 5000.0
        assert not session.skip_to_level(6)
        assert session.current_level == 4
        assert not session.skip_to_level(2)
        assert session.current_level == 4
        assert session.ledger.level == 4

    def test_lower_level_ledger_does_not_drive_objectives(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.skip_to_level(2)
        session.activate_level(1)

        result = session.buy("KO", 1, 50.0)
        assert result.objectives is None

    def test_reset_portfolio(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.buy("KO", 1, 50.0)
        session.reset_portfolio()

        assert session.ledger.cash == 200.0
        assert temp_db.load_portfolio(1).positions == []

    def test_reset_progress_keeps_points_and_custom(self, temp_db: DataStore):
        session = GameSession(temp_db)
        _play_level_one(session)
        points = session.achievements.points
        session.start_custom_portfolio(1000.0)

        session.reset_progress()

        assert session.current_level == 1
        assert not session.is_custom
        assert session.ledger.cash == 200.0
        assert session.ledger.transactions == []
        assert session.achievements.points == points
        assert temp_db.load_portfolio(2) is None
        assert temp_db.load_portfolio("custom") is not None

    def test_in_memory_session(self):
        session = GameSession()
        session.buy("KO", 1, 50.0)
        assert session.ledger.cash == pytest.approx(150.0)
        assert session.resume_custom_portfolio() is None


class TestExportImport:
    """A session reloads itself from an imported document."""

    def test_import_into_fresh_store(self, temp_db: DataStore):
        session = GameSession(temp_db)
        _play_level_one(session)
        text = session.export_data()

        with tempfile.TemporaryDirectory() as tmpdir:
            other = GameSession(DataStore(Path(tmpdir) / "other.db"))
            assert other.current_level == 1

            ok, _ = other.import_data(text)

            assert ok
            assert other.current_level == 2
            assert other.ledger.level == 2
            assert other.achievements.points == session.achievements.points

    def test_failed_import_changes_nothing(self, temp_db: DataStore):
        session = GameSession(temp_db)
        session.buy("KO", 1, 50.0)

        ok, _ = session.import_data("not json")

        assert not ok
        assert session.ledger.get_position("KO").shares == 1

    def test_in_memory_session_cannot_export(self):
        with pytest.raises(StockyError):
            GameSession().export_data()
