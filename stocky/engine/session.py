"""Game session: one explicit context tying ledger, objectives and progression together.

Every mutation flows one way:

    ledger operation -> objective evaluation -> badge detection
    -> completion check -> (auto-advance) next level's ledger
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from stocky.db.store import ACTIVE_LEDGER_KEY, PORTFOLIO_KEY_PREFIX, DataStore
from stocky.engine.achievements import (
    AchievementLedger,
    detect_completion_badges,
    detect_trade_badges,
)
from stocky.engine.errors import StockyError
from stocky.engine.ledger import PortfolioLedger
from stocky.engine.levels import MIN_LEVEL
from stocky.engine.objectives import level_performance
from stocky.engine.progression import ProgressionEngine
from stocky.models import Badge, Objective, OrderType, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelCompletion:
    """Data describing a level that has met all its objectives."""

    level: int
    final_value: float
    performance: float
    time_to_complete: float
    applied: bool = False


@dataclass
class StepResult:
    """Outcome of one pipeline step."""

    transaction: Optional[Transaction] = None
    objectives: Optional[list[Objective]] = None
    badges: Optional[list[Badge]] = None
    completion: Optional[LevelCompletion] = None


class GameSession:
    """Explicit per-session context over the store, ledger and progression."""

    def __init__(self, store: Optional[DataStore] = None, auto_advance: bool = True):
        """Initialize the session and activate the current level's ledger.

        Args:
            store: Optional persistent store. Without one, state lives in memory.
            auto_advance: Complete levels automatically once all objectives are met.
        """
        self.store = store
        self.auto_advance = auto_advance
        self._load()

    def _load(self) -> None:
        store = self.store
        self.achievements = AchievementLedger(store)
        self.progression = ProgressionEngine(store, achievements=self.achievements)
        self.ledger = PortfolioLedger.for_level(self.progression.current_level, store)
        self.progression.update_objectives(self.ledger.portfolio)
        if store is not None and (store.load(ACTIVE_LEDGER_KEY) or {}).get("level") == "custom":
            self.resume_custom_portfolio()

    @property
    def current_level(self) -> int:
        return self.progression.current_level

    @property
    def is_custom(self) -> bool:
        return self.ledger.portfolio.is_custom

    # ==================== Orders ====================

    def buy(
        self,
        symbol: str,
        shares: float,
        price: float,
        name: Optional[str] = None,
        order_type: OrderType = "market",
    ) -> StepResult:
        transaction = self.ledger.buy(symbol, shares, price, name=name, order_type=order_type)
        return self._after_mutation(transaction)

    def sell(
        self,
        symbol: str,
        shares: float,
        price: float,
        order_type: OrderType = "market",
    ) -> StepResult:
        transaction = self.ledger.sell(symbol, shares, price, order_type=order_type)
        return self._after_mutation(transaction)

    def short_sell(
        self,
        symbol: str,
        shares: float,
        price: float,
        name: Optional[str] = None,
    ) -> StepResult:
        transaction = self.ledger.short_sell(symbol, shares, price, name=name)
        return self._after_mutation(transaction)

    def cover_short(self, symbol: str, shares: float, price: float) -> StepResult:
        transaction = self.ledger.cover_short(symbol, shares, price)
        return self._after_mutation(transaction)

    def mark_to_market(self, quotes: Mapping[str, Any]) -> StepResult:
        self.ledger.mark_to_market(quotes)
        return self._after_mutation()

    def record_performance(self, on_date: Optional[date] = None) -> None:
        self.ledger.record_performance(on_date)

    # ==================== Level management ====================

    def pending_completion(self) -> Optional[LevelCompletion]:
        """Completion data for the current level if it is ready to complete."""
        if not self._tracks_progression():
            return None
        if not self.progression.is_current_level_complete(self.ledger.portfolio):
            return None
        return LevelCompletion(
            level=self.current_level,
            final_value=self.ledger.total_value,
            performance=level_performance(self.ledger.portfolio),
            time_to_complete=self.progression.elapsed_seconds(),
        )

    def complete_level(self) -> Optional[LevelCompletion]:
        """Apply a pending completion and activate the next level's ledger.

        Returns:
            The applied completion, or None if the level is not ready.
        """
        pending = self.pending_completion()
        if pending is None:
            return None

        applied = self.progression.complete_level(
            pending.level,
            pending.final_value,
            pending.performance,
            pending.time_to_complete,
        )
        if not applied:
            return None

        for badge_id in detect_completion_badges(pending.performance, pending.time_to_complete):
            self.achievements.award_badge(badge_id)

        if self.progression.current_level != pending.level:
            self.activate_level(self.progression.current_level)

        return LevelCompletion(
            level=pending.level,
            final_value=pending.final_value,
            performance=pending.performance,
            time_to_complete=pending.time_to_complete,
            applied=True,
        )

    def activate_level(self, level: int) -> PortfolioLedger:
        """Make a level's ledger active, creating it if it does not exist yet."""
        self.ledger = PortfolioLedger.for_level(level, self.store)
        self._save_active(level)
        if level == self.current_level:
            self.progression.update_objectives(self.ledger.portfolio)
        return self.ledger

    def skip_to_level(self, target: int) -> bool:
        if not self.progression.skip_to_level(target):
            return False
        self.activate_level(target)
        return True

    def reset_portfolio(self) -> None:
        """Reset the active ledger to its starting capital."""
        self.ledger.reset()

    def start_custom_portfolio(self, starting_capital: float) -> PortfolioLedger:
        """Switch to a fresh custom ledger; progression is paused while it is active."""
        self.ledger = PortfolioLedger.create_custom(starting_capital, self.store)
        self._save_active("custom")
        return self.ledger

    def resume_custom_portfolio(self) -> Optional[PortfolioLedger]:
        """Switch to the stored custom ledger, if there is one."""
        if self.store is None:
            return None
        portfolio = self.store.load_portfolio("custom")
        if portfolio is None:
            return None
        self.ledger = PortfolioLedger(portfolio, self.store)
        self._save_active("custom")
        return self.ledger

    def reset_progress(self) -> None:
        """Back to level 1 with a fresh ledger. Points and badges survive."""
        self.progression.reset()
        if self.store is not None:
            for key in self.store.keys(PORTFOLIO_KEY_PREFIX):
                if key != f"{PORTFOLIO_KEY_PREFIX}custom":
                    self.store.delete(key)
        self.activate_level(MIN_LEVEL)

    # ==================== Export / Import ====================

    def export_data(self) -> str:
        """Every stored snapshot as one JSON document."""
        if self.store is None:
            raise StockyError("Export needs a persistent store")
        return self.store.export_data()

    def import_data(self, text: str) -> tuple[bool, str]:
        """Import an exported document and reload the session from it.

        Returns:
            Tuple of (success, message). Nothing changes on failure.
        """
        if self.store is None:
            raise StockyError("Import needs a persistent store")
        ok, message = self.store.import_data(text)
        if ok:
            self._load()
        return ok, message

    # ==================== Pipeline ====================

    def _save_active(self, level) -> None:
        if self.store is not None:
            self.store.save(ACTIVE_LEDGER_KEY, {"level": level})

    def _tracks_progression(self) -> bool:
        """Only the current level's own ledger drives its objectives."""
        return not self.is_custom and self.ledger.level == self.current_level

    def _after_mutation(self, transaction: Optional[Transaction] = None) -> StepResult:
        result = StepResult(transaction=transaction)
        if not self._tracks_progression():
            return result

        portfolio = self.ledger.portfolio
        result.objectives = self.progression.update_objectives(portfolio)

        badges = []
        for badge_id in detect_trade_badges(portfolio):
            badge = self.achievements.award_badge(badge_id)
            if badge is not None:
                badges.append(badge)
        result.badges = badges

        if self.auto_advance:
            result.completion = self.complete_level()
        else:
            result.completion = self.pending_completion()
        return result
