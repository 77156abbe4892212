"""Achievement and points bookkeeping."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from stocky.db.store import DataStore
from stocky.engine.levels import ACHIEVEMENTS
from stocky.engine.objectives import count_sectors, count_stop_loss_orders
from stocky.models import Achievements, Badge, PointsEntry, Portfolio

logger = logging.getLogger(__name__)

DIAMOND_HANDS_DAYS = 30
DIAMOND_HANDS_GAIN_PERCENT = 20.0
DAY_TRADER_TRADES = 10
RISK_MANAGER_STOP_LOSSES = 10
DIVERSIFIED_SECTORS = 5
PROFIT_MASTER_PERCENT = 50.0
SPEEDRUN_SECONDS = 3600


class AchievementLedger:
    """Append-only points history plus a deduplicated set of badges."""

    def __init__(self, store: Optional[DataStore] = None):
        self._store = store
        loaded = store.load_achievements() if store is not None else None
        self._state = loaded or Achievements()

    @property
    def state(self) -> Achievements:
        return self._state

    @property
    def points(self) -> int:
        return self._state.points

    @property
    def badges(self) -> list[Badge]:
        return list(self._state.badges)

    def has_badge(self, badge_id: str) -> bool:
        return self._state.has_badge(badge_id)

    def award_points(self, amount: int, source: str) -> PointsEntry:
        """Record a points award.

        Args:
            amount: Points to add.
            source: Human-readable reason.

        Returns:
            The appended history entry.
        """
        entry = PointsEntry(source=source, amount=amount, timestamp=datetime.now())
        self._state = self._state.model_copy(
            update={
                "points": self._state.points + amount,
                "points_history": list(self._state.points_history) + [entry],
            }
        )
        logger.info("Awarded %d points: %s", amount, source)
        self._persist()
        return entry

    def award_badge(self, badge_id: str) -> Optional[Badge]:
        """Award a badge from the catalogue unless it is unknown or already earned.

        Returns:
            The new badge, or None when nothing was awarded.
        """
        definition = ACHIEVEMENTS.get(badge_id.lower())
        if definition is None or self.has_badge(definition.id):
            return None

        badge = Badge(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            points=definition.points,
            earned_at=datetime.now(),
        )
        entry = PointsEntry(
            source=f"Achievement: {definition.name}",
            amount=definition.points,
            timestamp=badge.earned_at,
        )
        self._state = self._state.model_copy(
            update={
                "badges": list(self._state.badges) + [badge],
                "points": self._state.points + definition.points,
                "points_history": list(self._state.points_history) + [entry],
            }
        )
        logger.info("Badge earned: %s", definition.name)
        self._persist()
        return badge

    def _persist(self) -> None:
        if self._store is not None and not self._store.save_achievements(self._state):
            logger.error("Achievements not persisted; keeping in-memory state")


def detect_trade_badges(portfolio: Portfolio, today: Optional[date] = None) -> list[str]:
    """Badge ids a ledger snapshot currently qualifies for."""
    today = today or date.today()
    earned = []
    transactions = portfolio.transactions

    if any(t.kind == "buy" for t in transactions):
        earned.append("first_purchase")

    if count_sectors(portfolio) >= DIVERSIFIED_SECTORS:
        earned.append("diversified")

    cutoff = datetime.combine(today, datetime.min.time()) - timedelta(days=DIAMOND_HANDS_DAYS)
    for pos in portfolio.positions:
        if (
            pos.side == "long"
            and pos.opened_at.replace(tzinfo=None) <= cutoff
            and pos.gain_percent >= DIAMOND_HANDS_GAIN_PERCENT
        ):
            earned.append("diamond_hands")
            break

    if count_stop_loss_orders(portfolio) >= RISK_MANAGER_STOP_LOSSES:
        earned.append("risk_manager")

    if _has_profitable_cover(portfolio):
        earned.append("short_seller")

    trades_today = sum(1 for t in transactions if t.timestamp.date() == today)
    if trades_today >= DAY_TRADER_TRADES:
        earned.append("day_trader")

    return earned


def detect_completion_badges(performance: float, time_to_complete: float) -> list[str]:
    earned = []
    if performance >= PROFIT_MASTER_PERCENT:
        earned.append("profit_master")
    if time_to_complete < SPEEDRUN_SECONDS:
        earned.append("level_speedrun")
    return earned


def _has_profitable_cover(portfolio: Portfolio) -> bool:
    """Whether any cover bought back below the running short entry price."""
    # Replay oldest-first to track each symbol's short average at cover time
    average: dict[str, float] = {}
    held: dict[str, float] = {}
    for t in reversed(portfolio.transactions):
        if t.kind == "short_sell":
            total = held.get(t.symbol, 0.0) + t.shares
            average[t.symbol] = (
                held.get(t.symbol, 0.0) * average.get(t.symbol, 0.0) + t.shares * t.price
            ) / total
            held[t.symbol] = total
        elif t.kind == "short_buy":
            if t.price < average.get(t.symbol, 0.0):
                return True
            held[t.symbol] = max(held.get(t.symbol, 0.0) - t.shares, 0.0)
    return False
