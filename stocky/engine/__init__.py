"""Portfolio ledger and level-progression engine for Stocky.

The simulation clock lives in stocky.engine.clock and is imported
explicitly, since it depends on the quote sources.
"""

from stocky.engine.errors import (
    InsufficientFunds,
    InsufficientShares,
    InvalidLevelTransition,
    InvalidOrder,
    LedgerError,
    QuoteUnavailable,
    StockyError,
)
from stocky.engine.levels import LEVEL_COMPLETION_BONUS, LEVELS, LevelConfig
from stocky.engine.ledger import PortfolioLedger
from stocky.engine.achievements import AchievementLedger
from stocky.engine.progression import ProgressionEngine
from stocky.engine.session import GameSession, LevelCompletion, StepResult

__all__ = [
    "AchievementLedger",
    "GameSession",
    "InsufficientFunds",
    "InsufficientShares",
    "InvalidLevelTransition",
    "InvalidOrder",
    "LEVEL_COMPLETION_BONUS",
    "LEVELS",
    "LedgerError",
    "LevelCompletion",
    "LevelConfig",
    "PortfolioLedger",
    "ProgressionEngine",
    "QuoteUnavailable",
    "StepResult",
    "StockyError",
]
