"""Data models for Stocky."""

from stocky.models.position import Position
from stocky.models.transaction import OrderType, Transaction, TransactionKind
from stocky.models.portfolio import LevelKey, PerformancePoint, Portfolio
from stocky.models.objective import Objective
from stocky.models.progress import CompletedLevel, ProgressRecord
from stocky.models.achievement import Achievements, Badge, PointsEntry

__all__ = [
    "Achievements",
    "Badge",
    "CompletedLevel",
    "LevelKey",
    "Objective",
    "OrderType",
    "PerformancePoint",
    "PointsEntry",
    "Portfolio",
    "Position",
    "ProgressRecord",
    "Transaction",
    "TransactionKind",
]
