"""Portfolio (ledger snapshot) and performance data models."""

from datetime import date as date_type
from typing import Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from stocky.models.position import Position
from stocky.models.transaction import Transaction

LevelKey = Union[int, str]


class PerformancePoint(BaseModel):
    """One entry of a ledger's performance series."""

    date: date_type = Field(..., description="Valuation date")
    total_value: float = Field(..., description="Total portfolio value")
    daily_return: float = Field(default=0.0, description="Return vs previous point (%)")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class Portfolio(BaseModel):
    """Snapshot of one ledger: cash, positions and history."""

    level: LevelKey = Field(..., description="Level number, or 'custom'")
    cash: float = Field(..., ge=0, description="Available cash")
    total_value: float = Field(..., description="Cash plus marked position value")
    starting_value: float = Field(..., ge=0, description="Value at creation")
    positions: list[Position] = Field(default_factory=list)
    transactions: list[Transaction] = Field(
        default_factory=list, description="Most recent first"
    )
    performance: list[PerformancePoint] = Field(default_factory=list)
    is_custom: bool = Field(default=False, description="Ad-hoc ledger flag")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_snapshot(self) -> dict:
        """Serialise to the camelCase JSON-compatible snapshot shape."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_snapshot(cls, snapshot: dict) -> "Portfolio":
        return cls.model_validate(snapshot)
