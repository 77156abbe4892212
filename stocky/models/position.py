"""Position data model."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Position(BaseModel):
    """Represents an open long or short stake in one symbol."""

    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    name: Optional[str] = Field(
        default=None, alias="companyName", description="Human-readable company name"
    )
    shares: float = Field(..., gt=0, description="Share count (0.1 granularity)")
    average_price: float = Field(..., ge=0, description="Average cost basis")
    current_price: float = Field(..., ge=0, description="Last marked price")
    unrealized_gain: float = Field(default=0.0, description="Unrealized gain/loss")
    side: Literal["long", "short"] = Field(
        default="long", alias="type", description="Position side"
    )
    opened_at: datetime = Field(
        default_factory=datetime.now,
        alias="purchaseDate",
        description="When the position was opened",
    )

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the position inside a ledger."""
        return (self.symbol, self.side)

    @property
    def market_value(self) -> float:
        return self.shares * self.current_price

    @property
    def gain_percent(self) -> float:
        if self.average_price <= 0:
            return 0.0
        cost = self.average_price * self.shares
        return self.unrealized_gain / cost * 100
