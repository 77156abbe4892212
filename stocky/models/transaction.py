"""Transaction data model."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

TransactionKind = Literal["buy", "sell", "short_sell", "short_buy"]
OrderType = Literal["market", "limit", "stop_loss"]


class Transaction(BaseModel):
    """Represents an executed, immutable ledger transaction."""

    id: str = Field(..., min_length=1, description="Transaction identifier")
    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    kind: TransactionKind = Field(..., alias="type", description="Transaction kind")
    shares: float = Field(..., gt=0, description="Shares traded")
    price: float = Field(..., gt=0, description="Execution price")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="Execution timestamp"
    )
    fee: float = Field(default=0.0, ge=0, description="Fee (always 0 in simulation)")
    order_type: OrderType = Field(default="market", description="Order type")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def value(self) -> float:
        return self.shares * self.price
