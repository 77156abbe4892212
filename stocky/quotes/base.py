"""Quote model and quote source interface for Stocky."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from stocky.engine.errors import QuoteUnavailable

logger = logging.getLogger(__name__)


class Quote(BaseModel):
    """Represents a point-in-time quote for a symbol."""

    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    price: float = Field(..., ge=0, description="Last price")
    change: float = Field(default=0.0, description="Price change from previous close")
    change_percent: float = Field(default=0.0, description="Percentage change")
    volume: Optional[int] = Field(default=None, ge=0, description="Trading volume")
    open: Optional[float] = Field(default=None, ge=0, description="Opening price")
    high: Optional[float] = Field(default=None, ge=0, description="Day high")
    low: Optional[float] = Field(default=None, ge=0, description="Day low")
    name: Optional[str] = Field(default=None, description="Company name")
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class BaseQuoteSource(ABC):
    """Abstract base class for quote providers.

    Implementations may be live, cached or synthetic. A failed lookup
    raises QuoteUnavailable and never affects ledger state.
    """

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Get the current quote for a symbol.

        Args:
            symbol: Ticker symbol.

        Returns:
            Quote with current market data.

        Raises:
            QuoteUnavailable: If no quote can be produced for the symbol.
        """
        pass

    def get_quotes(self, symbols: Iterable[str]) -> dict[str, Quote]:
        """Get quotes for several symbols, skipping the ones that fail.

        Args:
            symbols: Ticker symbols.

        Returns:
            Mapping of symbol to quote for every symbol that succeeded.
        """
        quotes = {}
        for symbol in symbols:
            try:
                quotes[symbol] = self.get_quote(symbol)
            except QuoteUnavailable as e:
                logger.warning("No quote for %s this tick: %s", symbol, e)
        return quotes
