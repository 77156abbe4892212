"""Synthetic quote source for simulated trading."""

import math
import random
from datetime import datetime
from typing import Optional

from stocky.engine.errors import QuoteUnavailable
from stocky.quotes.base import BaseQuoteSource, Quote

# symbol -> (name, base price)
DEFAULT_UNIVERSE: dict[str, tuple[str, float]] = {
    "AAPL": ("Apple Inc.", 186.72),
    "MSFT": ("Microsoft Corporation", 412.85),
    "GOOGL": ("Alphabet Inc.", 164.01),
    "TSLA": ("Tesla Inc.", 248.50),
    "AMZN": ("Amazon.com Inc.", 155.89),
    "META": ("Meta Platforms Inc.", 325.67),
    "NVDA": ("NVIDIA Corporation", 456.78),
    "NFLX": ("Netflix Inc.", 445.32),
    "JPM": ("JPMorgan Chase & Co.", 187.45),
    "BAC": ("Bank of America Corp.", 34.56),
    "JNJ": ("Johnson & Johnson", 156.78),
    "PFE": ("Pfizer Inc.", 35.67),
    "UNH": ("UnitedHealth Group", 534.78),
    "ABBV": ("AbbVie Inc.", 167.89),
    "KO": ("The Coca-Cola Company", 62.34),
    "PEP": ("PepsiCo Inc.", 178.90),
    "WMT": ("Walmart Inc.", 165.43),
    "HD": ("The Home Depot Inc.", 345.67),
    "DIS": ("The Walt Disney Co.", 95.43),
    "XOM": ("Exxon Mobil Corporation", 98.76),
    "CRM": ("Salesforce Inc.", 245.67),
    "ORCL": ("Oracle Corporation", 123.45),
}

# symbol -> (volatility, drift) per tick before time scaling
SYMBOL_DYNAMICS: dict[str, tuple[float, float]] = {
    "AAPL": (0.015, 0.001),
    "MSFT": (0.012, 0.002),
    "GOOGL": (0.018, 0.0),
}
DEFAULT_DYNAMICS = (0.01, 0.0)


class SimulatedQuoteSource(BaseQuoteSource):
    """Random-walk market for paper play.

    Prices move only when advance() is called, so repeated get_quote()
    calls between ticks return identical prices.
    """

    def __init__(
        self,
        universe: Optional[dict[str, tuple[str, float]]] = None,
        seed: Optional[int] = None,
    ):
        """Initialize the simulated market.

        Args:
            universe: Mapping of symbol to (name, starting price).
            seed: Seed for reproducible price paths.
        """
        self._rng = random.Random(seed)
        self._names: dict[str, str] = {}
        self._prices: dict[str, float] = {}
        self._previous_close: dict[str, float] = {}
        if universe is None:
            universe = DEFAULT_UNIVERSE
        for symbol, (name, price) in universe.items():
            self._names[symbol] = name
            self._prices[symbol] = price
            self._previous_close[symbol] = price

    @property
    def symbols(self) -> list[str]:
        return sorted(self._prices)

    def get_quote(self, symbol: str) -> Quote:
        """Get the simulated quote for a symbol.

        Args:
            symbol: Ticker symbol.

        Returns:
            Simulated quote.

        Raises:
            QuoteUnavailable: If the symbol is not part of the universe.
        """
        symbol = symbol.upper()
        if symbol not in self._prices:
            raise QuoteUnavailable(f"Stock {symbol} not found")

        price = self._prices[symbol]
        prev_close = self._previous_close[symbol]
        change = price - prev_close
        change_percent = (change / prev_close * 100) if prev_close > 0 else 0.0

        return Quote(
            symbol=symbol,
            name=self._names[symbol],
            price=round(price, 2),
            change=round(change, 2),
            change_percent=round(change_percent, 2),
            open=round(prev_close, 2),
            high=round(max(price, prev_close), 2),
            low=round(min(price, prev_close), 2),
            timestamp=datetime.now(),
        )

    def set_price(self, symbol: str, price: float, name: Optional[str] = None) -> None:
        """Set a symbol's price directly, adding the symbol if needed."""
        symbol = symbol.upper()
        if price <= 0:
            raise ValueError("Price must be greater than 0")
        if symbol not in self._prices:
            self._previous_close[symbol] = price
            self._names[symbol] = name or symbol
        self._prices[symbol] = price

    def advance(self, time_acceleration: float = 1.0, hours_elapsed: float = 0.25) -> None:
        """Move every price one random-walk step.

        Args:
            time_acceleration: Simulated-time multiplier.
            hours_elapsed: Simulated hours represented by this step.
        """
        scale = math.sqrt(max(time_acceleration * hours_elapsed, 0.0))
        for symbol, price in self._prices.items():
            volatility, drift = SYMBOL_DYNAMICS.get(symbol, DEFAULT_DYNAMICS)
            shock = (self._rng.random() - 0.5) * 2 * volatility * scale
            new_price = price * (1 + shock + drift)
            # Floor keeps prices strictly positive
            self._prices[symbol] = max(new_price, 0.01)

    def snapshot(self) -> dict:
        """Serialise prices so the market survives between runs."""
        return {
            symbol: {
                "name": self._names[symbol],
                "price": self._prices[symbol],
                "previousClose": self._previous_close[symbol],
            }
            for symbol in self._prices
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict, seed: Optional[int] = None) -> "SimulatedQuoteSource":
        source = cls(universe={}, seed=seed)
        for symbol, entry in snapshot.items():
            source._names[symbol] = entry.get("name", symbol)
            source._prices[symbol] = float(entry["price"])
            source._previous_close[symbol] = float(entry.get("previousClose", entry["price"]))
        return source
