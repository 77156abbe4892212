"""Quote sources for Stocky."""

from stocky.quotes.base import BaseQuoteSource, Quote
from stocky.quotes.simulated import SimulatedQuoteSource

__all__ = [
    "BaseQuoteSource",
    "Quote",
    "SimulatedQuoteSource",
]
