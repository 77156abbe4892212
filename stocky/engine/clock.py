"""Simulation clock driving periodic mark-to-market ticks."""

import logging
import threading
from typing import Callable, Optional

from stocky.engine.session import GameSession, StepResult
from stocky.quotes.base import BaseQuoteSource

logger = logging.getLogger(__name__)


class SimulationClock:
    """Advances a quote source and marks the session's ledger on a fixed cadence.

    Each tick is independently atomic, so stopping between ticks never
    leaves the ledger half-updated.
    """

    def __init__(
        self,
        session: GameSession,
        source: BaseQuoteSource,
        interval: float = 5.0,
        time_acceleration: float = 1.0,
        hours_elapsed: float = 0.25,
        on_tick: Optional[Callable[[int, StepResult], None]] = None,
    ):
        """Initialize the clock.

        Args:
            session: Session whose active ledger is marked.
            source: Quote source; advanced first when it supports advance().
            interval: Seconds between ticks.
            time_acceleration: Simulated-time multiplier passed to the source.
            hours_elapsed: Simulated hours per tick.
            on_tick: Callback receiving the tick number and its result.
        """
        self.session = session
        self.source = source
        self.interval = interval
        self.time_acceleration = time_acceleration
        self.hours_elapsed = hours_elapsed
        self.on_tick = on_tick
        self.ticks = 0
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def tick(self) -> StepResult:
        """Run one tick: move prices, mark held positions, record performance."""
        advance = getattr(self.source, "advance", None)
        if callable(advance):
            advance(self.time_acceleration, self.hours_elapsed)

        symbols = sorted({p.symbol for p in self.session.ledger.positions})
        quotes = self.source.get_quotes(symbols)
        result = self.session.mark_to_market(quotes)
        self.session.record_performance()
        self.ticks += 1

        logger.debug(
            "Tick %d: %d/%d quotes, total value %.2f",
            self.ticks, len(quotes), len(symbols), self.session.ledger.total_value,
        )
        if self.on_tick is not None:
            self.on_tick(self.ticks, result)
        return result

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Tick until stopped or max_ticks is reached.

        Returns:
            Number of ticks run by this call.
        """
        self._stop.clear()
        ran = 0
        while not self._stop.is_set():
            self.tick()
            ran += 1
            if max_ticks is not None and ran >= max_ticks:
                break
            if self._stop.wait(self.interval):
                break
        return ran

    def stop(self) -> None:
        """Cancel the loop after the current tick."""
        self._stop.set()
