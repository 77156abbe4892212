"""Portfolio ledger: cash, positions and transaction history for one level."""

import logging
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional

from stocky.db.store import DataStore
from stocky.engine.errors import InsufficientFunds, InsufficientShares, InvalidOrder
from stocky.engine.levels import get_level_config
from stocky.models import (
    LevelKey,
    OrderType,
    PerformancePoint,
    Portfolio,
    Position,
    Transaction,
    TransactionKind,
)

logger = logging.getLogger(__name__)

# Shares trade in tenths
SHARE_STEP = 0.1

PERFORMANCE_HISTORY_LIMIT = 365


def _to_tenths(shares: float) -> int:
    return int(round(shares / SHARE_STEP))


def _from_tenths(tenths: int) -> float:
    return round(tenths * SHARE_STEP, 1)


def calculate_total_value(cash: float, positions: list[Position]) -> float:
    """Cash plus long market value, minus the cost of buying back shorts."""
    total = cash
    for pos in positions:
        if pos.side == "long":
            total += pos.shares * pos.current_price
        else:
            total -= pos.shares * pos.current_price
    return total


def unrealized_gain(position: Position) -> float:
    if position.side == "long":
        return (position.current_price - position.average_price) * position.shares
    return (position.average_price - position.current_price) * position.shares


def new_portfolio(level: LevelKey, starting_capital: float, is_custom: bool = False) -> Portfolio:
    """Build a fresh ledger snapshot seeded with one performance point."""
    return Portfolio(
        level=level,
        cash=starting_capital,
        total_value=starting_capital,
        starting_value=starting_capital,
        positions=[],
        transactions=[],
        performance=[
            PerformancePoint(date=date.today(), total_value=starting_capital, daily_return=0.0)
        ],
        is_custom=is_custom,
    )


def _quote_price(quote: Any) -> Optional[float]:
    """Extract a price from a Quote, a mapping with a 'price' key, or a number."""
    if quote is None:
        return None
    if isinstance(quote, Mapping):
        price = quote.get("price")
    elif isinstance(quote, (int, float)):
        price = quote
    else:
        price = getattr(quote, "price", None)
    if price is None or price <= 0:
        return None
    return float(price)


class PortfolioLedger:
    """Owns one consistent {cash, positions, transactions, total value} state.

    Every operation either succeeds completely or raises a LedgerError and
    leaves the state untouched: new state is built from the immutable
    snapshot and swapped in only after all checks pass. Successful
    mutations are persisted to the store (best effort) before returning.
    """

    def __init__(self, portfolio: Portfolio, store: Optional[DataStore] = None):
        """Initialize a ledger around an existing snapshot.

        Args:
            portfolio: Current ledger snapshot.
            store: Optional store the ledger persists itself to.
        """
        self._portfolio = portfolio
        self._store = store

    @classmethod
    def create(
        cls,
        level: LevelKey,
        starting_capital: float,
        store: Optional[DataStore] = None,
        is_custom: bool = False,
    ) -> "PortfolioLedger":
        """Create and persist a fresh ledger."""
        ledger = cls(new_portfolio(level, starting_capital, is_custom=is_custom), store)
        ledger._persist()
        return ledger

    @classmethod
    def create_custom(
        cls, starting_capital: float, store: Optional[DataStore] = None
    ) -> "PortfolioLedger":
        """Create an ad-hoc ledger outside the level system."""
        if starting_capital <= 0:
            raise InvalidOrder("Starting capital must be greater than 0")
        return cls.create("custom", starting_capital, store, is_custom=True)

    @classmethod
    def for_level(cls, level: int, store: Optional[DataStore] = None) -> "PortfolioLedger":
        """Load the stored ledger for a level, or create one with its starting capital."""
        if store is not None:
            portfolio = store.load_portfolio(level)
            if portfolio is not None:
                return cls(portfolio, store)
        config = get_level_config(level)
        if config is None:
            raise ValueError(f"Unknown level: {level}")
        return cls.create(level, config.starting_capital, store)

    # ==================== Read access ====================

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    @property
    def level(self) -> LevelKey:
        return self._portfolio.level

    @property
    def cash(self) -> float:
        return self._portfolio.cash

    @property
    def total_value(self) -> float:
        return self._portfolio.total_value

    @property
    def positions(self) -> list[Position]:
        return list(self._portfolio.positions)

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._portfolio.transactions)

    def get_position(self, symbol: str, side: str = "long") -> Optional[Position]:
        key = (symbol.upper(), side)
        return next((p for p in self._portfolio.positions if p.key == key), None)

    # ==================== Orders ====================

    def buy(
        self,
        symbol: str,
        shares: float,
        price: float,
        name: Optional[str] = None,
        order_type: OrderType = "market",
    ) -> Transaction:
        """Buy shares into the long position for a symbol.

        Args:
            symbol: Ticker symbol.
            shares: Number of shares (multiple of 0.1).
            price: Execution price, already resolved by the caller.
            name: Company name for a new position.
            order_type: Order type recorded on the transaction.

        Returns:
            The appended transaction.

        Raises:
            InvalidOrder: If the order parameters are malformed.
            InsufficientFunds: If shares * price exceeds available cash.
        """
        symbol, tenths = self._validate_order(symbol, shares, price)
        shares = _from_tenths(tenths)
        cost = shares * price
        if cost > self.cash:
            raise InsufficientFunds(
                f"Insufficient funds. Required: {cost:.2f}, Available: {self.cash:.2f}"
            )

        positions = self._add_to_position(symbol, "long", tenths, price, name)
        return self._apply("buy", symbol, shares, price, order_type, self.cash - cost, positions)

    def sell(
        self,
        symbol: str,
        shares: float,
        price: float,
        order_type: OrderType = "market",
    ) -> Transaction:
        """Sell shares out of the long position for a symbol.

        The average cost basis of the remaining shares is unchanged.

        Raises:
            InvalidOrder: If the order parameters are malformed.
            InsufficientShares: If fewer shares are held than requested.
        """
        symbol, tenths = self._validate_order(symbol, shares, price)
        shares = _from_tenths(tenths)
        positions = self._remove_from_position(symbol, "long", tenths)
        return self._apply(
            "sell", symbol, shares, price, order_type, self.cash + shares * price, positions
        )

    def short_sell(
        self,
        symbol: str,
        shares: float,
        price: float,
        name: Optional[str] = None,
        order_type: OrderType = "market",
    ) -> Transaction:
        """Open or add to a short position, crediting the proceeds to cash."""
        symbol, tenths = self._validate_order(symbol, shares, price)
        shares = _from_tenths(tenths)
        positions = self._add_to_position(symbol, "short", tenths, price, name)
        return self._apply(
            "short_sell", symbol, shares, price, order_type, self.cash + shares * price, positions
        )

    def cover_short(
        self,
        symbol: str,
        shares: float,
        price: float,
        order_type: OrderType = "market",
    ) -> Transaction:
        """Buy back shares of a short position, debiting cash.

        Raises:
            InvalidOrder: If the order parameters are malformed.
            InsufficientShares: If the short position is smaller than requested.
            InsufficientFunds: If the buy-back costs more than available cash.
        """
        symbol, tenths = self._validate_order(symbol, shares, price)
        shares = _from_tenths(tenths)
        positions = self._remove_from_position(symbol, "short", tenths)
        cost = shares * price
        if cost > self.cash:
            raise InsufficientFunds(
                f"Insufficient funds to cover short. Required: {cost:.2f}, "
                f"Available: {self.cash:.2f}"
            )
        return self._apply(
            "short_buy", symbol, shares, price, order_type, self.cash - cost, positions
        )

    # ==================== Valuation ====================

    def mark_to_market(self, quotes: Mapping[str, Any]) -> float:
        """Re-price held positions from fresh quotes.

        Symbols without a usable quote keep their last known price. Cash
        and share counts are never touched.

        Args:
            quotes: Mapping of symbol to Quote, {'price': ...} mapping or number.

        Returns:
            The recomputed total value.
        """
        positions = []
        for pos in self._portfolio.positions:
            price = _quote_price(quotes.get(pos.symbol))
            if price is not None:
                pos = pos.model_copy(update={"current_price": price})
                pos = pos.model_copy(update={"unrealized_gain": unrealized_gain(pos)})
            positions.append(pos)

        self._portfolio = self._portfolio.model_copy(
            update={
                "positions": positions,
                "total_value": calculate_total_value(self.cash, positions),
            }
        )
        self._persist()
        return self.total_value

    def record_performance(self, on_date: Optional[date] = None) -> PerformancePoint:
        """Record the value for a date in the performance series (newest 365 kept).

        The series holds one point per date. A later value for the same date
        replaces the earlier one and its return is measured against the
        previous date.
        """
        on_date = on_date or date.today()
        history = list(self._portfolio.performance)
        if history and history[-1].date == on_date:
            history.pop()
        previous = history[-1].total_value if history else self._portfolio.starting_value
        daily_return = ((self.total_value - previous) / previous * 100) if previous > 0 else 0.0
        point = PerformancePoint(
            date=on_date,
            total_value=self.total_value,
            daily_return=daily_return,
        )
        history.append(point)
        if len(history) > PERFORMANCE_HISTORY_LIMIT:
            history = history[-PERFORMANCE_HISTORY_LIMIT:]
        self._portfolio = self._portfolio.model_copy(update={"performance": history})
        self._persist()
        return point

    def reset(self, starting_capital: Optional[float] = None) -> None:
        """Replace the ledger with a fresh one for the same level."""
        if starting_capital is None:
            config = get_level_config(self.level) if isinstance(self.level, int) else None
            starting_capital = (
                config.starting_capital if config else self._portfolio.starting_value
            )
        self._portfolio = new_portfolio(
            self.level, starting_capital, is_custom=self._portfolio.is_custom
        )
        logger.info("Reset ledger for level %s with %.2f", self.level, starting_capital)
        self._persist()

    # ==================== Internals ====================

    def _validate_order(self, symbol: str, shares: float, price: float) -> tuple[str, int]:
        if not symbol or not symbol.strip():
            raise InvalidOrder("Symbol is required")
        if price is None or price <= 0:
            raise InvalidOrder("Price must be greater than 0")
        if shares is None or shares <= 0:
            raise InvalidOrder("Shares must be greater than 0")
        tenths = _to_tenths(shares)
        if tenths < 1 or abs(tenths * SHARE_STEP - shares) > 1e-9:
            raise InvalidOrder("Shares must be a multiple of 0.1")
        return symbol.strip().upper(), tenths

    def _add_to_position(
        self,
        symbol: str,
        side: str,
        tenths: int,
        price: float,
        name: Optional[str],
    ) -> list[Position]:
        positions = list(self._portfolio.positions)
        for i, pos in enumerate(positions):
            if pos.key == (symbol, side):
                old_tenths = _to_tenths(pos.shares)
                total_tenths = old_tenths + tenths
                average = (old_tenths * pos.average_price + tenths * price) / total_tenths
                updated = pos.model_copy(
                    update={"shares": _from_tenths(total_tenths), "average_price": average}
                )
                positions[i] = updated.model_copy(
                    update={"unrealized_gain": unrealized_gain(updated)}
                )
                return positions

        positions.append(
            Position(
                symbol=symbol,
                name=name,
                shares=_from_tenths(tenths),
                average_price=price,
                current_price=price,
                unrealized_gain=0.0,
                side=side,
                opened_at=datetime.now(),
            )
        )
        return positions

    def _remove_from_position(self, symbol: str, side: str, tenths: int) -> list[Position]:
        positions = list(self._portfolio.positions)
        for i, pos in enumerate(positions):
            if pos.key != (symbol, side):
                continue
            held = _to_tenths(pos.shares)
            if held < tenths:
                break
            remaining = held - tenths
            if remaining == 0:
                del positions[i]
            else:
                updated = pos.model_copy(update={"shares": _from_tenths(remaining)})
                positions[i] = updated.model_copy(
                    update={"unrealized_gain": unrealized_gain(updated)}
                )
            return positions

        held_shares = self.get_position(symbol, side)
        raise InsufficientShares(
            f"Insufficient shares. Requested: {_from_tenths(tenths)}, "
            f"Held ({side}): {held_shares.shares if held_shares else 0}"
        )

    def _apply(
        self,
        kind: TransactionKind,
        symbol: str,
        shares: float,
        price: float,
        order_type: OrderType,
        cash: float,
        positions: list[Position],
    ) -> Transaction:
        transaction = Transaction(
            id=f"TXN_{uuid.uuid4().hex[:12].upper()}",
            symbol=symbol,
            kind=kind,
            shares=shares,
            price=price,
            timestamp=datetime.now(),
            order_type=order_type,
        )
        self._portfolio = self._portfolio.model_copy(
            update={
                "cash": cash,
                "positions": positions,
                "transactions": [transaction] + list(self._portfolio.transactions),
                "total_value": calculate_total_value(cash, positions),
            }
        )
        logger.info(
            "Level %s %s %s x %s @ %.2f (cash %.2f)",
            self.level, kind, symbol, shares, price, cash,
        )
        self._persist()
        return transaction

    def _persist(self) -> None:
        if self._store is None:
            return
        if not self._store.save_portfolio(self._portfolio):
            logger.error("Ledger for level %s not persisted; keeping in-memory state", self.level)
