"""Property-based tests for the portfolio ledger.

**Feature: stocky-ledger**
"""

from datetime import date, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stocky.engine.errors import InsufficientFunds, InsufficientShares, InvalidOrder, LedgerError
from stocky.engine.ledger import (
    PERFORMANCE_HISTORY_LIMIT,
    PortfolioLedger,
    calculate_total_value,
)
from stocky.quotes.base import Quote


SYMBOLS = ["AAPL", "MSFT", "KO", "XOM"]

shares_strategy = st.integers(min_value=1, max_value=50).map(lambda tenths: tenths / 10)
price_strategy = st.floats(
    min_value=1.0, max_value=500.0, allow_nan=False, allow_infinity=False
).map(lambda p: round(p, 2))

order_strategy = st.tuples(
    st.sampled_from(["buy", "sell", "short_sell", "cover_short"]),
    st.sampled_from(SYMBOLS),
    shares_strategy,
    price_strategy,
)


@pytest.fixture
def ledger():
    """A level 1 ledger with the standard 200 starting capital."""
    return PortfolioLedger.for_level(1)


class TestValueConservation:
    """
    **Feature: stocky-ledger, Property 1: Value Conservation**

    *For any* sequence of orders, accepted or rejected, the ledger's total
    value equals cash plus long market value minus short market value, and
    cash never goes negative.
    """

    @given(orders=st.lists(order_strategy, min_size=1, max_size=40))
    @settings(max_examples=100)
    def test_total_value_matches_positions(self, orders):
        ledger = PortfolioLedger.create(1, 1000.0)

        for side, symbol, shares, price in orders:
            try:
                getattr(ledger, side)(symbol, shares, price)
            except LedgerError:
                pass

            expected = calculate_total_value(ledger.cash, ledger.positions)
            assert abs(ledger.total_value - expected) < 1e-6
            assert ledger.cash >= 0
            for pos in ledger.positions:
                assert pos.shares > 0
                assert abs(round(pos.shares * 10) - pos.shares * 10) < 1e-6

    @given(orders=st.lists(order_strategy, min_size=1, max_size=40))
    @settings(max_examples=50)
    def test_history_grows_by_one_per_accepted_order(self, orders):
        ledger = PortfolioLedger.create(1, 1000.0)

        for side, symbol, shares, price in orders:
            before = len(ledger.transactions)
            try:
                transaction = getattr(ledger, side)(symbol, shares, price)
            except LedgerError:
                assert len(ledger.transactions) == before
                continue
            assert len(ledger.transactions) == before + 1
            assert ledger.transactions[0] == transaction


class TestBuy:
    """Buying debits cash and averages the cost basis."""

    def test_buy_debits_cash(self, ledger: PortfolioLedger):
        txn = ledger.buy("aapl", 1, 150.0, name="Apple Inc.")

        assert txn.kind == "buy"
        assert txn.symbol == "AAPL"
        assert txn.fee == 0
        assert ledger.cash == pytest.approx(50.0)
        assert ledger.total_value == pytest.approx(200.0)

        pos = ledger.get_position("AAPL")
        assert pos.shares == 1
        assert pos.name == "Apple Inc."
        assert pos.side == "long"

    def test_average_cost_basis(self):
        ledger = PortfolioLedger.create(1, 1000.0)
        ledger.buy("AAPL", 10, 10.0)
        ledger.buy("AAPL", 10, 20.0)

        pos = ledger.get_position("AAPL")
        assert pos.shares == 20
        assert pos.average_price == pytest.approx(15.0)
        assert len(ledger.positions) == 1

    def test_insufficient_funds_leaves_state_unchanged(self, ledger: PortfolioLedger):
        before = ledger.portfolio

        with pytest.raises(InsufficientFunds):
            ledger.buy("AAPL", 2, 150.0)

        assert ledger.portfolio == before

    def test_buy_exactly_all_cash(self, ledger: PortfolioLedger):
        ledger.buy("KO", 2, 100.0)
        assert ledger.cash == 0

    @pytest.mark.parametrize(
        "symbol,shares,price",
        [
            ("", 1, 10.0),
            ("  ", 1, 10.0),
            ("AAPL", 0, 10.0),
            ("AAPL", -1, 10.0),
            ("AAPL", 0.15, 10.0),
            ("AAPL", 1, 0),
            ("AAPL", 1, -5.0),
        ],
    )
    def test_malformed_orders_rejected(self, ledger: PortfolioLedger, symbol, shares, price):
        before = ledger.portfolio

        with pytest.raises(InvalidOrder):
            ledger.buy(symbol, shares, price)

        assert ledger.portfolio == before


class TestSell:
    """Selling credits cash and closes fully sold positions."""

    def test_sell_credits_cash_and_keeps_basis(self, ledger: PortfolioLedger):
        ledger.buy("KO", 2, 50.0)
        ledger.sell("KO", 1, 60.0)

        pos = ledger.get_position("KO")
        assert pos.shares == 1
        assert pos.average_price == pytest.approx(50.0)
        assert ledger.cash == pytest.approx(160.0)

    def test_full_sell_removes_position(self, ledger: PortfolioLedger):
        ledger.buy("KO", 1.5, 50.0)
        ledger.sell("KO", 1.5, 55.0)

        assert ledger.get_position("KO") is None
        assert ledger.positions == []

    def test_fractional_lots_close_exactly(self, ledger: PortfolioLedger):
        for _ in range(3):
            ledger.buy("KO", 0.1, 10.0)
        ledger.sell("KO", 0.3, 10.0)

        assert ledger.positions == []

    def test_oversell_rejected(self, ledger: PortfolioLedger):
        ledger.buy("KO", 1, 50.0)
        before = ledger.portfolio

        with pytest.raises(InsufficientShares):
            ledger.sell("KO", 1.1, 50.0)

        assert ledger.portfolio == before

    def test_sell_unheld_symbol_rejected(self, ledger: PortfolioLedger):
        with pytest.raises(InsufficientShares):
            ledger.sell("MSFT", 1, 100.0)

    def test_stop_loss_order_type_recorded(self, ledger: PortfolioLedger):
        ledger.buy("KO", 1, 50.0)
        txn = ledger.sell("KO", 1, 45.0, order_type="stop_loss")
        assert txn.order_type == "stop_loss"


class TestShortSelling:
    """Short positions are a liability on the ledger."""

    def test_short_sell_does_not_change_total_value(self, ledger: PortfolioLedger):
        ledger.short_sell("TSLA", 1, 100.0)

        assert ledger.cash == pytest.approx(300.0)
        assert ledger.total_value == pytest.approx(200.0)
        assert ledger.get_position("TSLA", "short").shares == 1
        assert ledger.get_position("TSLA") is None

    def test_long_and_short_positions_are_separate(self, ledger: PortfolioLedger):
        ledger.buy("KO", 1, 50.0)
        ledger.short_sell("KO", 1, 50.0)

        assert len(ledger.positions) == 2
        assert ledger.total_value == pytest.approx(200.0)

    def test_profitable_cover(self, ledger: PortfolioLedger):
        ledger.short_sell("TSLA", 1, 100.0)
        ledger.cover_short("TSLA", 1, 80.0)

        assert ledger.positions == []
        assert ledger.cash == pytest.approx(220.0)
        assert ledger.total_value == pytest.approx(220.0)

    def test_rising_price_reduces_value(self, ledger: PortfolioLedger):
        ledger.short_sell("TSLA", 1, 100.0)
        ledger.mark_to_market({"TSLA": 130.0})

        assert ledger.total_value == pytest.approx(170.0)
        assert ledger.get_position("TSLA", "short").unrealized_gain == pytest.approx(-30.0)

    def test_cover_more_than_short_rejected(self, ledger: PortfolioLedger):
        ledger.short_sell("TSLA", 1, 100.0)

        with pytest.raises(InsufficientShares):
            ledger.cover_short("TSLA", 2, 100.0)

    def test_cover_without_cash_rejected(self):
        ledger = PortfolioLedger.create(1, 100.0)
        ledger.short_sell("TSLA", 10, 10.0)
        ledger.mark_to_market({"TSLA": 30.0})
        before = ledger.portfolio

        with pytest.raises(InsufficientFunds):
            ledger.cover_short("TSLA", 10, 30.0)

        assert ledger.portfolio == before


class TestMarkToMarket:
    """Marking re-prices positions without touching cash or shares."""

    def test_mark_updates_prices_and_total(self, ledger: PortfolioLedger):
        ledger.buy("AAPL", 1, 150.0)
        total = ledger.mark_to_market({"AAPL": Quote(symbol="AAPL", price=160.0)})

        assert total == pytest.approx(210.0)
        pos = ledger.get_position("AAPL")
        assert pos.current_price == 160.0
        assert pos.unrealized_gain == pytest.approx(10.0)
        assert ledger.cash == pytest.approx(50.0)

    def test_missing_quotes_keep_last_price(self, ledger: PortfolioLedger):
        ledger.buy("AAPL", 1, 150.0)
        ledger.mark_to_market({"MSFT": 400.0})

        assert ledger.get_position("AAPL").current_price == 150.0
        assert ledger.total_value == pytest.approx(200.0)

    def test_mapping_quotes_accepted(self, ledger: PortfolioLedger):
        ledger.buy("AAPL", 1, 150.0)
        ledger.mark_to_market({"AAPL": {"price": 140.0}})

        assert ledger.total_value == pytest.approx(190.0)

    def test_non_positive_quote_ignored(self, ledger: PortfolioLedger):
        ledger.buy("AAPL", 1, 150.0)
        ledger.mark_to_market({"AAPL": 0})

        assert ledger.get_position("AAPL").current_price == 150.0

    @given(prices=st.lists(price_strategy, min_size=1, max_size=10))
    @settings(max_examples=50)
    def test_mark_never_changes_cash_or_shares(self, prices):
        ledger = PortfolioLedger.create(1, 1000.0)
        ledger.buy("AAPL", 2, 100.0)
        ledger.short_sell("KO", 1, 50.0)

        for price in prices:
            ledger.mark_to_market({"AAPL": price, "KO": price})
            assert ledger.cash == pytest.approx(850.0)
            assert ledger.get_position("AAPL").shares == 2
            assert ledger.get_position("KO", "short").shares == 1


class TestPerformanceHistory:
    """Performance points are appended and capped."""

    def test_new_ledger_has_seed_point(self, ledger: PortfolioLedger):
        assert len(ledger.portfolio.performance) == 1
        assert ledger.portfolio.performance[0].total_value == 200.0

    def test_daily_return(self, ledger: PortfolioLedger):
        ledger.buy("AAPL", 1, 100.0)
        ledger.mark_to_market({"AAPL": 120.0})
        point = ledger.record_performance()

        assert point.total_value == pytest.approx(220.0)
        assert point.daily_return == pytest.approx(10.0)

    def test_history_capped(self, ledger: PortfolioLedger):
        start = date.today()
        for day in range(1, PERFORMANCE_HISTORY_LIMIT + 20):
            ledger.record_performance(start + timedelta(days=day))

        history = ledger.portfolio.performance
        assert len(history) == PERFORMANCE_HISTORY_LIMIT
        assert history[-1].date == start + timedelta(days=PERFORMANCE_HISTORY_LIMIT + 19)

    def test_one_point_per_date(self, ledger: PortfolioLedger):
        tomorrow = date.today() + timedelta(days=1)
        ledger.buy("AAPL", 1, 100.0)
        ledger.record_performance()

        ledger.mark_to_market({"AAPL": 110.0})
        ledger.record_performance(tomorrow)
        ledger.mark_to_market({"AAPL": 120.0})
        point = ledger.record_performance(tomorrow)

        history = ledger.portfolio.performance
        assert [p.date for p in history] == [date.today(), tomorrow]
        assert history[-1] == point
        assert point.total_value == pytest.approx(220.0)
        assert point.daily_return == pytest.approx(10.0)


class TestResetAndCustom:
    """Resets restore starting capital; custom ledgers need positive capital."""

    def test_reset(self, ledger: PortfolioLedger):
        ledger.buy("AAPL", 1, 150.0)
        ledger.reset()

        assert ledger.cash == 200.0
        assert ledger.positions == []
        assert ledger.transactions == []

    def test_custom_ledger(self):
        ledger = PortfolioLedger.create_custom(25000.0)

        assert ledger.level == "custom"
        assert ledger.portfolio.is_custom
        assert ledger.cash == 25000.0

    @pytest.mark.parametrize("capital", [0, -100.0])
    def test_custom_ledger_requires_positive_capital(self, capital):
        with pytest.raises(InvalidOrder):
            PortfolioLedger.create_custom(capital)

    @pytest.mark.parametrize("level,capital", [(1, 200), (2, 500), (3, 1000), (4, 5000), (5, 10000)])
    def test_level_starting_capital(self, level, capital):
        assert PortfolioLedger.for_level(level).cash == capital
