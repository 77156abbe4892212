"""Trading commands for Stocky CLI.

Handles buy, sell, short and cover orders plus the positions table.
Prices are resolved from the simulated market before the order reaches
the ledger.
"""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from stocky.cli.common import (
    console,
    get_config,
    get_quote_source,
    get_session,
    print_error,
    print_step_result,
    signed,
)

SIDE_LABELS = {
    "buy": "[green]BUY[/green]",
    "sell": "[red]SELL[/red]",
    "short_sell": "[magenta]SHORT[/magenta]",
    "short_buy": "[cyan]COVER[/cyan]",
}


def _require_feature(session, feature: str) -> bool:
    """Check a level feature, printing a notice when it is still locked."""
    if session.is_custom or session.progression.is_feature_unlocked(feature):
        return True
    print_error(
        f"'{feature}' unlocks at a later level (current level: {session.current_level}).",
        title="Locked",
    )
    return False


def _resolve_price(session, symbol: str, price: Optional[float]) -> tuple[Optional[float], Optional[str]]:
    """Price and company name for an order: explicit price, else the market quote."""
    from stocky.engine.errors import QuoteUnavailable

    source = get_quote_source(session.store, get_config())
    try:
        quote = source.get_quote(symbol)
    except QuoteUnavailable as e:
        if price is None:
            print_error(str(e), title="No Quote")
            return None, None
        return price, None
    return (price if price is not None else quote.price), quote.name


def execute_order(
    side: str,
    symbol: str,
    shares: float,
    price: Optional[float] = None,
    stop_loss: bool = False,
) -> None:
    """Run an order through the session pipeline and report the outcome.

    Args:
        side: One of buy, sell, short_sell, short_buy.
        symbol: Ticker symbol.
        shares: Share count.
        price: Explicit price (limit or stop-loss); market price if None.
        stop_loss: Tag a sell as a stop-loss order.
    """
    from stocky.engine.errors import LedgerError

    session = get_session()
    symbol = symbol.upper()

    if price is not None and not stop_loss and not _require_feature(session, "limit_orders"):
        raise SystemExit(1)
    if stop_loss and not _require_feature(session, "stop_loss"):
        raise SystemExit(1)
    if side in ("short_sell", "short_buy") and not _require_feature(session, "short_selling"):
        raise SystemExit(1)

    exec_price, name = _resolve_price(session, symbol, price)
    if exec_price is None:
        raise SystemExit(1)

    order_type = "stop_loss" if stop_loss else ("limit" if price is not None else "market")

    try:
        if side == "buy":
            result = session.buy(symbol, shares, exec_price, name=name, order_type=order_type)
        elif side == "sell":
            result = session.sell(symbol, shares, exec_price, order_type=order_type)
        elif side == "short_sell":
            result = session.short_sell(symbol, shares, exec_price, name=name)
        else:
            result = session.cover_short(symbol, shares, exec_price)
    except LedgerError as e:
        console.print(Panel(
            f"[red]Order rejected[/red]\n\n{e}",
            title="[bold red]Rejected[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    txn = result.transaction
    console.print(Panel(
        f"Symbol:   {txn.symbol}\n"
        f"Side:     {SIDE_LABELS[txn.kind]}\n"
        f"Shares:   {txn.shares:g}\n"
        f"Price:    ${txn.price:,.2f}\n"
        f"Type:     {txn.order_type}\n"
        f"Order ID: {txn.id}\n\n"
        f"Cash:        ${session.ledger.cash:,.2f}\n"
        f"Total Value: ${session.ledger.total_value:,.2f}",
        title="[bold green]Order Executed[/bold green]",
        border_style="green",
    ))
    print_step_result(result)


@click.command()
@click.argument("symbol")
@click.argument("shares", type=float)
@click.option(
    "-p", "--price",
    type=float,
    default=None,
    help="Limit price. If not specified, buys at the market price.",
)
def buy(symbol: str, shares: float, price: Optional[float]) -> None:
    """Buy SHARES of SYMBOL.

    \b
    Examples:
      stocky buy AAPL 1            # Market buy 1 share
      stocky buy MSFT 0.5          # Fractional shares (0.1 steps)
      stocky buy TSLA 2 -p 240     # Limit buy (level 3+)
    """
    execute_order("buy", symbol, shares, price)


@click.command()
@click.argument("symbol")
@click.argument("shares", type=float)
@click.option(
    "-p", "--price",
    type=float,
    default=None,
    help="Limit price. If not specified, sells at the market price.",
)
@click.option(
    "-s", "--stop-loss",
    "stop_loss",
    type=float,
    default=None,
    help="Sell as a triggered stop-loss at this price (level 3+).",
)
def sell(symbol: str, shares: float, price: Optional[float], stop_loss: Optional[float]) -> None:
    """Sell SHARES of SYMBOL from a long position.

    \b
    Examples:
      stocky sell AAPL 1
      stocky sell AAPL 1 --stop-loss 170
    """
    if stop_loss is not None:
        execute_order("sell", symbol, shares, stop_loss, stop_loss=True)
    else:
        execute_order("sell", symbol, shares, price)


@click.command()
@click.argument("symbol")
@click.argument("shares", type=float)
def short(symbol: str, shares: float) -> None:
    """Short-sell SHARES of SYMBOL at the market price (level 4+)."""
    execute_order("short_sell", symbol, shares)


@click.command()
@click.argument("symbol")
@click.argument("shares", type=float)
def cover(symbol: str, shares: float) -> None:
    """Buy back SHARES of a short position in SYMBOL (level 4+)."""
    execute_order("short_buy", symbol, shares)


@click.command()
def positions() -> None:
    """Show open positions of the active portfolio."""
    session = get_session()
    held = session.ledger.positions

    if not held:
        console.print("[dim]No open positions.[/dim]")
        return

    table = Table(title="Open Positions", show_header=True, header_style="bold")
    table.add_column("Symbol", style="bold")
    table.add_column("Side", justify="center")
    table.add_column("Shares", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Gain", justify="right")
    table.add_column("Gain %", justify="right")

    for pos in held:
        table.add_row(
            pos.symbol,
            pos.side.upper(),
            f"{pos.shares:g}",
            f"${pos.average_price:,.2f}",
            f"${pos.current_price:,.2f}",
            signed(pos.unrealized_gain),
            signed(pos.gain_percent, "%"),
        )

    console.print(table)
    total_gain = sum(p.unrealized_gain for p in held)
    console.print(f"\nUnrealized Gain: {signed(total_gain)}")
