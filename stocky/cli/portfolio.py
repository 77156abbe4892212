"""Portfolio commands for Stocky CLI.

Handles the account summary, transaction history, resets and custom
portfolios.
"""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from stocky.cli.common import console, get_session, print_error, signed
from stocky.models import Portfolio


def calculate_trade_stats(portfolio: Portfolio) -> dict:
    """Summarise a ledger's transaction history.

    Args:
        portfolio: Ledger snapshot.

    Returns:
        Dictionary with transaction counts and traded volume.
    """
    counts = {"buy": 0, "sell": 0, "short_sell": 0, "short_buy": 0}
    volume = 0.0
    for txn in portfolio.transactions:
        counts[txn.kind] += 1
        volume += txn.value

    return {
        "total_transactions": len(portfolio.transactions),
        "buys": counts["buy"],
        "sells": counts["sell"],
        "shorts": counts["short_sell"],
        "covers": counts["short_buy"],
        "round_trips": min(counts["buy"], counts["sell"]),
        "traded_volume": volume,
        "symbols": sorted({txn.symbol for txn in portfolio.transactions}),
    }


@click.command()
def portfolio() -> None:
    """Show the active portfolio summary."""
    session = get_session()
    snapshot = session.ledger.portfolio

    overall = snapshot.total_value - snapshot.starting_value
    overall_percent = (overall / snapshot.starting_value * 100) if snapshot.starting_value else 0.0
    title = "Custom Portfolio" if snapshot.is_custom else f"Level {snapshot.level} Portfolio"
    invested = sum(p.market_value for p in snapshot.positions if p.side == "long")
    shorted = sum(p.market_value for p in snapshot.positions if p.side == "short")

    console.print(Panel(
        f"Starting Value:   ${snapshot.starting_value:,.2f}\n"
        f"Cash:             ${snapshot.cash:,.2f}\n"
        f"Long Value:       ${invested:,.2f}\n"
        f"Short Exposure:   ${shorted:,.2f}\n"
        f"Total Value:      ${snapshot.total_value:,.2f}\n"
        f"{'─' * 35}\n"
        f"Overall Return:   {signed(overall)} ({signed(overall_percent, '%')})",
        title=f"[bold]{title}[/bold]",
        border_style="cyan",
    ))

    stats = calculate_trade_stats(snapshot)
    console.print(
        f"Transactions: {stats['total_transactions']}  "
        f"(buys {stats['buys']}, sells {stats['sells']}, "
        f"shorts {stats['shorts']}, covers {stats['covers']})"
    )


@click.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of transactions to show.")
@click.option("--performance", is_flag=True, help="Show the performance series instead.")
def history(limit: int, performance: bool) -> None:
    """Show recent transactions (or the performance series)."""
    session = get_session()
    snapshot = session.ledger.portfolio

    if performance:
        table = Table(title="Performance", show_header=True, header_style="bold")
        table.add_column("Date")
        table.add_column("Total Value", justify="right")
        table.add_column("Return", justify="right")
        for point in snapshot.performance[-limit:]:
            table.add_row(
                point.date.isoformat(),
                f"${point.total_value:,.2f}",
                signed(point.daily_return, "%"),
            )
        console.print(table)
        return

    if not snapshot.transactions:
        console.print("[dim]No transactions yet.[/dim]")
        return

    table = Table(title="Transactions", show_header=True, header_style="bold")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Symbol", style="bold")
    table.add_column("Shares", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Order")
    for txn in snapshot.transactions[:limit]:
        table.add_row(
            txn.timestamp.strftime("%Y-%m-%d %H:%M"),
            txn.kind,
            txn.symbol,
            f"{txn.shares:g}",
            f"${txn.price:,.2f}",
            txn.order_type,
        )
    console.print(table)


@click.command()
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
def reset(confirm: bool) -> None:
    """Reset the active portfolio to its starting capital."""
    session = get_session()
    snapshot = session.ledger.portfolio

    console.print(f"Current Value:  [yellow]${snapshot.total_value:,.2f}[/yellow]")
    console.print(f"Open Positions: [yellow]{len(snapshot.positions)}[/yellow]\n")

    if not confirm and not click.confirm("Are you sure you want to reset this portfolio?"):
        console.print("[dim]Reset cancelled.[/dim]")
        return

    session.reset_portfolio()
    console.print(Panel(
        f"[green]Portfolio has been reset![/green]\n\n"
        f"Cash: ${session.ledger.cash:,.2f}\n"
        f"Positions: 0",
        title="[bold green]Reset Complete[/bold green]",
        border_style="green",
    ))


@click.command()
@click.argument("capital", type=float, required=False)
@click.option("--leave", is_flag=True, help="Return to the current level's portfolio.")
def custom(capital: Optional[float], leave: bool) -> None:
    """Start a custom portfolio with CAPITAL, or resume the existing one.

    Custom portfolios do not count toward level objectives.

    \b
    Examples:
      stocky custom 25000     # Fresh custom portfolio
      stocky custom           # Resume the stored custom portfolio
      stocky custom --leave   # Back to the level portfolio
    """
    from stocky.engine.errors import InvalidOrder

    session = get_session()

    if leave:
        session.activate_level(session.current_level)
        console.print(f"[green]Back on level {session.current_level}.[/green]")
        return

    if capital is None:
        if session.resume_custom_portfolio() is None:
            print_error("No custom portfolio yet. Pass a starting capital to create one.")
            raise SystemExit(1)
    else:
        try:
            session.start_custom_portfolio(capital)
        except InvalidOrder as e:
            print_error(str(e))
            raise SystemExit(1)

    console.print(
        f"[green]Custom portfolio active[/green] with "
        f"${session.ledger.cash:,.2f} cash."
    )
