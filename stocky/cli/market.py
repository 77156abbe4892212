"""Market commands for Stocky CLI.

Quotes from the simulated market and the time-acceleration clock.
"""

import click
from rich.table import Table

from stocky.cli.common import (
    console,
    get_config,
    get_quote_source,
    get_session,
    print_error,
    print_step_result,
    save_quote_source,
    signed,
)


@click.command()
@click.argument("symbols", nargs=-1)
def quote(symbols: tuple[str, ...]) -> None:
    """Show quotes for SYMBOLS (all simulated symbols if none given)."""
    session = get_session()
    source = get_quote_source(session.store, get_config())

    wanted = [s.upper() for s in symbols] or source.symbols
    quotes = source.get_quotes(wanted)
    if not quotes:
        print_error(f"No quotes for {', '.join(wanted)}", title="No Quote")
        raise SystemExit(1)

    table = Table(title="Quotes", show_header=True, header_style="bold")
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Change %", justify="right")
    for symbol, q in quotes.items():
        table.add_row(
            symbol,
            q.name or "",
            f"${q.price:,.2f}",
            signed(q.change),
            signed(q.change_percent, "%"),
        )
    console.print(table)


def _build_clock(session, source, config: dict, on_tick=None):
    from stocky.engine.clock import SimulationClock

    sim = config.get("simulation", {})
    return SimulationClock(
        session,
        source,
        interval=float(sim.get("interval_seconds", 5.0)),
        time_acceleration=float(sim.get("time_acceleration", 1.0)),
        hours_elapsed=float(sim.get("hours_elapsed", 0.25)),
        on_tick=on_tick,
    )


@click.command()
@click.option("-n", "--count", type=int, default=1, help="Number of ticks to run.")
@click.option("-x", "--speed", type=float, default=None, help="Time acceleration multiplier.")
def tick(count: int, speed: float) -> None:
    """Advance simulated time COUNT ticks and re-price the portfolio."""
    config = get_config()
    if speed is not None:
        config["simulation"]["time_acceleration"] = speed

    session = get_session(config)
    source = get_quote_source(session.store, config)
    clock = _build_clock(session, source, config)

    before = session.ledger.total_value
    for _ in range(max(count, 0)):
        print_step_result(clock.tick())
    save_quote_source(session.store, source)

    after = session.ledger.total_value
    console.print(
        f"Ran {clock.ticks} tick(s). Total value: ${after:,.2f} ({signed(after - before)})"
    )


@click.command()
@click.option("-n", "--ticks", "max_ticks", type=int, default=None, help="Stop after this many ticks.")
@click.option("-x", "--speed", type=float, default=None, help="Time acceleration multiplier.")
@click.option("-i", "--interval", type=float, default=None, help="Seconds between ticks.")
def simulate(max_ticks: int, speed: float, interval: float) -> None:
    """Run the market clock until Ctrl-C (or --ticks is reached)."""
    config = get_config()
    if speed is not None:
        config["simulation"]["time_acceleration"] = speed
    if interval is not None:
        config["simulation"]["interval_seconds"] = interval

    session = get_session(config)
    source = get_quote_source(session.store, config)

    def report(n: int, result) -> None:
        console.print(f"[dim]tick {n}[/dim]  total value ${session.ledger.total_value:,.2f}")
        print_step_result(result)
        save_quote_source(session.store, source)

    clock = _build_clock(session, source, config, on_tick=report)
    console.print("[cyan]Simulation running.[/cyan] Press Ctrl-C to stop.")
    try:
        clock.run(max_ticks=max_ticks)
    except KeyboardInterrupt:
        clock.stop()
    save_quote_source(session.store, source)
    console.print(f"[dim]Stopped after {clock.ticks} tick(s).[/dim]")
