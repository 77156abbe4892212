"""Shared helpers for Stocky CLI commands."""

from typing import Optional

from rich.console import Console
from rich.panel import Panel

console = Console()


def get_config() -> dict:
    """Lazily load configuration."""
    from stocky.config import load_config

    return load_config()


def get_data_store(config: Optional[dict] = None):
    """Get the data store instance."""
    from stocky.config import get_db_path
    from stocky.db.store import DataStore

    return DataStore(get_db_path(config or get_config()))


def get_session(config: Optional[dict] = None):
    """Build a game session over the configured store."""
    from stocky.engine.session import GameSession

    config = config or get_config()
    store = get_data_store(config)
    auto_advance = config.get("game", {}).get("auto_advance", True)
    return GameSession(store, auto_advance=auto_advance)


def get_quote_source(store, config: Optional[dict] = None):
    """Load the simulated market, continuing from its stored prices."""
    from stocky.db.store import MARKET_KEY
    from stocky.quotes.simulated import SimulatedQuoteSource

    config = config or get_config()
    seed = config.get("simulation", {}).get("seed")
    snapshot = store.load(MARKET_KEY)
    if snapshot:
        return SimulatedQuoteSource.from_snapshot(snapshot, seed=seed)
    return SimulatedQuoteSource(seed=seed)


def save_quote_source(store, source) -> None:
    from stocky.db.store import MARKET_KEY

    store.save(MARKET_KEY, source.snapshot())


def print_error(message: str, title: str = "Error") -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def signed(value: float, suffix: str = "") -> str:
    """Format a value with sign and green/red colour."""
    color = "green" if value >= 0 else "red"
    sign = "+" if value >= 0 else ""
    return f"[{color}]{sign}{value:,.2f}{suffix}[/{color}]"


def print_step_result(result) -> None:
    """Report badges and level completion produced by a pipeline step."""
    for badge in result.badges or []:
        console.print(
            f"[bold yellow]Achievement unlocked:[/bold yellow] {badge.name} "
            f"(+{badge.points} pts)"
        )

    completion = result.completion
    if completion is None:
        return
    if completion.applied:
        console.print(Panel(
            f"[green]Level {completion.level} complete![/green]\n\n"
            f"Final Value:  ${completion.final_value:,.2f}\n"
            f"Performance:  {signed(completion.performance, '%')}\n"
            f"Time:         {completion.time_to_complete / 60:,.1f} min",
            title="[bold green]Level Complete[/bold green]",
            border_style="green",
        ))
    else:
        console.print(
            f"[green]All objectives for level {completion.level} met.[/green] "
            "Run [cyan]stocky level complete[/cyan] to advance."
        )
