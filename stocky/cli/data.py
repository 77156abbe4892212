"""Data commands for Stocky CLI.

Export and import the full game state as a single JSON document.
"""

from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel

from stocky.cli.common import console, get_session, print_error


@click.command()
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to a file instead of stdout.",
)
def export(output: Optional[Path]) -> None:
    """Export portfolios, progress, achievements and market prices as JSON."""
    text = get_session().export_data()

    if output is None:
        click.echo(text)
        return

    output.write_text(text)
    console.print(f"[green]Exported to {output}[/green]")


@click.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_cmd(path: Path) -> None:
    """Import a document created by 'stocky export'."""
    ok, message = get_session().import_data(path.read_text())

    if not ok:
        print_error(message, title="Import Failed")
        raise SystemExit(1)

    console.print(Panel(
        f"[green]{message}[/green]",
        title="[bold green]Import Complete[/bold green]",
        border_style="green",
    ))
