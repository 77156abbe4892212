"""Main CLI entry point for Stocky.

This module provides the main click group and lazy loading
for command modules to keep startup fast.
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when they are invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        cmd = None
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, click.Command) and attr.name == cmd_name:
                cmd = attr
                break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    # Trading
    "buy": "stocky.cli.trade",
    "sell": "stocky.cli.trade",
    "short": "stocky.cli.trade",
    "cover": "stocky.cli.trade",
    "positions": "stocky.cli.trade",
    # Portfolio
    "portfolio": "stocky.cli.portfolio",
    "history": "stocky.cli.portfolio",
    "reset": "stocky.cli.portfolio",
    "custom": "stocky.cli.portfolio",
    # Market
    "quote": "stocky.cli.market",
    "tick": "stocky.cli.market",
    "simulate": "stocky.cli.market",
    # Progression
    "level": "stocky.cli.level",
    "achievements": "stocky.cli.level",
    # Data
    "export": "stocky.cli.data",
    "import": "stocky.cli.data",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def configure_logging(verbosity: int) -> None:
    """Route library logging through rich."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="stocky")
@click.option("-v", "--verbose", count=True, help="Show engine logs (-vv for debug).")
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """Stocky - learn investing by trading through five levels.

    Every level starts with virtual cash and a target portfolio value.
    Reach the target and meet the level's objectives to move on.

    \b
    Quick Start:
      stocky level status     # Current level and objectives
      stocky quote AAPL       # Look up a price
      stocky buy AAPL 1       # Buy one share at the market price
      stocky tick             # Let simulated time pass
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
