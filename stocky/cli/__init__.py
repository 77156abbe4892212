"""CLI commands for Stocky.

This package provides the command-line interface for Stocky,
including trading, portfolio, market simulation and level commands.
"""

from stocky.cli.main import cli, main

__all__ = ["cli", "main"]
