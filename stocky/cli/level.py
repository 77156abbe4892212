"""Level and achievement commands for Stocky CLI."""

import click
from rich.panel import Panel
from rich.table import Table

from stocky.cli.common import console, get_session, print_error, print_step_result, signed


def _progress_bar(percent: float, width: int = 20) -> str:
    filled = int(round(percent / 100 * width))
    return "█" * filled + "░" * (width - filled)


@click.group()
def level() -> None:
    """Level progression: status, completion and skipping."""


@level.command()
def status() -> None:
    """Show the current level, its objectives and unlocked features."""
    from stocky.engine.levels import LEVELS
    from stocky.engine.objectives import level_performance

    session = get_session()
    progression = session.progression
    config = LEVELS[progression.current_level]
    ledger = session.ledger

    header = (
        f"[bold]{config.name}[/bold]  {config.description}\n\n"
        f"Starting Capital: ${config.starting_capital:,.2f}\n"
        f"Target Value:     ${config.win_condition:,.2f} "
        f"({config.target_return:.0f}% return)\n"
    )
    if session.is_custom:
        header += "\n[yellow]A custom portfolio is active; objectives are paused.[/yellow]"
    else:
        header += (
            f"Current Value:    ${ledger.total_value:,.2f} "
            f"({signed(level_performance(ledger.portfolio), '%')})"
        )
    console.print(Panel(
        header,
        title=f"[bold cyan]Level {progression.current_level}[/bold cyan]",
        border_style="cyan",
    ))

    table = Table(title="Objectives", show_header=True, header_style="bold")
    table.add_column("", justify="center")
    table.add_column("Objective")
    table.add_column("Progress")
    table.add_column("", justify="right")
    for obj in progression.objectives:
        mark = "[green]✓[/green]" if obj.completed else "[dim]·[/dim]"
        label = obj.description if obj.required else f"{obj.description} [dim](bonus)[/dim]"
        table.add_row(
            mark,
            label,
            _progress_bar(obj.percent),
            f"{obj.progress:g}/{obj.target:g}",
        )
    console.print(table)

    console.print(f"Unlocked: {', '.join(progression.unlocked_features)}")
    if progression.record.levels_completed:
        done = ", ".join(str(c.level) for c in progression.record.levels_completed)
        console.print(f"Completed levels: {done}")


@level.command()
def complete() -> None:
    """Complete the current level once its objectives are met."""
    from stocky.engine.errors import InvalidLevelTransition

    session = get_session()
    progression = session.progression

    try:
        progression.check_transition(progression.current_level)
    except InvalidLevelTransition as e:
        print_error(str(e), title="Cannot Complete")
        raise SystemExit(1)

    if session.is_custom:
        print_error("Switch back to the level portfolio first (stocky custom --leave).")
        raise SystemExit(1)

    completion = session.complete_level()
    if completion is None:
        remaining = [o.description for o in progression.objectives if o.required and not o.completed]
        print_error(
            "Objectives still open:\n  " + "\n  ".join(remaining),
            title="Not Yet",
        )
        raise SystemExit(1)

    from stocky.engine.session import StepResult

    print_step_result(StepResult(completion=completion))
    console.print(f"Now on level {session.current_level}.")


@level.command()
@click.argument("target", type=int)
def skip(target: int) -> None:
    """Jump forward to level TARGET (up to 5), unlocking its features."""
    session = get_session()
    if not session.skip_to_level(target):
        print_error(
            f"Cannot skip to level {target}. Choose a level from "
            f"{session.current_level} to 5; use 'stocky level reset' to start over."
        )
        raise SystemExit(1)
    console.print(f"[green]Now on level {target}.[/green]")


@level.command(name="reset")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
def reset_level(confirm: bool) -> None:
    """Start over from level 1. Points and badges are kept."""
    if not confirm and not click.confirm("Reset all level progress and portfolios?"):
        console.print("[dim]Reset cancelled.[/dim]")
        return

    session = get_session()
    session.reset_progress()
    console.print("[green]Progress reset to level 1.[/green]")


@click.command()
def achievements() -> None:
    """Show earned badges and points."""
    from stocky.engine.levels import ACHIEVEMENTS

    session = get_session()
    ledger = session.achievements

    table = Table(title="Achievements", show_header=True, header_style="bold")
    table.add_column("", justify="center")
    table.add_column("Badge", style="bold")
    table.add_column("Description")
    table.add_column("Points", justify="right")
    table.add_column("Earned")

    earned = {badge.id: badge for badge in ledger.badges}
    for badge_id, definition in ACHIEVEMENTS.items():
        badge = earned.get(badge_id)
        table.add_row(
            "[yellow]★[/yellow]" if badge else "[dim]☆[/dim]",
            definition.name,
            definition.description,
            str(definition.points),
            badge.earned_at.strftime("%Y-%m-%d") if badge else "",
        )
    console.print(table)
    console.print(f"\nTotal points: [bold]{ledger.points:,}[/bold]")
