"""Objective evaluation: pure projections from a ledger snapshot to level objectives."""

from typing import Callable, Optional

from stocky.engine.levels import LEVELS, get_sector
from stocky.models import Objective, Portfolio


def count_completed_trades(portfolio: Portfolio) -> int:
    """Completed round trips: matched buy/sell pairs."""
    buys = sum(1 for t in portfolio.transactions if t.kind == "buy")
    sells = sum(1 for t in portfolio.transactions if t.kind == "sell")
    return min(buys, sells)


def count_distinct_symbols(portfolio: Portfolio) -> int:
    return len({p.symbol for p in portfolio.positions})


def count_stop_loss_orders(portfolio: Portfolio) -> int:
    return sum(
        1 for t in portfolio.transactions
        if t.kind == "sell" and t.order_type == "stop_loss"
    )


def count_short_trades(portfolio: Portfolio) -> int:
    return sum(1 for t in portfolio.transactions if t.kind == "short_buy")


def count_sectors(portfolio: Portfolio) -> int:
    sectors = {get_sector(p.symbol) for p in portfolio.positions}
    sectors.discard("Unknown")
    return len(sectors)


# objective id -> progress measure
MEASURES: dict[str, Callable[[Portfolio], float]] = {
    "portfolio_value": lambda portfolio: portfolio.total_value,
    "complete_trades": count_completed_trades,
    "diversify_stocks": count_distinct_symbols,
    "use_stop_loss": count_stop_loss_orders,
    "short_trade": count_short_trades,
    "portfolio_diversity": count_sectors,
}


def generate_objectives(level: int) -> list[Objective]:
    """Fresh, zero-progress objectives for a level."""
    config = LEVELS[level]
    objectives = [
        Objective(
            id="portfolio_value",
            description=f"Reach portfolio value of {config.win_condition:,.0f}",
            target=config.win_condition,
        )
    ]
    for template in config.extra_objectives:
        objectives.append(
            Objective(
                id=template.id,
                description=template.description,
                target=template.target,
                required=template.required,
            )
        )
    return objectives


def evaluate_objectives(portfolio: Portfolio, level: int) -> list[Objective]:
    """Compute objective progress for a level from a ledger snapshot.

    Progress is clamped at each objective's target. Nothing is stored.

    Args:
        portfolio: Ledger snapshot.
        level: Level whose objectives are evaluated.

    Returns:
        Objectives with current progress and completion flags.
    """
    evaluated = []
    for objective in generate_objectives(level):
        measure = MEASURES.get(objective.id)
        value = max(float(measure(portfolio)), 0.0) if measure else 0.0
        progress = min(value, objective.target)
        evaluated.append(
            objective.model_copy(
                update={"progress": progress, "completed": progress >= objective.target}
            )
        )
    return evaluated


def merge_objectives(
    stored: list[Objective], fresh: list[Objective]
) -> list[Objective]:
    """Merge a fresh evaluation into stored objectives as a high-water mark.

    Objectives present only in the fresh set are taken as-is.
    """
    by_id = {objective.id: objective for objective in stored}
    merged = []
    for objective in fresh:
        previous = by_id.get(objective.id)
        if previous is None:
            merged.append(objective)
            continue
        merged.append(
            objective.model_copy(
                update={
                    "progress": max(previous.progress, objective.progress),
                    "completed": previous.completed or objective.completed,
                }
            )
        )
    return merged


def all_required_complete(objectives: list[Objective]) -> bool:
    """True when every gating objective is completed."""
    required = [objective for objective in objectives if objective.required]
    return bool(required) and all(objective.completed for objective in required)


def level_performance(portfolio: Portfolio, value: Optional[float] = None) -> float:
    """Return of a ledger versus its starting value, in percent."""
    if portfolio.starting_value <= 0:
        return 0.0
    value = portfolio.total_value if value is None else value
    return (value - portfolio.starting_value) / portfolio.starting_value * 100


def summarize(objectives: list[Objective]) -> dict:
    """Counts of completed objectives for display."""
    completed = sum(1 for objective in objectives if objective.completed)
    total = len(objectives)
    return {
        "completed": completed,
        "total": total,
        "percentage": (completed / total * 100) if total > 0 else 0.0,
        "is_complete": all_required_complete(objectives),
    }
