"""Static level configuration and badge catalogue."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ObjectiveTemplate:
    id: str
    description: str
    target: float
    required: bool = True


@dataclass(frozen=True)
class LevelConfig:
    """Immutable configuration of one level."""

    level: int
    name: str
    description: str
    starting_capital: float
    win_condition: float
    features: tuple[str, ...]
    extra_objectives: tuple[ObjectiveTemplate, ...] = field(default_factory=tuple)

    @property
    def target_return(self) -> float:
        """Return needed to win, in percent."""
        return (self.win_condition - self.starting_capital) / self.starting_capital * 100


BASE_FEATURES = ("buy", "sell", "portfolio")

MIN_LEVEL = 1
MAX_LEVEL = 5

# Awarded for completing any level.
LEVEL_COMPLETION_BONUS = 500

LEVELS: dict[int, LevelConfig] = {
    1: LevelConfig(
        level=1,
        name="Paper Trader",
        description="Master the basics of buying and selling stocks",
        starting_capital=200.0,
        win_condition=210.0,
        features=("buy", "sell", "portfolio"),
        extra_objectives=(
            ObjectiveTemplate("complete_trades", "Complete 5 successful trades", 5),
        ),
    ),
    2: LevelConfig(
        level=2,
        name="Market Explorer",
        description="Explore different sectors and learn market research",
        starting_capital=500.0,
        win_condition=600.0,
        features=("buy", "sell", "portfolio", "research", "charts"),
        extra_objectives=(
            ObjectiveTemplate("diversify_stocks", "Own stocks from 3 different companies", 3),
        ),
    ),
    3: LevelConfig(
        level=3,
        name="Strategic Investor",
        description="Learn advanced order types and risk management",
        starting_capital=1000.0,
        win_condition=1300.0,
        features=(
            "buy", "sell", "portfolio", "research", "charts",
            "limit_orders", "stop_loss",
        ),
        extra_objectives=(
            ObjectiveTemplate("use_stop_loss", "Use stop-loss orders 3 times", 3, required=False),
        ),
    ),
    4: LevelConfig(
        level=4,
        name="Advanced Trader",
        description="Master short selling and margin trading",
        starting_capital=5000.0,
        win_condition=6500.0,
        features=(
            "buy", "sell", "portfolio", "research", "charts",
            "limit_orders", "stop_loss", "short_selling", "margin",
        ),
        extra_objectives=(
            ObjectiveTemplate("short_trade", "Complete 1 successful short trade", 1, required=False),
        ),
    ),
    5: LevelConfig(
        level=5,
        name="Portfolio Master",
        description="Options trading and portfolio optimization",
        starting_capital=10000.0,
        win_condition=15000.0,
        features=("all", "options"),
        extra_objectives=(
            ObjectiveTemplate(
                "portfolio_diversity",
                "Maintain positions in 5+ different sectors",
                5,
                required=False,
            ),
        ),
    ),
}


def get_level_config(level: int) -> Optional[LevelConfig]:
    """Get the configuration for a level, or None when out of range."""
    return LEVELS.get(level)


def cumulative_features(level: int) -> list[str]:
    """Union of the base features and every feature unlocked up to a level."""
    unlocked = list(BASE_FEATURES)
    for n in range(MIN_LEVEL, level + 1):
        for feature in LEVELS[n].features:
            if feature not in unlocked:
                unlocked.append(feature)
    return unlocked


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    points: int


ACHIEVEMENTS: dict[str, BadgeDefinition] = {
    definition.id: definition
    for definition in (
        BadgeDefinition("first_purchase", "First Purchase", "Buy your first stock", 100),
        BadgeDefinition("diversified", "Diversified", "Own stocks in 5+ different sectors", 200),
        BadgeDefinition(
            "diamond_hands", "Diamond Hands",
            "Hold a stock for 30+ days with 20%+ gain", 300,
        ),
        BadgeDefinition(
            "risk_manager", "Risk Manager",
            "Successfully use stop-loss orders 10 times", 250,
        ),
        BadgeDefinition("short_seller", "Short Seller", "Complete first successful short trade", 400),
        BadgeDefinition("day_trader", "Day Trader", "Complete 10 trades in one day", 300),
        BadgeDefinition("profit_master", "Profit Master", "Achieve 50%+ returns in any level", 500),
        BadgeDefinition("level_speedrun", "Speed Runner", "Complete a level in under 1 hour", 350),
    )
}

SECTORS: dict[str, str] = {
    # Technology
    "AAPL": "Technology", "MSFT": "Technology", "GOOGL": "Technology",
    "TSLA": "Technology", "META": "Technology", "NVDA": "Technology",
    "NFLX": "Technology", "CRM": "Technology", "ORCL": "Technology",
    # Healthcare
    "JNJ": "Healthcare", "PFE": "Healthcare", "UNH": "Healthcare",
    "ABBV": "Healthcare", "TMO": "Healthcare", "ABT": "Healthcare",
    # Financial
    "JPM": "Financial Services", "BAC": "Financial Services",
    "WFC": "Financial Services", "GS": "Financial Services",
    "MS": "Financial Services", "C": "Financial Services",
    # Consumer
    "AMZN": "Consumer Discretionary", "HD": "Consumer Discretionary",
    "MCD": "Consumer Discretionary", "DIS": "Consumer Discretionary",
    "SBUX": "Consumer Discretionary",
    "KO": "Consumer Staples", "PEP": "Consumer Staples", "WMT": "Consumer Staples",
    # Energy
    "XOM": "Energy", "CVX": "Energy", "COP": "Energy",
    # Industrial
    "CAT": "Industrials", "BA": "Industrials", "GE": "Industrials",
}


def get_sector(symbol: str) -> str:
    return SECTORS.get(symbol.upper(), "Unknown")
