"""Level progression state machine (Level 1 -> Level 5)."""

import logging
from datetime import datetime
from typing import Callable, Optional

from stocky.db.store import DataStore
from stocky.engine.achievements import AchievementLedger
from stocky.engine.errors import InvalidLevelTransition
from stocky.engine.levels import (
    BASE_FEATURES,
    LEVEL_COMPLETION_BONUS,
    LEVELS,
    MAX_LEVEL,
    MIN_LEVEL,
    cumulative_features,
)
from stocky.engine.objectives import (
    all_required_complete,
    evaluate_objectives,
    generate_objectives,
    merge_objectives,
)
from stocky.models import CompletedLevel, Objective, Portfolio, ProgressRecord

logger = logging.getLogger(__name__)


def initial_progress(now: Optional[datetime] = None) -> ProgressRecord:
    """Level 1 with fresh objectives and the base feature set."""
    return ProgressRecord(
        current_level=MIN_LEVEL,
        level_start_date=now or datetime.now(),
        levels_completed=[],
        objectives=generate_objectives(MIN_LEVEL),
        unlocked_features=list(BASE_FEATURES),
    )


class ProgressionEngine:
    """Owns the current level, its objectives and the completion history.

    Transitions only move forward through completion, or jump through
    skip_to_level(). Invalid completions and backward or out-of-range skips are
    ignored rather than raised, so repeated identical calls are safe.
    """

    def __init__(
        self,
        store: Optional[DataStore] = None,
        achievements: Optional[AchievementLedger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the engine, loading any stored progression.

        Args:
            store: Optional store for the progression record.
            achievements: Points ledger credited on level completion.
            clock: Source of the current time.
        """
        self._store = store
        self._clock = clock
        self.achievements = achievements or AchievementLedger(store)
        loaded = store.load_progress() if store is not None else None
        if loaded is not None and not loaded.objectives:
            loaded = loaded.model_copy(
                update={"objectives": generate_objectives(loaded.current_level)}
            )
        self._record = loaded or initial_progress(clock())
        if loaded is None:
            self._persist()

    # ==================== Read access ====================

    @property
    def record(self) -> ProgressRecord:
        return self._record

    @property
    def current_level(self) -> int:
        return self._record.current_level

    @property
    def objectives(self) -> list[Objective]:
        return list(self._record.objectives)

    @property
    def unlocked_features(self) -> list[str]:
        return list(self._record.unlocked_features)

    def is_feature_unlocked(self, feature: str) -> bool:
        features = self._record.unlocked_features
        return feature in features or "all" in features

    def is_level_completed(self, level: int) -> bool:
        return self._record.is_completed(level)

    def is_current_level_complete(self, portfolio: Portfolio) -> bool:
        """All gating objectives met by the ledger as it stands now.

        The stored objectives are a high-water mark for display; a value
        target reached once and then lost does not count here.
        """
        if self.is_level_completed(self.current_level):
            return False
        return all_required_complete(evaluate_objectives(portfolio, self.current_level))

    def elapsed_seconds(self) -> float:
        start = self._record.level_start_date
        now = self._clock()
        if start.tzinfo is not None and now.tzinfo is None:
            start = start.replace(tzinfo=None)
        return max((now - start).total_seconds(), 0.0)

    # ==================== Objectives ====================

    def update_objectives(self, portfolio: Portfolio) -> list[Objective]:
        """Fold a fresh evaluation of the ledger into the stored objectives.

        Completed levels are not re-evaluated.

        Returns:
            The stored objectives after the merge.
        """
        if self.is_level_completed(self.current_level):
            return self.objectives

        fresh = evaluate_objectives(portfolio, self.current_level)
        merged = merge_objectives(self._record.objectives, fresh)
        if merged != self._record.objectives:
            self._record = self._record.model_copy(update={"objectives": merged})
            self._persist()
        return self.objectives

    # ==================== Transitions ====================

    def check_transition(self, level: int) -> None:
        """Raise InvalidLevelTransition unless level may be completed now."""
        if level != self.current_level:
            raise InvalidLevelTransition(
                f"Level {level} is not the current level ({self.current_level})"
            )
        if self.is_level_completed(level):
            raise InvalidLevelTransition(f"Level {level} is already completed")

    def complete_level(
        self,
        level: int,
        final_value: float,
        performance: float,
        time_to_complete: float,
    ) -> bool:
        """Record a level as completed and advance to the next one.

        Args:
            level: Level being completed; must be the current level.
            final_value: Portfolio value at completion.
            performance: Return over the level, in percent.
            time_to_complete: Seconds spent on the level.

        Returns:
            True if the completion was applied, False for a no-op.
        """
        try:
            self.check_transition(level)
        except InvalidLevelTransition as e:
            logger.debug("Ignoring completion: %s", e)
            return False

        now = self._clock()
        completed = list(self._record.levels_completed) + [
            CompletedLevel(
                level=level,
                completed_at=now,
                final_value=final_value,
                performance=performance,
                time_to_complete=max(time_to_complete, 0.0),
            )
        ]
        update = {"levels_completed": completed}

        if level < MAX_LEVEL:
            next_level = level + 1
            features = list(self._record.unlocked_features)
            for feature in LEVELS[next_level].features:
                if feature not in features:
                    features.append(feature)
            update.update(
                current_level=next_level,
                level_start_date=now,
                unlocked_features=features,
                objectives=generate_objectives(next_level),
            )

        self._record = self._record.model_copy(update=update)
        logger.info("Level %d completed with value %.2f (%.2f%%)", level, final_value, performance)
        self._persist()

        self.achievements.award_points(LEVEL_COMPLETION_BONUS, f"Level {level} Completion")
        return True

    def skip_to_level(self, target: int) -> bool:
        """Jump directly to a level, unlocking every feature up to it.

        The completion history is left as is. Targets outside 1..5 and
        targets below the current level are ignored.

        Returns:
            True if the skip was applied.
        """
        if not isinstance(target, int) or not MIN_LEVEL <= target <= MAX_LEVEL:
            logger.debug("Ignoring skip to out-of-range level %r", target)
            return False

        if target < self.current_level:
            logger.debug("Ignoring skip down from level %d to %d", self.current_level, target)
            return False

        self._record = self._record.model_copy(
            update={
                "current_level": target,
                "level_start_date": self._clock(),
                "unlocked_features": cumulative_features(target),
                "objectives": generate_objectives(target),
            }
        )
        logger.info("Skipped to level %d", target)
        self._persist()
        return True

    def reset(self) -> None:
        """Restore the initial state. Points and badges are kept."""
        self._record = initial_progress(self._clock())
        logger.info("Progression reset to level %d", MIN_LEVEL)
        self._persist()

    def _persist(self) -> None:
        if self._store is not None and not self._store.save_progress(self._record):
            logger.error("Progression not persisted; keeping in-memory state")
