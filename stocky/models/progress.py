"""Level progression data models."""

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from stocky.models.objective import Objective


class CompletedLevel(BaseModel):
    """Record of a completed level."""

    level: int = Field(..., ge=1, le=5, description="Completed level")
    completed_at: datetime = Field(default_factory=datetime.now)
    final_value: float = Field(..., description="Portfolio value at completion")
    performance: float = Field(..., description="Return over the level (%)")
    time_to_complete: float = Field(..., ge=0, description="Seconds spent on the level")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class ProgressRecord(BaseModel):
    """Learner progression across the five levels."""

    current_level: int = Field(default=1, ge=1, le=5)
    level_start_date: datetime = Field(default_factory=datetime.now)
    levels_completed: list[CompletedLevel] = Field(default_factory=list)
    objectives: list[Objective] = Field(default_factory=list)
    unlocked_features: list[str] = Field(default_factory=list)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def is_completed(self, level: int) -> bool:
        return any(record.level == level for record in self.levels_completed)
