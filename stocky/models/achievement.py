"""Achievement and points data models."""

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Badge(BaseModel):
    """An earned achievement badge."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., description="Display name")
    description: str = Field(default="")
    points: int = Field(..., ge=0, description="Points awarded with the badge")
    earned_at: datetime = Field(default_factory=datetime.now)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class PointsEntry(BaseModel):
    """A single points award."""

    source: str = Field(..., min_length=1, description="What earned the points")
    amount: int = Field(..., description="Points delta")
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class Achievements(BaseModel):
    """Earned badges plus the points history."""

    badges: list[Badge] = Field(default_factory=list)
    points: int = Field(default=0)
    points_history: list[PointsEntry] = Field(default_factory=list)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def has_badge(self, badge_id: str) -> bool:
        return any(badge.id == badge_id for badge in self.badges)
