"""Objective data model."""

from pydantic import BaseModel, Field


class Objective(BaseModel):
    """A measurable condition gating (or advising on) level completion."""

    id: str = Field(..., min_length=1, description="Objective identifier")
    description: str = Field(default="", description="Human-readable goal")
    target: float = Field(..., gt=0, description="Progress needed to complete")
    progress: float = Field(default=0.0, ge=0, description="Current progress")
    completed: bool = Field(default=False, description="Whether target was reached")
    required: bool = Field(default=True, description="Whether it gates completion")

    model_config = {"frozen": True}

    @property
    def percent(self) -> float:
        return min(self.progress / self.target * 100, 100.0)
