"""Configuration classes for the scheduling system."""

from pydantic import BaseModel, Field

DEFAULT_HORIZON_DAYS = 365


class SchedulingConfig(BaseModel):
    """Tunables for one reflow run."""

    # Calendar days scanned before a slot search or duration walk gives up
    horizon_days: int = Field(default=DEFAULT_HORIZON_DAYS, ge=1)

    # Allowed gap between a task's duration and the available minutes it spans
    duration_tolerance_minutes: float = Field(default=0.5, ge=0)

    # End-time deltas at or below this count as unchanged in metrics
    change_epsilon_minutes: float = Field(default=0.001, ge=0)
