"""Core dataclasses for scheduling output."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reflow.models import Task

    from .verifier import ConstraintViolation


class ChangeField(str, Enum):
    """Which edge of a task's window moved."""

    START_TIME = "startTime"
    END_TIME = "endTime"


@dataclass(frozen=True)
class ScheduleChange:
    """One before/after change made by the scheduler."""

    task_id: str
    task_reference: str
    field: ChangeField
    old_value: datetime
    new_value: datetime
    delta_minutes: int  # Signed, new minus old
    reason: str


@dataclass(frozen=True)
class DeadlineBreach:
    """A task finishing after its order's deadline."""

    task_id: str
    order_id: str
    target: datetime
    actual_end: datetime
    breach_minutes: int


@dataclass
class ReflowMetrics:
    """Comparison statistics between the original and the revised schedule."""

    total_delay_minutes: int = 0
    tasks_affected: int = 0
    resource_utilization: dict[str, float] = field(default_factory=dict)
    resource_idle_minutes: dict[str, int] = field(default_factory=dict)
    deadline_breaches: list[DeadlineBreach] = field(default_factory=list)


@dataclass
class ScheduleOutcome:
    """What a single scheduling pass produced."""

    updated_tasks: "list[Task]"
    changes: list[ScheduleChange] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class ReflowResult:
    """Complete result of a reflow request.

    A non-empty errors list means the schedule is provisional: updated_tasks
    is always populated, but may not satisfy every constraint.
    """

    updated_tasks: "list[Task]"
    changes: list[ScheduleChange]
    explanation: list[str]
    metrics: ReflowMetrics
    errors: list[str] = field(default_factory=list)
    violations: "list[ConstraintViolation]" = field(default_factory=list)

    @property
    def is_certified(self) -> bool:
        """True when the run produced no errors and no violations."""
        return not self.errors and not self.violations
