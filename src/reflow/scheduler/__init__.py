"""Scheduler package - dependency-ordered, calendar-aware greedy reflow.

This package provides:
- Calendar arithmetic over weekly availability and absolute exclusions
- Dependency ordering with cycle detection
- Greedy earliest-fit placement of tasks on serial resources
- Independent verification of a schedule against every hard rule
- Delay, utilization and deadline metrics

Main entry points:
- ReflowService / reflow: run a complete reflow request
- verify_schedule: check any schedule without rescheduling it
"""

from .calendar import (
    ResourceCalendar,
    advance_by_duration,
    available_minutes_between,
    next_available_instant,
    overlaps_exclusion,
    subtract_exclusions,
    windows_for_day,
)
from .config import SchedulingConfig
from .core import (
    ChangeField,
    DeadlineBreach,
    ReflowMetrics,
    ReflowResult,
    ScheduleChange,
    ScheduleOutcome,
)
from .greedy import GreedyScheduler
from .metrics import compute_metrics
from .ordering import DependencyCycle, SortResult, TopologicalOrder, sort_tasks
from .service import ReflowService, apply_global_exclusions, build_explanation, reflow
from .verifier import ConstraintViolation, ViolationKind, verify_schedule

__all__ = [
    # Calendar
    "ResourceCalendar",
    "windows_for_day",
    "subtract_exclusions",
    "next_available_instant",
    "advance_by_duration",
    "available_minutes_between",
    "overlaps_exclusion",
    # Configuration
    "SchedulingConfig",
    # Output dataclasses
    "ChangeField",
    "ScheduleChange",
    "DeadlineBreach",
    "ReflowMetrics",
    "ScheduleOutcome",
    "ReflowResult",
    # Ordering
    "sort_tasks",
    "SortResult",
    "TopologicalOrder",
    "DependencyCycle",
    # Placement
    "GreedyScheduler",
    # Verification
    "verify_schedule",
    "ConstraintViolation",
    "ViolationKind",
    # Metrics
    "compute_metrics",
    # Orchestration
    "ReflowService",
    "build_explanation",
    "apply_global_exclusions",
    "reflow",
]
