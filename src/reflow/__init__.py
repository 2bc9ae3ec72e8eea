"""reflow - calendar-aware rescheduling of dependent tasks on serial resources."""

from .models import AvailabilitySlot, ExclusionWindow, Order, ReflowInput, Resource, Task
from .scheduler import (
    ConstraintViolation,
    ReflowResult,
    ReflowService,
    SchedulingConfig,
    ViolationKind,
    reflow,
    verify_schedule,
)

__version__ = "0.1.0"

__all__ = [
    "AvailabilitySlot",
    "ExclusionWindow",
    "Resource",
    "Task",
    "Order",
    "ReflowInput",
    "SchedulingConfig",
    "ReflowService",
    "ReflowResult",
    "ConstraintViolation",
    "ViolationKind",
    "reflow",
    "verify_schedule",
]
