"""Independent post-hoc verification of a schedule.

Nothing here trusts the scheduler's bookkeeping: every rule is re-derived from
the task windows and resource calendars alone, so the same checks also work
on schedules that never went through the scheduler.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from reflow.models import Resource, Task

from .calendar import ResourceCalendar
from .config import SchedulingConfig


class ViolationKind(str, Enum):
    """The hard rule a violation breaks."""

    RESOURCE_OVERLAP = "resource_overlap"
    OUTSIDE_AVAILABILITY = "outside_availability"
    BLACKOUT_OVERLAP = "blackout_overlap"
    DEPENDENCY_VIOLATED = "dependency_violated"
    PINNED_TASK_MOVED = "pinned_task_moved"


@dataclass(frozen=True)
class ConstraintViolation:
    """A broken hard rule, attributed to one task."""

    kind: ViolationKind
    task_id: str
    task_reference: str
    message: str


def verify_schedule(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    original_tasks: Sequence[Task] | None = None,
    config: SchedulingConfig | None = None,
) -> list[ConstraintViolation]:
    """Check a schedule against every hard rule.

    Checks run in a fixed order (dependencies, resource overlap,
    availability, blackouts of pinned tasks, pinned tasks moved) and all
    violations are collected. The pinned-moved check only runs when
    original_tasks is given.

    Returns:
        All violations found; an empty list certifies the schedule
    """
    config = config or SchedulingConfig()
    calendars = {
        resource.id: ResourceCalendar.for_resource(resource, config.horizon_days)
        for resource in resources
    }

    violations: list[ConstraintViolation] = []
    violations.extend(_check_dependencies(tasks))
    violations.extend(_check_resource_overlaps(tasks))
    violations.extend(_check_availability(tasks, calendars, config.duration_tolerance_minutes))
    violations.extend(_check_pinned_blackouts(tasks, calendars))
    if original_tasks is not None:
        violations.extend(_check_pinned_moved(tasks, original_tasks))
    return violations


def _check_dependencies(tasks: Sequence[Task]) -> list[ConstraintViolation]:
    """No task may start before any of its upstream tasks ends."""
    by_id = {task.id: task for task in tasks}
    violations: list[ConstraintViolation] = []

    for task in tasks:
        for dep_id in task.depends_on:
            upstream = by_id.get(dep_id)
            if upstream is None:
                continue
            if task.start_time < upstream.end_time:
                violations.append(
                    ConstraintViolation(
                        kind=ViolationKind.DEPENDENCY_VIOLATED,
                        task_id=task.id,
                        task_reference=task.reference,
                        message=(
                            f"Task {task.reference} starts before dependency "
                            f"{upstream.reference} completes"
                        ),
                    )
                )
    return violations


def _check_resource_overlaps(tasks: Sequence[Task]) -> list[ConstraintViolation]:
    """No two tasks on one resource may overlap.

    Sorting by start and comparing neighbours is enough: if every task ends
    before its successor starts, no pair further apart can overlap.
    """
    by_resource: dict[str, list[Task]] = {}
    for task in tasks:
        by_resource.setdefault(task.resource_id, []).append(task)

    violations: list[ConstraintViolation] = []
    for resource_tasks in by_resource.values():
        ordered = sorted(resource_tasks, key=lambda t: t.start_time)
        for current, following in zip(ordered, ordered[1:], strict=False):
            if current.end_time > following.start_time:
                violations.append(
                    ConstraintViolation(
                        kind=ViolationKind.RESOURCE_OVERLAP,
                        task_id=following.id,
                        task_reference=following.reference,
                        message=(
                            f"Task {following.reference} overlaps with {current.reference} "
                            f"on the same resource"
                        ),
                    )
                )
    return violations


def _check_availability(
    tasks: Sequence[Task],
    calendars: dict[str, ResourceCalendar],
    tolerance_minutes: float,
) -> list[ConstraintViolation]:
    """Non-pinned tasks must start on an open instant and fit the open time they span.

    A task that spans a closed period or exclusion is fine as long as the
    available minutes between its start and end equal its duration; that
    single comparison catches both wrong starts and work done while closed.
    """
    violations: list[ConstraintViolation] = []

    for task in tasks:
        if task.pinned:
            continue
        calendar = calendars.get(task.resource_id)
        if calendar is None:
            continue

        if not calendar.is_available_at(task.start_time):
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.OUTSIDE_AVAILABILITY,
                    task_id=task.id,
                    task_reference=task.reference,
                    message=f"Task {task.reference} starts outside resource availability",
                )
            )
            continue

        available = calendar.available_minutes(task.start_time, task.end_time)
        if abs(available - task.effective_minutes) > tolerance_minutes:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.OUTSIDE_AVAILABILITY,
                    task_id=task.id,
                    task_reference=task.reference,
                    message=(
                        f"Task {task.reference} has processing time outside resource "
                        f"availability (expected {task.effective_minutes:g} min, found "
                        f"{round(available)} available min in range)"
                    ),
                )
            )
    return violations


def _check_pinned_blackouts(
    tasks: Sequence[Task], calendars: dict[str, ResourceCalendar]
) -> list[ConstraintViolation]:
    """Pinned tasks cannot pause, so any exclusion overlap is a violation."""
    violations: list[ConstraintViolation] = []

    for task in tasks:
        if not task.pinned:
            continue
        calendar = calendars.get(task.resource_id)
        if calendar is None:
            continue
        if calendar.overlaps_exclusion(task.start_time, task.end_time):
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.BLACKOUT_OVERLAP,
                    task_id=task.id,
                    task_reference=task.reference,
                    message=(
                        f"Pinned task {task.reference} overlaps an exclusion window "
                        f"and cannot be moved"
                    ),
                )
            )
    return violations


def _check_pinned_moved(
    tasks: Sequence[Task], original_tasks: Sequence[Task]
) -> list[ConstraintViolation]:
    """Pinned tasks must keep their exact original window."""
    originals = {task.id: task for task in original_tasks}
    violations: list[ConstraintViolation] = []

    for task in tasks:
        if not task.pinned:
            continue
        original = originals.get(task.id)
        if original is None:
            continue
        if task.start_time != original.start_time or task.end_time != original.end_time:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.PINNED_TASK_MOVED,
                    task_id=task.id,
                    task_reference=task.reference,
                    message=(
                        f"Pinned task {task.reference} was moved from "
                        f"{original.start_time.isoformat()} - {original.end_time.isoformat()} to "
                        f"{task.start_time.isoformat()} - {task.end_time.isoformat()}"
                    ),
                )
            )
    return violations
