"""Greedy earliest-fit placement of tasks on serial resources."""

from collections.abc import Sequence
from datetime import datetime

from reflow.logger import get_logger
from reflow.models import Resource, Task

from .calendar import ResourceCalendar
from .config import SchedulingConfig
from .core import ChangeField, ScheduleChange, ScheduleOutcome

logger = get_logger()

REASON_CASCADE = "cascading schedule adjustment"
REASON_CONTENTION = "resource occupied by earlier task"
REASON_CALENDAR = "adjusted to next availability window"


def _minutes_between(old: datetime, new: datetime) -> int:
    return round((new - old).total_seconds() / 60)


class GreedyScheduler:
    """Places each task at its earliest feasible start, in dependency order.

    For every non-pinned task the start is the latest of its original start,
    the end of each upstream task and the moment its resource becomes free,
    then snapped forward to the resource's next available instant. The end is
    found by consuming prep plus processing time through the calendar.
    Pinned tasks keep their window and only block their resource.

    No backtracking: each decision is final once made.
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        resources: Sequence[Resource],
        config: SchedulingConfig | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            tasks: Tasks to place; they are copied, never mutated
            resources: Resources the tasks refer to
            config: Optional scheduling configuration
        """
        self.config = config or SchedulingConfig()
        self.tasks = {task.id: task for task in tasks}
        self.resources = {resource.id: resource for resource in resources}
        self.calendars = {
            resource.id: ResourceCalendar.for_resource(resource, self.config.horizon_days)
            for resource in resources
        }

    def schedule(self, order: Sequence[str]) -> ScheduleOutcome:
        """Place every task, walking the given dependency order.

        Args:
            order: Task ids with every upstream task before its dependents

        Returns:
            ScheduleOutcome with the revised tasks (in walk order), the
            changes made and any per-task errors
        """
        errors: list[str] = []
        changes: list[ScheduleChange] = []
        updated: dict[str, Task] = {
            task_id: task.model_copy(deep=True) for task_id, task in self.tasks.items()
        }

        # Watermarks scoped to this pass: when each resource is next free,
        # and when each already-walked task finishes.
        resource_free_at = self._seed_pinned_watermarks()
        task_end_times: dict[str, datetime] = {}

        for task_id in order:
            original = self.tasks[task_id]
            task = updated[task_id]
            calendar = self.calendars.get(original.resource_id)

            if calendar is None:
                errors.append(
                    f"Task {original.reference} references unknown resource {original.resource_id}"
                )
                task_end_times[task_id] = original.end_time
                continue

            if original.pinned:
                self._place_pinned(original, calendar, resource_free_at, errors)
                task_end_times[task_id] = original.end_time
                continue

            logger.checks(f"  Considering {original.reference} on {calendar.resource_name}")

            earliest = original.start_time
            for dep_id in original.depends_on:
                dep_end = task_end_times.get(dep_id)
                if dep_end is not None and dep_end > earliest:
                    earliest = dep_end

            free_at = resource_free_at.get(original.resource_id)
            if free_at is not None and free_at > earliest:
                earliest = free_at

            start = calendar.next_available(earliest)
            if start is None:
                errors.append(
                    f"Cannot find an available slot for task {original.reference} "
                    f"within {self.config.horizon_days} days"
                )
                task_end_times[task_id] = original.end_time
                continue

            end = calendar.advance(start, original.effective_minutes)
            if end is None:
                errors.append(
                    f"Cannot complete task {original.reference} "
                    f"within {self.config.horizon_days} days"
                )
                task_end_times[task_id] = original.end_time
                continue

            start_changed = start != original.start_time
            end_changed = end != original.end_time
            if start_changed or end_changed:
                reason = self._build_reason(original, earliest, free_at, start, task_end_times)
                if start_changed:
                    changes.append(
                        ScheduleChange(
                            task_id=task_id,
                            task_reference=original.reference,
                            field=ChangeField.START_TIME,
                            old_value=original.start_time,
                            new_value=start,
                            delta_minutes=_minutes_between(original.start_time, start),
                            reason=reason,
                        )
                    )
                if end_changed:
                    changes.append(
                        ScheduleChange(
                            task_id=task_id,
                            task_reference=original.reference,
                            field=ChangeField.END_TIME,
                            old_value=original.end_time,
                            new_value=end,
                            delta_minutes=_minutes_between(original.end_time, end),
                            reason=reason,
                        )
                    )
                logger.changes(
                    f"  {original.reference}: {original.start_time.isoformat()} → "
                    f"{start.isoformat()} until {end.isoformat()} ({reason})"
                )
            else:
                logger.checks(f"    {original.reference} stays at {start.isoformat()}")

            task.start_time = start
            task.end_time = end
            resource_free_at[original.resource_id] = end
            task_end_times[task_id] = end

        return ScheduleOutcome(
            updated_tasks=[updated[task_id] for task_id in order],
            changes=changes,
            errors=errors,
        )

    def _seed_pinned_watermarks(self) -> dict[str, datetime]:
        """Start every resource's free-at watermark past its latest pinned task."""
        free_at: dict[str, datetime] = {}
        for task in self.tasks.values():
            if not task.pinned:
                continue
            current = free_at.get(task.resource_id)
            if current is None or task.end_time > current:
                free_at[task.resource_id] = task.end_time
        return free_at

    def _place_pinned(
        self,
        task: Task,
        calendar: ResourceCalendar,
        resource_free_at: dict[str, datetime],
        errors: list[str],
    ) -> None:
        """Validate a pinned task in place and let it block its resource."""
        if calendar.overlaps_exclusion(task.start_time, task.end_time):
            errors.append(
                f"Pinned task {task.reference} overlaps an exclusion window "
                f"on resource {calendar.resource_name}"
            )
        current = resource_free_at.get(task.resource_id)
        if current is None or task.end_time > current:
            resource_free_at[task.resource_id] = task.end_time
        logger.checks(f"  {task.reference} is pinned, left at {task.start_time.isoformat()}")

    def _build_reason(
        self,
        task: Task,
        earliest: datetime,
        free_at: datetime | None,
        start: datetime,
        task_end_times: dict[str, datetime],
    ) -> str:
        """Explain which constraints pushed a task."""
        reasons: list[str] = []

        for dep_id in task.depends_on:
            dep_end = task_end_times.get(dep_id)
            if dep_end is not None and dep_end > task.start_time:
                dep = self.tasks.get(dep_id)
                dep_ref = dep.reference if dep else dep_id
                reasons.append(f"dependency {dep_ref} completes later than original start")

        if free_at is not None and free_at > task.start_time:
            reasons.append(REASON_CONTENTION)

        if start > earliest:
            reasons.append(REASON_CALENDAR)

        if not reasons:
            reasons.append(REASON_CASCADE)

        return "; ".join(reasons)
