"""Delay, utilization and deadline statistics for a revised schedule."""

from collections.abc import Sequence

from reflow.models import Order, Resource, Task

from .calendar import ResourceCalendar
from .config import SchedulingConfig
from .core import DeadlineBreach, ReflowMetrics


def compute_metrics(
    original_tasks: Sequence[Task],
    updated_tasks: Sequence[Task],
    resources: Sequence[Resource],
    orders: Sequence[Order],
    config: SchedulingConfig | None = None,
) -> ReflowMetrics:
    """Compare the original and revised schedules.

    Args:
        original_tasks: Tasks as supplied, before scheduling
        updated_tasks: Tasks after scheduling
        resources: Resources, for calendar-aware utilization and idle time
        orders: Orders, for deadline breaches
        config: Optional scheduling configuration

    Returns:
        ReflowMetrics for the revised schedule
    """
    config = config or SchedulingConfig()
    originals = {task.id: task for task in original_tasks}

    total_delay = 0.0
    tasks_affected = 0
    for task in updated_tasks:
        original = originals.get(task.id)
        if original is None:
            continue
        delta = (task.end_time - original.end_time).total_seconds() / 60
        if abs(delta) > config.change_epsilon_minutes:
            total_delay += delta
            tasks_affected += 1

    utilization, idle_minutes = _resource_usage(updated_tasks, resources, config)

    return ReflowMetrics(
        total_delay_minutes=round(total_delay),
        tasks_affected=tasks_affected,
        resource_utilization=utilization,
        resource_idle_minutes=idle_minutes,
        deadline_breaches=_deadline_breaches(updated_tasks, orders),
    )


def _resource_usage(
    tasks: Sequence[Task], resources: Sequence[Resource], config: SchedulingConfig
) -> tuple[dict[str, float], dict[str, int]]:
    """Utilization ratio and idle minutes per resource that has tasks."""
    by_resource: dict[str, list[Task]] = {}
    for task in tasks:
        by_resource.setdefault(task.resource_id, []).append(task)

    utilization: dict[str, float] = {}
    idle_minutes: dict[str, int] = {}

    for resource in resources:
        resource_tasks = by_resource.get(resource.id)
        if not resource_tasks:
            continue

        calendar = ResourceCalendar.for_resource(resource, config.horizon_days)
        ordered = sorted(resource_tasks, key=lambda t: t.start_time)
        first_start = ordered[0].start_time
        last_end = max(task.end_time for task in ordered)

        available = calendar.available_minutes(first_start, last_end)
        busy = sum(task.effective_minutes for task in ordered)
        utilization[resource.id] = round(busy / available, 2) if available > 0 else 0.0

        idle = 0.0
        for current, following in zip(ordered, ordered[1:], strict=False):
            if following.start_time > current.end_time:
                idle += calendar.available_minutes(current.end_time, following.start_time)
        idle_minutes[resource.id] = round(idle)

    return utilization, idle_minutes


def _deadline_breaches(tasks: Sequence[Task], orders: Sequence[Order]) -> list[DeadlineBreach]:
    """Tasks that finish after their order's deadline."""
    deadlines = {order.id: order.deadline for order in orders}
    breaches: list[DeadlineBreach] = []

    for task in tasks:
        if task.order_id is None:
            continue
        deadline = deadlines.get(task.order_id)
        if deadline is None or task.end_time <= deadline:
            continue
        breaches.append(
            DeadlineBreach(
                task_id=task.id,
                order_id=task.order_id,
                target=deadline,
                actual_end=task.end_time,
                breach_minutes=round((task.end_time - deadline).total_seconds() / 60),
            )
        )
    return breaches
