"""Dependency ordering with cycle detection (Kahn's algorithm)."""

import heapq
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from reflow.logger import get_logger
from reflow.models import Task

logger = get_logger()


@dataclass(frozen=True)
class TopologicalOrder:
    """Every task id, upstream before downstream."""

    task_ids: list[str]


@dataclass(frozen=True)
class DependencyCycle:
    """The ids that could not be ordered because they sit on or behind a cycle."""

    task_ids: list[str]

    @property
    def message(self) -> str:
        """Human-readable description of the cycle."""
        return f"Circular dependency detected: {' → '.join(self.task_ids)}"


SortResult = TopologicalOrder | DependencyCycle


def sort_tasks(tasks: Sequence[Task]) -> SortResult:
    """Order tasks so every upstream task comes before its dependents.

    Edges point from upstream to downstream; dependency ids naming tasks that
    are not in the input are ignored. Among tasks that are ready at the same
    time, the earliest original start_time goes first, and equal starts keep
    the order in which the tasks became ready (input order for the initial
    set). The result is therefore fully determined by the input.

    Returns:
        TopologicalOrder with all ids, or DependencyCycle listing the ids that
        were never released
    """
    if not tasks:
        return TopologicalOrder(task_ids=[])

    task_ids = {task.id for task in tasks}
    dependents: dict[str, list[str]] = {task.id: [] for task in tasks}
    in_degree = dict.fromkeys(dependents, 0)
    starts: dict[str, datetime] = {task.id: task.start_time for task in tasks}

    for task in tasks:
        for dep_id in task.depends_on:
            if dep_id not in task_ids:
                logger.debug(f"  {task.id}: ignoring unknown dependency '{dep_id}'")
                continue
            dependents[dep_id].append(task.id)
            in_degree[task.id] += 1

    # Heap entries (start, sequence, id); sequence grows monotonically so
    # tasks already waiting win ties against newly released ones.
    ready: list[tuple[datetime, int, str]] = []
    sequence = 0
    for task in tasks:
        if in_degree[task.id] == 0:
            heapq.heappush(ready, (starts[task.id], sequence, task.id))
            sequence += 1

    order: list[str] = []
    while ready:
        _, _, current = heapq.heappop(ready)
        order.append(current)

        released = []
        for dependent in dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                released.append(dependent)
        for dependent in sorted(released, key=lambda task_id: starts[task_id]):
            heapq.heappush(ready, (starts[dependent], sequence, dependent))
            sequence += 1

    if len(order) != len(tasks):
        emitted = set(order)
        remaining = [task.id for task in tasks if task.id not in emitted]
        logger.debug(f"  Dependency cycle among: {', '.join(remaining)}")
        return DependencyCycle(task_ids=remaining)

    return TopologicalOrder(task_ids=order)
