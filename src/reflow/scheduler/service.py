"""High-level reflow service."""

from collections.abc import Sequence

from reflow.logger import get_logger
from reflow.models import ExclusionWindow, Order, Resource, Task, format_timestamp

from .config import SchedulingConfig
from .core import ChangeField, ReflowMetrics, ReflowResult, ScheduleChange
from .greedy import GreedyScheduler
from .metrics import compute_metrics
from .ordering import DependencyCycle, sort_tasks
from .verifier import verify_schedule

logger = get_logger()

NO_TASKS_NOTE = "No tasks to schedule."
NO_CHANGES_NOTE = "No schedule changes were necessary."


class ReflowService:
    """Runs one reflow request end to end.

    This service coordinates:
    - sort_tasks (dependency order, cycle detection)
    - GreedyScheduler (placement)
    - verify_schedule (independent re-check of the output)
    - compute_metrics (original vs. revised comparison)

    and turns their output into a single ReflowResult with an explanation.
    Each call works on its own copies, so one service can serve many calls.
    """

    def __init__(
        self,
        config: SchedulingConfig | None = None,
        global_exclusions: Sequence[ExclusionWindow] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Optional scheduling configuration
            global_exclusions: Blackouts applied to every resource in addition
                to its own (e.g. market holidays)
        """
        self.config = config or SchedulingConfig()
        self.global_exclusions = list(global_exclusions or [])

    def reflow(
        self,
        tasks: Sequence[Task],
        resources: Sequence[Resource],
        orders: Sequence[Order] = (),
    ) -> ReflowResult:
        """Compute a revised schedule.

        Args:
            tasks: Current (possibly stale or infeasible) schedule
            resources: Resources with their calendars
            orders: Orders carrying the deadlines

        Returns:
            ReflowResult; on a dependency cycle the original tasks come back
            unchanged with the cycle reported as the only error
        """
        if not tasks:
            return ReflowResult(
                updated_tasks=[],
                changes=[],
                explanation=[NO_TASKS_NOTE],
                metrics=ReflowMetrics(),
            )

        original_tasks = [task.model_copy(deep=True) for task in tasks]
        effective_resources = apply_global_exclusions(resources, self.global_exclusions)

        sorted_result = sort_tasks(original_tasks)
        if isinstance(sorted_result, DependencyCycle):
            logger.changes(f"Reflow aborted: {sorted_result.message}")
            return ReflowResult(
                updated_tasks=original_tasks,
                changes=[],
                explanation=[
                    f"Scheduling aborted: {sorted_result.message}",
                    "Please resolve circular dependencies before reflow.",
                ],
                metrics=ReflowMetrics(),
                errors=[sorted_result.message],
            )

        scheduler = GreedyScheduler(original_tasks, effective_resources, self.config)
        outcome = scheduler.schedule(sorted_result.task_ids)

        violations = verify_schedule(
            outcome.updated_tasks, effective_resources, original_tasks, self.config
        )
        violation_messages = [violation.message for violation in violations]

        metrics = compute_metrics(
            original_tasks, outcome.updated_tasks, effective_resources, orders, self.config
        )

        explanation = build_explanation(
            outcome.changes, metrics, outcome.errors, violation_messages
        )

        logger.changes(
            f"Reflow complete: {metrics.tasks_affected} task(s) affected, "
            f"{len(outcome.errors)} error(s), {len(violations)} violation(s)"
        )

        return ReflowResult(
            updated_tasks=outcome.updated_tasks,
            changes=outcome.changes,
            explanation=explanation,
            metrics=metrics,
            errors=[*outcome.errors, *violation_messages],
            violations=violations,
        )


def build_explanation(
    changes: Sequence[ScheduleChange],
    metrics: ReflowMetrics,
    scheduler_errors: Sequence[str],
    violation_messages: Sequence[str],
) -> list[str]:
    """Narrate a reflow run, one line per changed task plus a summary."""
    if not changes and not scheduler_errors:
        return [NO_CHANGES_NOTE]

    lines: list[str] = []

    by_task: dict[str, dict[ChangeField, ScheduleChange]] = {}
    for change in changes:
        by_task.setdefault(change.task_reference, {})[change.field] = change

    for reference, task_changes in by_task.items():
        start_change = task_changes.get(ChangeField.START_TIME)
        end_change = task_changes.get(ChangeField.END_TIME)
        if start_change and end_change:
            old = format_timestamp(start_change.old_value)
            new = format_timestamp(start_change.new_value)
            lines.append(
                f"{reference}: moved from {old} → {new} ({start_change.delta_minutes:+d} min), "
                f"now ends {format_timestamp(end_change.new_value)}. Reason: {start_change.reason}"
            )
        elif start_change or end_change:
            change = start_change or end_change
            assert change is not None
            edge = "start" if change is start_change else "end"
            old, new = format_timestamp(change.old_value), format_timestamp(change.new_value)
            lines.append(
                f"{reference}: {edge} changed from {old} → {new} "
                f"({change.delta_minutes:+d} min). Reason: {change.reason}"
            )

    lines.append("")
    lines.append(
        f"Summary: {metrics.tasks_affected} task(s) affected, "
        f"total delay: {metrics.total_delay_minutes} minutes."
    )

    if metrics.deadline_breaches:
        lines.append(f"WARNING: {len(metrics.deadline_breaches)} deadline breach(es) detected.")
        for breach in metrics.deadline_breaches:
            lines.append(
                f"  - Task {breach.task_id}: exceeds target {format_timestamp(breach.target)} "
                f"by {breach.breach_minutes} minutes"
            )

    if scheduler_errors or violation_messages:
        lines.append("")
        lines.append("Errors:")
        for error in [*scheduler_errors, *violation_messages]:
            lines.append(f"  - {error}")

    return lines


def reflow(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    orders: Sequence[Order] = (),
    config: SchedulingConfig | None = None,
) -> ReflowResult:
    """Compute a revised schedule with a one-off ReflowService."""
    return ReflowService(config).reflow(tasks, resources, orders)


def apply_global_exclusions(
    resources: Sequence[Resource], exclusions: Sequence[ExclusionWindow]
) -> list[Resource]:
    """Copy resources with shared blackouts appended to each one's own."""
    if not exclusions:
        return list(resources)
    return [
        resource.model_copy(update={"exclusions": [*resource.exclusions, *exclusions]})
        for resource in resources
    ]
