"""Plain-text rendering of reflow results for the terminal."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import format_timestamp

if TYPE_CHECKING:
    from .scheduler import ConstraintViolation, ReflowResult

DIVIDER_WIDTH = 72
INDENT = "  "


def divider(char: str = "=") -> str:
    """A full-width separator line."""
    return char * DIVIDER_WIDTH


def format_result(title: str, result: ReflowResult) -> str:
    """Render a result as a human-readable report.

    Sections: changes, updated schedule, metrics, explanation and (when
    present) errors.
    """
    lines = [divider(), f"{INDENT}{title}", divider(), ""]

    if result.changes:
        lines.append(f"{INDENT}Changes:")
        for change in result.changes:
            lines.append(
                f"{INDENT * 2}{change.task_reference} | {change.field.value}: "
                f"{format_timestamp(change.old_value)} → {format_timestamp(change.new_value)} "
                f"({change.delta_minutes:+d} min)"
            )
            lines.append(f"{INDENT * 3}Reason: {change.reason}")
    else:
        lines.append(f"{INDENT}No changes.")
    lines.append("")

    if result.updated_tasks:
        lines.append(f"{INDENT}Updated Schedule:")
        for task in result.updated_tasks:
            pinned = " [PINNED]" if task.pinned else ""
            lines.append(
                f"{INDENT * 2}{task.reference} ({task.category}{pinned}): "
                f"{format_timestamp(task.start_time)} → {format_timestamp(task.end_time)} "
                f"({task.effective_minutes:g} min)"
            )
        lines.append("")

    metrics = result.metrics
    lines.append(f"{INDENT}Metrics:")
    lines.append(f"{INDENT * 2}Tasks affected: {metrics.tasks_affected}")
    lines.append(f"{INDENT * 2}Total delay: {metrics.total_delay_minutes} min")
    if metrics.resource_utilization:
        lines.append(f"{INDENT * 2}Resource utilization:")
        for resource_id, utilization in metrics.resource_utilization.items():
            idle = metrics.resource_idle_minutes.get(resource_id, 0)
            lines.append(
                f"{INDENT * 3}{resource_id}: {utilization * 100:.1f}% utilization, {idle} min idle"
            )
    if metrics.deadline_breaches:
        lines.append(f"{INDENT * 2}Deadline breaches:")
        for breach in metrics.deadline_breaches:
            lines.append(
                f"{INDENT * 3}Task {breach.task_id}: target {format_timestamp(breach.target)}, "
                f"actual {format_timestamp(breach.actual_end)} (+{breach.breach_minutes} min)"
            )
    lines.append("")

    lines.append(f"{INDENT}Explanation:")
    lines.extend(f"{INDENT * 2}{line}" if line else "" for line in result.explanation)
    lines.append("")

    if result.errors:
        lines.append(f"{INDENT}Errors:")
        lines.extend(f"{INDENT * 2}- {error}" for error in result.errors)
        lines.append("")

    return "\n".join(lines)


def format_violations(violations: list[ConstraintViolation]) -> str:
    """One line per violation, or a clean bill of health."""
    if not violations:
        return "Schedule satisfies all constraints."
    return "\n".join(
        f"[{violation.kind.value}] {violation.task_reference}: {violation.message}"
        for violation in violations
    )
