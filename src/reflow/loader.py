"""Reading schedule inputs and writing reflow results.

Inputs are YAML or JSON documents with top-level ``tasks``, ``resources``
and ``orders`` lists. Results are written back as plain data with ISO 8601
UTC timestamps so a run's output can be fed straight into another run.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from .exceptions import InputError
from .models import ReflowInput, Task, format_timestamp

if TYPE_CHECKING:
    from .scheduler import ReflowResult


class OutputFormat(str, Enum):
    """Formats a result can be rendered in."""

    TEXT = "text"
    YAML = "yaml"
    JSON = "json"


def parse_reflow_input(data: Any, source: str = "<input>") -> ReflowInput:
    """Validate already-decoded data as a ReflowInput.

    Raises:
        InputError: If the data is not a mapping or fails validation
    """
    if data is None:
        return ReflowInput()
    if not isinstance(data, dict):
        raise InputError(f"{source}: expected a mapping, got {type(data).__name__}")
    try:
        return ReflowInput.model_validate(data)
    except ValidationError as e:
        raise InputError(f"{source}: {e}") from e


def load_reflow_input(path: Path | str) -> ReflowInput:
    """Load a schedule input file.

    JSON is a subset of YAML, so one parser reads both.

    Raises:
        InputError: If the file is missing, unparseable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise InputError(f"Input file not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InputError(f"Invalid YAML/JSON in {path}: {e}") from e

    return parse_reflow_input(data, source=str(path))


def result_to_dict(result: ReflowResult) -> dict[str, Any]:
    """Convert a result to plain data (strings, numbers, lists, dicts)."""
    metrics = result.metrics
    return {
        "updated_tasks": [_task_to_dict(task) for task in result.updated_tasks],
        "changes": [
            {
                "task_id": change.task_id,
                "task_reference": change.task_reference,
                "field": change.field.value,
                "old_value": format_timestamp(change.old_value),
                "new_value": format_timestamp(change.new_value),
                "delta_minutes": change.delta_minutes,
                "reason": change.reason,
            }
            for change in result.changes
        ],
        "explanation": list(result.explanation),
        "metrics": {
            "total_delay_minutes": metrics.total_delay_minutes,
            "tasks_affected": metrics.tasks_affected,
            "resource_utilization": dict(metrics.resource_utilization),
            "resource_idle_minutes": dict(metrics.resource_idle_minutes),
            "deadline_breaches": [
                {
                    "task_id": breach.task_id,
                    "order_id": breach.order_id,
                    "target": format_timestamp(breach.target),
                    "actual_end": format_timestamp(breach.actual_end),
                    "breach_minutes": breach.breach_minutes,
                }
                for breach in metrics.deadline_breaches
            ],
        },
        "errors": list(result.errors),
        "violations": [
            {
                "kind": violation.kind.value,
                "task_id": violation.task_id,
                "task_reference": violation.task_reference,
                "message": violation.message,
            }
            for violation in result.violations
        ],
    }


def _task_to_dict(task: Task) -> dict[str, Any]:
    data: dict[str, Any] = task.model_dump()
    data["start_time"] = format_timestamp(task.start_time)
    data["end_time"] = format_timestamp(task.end_time)
    return data


def dump_result(result: ReflowResult, output_format: OutputFormat) -> str:
    """Serialize a result as YAML or JSON text."""
    data = result_to_dict(result)
    if output_format == OutputFormat.JSON:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if output_format == OutputFormat.YAML:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Cannot serialize result as {output_format.value}")


def write_result(result: ReflowResult, path: Path, output_format: OutputFormat) -> None:
    """Write a result to a file as YAML or JSON."""
    path.write_text(dump_result(result, output_format), encoding="utf-8")
