"""Pytest configuration and fixtures for reflow tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from reflow.logger import reset_logger
from reflow.models import AvailabilitySlot, ExclusionWindow, Resource, Task

# Monday 2024-01-15 .. Friday 2024-01-19
WEEKDAYS = (1, 2, 3, 4, 5)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """An instant in January 2024, UTC."""
    return datetime(2024, 1, day, hour, minute, tzinfo=UTC)


def weekday_hours(start_hour: int = 8, end_hour: int = 16) -> list[AvailabilitySlot]:
    """Monday to Friday, start_hour to end_hour."""
    return [
        AvailabilitySlot(day_of_week=day, start_hour=start_hour, end_hour=end_hour)
        for day in WEEKDAYS
    ]


@pytest.fixture(autouse=True)
def _clean_logger() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    yield
    reset_logger()


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for tasks on resource 'res-1', Monday 08:00-09:00 by default."""

    def _make(task_id: str, **overrides: Any) -> Task:
        start = overrides.pop("start_time", at(15, 8))
        minutes = overrides.pop("processing_minutes", 60)
        fields: dict[str, Any] = {
            "id": task_id,
            "resource_id": "res-1",
            "start_time": start,
            "end_time": overrides.pop("end_time", None) or start + timedelta(minutes=minutes),
            "processing_minutes": minutes,
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def make_resource() -> Callable[..., Resource]:
    """Factory for resources open Monday to Friday 08:00-16:00 by default."""

    def _make(
        resource_id: str = "res-1",
        *,
        availability: list[AvailabilitySlot] | None = None,
        exclusions: list[tuple[datetime, datetime]] | None = None,
    ) -> Resource:
        return Resource(
            id=resource_id,
            availability=weekday_hours() if availability is None else availability,
            exclusions=[
                ExclusionWindow(start=start, end=end) for start, end in exclusions or []
            ],
        )

    return _make
