"""Input models: tasks, resources and their calendars, orders.

All instants are timezone-aware UTC datetimes. Naive input is read as UTC.
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, model_validator

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Render an instant as ISO 8601 UTC with a trailing Z."""
    return ensure_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]

# (start, end) half-open instant range
Interval = tuple[datetime, datetime]


class AvailabilitySlot(BaseModel):
    """One recurring weekly opening: [start_hour, end_hour) on day_of_week."""

    day_of_week: int = Field(ge=0, lt=DAYS_PER_WEEK)  # 0=Sunday ... 6=Saturday
    start_hour: int = Field(ge=0, lt=HOURS_PER_DAY)
    end_hour: int = Field(ge=0, le=HOURS_PER_DAY)  # 24 = midnight at day end


class ExclusionWindow(BaseModel):
    """An absolute blackout interval, independent of the weekly calendar."""

    start: UtcDatetime
    end: UtcDatetime
    reason: str | None = None

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "ExclusionWindow":
        """Ensure end is not before start."""
        if self.end < self.start:
            raise ValueError("exclusion end must not be before its start")
        return self


class Resource(BaseModel):
    """A serial facility: one task at a time, inside its calendar."""

    id: str
    name: str = ""
    availability: list[AvailabilitySlot] = Field(default_factory=list[AvailabilitySlot])
    exclusions: list[ExclusionWindow] = Field(default_factory=list[ExclusionWindow])

    @model_validator(mode="after")
    def default_name(self) -> "Resource":
        """Fall back to the id for display."""
        if not self.name:
            self.name = self.id
        return self

    def exclusion_intervals(self) -> list[Interval]:
        """Get exclusions as (start, end) tuples."""
        return [(window.start, window.end) for window in self.exclusions]


class Task(BaseModel):
    """A unit of work placed on one resource."""

    id: str
    reference: str = ""
    order_id: str | None = None
    resource_id: str
    start_time: UtcDatetime
    end_time: UtcDatetime
    processing_minutes: float = Field(ge=0)
    prep_minutes: float = Field(default=0, ge=0)
    pinned: bool = False  # Regulatory hold: never moved
    depends_on: list[str] = Field(default_factory=list)
    category: str = "general"

    @model_validator(mode="after")
    def validate_window(self) -> "Task":
        """Reject inverted windows and default the reference to the id."""
        if self.end_time < self.start_time:
            raise ValueError(f"task '{self.id}' ends before it starts")
        if not self.reference:
            self.reference = self.id
        return self

    @property
    def effective_minutes(self) -> float:
        """Prep time plus processing time."""
        return self.prep_minutes + self.processing_minutes


class Order(BaseModel):
    """The order a task belongs to; only its deadline matters to scheduling."""

    id: str
    reference: str = ""
    description: str | None = None
    deadline: UtcDatetime


class ReflowInput(BaseModel):
    """A complete scheduling request."""

    tasks: list[Task] = Field(default_factory=list[Task])
    resources: list[Resource] = Field(default_factory=list[Resource])
    orders: list[Order] = Field(default_factory=list[Order])

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "ReflowInput":
        """Ensure task, resource and order ids are unique within their lists."""
        for kind, ids in (
            ("task", [t.id for t in self.tasks]),
            ("resource", [r.id for r in self.resources]),
            ("order", [o.id for o in self.orders]),
        ):
            seen: set[str] = set()
            for item_id in ids:
                if item_id in seen:
                    raise ValueError(f"duplicate {kind} id '{item_id}'")
                seen.add(item_id)
        return self
