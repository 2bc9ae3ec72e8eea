"""Calendar arithmetic over recurring weekly availability and absolute exclusions.

A resource is available at an instant when the instant falls inside one of
the windows generated for its calendar day by the weekly availability slots,
and outside every exclusion interval. All windows are half-open [start, end).
Day boundaries are UTC calendar dates; naive instants are read as UTC.

The module-level functions are the plain operations. ResourceCalendar binds
them to one resource and caches the post-exclusion windows per calendar day,
which is what the scheduler, verifier and metrics use during a run.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, time, timedelta

from reflow.logger import get_logger
from reflow.models import DAYS_PER_WEEK, AvailabilitySlot, Interval, Resource, ensure_utc

from .config import DEFAULT_HORIZON_DAYS

logger = get_logger()

# Maps a calendar date to its available windows, sorted by start
DayWindows = Callable[[date], list[Interval]]


def _as_date(value: date | datetime) -> date:
    return ensure_utc(value).date() if isinstance(value, datetime) else value


def _utc_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    return [(ensure_utc(start), ensure_utc(end)) for start, end in intervals]


def _next_midnight(instant: datetime) -> datetime:
    return datetime.combine(instant.date() + timedelta(days=1), time(), tzinfo=UTC)


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60


def _merge_windows(windows: list[Interval]) -> list[Interval]:
    """Merge overlapping or touching windows into a sorted, non-overlapping list."""
    if not windows:
        return []

    ordered = sorted(windows, key=lambda w: w[0])
    merged: list[Interval] = [ordered[0]]
    for start, end in ordered[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def windows_for_day(day: date | datetime, availability: Iterable[AvailabilitySlot]) -> list[Interval]:
    """Build the concrete availability windows for one calendar day.

    Args:
        day: The calendar day (a datetime is reduced to its date)
        availability: Recurring weekly slots of the resource

    Returns:
        Windows sorted by start; empty when the day is fully closed
    """
    day = _as_date(day)
    # date.weekday() is Monday=0; slots use Sunday=0
    day_of_week = (day.weekday() + 1) % DAYS_PER_WEEK
    midnight = datetime.combine(day, time(), tzinfo=UTC)

    windows: list[Interval] = []
    for slot in availability:
        if slot.day_of_week != day_of_week or slot.end_hour <= slot.start_hour:
            continue
        windows.append(
            (midnight + timedelta(hours=slot.start_hour), midnight + timedelta(hours=slot.end_hour))
        )
    return _merge_windows(windows)


def subtract_exclusions(windows: list[Interval], exclusions: Iterable[Interval]) -> list[Interval]:
    """Remove exclusion intervals from availability windows.

    A window fully covered by an exclusion disappears, one with an exclusion
    strictly inside splits in two, and one overlapped at an edge is truncated.
    """
    result = list(windows)
    for ex_start, ex_end in exclusions:
        if ex_end <= ex_start:
            continue
        remaining: list[Interval] = []
        for start, end in result:
            if ex_start >= end or ex_end <= start:
                remaining.append((start, end))
                continue
            if start < ex_start:
                remaining.append((start, ex_start))
            if ex_end < end:
                remaining.append((ex_end, end))
        result = remaining
    return result


def overlaps_exclusion(start: datetime, end: datetime, exclusions: Iterable[Interval]) -> bool:
    """Check whether [start, end) intersects any exclusion interval."""
    start, end = ensure_utc(start), ensure_utc(end)
    return any(
        start < ex_end and ex_start < end for ex_start, ex_end in _utc_intervals(exclusions)
    )


def _scan_next_available(
    from_: datetime, day_windows: DayWindows, max_days: int
) -> datetime | None:
    current = from_
    for _ in range(max_days):
        for start, end in day_windows(current.date()):
            if start <= current < end:
                return current
            if start > current:
                return start
        current = _next_midnight(current)
    return None


def _scan_advance(
    start: datetime, duration_minutes: float, day_windows: DayWindows, max_days: int
) -> datetime | None:
    if duration_minutes <= 0:
        return start

    remaining = float(duration_minutes)
    current = start
    for _ in range(max_days):
        for window_start, window_end in day_windows(current.date()):
            if window_end <= current:
                continue
            effective_start = max(window_start, current)
            available = _minutes(window_end - effective_start)
            if available <= 0:
                continue
            if remaining <= available:
                return effective_start + timedelta(minutes=remaining)
            # Pause at the close of this window, resume at the next one
            remaining -= available
        current = _next_midnight(current)
    return None


def _count_available(from_: datetime, to: datetime, day_windows: DayWindows) -> float:
    if to <= from_:
        return 0.0

    total = 0.0
    day = from_.date()
    last_day = to.date()
    while day <= last_day:
        for start, end in day_windows(day):
            lo = max(start, from_)
            hi = min(end, to)
            if hi > lo:
                total += _minutes(hi - lo)
        day += timedelta(days=1)
    return total


def _uncached_day_windows(
    availability: Iterable[AvailabilitySlot], exclusions: Iterable[Interval]
) -> DayWindows:
    slots = list(availability)
    blocked = _utc_intervals(exclusions)
    return lambda day: subtract_exclusions(windows_for_day(day, slots), blocked)


def next_available_instant(
    from_: datetime,
    availability: Iterable[AvailabilitySlot],
    exclusions: Iterable[Interval],
    max_days: int = DEFAULT_HORIZON_DAYS,
) -> datetime | None:
    """Find the first available instant at or after from_.

    Returns from_ itself when it already lies inside an available window,
    otherwise the start of the next window. None if nothing opens within
    max_days calendar days.
    """
    day_windows = _uncached_day_windows(availability, exclusions)
    return _scan_next_available(ensure_utc(from_), day_windows, max_days)


def advance_by_duration(
    start: datetime,
    duration_minutes: float,
    availability: Iterable[AvailabilitySlot],
    exclusions: Iterable[Interval],
    max_days: int = DEFAULT_HORIZON_DAYS,
) -> datetime | None:
    """Consume duration_minutes of available time beginning at start.

    Work pauses at the close of each window and resumes at the next one,
    skipping closed and fully excluded days.

    Returns:
        The instant at which the duration is used up, or None if the horizon
        runs out first. A zero duration returns start unchanged.
    """
    day_windows = _uncached_day_windows(availability, exclusions)
    return _scan_advance(ensure_utc(start), duration_minutes, day_windows, max_days)


def available_minutes_between(
    from_: datetime,
    to: datetime,
    availability: Iterable[AvailabilitySlot],
    exclusions: Iterable[Interval],
) -> float:
    """Sum the available minutes inside [from_, to). Reporting only."""
    day_windows = _uncached_day_windows(availability, exclusions)
    return _count_available(ensure_utc(from_), ensure_utc(to), day_windows)


class ResourceCalendar:
    """One resource's calendar with a per-day cache of available windows.

    The cache is only valid while availability and exclusions stay fixed,
    which holds for the duration of a single reflow run.
    """

    def __init__(
        self,
        availability: Iterable[AvailabilitySlot],
        exclusions: Iterable[Interval] | None = None,
        *,
        resource_name: str = "",
        max_days: int = DEFAULT_HORIZON_DAYS,
    ) -> None:
        """Initialize the calendar.

        Args:
            availability: Recurring weekly slots
            exclusions: Absolute (start, end) blackout intervals
            resource_name: Name of the resource (for logging)
            max_days: Search horizon for slot and duration lookups
        """
        self.availability = list(availability)
        self.exclusions: list[Interval] = sorted(
            _utc_intervals(exclusions or []), key=lambda w: w[0]
        )
        self.resource_name = resource_name
        self.max_days = max_days
        self._window_cache: dict[date, list[Interval]] = {}

    @classmethod
    def for_resource(cls, resource: Resource, max_days: int = DEFAULT_HORIZON_DAYS) -> "ResourceCalendar":
        """Build the calendar of a resource model."""
        return cls(
            resource.availability,
            resource.exclusion_intervals(),
            resource_name=resource.name,
            max_days=max_days,
        )

    def windows(self, day: date) -> list[Interval]:
        """Available (post-exclusion) windows on a calendar day."""
        cached = self._window_cache.get(day)
        if cached is None:
            cached = subtract_exclusions(windows_for_day(day, self.availability), self.exclusions)
            self._window_cache[day] = cached
        return cached

    def next_available(self, from_: datetime) -> datetime | None:
        """First available instant at or after from_, None past the horizon."""
        from_ = ensure_utc(from_)
        found = _scan_next_available(from_, self.windows, self.max_days)
        if found is None:
            logger.debug(
                f"    {self.resource_name}: no availability within {self.max_days} days of "
                f"{from_.isoformat()}"
            )
        elif found != from_:
            logger.debug(
                f"    {self.resource_name}: {from_.isoformat()} unavailable, "
                f"next opening {found.isoformat()}"
            )
        return found

    def advance(self, start: datetime, duration_minutes: float) -> datetime | None:
        """Instant at which duration_minutes of work started at start completes."""
        return _scan_advance(ensure_utc(start), duration_minutes, self.windows, self.max_days)

    def available_minutes(self, from_: datetime, to: datetime) -> float:
        """Available minutes inside [from_, to)."""
        return _count_available(ensure_utc(from_), ensure_utc(to), self.windows)

    def is_available_at(self, instant: datetime) -> bool:
        """Check whether work can start exactly at instant."""
        instant = ensure_utc(instant)
        return self.next_available(instant) == instant

    def overlaps_exclusion(self, start: datetime, end: datetime) -> bool:
        """Check whether [start, end) touches an exclusion interval."""
        return overlaps_exclusion(start, end, self.exclusions)
