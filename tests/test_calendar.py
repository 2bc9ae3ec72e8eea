"""Tests for calendar arithmetic over weekly availability and exclusions."""

from datetime import date, datetime, timedelta, timezone
from itertools import permutations

import pytest

from reflow.models import AvailabilitySlot, Interval, Resource
from reflow.scheduler import (
    ResourceCalendar,
    advance_by_duration,
    available_minutes_between,
    next_available_instant,
    overlaps_exclusion,
    subtract_exclusions,
    windows_for_day,
)
from tests.conftest import at, weekday_hours

PLUS_FIVE = timezone(timedelta(hours=5))

OVERLAPPING_EXCLUSIONS = [
    (at(15, 9), at(15, 11)),
    (at(15, 10), at(15, 12)),
    (at(15, 14), at(15, 15)),
]


def _monday_round_the_clock() -> list[AvailabilitySlot]:
    return [AvailabilitySlot(day_of_week=1, start_hour=0, end_hour=24)]


class TestWindowsForDay:
    """Test building one day's windows from weekly slots."""

    def test_weekday_window(self) -> None:
        """Monday gets its 08:00-16:00 slot."""
        assert windows_for_day(date(2024, 1, 15), weekday_hours()) == [(at(15, 8), at(15, 16))]

    def test_weekend_is_closed(self) -> None:
        """Saturday and Sunday have no slots."""
        assert windows_for_day(date(2024, 1, 20), weekday_hours()) == []
        assert windows_for_day(date(2024, 1, 21), weekday_hours()) == []

    def test_sunday_is_day_zero(self) -> None:
        """Day-of-week 0 means Sunday."""
        slots = [AvailabilitySlot(day_of_week=0, start_hour=10, end_hour=12)]
        assert windows_for_day(date(2024, 1, 21), slots) == [(at(21, 10), at(21, 12))]
        assert windows_for_day(date(2024, 1, 15), slots) == []

    def test_datetime_is_reduced_to_its_day(self) -> None:
        """A datetime argument selects the day it falls on."""
        assert windows_for_day(at(15, 13, 45), weekday_hours()) == [(at(15, 8), at(15, 16))]

    def test_split_shift(self) -> None:
        """Two slots on one day produce two windows, sorted by start."""
        slots = [
            AvailabilitySlot(day_of_week=1, start_hour=13, end_hour=17),
            AvailabilitySlot(day_of_week=1, start_hour=8, end_hour=12),
        ]
        assert windows_for_day(date(2024, 1, 15), slots) == [
            (at(15, 8), at(15, 12)),
            (at(15, 13), at(15, 17)),
        ]

    def test_touching_and_overlapping_slots_merge(self) -> None:
        """Slots that overlap or touch collapse into one window."""
        slots = [
            AvailabilitySlot(day_of_week=1, start_hour=8, end_hour=12),
            AvailabilitySlot(day_of_week=1, start_hour=12, end_hour=14),
            AvailabilitySlot(day_of_week=1, start_hour=13, end_hour=16),
        ]
        assert windows_for_day(date(2024, 1, 15), slots) == [(at(15, 8), at(15, 16))]

    def test_empty_slot_is_ignored(self) -> None:
        """A slot whose end is not after its start contributes nothing."""
        slots = [AvailabilitySlot(day_of_week=1, start_hour=9, end_hour=9)]
        assert windows_for_day(date(2024, 1, 15), slots) == []

    def test_end_hour_24_runs_to_midnight(self) -> None:
        """end_hour 24 closes the window at the next midnight."""
        slots = [AvailabilitySlot(day_of_week=1, start_hour=0, end_hour=24)]
        assert windows_for_day(date(2024, 1, 15), slots) == [(at(15, 0), at(16, 0))]


class TestSubtractExclusions:
    """Test removing exclusion intervals from windows."""

    def test_exclusion_inside_splits_window(self) -> None:
        """An exclusion strictly inside a window splits it in two."""
        result = subtract_exclusions([(at(15, 8), at(15, 16))], [(at(15, 10), at(15, 11))])
        assert result == [(at(15, 8), at(15, 10)), (at(15, 11), at(15, 16))]

    def test_exclusion_covering_window_removes_it(self) -> None:
        """A fully covered window disappears."""
        result = subtract_exclusions([(at(15, 8), at(15, 16))], [(at(15, 7), at(15, 17))])
        assert result == []

    def test_exclusion_at_edge_truncates(self) -> None:
        """Overlap at either edge truncates the window."""
        result = subtract_exclusions(
            [(at(15, 8), at(15, 16))],
            [(at(15, 7), at(15, 9)), (at(15, 15), at(15, 18))],
        )
        assert result == [(at(15, 9), at(15, 15))]

    def test_disjoint_exclusion_keeps_window(self) -> None:
        """Exclusions elsewhere, including touching ones, change nothing."""
        window = [(at(15, 8), at(15, 16))]
        assert subtract_exclusions(window, [(at(15, 16), at(15, 18))]) == window
        assert subtract_exclusions(window, [(at(16, 8), at(16, 9))]) == window

    def test_zero_length_exclusion_is_ignored(self) -> None:
        """An exclusion with start == end removes nothing."""
        window = [(at(15, 8), at(15, 16))]
        assert subtract_exclusions(window, [(at(15, 10), at(15, 10))]) == window

    @pytest.mark.parametrize("exclusions", list(permutations(OVERLAPPING_EXCLUSIONS)))
    def test_overlapping_exclusions_in_any_order(self, exclusions: tuple[Interval, ...]) -> None:
        """Application order does not change the remaining windows."""
        result = subtract_exclusions([(at(15, 8), at(15, 16))], exclusions)
        assert result == [
            (at(15, 8), at(15, 9)),
            (at(15, 12), at(15, 14)),
            (at(15, 15), at(15, 16)),
        ]

    def test_later_exclusion_removes_split_piece(self) -> None:
        """A split followed by removal of one piece matches the reverse order."""
        window = [(at(15, 8), at(15, 16))]
        split_first = [(at(15, 10), at(15, 11)), (at(15, 8), at(15, 10))]

        result = subtract_exclusions(window, split_first)

        assert result == [(at(15, 11), at(15, 16))]
        assert subtract_exclusions(window, list(reversed(split_first))) == result


class TestOverlapsExclusion:
    """Test the half-open overlap check."""

    def test_overlap(self) -> None:
        assert overlaps_exclusion(at(15, 10), at(15, 12), [(at(15, 11), at(15, 11, 30))])

    def test_touching_is_not_overlap(self) -> None:
        """Intervals sharing only an endpoint do not overlap."""
        assert not overlaps_exclusion(at(15, 10), at(15, 11), [(at(15, 11), at(15, 12))])
        assert not overlaps_exclusion(at(15, 12), at(15, 13), [(at(15, 11), at(15, 12))])

    def test_no_exclusions(self) -> None:
        assert not overlaps_exclusion(at(15, 10), at(15, 11), [])


class TestNextAvailableInstant:
    """Test finding the first open instant."""

    def test_inside_window_returns_same_instant(self) -> None:
        assert next_available_instant(at(15, 10, 15), weekday_hours(), []) == at(15, 10, 15)

    def test_before_opening_snaps_to_open(self) -> None:
        assert next_available_instant(at(15, 6), weekday_hours(), []) == at(15, 8)

    def test_window_end_is_exclusive(self) -> None:
        """16:00 is already closed, so the next instant is Tuesday 08:00."""
        assert next_available_instant(at(15, 16), weekday_hours(), []) == at(16, 8)

    def test_friday_evening_rolls_to_monday(self) -> None:
        assert next_available_instant(at(19, 17), weekday_hours(), []) == at(22, 8)

    def test_skips_exclusion(self) -> None:
        """A morning blackout pushes the opening to its end."""
        result = next_available_instant(at(15, 16), weekday_hours(), [(at(16, 8), at(16, 9))])
        assert result == at(16, 9)

    def test_inside_exclusion_jumps_past_it(self) -> None:
        result = next_available_instant(at(15, 10), weekday_hours(), [(at(15, 9), at(15, 11))])
        assert result == at(15, 11)

    def test_no_availability_gives_none(self) -> None:
        """Nothing opens within the horizon."""
        assert next_available_instant(at(15, 8), [], [], max_days=14) is None


class TestAdvanceByDuration:
    """Test consuming working time across windows."""

    def test_within_one_window(self) -> None:
        assert advance_by_duration(at(15, 8), 60, weekday_hours(), []) == at(15, 9)

    def test_zero_duration_returns_start(self) -> None:
        assert advance_by_duration(at(15, 11), 0, weekday_hours(), []) == at(15, 11)

    def test_exactly_filling_window_ends_at_close(self) -> None:
        """Work ending exactly at the close does not roll to the next day."""
        assert advance_by_duration(at(15, 8), 480, weekday_hours(), []) == at(15, 16)

    def test_pauses_overnight(self) -> None:
        """60 minutes Monday afternoon, the remaining 60 on Tuesday morning."""
        assert advance_by_duration(at(15, 15), 120, weekday_hours(), []) == at(16, 9)

    def test_pauses_overnight_and_around_blackout(self) -> None:
        """Tuesday 08:00-09:00 is blacked out, so work resumes at 09:00."""
        result = advance_by_duration(
            at(15, 15), 120, weekday_hours(), [(at(16, 8), at(16, 9))]
        )
        assert result == at(16, 10)

    def test_splits_around_mid_window_exclusion(self) -> None:
        result = advance_by_duration(
            at(15, 10), 120, weekday_hours(), [(at(15, 11), at(15, 11, 30))]
        )
        assert result == at(15, 12, 30)

    def test_spans_weekend(self) -> None:
        assert advance_by_duration(at(19, 15), 120, weekday_hours(), []) == at(22, 9)

    def test_round_the_clock_crosses_midnight(self) -> None:
        slots = [AvailabilitySlot(day_of_week=day, start_hour=0, end_hour=24) for day in range(7)]
        assert advance_by_duration(at(15, 22), 240, slots, []) == at(16, 2)

    def test_fractional_minutes(self) -> None:
        result = advance_by_duration(at(15, 8), 0.5, weekday_hours(), [])
        assert result is not None
        assert (result - at(15, 8)).total_seconds() == 30

    def test_no_availability_gives_none(self) -> None:
        assert advance_by_duration(at(15, 8), 60, [], [], max_days=14) is None


class TestAvailableMinutesBetween:
    """Test counting open minutes in a range."""

    def test_single_day(self) -> None:
        assert available_minutes_between(at(15, 8), at(15, 16), weekday_hours(), []) == 480

    def test_spans_closed_night(self) -> None:
        assert available_minutes_between(at(15, 15), at(16, 10), weekday_hours(), []) == 180

    def test_exclusion_is_not_counted(self) -> None:
        result = available_minutes_between(
            at(15, 8), at(16, 16), weekday_hours(), [(at(16, 8), at(16, 9))]
        )
        assert result == 900

    def test_empty_range(self) -> None:
        assert available_minutes_between(at(15, 12), at(15, 12), weekday_hours(), []) == 0
        assert available_minutes_between(at(15, 12), at(15, 10), weekday_hours(), []) == 0

    def test_weekend_counts_nothing(self) -> None:
        assert available_minutes_between(at(20, 0), at(22, 0), weekday_hours(), []) == 0


class TestResourceCalendar:
    """Test the per-resource calendar wrapper."""

    def test_matches_module_functions(self) -> None:
        """The cached calendar gives the same answers as the plain functions."""
        exclusions = [(at(16, 8), at(16, 9))]
        calendar = ResourceCalendar(weekday_hours(), exclusions)

        assert calendar.next_available(at(15, 16)) == next_available_instant(
            at(15, 16), weekday_hours(), exclusions
        )
        assert calendar.advance(at(15, 15), 120) == at(16, 10)
        assert calendar.available_minutes(at(15, 8), at(16, 16)) == 900

    def test_windows_are_cached_per_day(self) -> None:
        calendar = ResourceCalendar(weekday_hours())
        first = calendar.windows(date(2024, 1, 15))
        assert calendar.windows(date(2024, 1, 15)) is first

    def test_is_available_at(self) -> None:
        calendar = ResourceCalendar(weekday_hours(), [(at(15, 12), at(15, 13))])
        assert calendar.is_available_at(at(15, 8))
        assert not calendar.is_available_at(at(15, 12, 30))
        assert calendar.is_available_at(at(15, 13))
        assert not calendar.is_available_at(at(15, 16))

    def test_overlaps_exclusion(self) -> None:
        calendar = ResourceCalendar(weekday_hours(), [(at(15, 11), at(15, 11, 30))])
        assert calendar.overlaps_exclusion(at(15, 10), at(15, 12))
        assert not calendar.overlaps_exclusion(at(15, 12), at(15, 13))

    def test_for_resource(self) -> None:
        resource = Resource(id="res-swift", name="SWIFT", availability=weekday_hours())
        calendar = ResourceCalendar.for_resource(resource, max_days=30)
        assert calendar.resource_name == "SWIFT"
        assert calendar.max_days == 30
        assert calendar.next_available(at(20, 9)) == at(22, 8)

    def test_horizon_limits_search(self) -> None:
        """A single opening beyond the horizon is not found."""
        only_friday = [AvailabilitySlot(day_of_week=5, start_hour=8, end_hour=16)]
        assert ResourceCalendar(only_friday, max_days=2).next_available(at(15, 8)) is None
        assert ResourceCalendar(only_friday, max_days=7).next_available(at(15, 8)) == at(19, 8)


class TestNonUtcInstants:
    """Instants in other offsets or without tzinfo are read on the UTC calendar."""

    monday_evening = datetime(2024, 1, 16, 1, tzinfo=PLUS_FIVE)  # Monday 20:00 UTC
    monday_midnight = datetime(2024, 1, 16, 5, tzinfo=PLUS_FIVE)  # Tuesday 00:00 UTC

    def test_windows_for_offset_datetime_use_utc_day(self) -> None:
        assert windows_for_day(self.monday_evening, weekday_hours()) == [(at(15, 8), at(15, 16))]

    def test_offset_instant_inside_window(self) -> None:
        slots = _monday_round_the_clock()
        assert next_available_instant(self.monday_evening, slots, []) == at(15, 20)
        assert advance_by_duration(self.monday_evening, 60, slots, []) == at(15, 21)
        minutes = available_minutes_between(self.monday_evening, self.monday_midnight, slots, [])
        assert minutes == 240

    def test_naive_instants_are_utc(self) -> None:
        assert next_available_instant(datetime(2024, 1, 15, 9), weekday_hours(), []) == at(15, 9)
        assert advance_by_duration(datetime(2024, 1, 15, 15), 120, weekday_hours(), []) == at(16, 9)
        minutes = available_minutes_between(
            datetime(2024, 1, 15, 8), at(15, 16), weekday_hours(), []
        )
        assert minutes == 480

    def test_exclusions_in_other_offsets(self) -> None:
        offset_blackout = (
            datetime(2024, 1, 15, 16, tzinfo=PLUS_FIVE),
            datetime(2024, 1, 15, 17, tzinfo=PLUS_FIVE),
        )
        assert overlaps_exclusion(at(15, 10), at(15, 12), [offset_blackout])
        assert overlaps_exclusion(
            datetime(2024, 1, 15, 10), datetime(2024, 1, 15, 12), [(at(15, 11), at(15, 12))]
        )
        assert next_available_instant(at(15, 11), weekday_hours(), [offset_blackout]) == at(15, 12)

    def test_resource_calendar(self) -> None:
        """Naive exclusions and offset instants mix on one calendar."""
        calendar = ResourceCalendar(
            _monday_round_the_clock(), [(datetime(2024, 1, 15, 21), datetime(2024, 1, 15, 22))]
        )

        assert calendar.next_available(self.monday_evening) == at(15, 20)
        assert calendar.advance(self.monday_evening, 120) == at(15, 23)
        assert calendar.available_minutes(self.monday_evening, self.monday_midnight) == 180
        assert calendar.is_available_at(datetime(2024, 1, 15, 20))
        assert not calendar.is_available_at(datetime(2024, 1, 15, 21, 30))
