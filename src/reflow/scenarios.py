"""Catalog of named example scenarios.

Every scenario is built fresh on request, so callers may mutate what they get.
All of them are set in the week of Monday 2024-01-15 on resources open
Monday to Friday, 08:00-16:00 UTC.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .exceptions import ScenarioNotFoundError
from .models import AvailabilitySlot, ExclusionWindow, Order, ReflowInput, Resource, Task

WEEKDAYS = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class Scenario:
    """A named, reproducible reflow input."""

    key: str
    title: str
    description: str
    build: Callable[[], ReflowInput]


def _at(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _weekday_hours(start_hour: int = 8, end_hour: int = 16) -> list[AvailabilitySlot]:
    return [
        AvailabilitySlot(day_of_week=day, start_hour=start_hour, end_hour=end_hour)
        for day in WEEKDAYS
    ]


def _resource(
    resource_id: str, name: str, exclusions: list[tuple[str, str, str]] | None = None
) -> Resource:
    return Resource(
        id=resource_id,
        name=name,
        availability=_weekday_hours(),
        exclusions=[
            ExclusionWindow(start=_at(start), end=_at(end), reason=reason)
            for start, end, reason in exclusions or []
        ],
    )


def _task(  # noqa: PLR0913 - mirrors the Task fields used by scenarios
    task_id: str,
    reference: str,
    order_id: str,
    resource_id: str,
    start: str,
    end: str,
    minutes: float,
    *,
    depends_on: list[str] | None = None,
    pinned: bool = False,
    category: str = "general",
) -> Task:
    return Task(
        id=task_id,
        reference=reference,
        order_id=order_id,
        resource_id=resource_id,
        start_time=_at(start),
        end_time=_at(end),
        processing_minutes=minutes,
        pinned=pinned,
        depends_on=depends_on or [],
        category=category,
    )


def _order(order_id: str, reference: str, deadline: str) -> Order:
    return Order(id=order_id, reference=reference, deadline=_at(deadline))


def delay_cascade() -> ReflowInput:
    """A late first step pushes a four-step chain on one resource."""
    return ReflowInput(
        tasks=[
            _task("task-1", "STL-20240115-001", "order-1", "res-swift",
                  "2024-01-15T12:00:00Z", "2024-01-15T13:00:00Z", 60, category="fundTransfer"),
            _task("task-2", "STL-20240115-002", "order-1", "res-swift",
                  "2024-01-15T10:00:00Z", "2024-01-15T11:00:00Z", 60,
                  depends_on=["task-1"], category="marginCheck"),
            _task("task-3", "STL-20240115-003", "order-1", "res-swift",
                  "2024-01-15T11:00:00Z", "2024-01-15T12:30:00Z", 90,
                  depends_on=["task-2"], category="disbursement"),
            _task("task-4", "STL-20240115-004", "order-1", "res-swift",
                  "2024-01-15T12:30:00Z", "2024-01-15T13:00:00Z", 30,
                  depends_on=["task-3"], category="reconciliation"),
        ],
        resources=[_resource("res-swift", "SWIFT")],
        orders=[_order("order-1", "TO-20240115-001", "2024-01-16T16:00:00Z")],
    )  # fmt: skip


def blackout() -> ReflowInput:
    """A 120-minute task pauses overnight and skips a morning blackout."""
    return ReflowInput(
        tasks=[
            _task("task-1", "STL-20240115-010", "order-2", "res-fedwire",
                  "2024-01-15T15:00:00Z", "2024-01-15T17:00:00Z", 120, category="fundTransfer"),
        ],
        resources=[
            _resource(
                "res-fedwire",
                "Fedwire",
                [("2024-01-16T08:00:00Z", "2024-01-16T09:00:00Z", "Scheduled maintenance")],
            )
        ],
        orders=[_order("order-2", "TO-20240115-002", "2024-01-17T16:00:00Z")],
    )  # fmt: skip


def multi_constraint() -> ReflowInput:
    """Dependency, blackout and contention all act on the same resource."""
    return ReflowInput(
        tasks=[
            _task("task-mc-1", "STL-20240115-MC1", "order-mc", "res-fedwire-mc",
                  "2024-01-15T08:00:00Z", "2024-01-15T09:00:00Z", 60,
                  category="complianceScreen"),
            _task("task-mc-2", "STL-20240115-MC2", "order-mc", "res-fedwire-mc",
                  "2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z", 60,
                  depends_on=["task-mc-1"], category="fundTransfer"),
            _task("task-mc-3", "STL-20240115-MC3", "order-mc", "res-fedwire-mc",
                  "2024-01-15T09:30:00Z", "2024-01-15T10:30:00Z", 60, category="disbursement"),
        ],
        resources=[
            _resource(
                "res-fedwire-mc",
                "Fedwire-MC",
                [("2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z", "System maintenance")],
            )
        ],
        orders=[_order("order-mc", "TO-20240115-MC", "2024-01-16T16:00:00Z")],
    )  # fmt: skip


def resource_contention() -> ReflowInput:
    """Three independent 90-minute tasks requesting overlapping starts."""
    return ReflowInput(
        tasks=[
            _task("task-cc-1", "STL-20240115-CC1", "order-cc-1", "res-ach",
                  "2024-01-15T08:00:00Z", "2024-01-15T09:30:00Z", 90, category="fundTransfer"),
            _task("task-cc-2", "STL-20240115-CC2", "order-cc-2", "res-ach",
                  "2024-01-15T08:30:00Z", "2024-01-15T10:00:00Z", 90, category="marginCheck"),
            _task("task-cc-3", "STL-20240115-CC3", "order-cc-3", "res-ach",
                  "2024-01-15T09:00:00Z", "2024-01-15T10:30:00Z", 90, category="disbursement"),
        ],
        resources=[_resource("res-ach", "ACH")],
        orders=[
            _order("order-cc-1", "TO-20240115-CC1", "2024-01-16T16:00:00Z"),
            _order("order-cc-2", "TO-20240115-CC2", "2024-01-16T16:00:00Z"),
            _order("order-cc-3", "TO-20240115-CC3", "2024-01-16T16:00:00Z"),
        ],
    )  # fmt: skip


def circular_dependency() -> ReflowInput:
    """Two tasks waiting on each other; nothing can be scheduled."""
    return ReflowInput(
        tasks=[
            _task("task-circ-1", "STL-CIRC-001", "order-circ", "res-swift-imp",
                  "2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z", 60,
                  depends_on=["task-circ-2"], category="fundTransfer"),
            _task("task-circ-2", "STL-CIRC-002", "order-circ", "res-swift-imp",
                  "2024-01-15T10:00:00Z", "2024-01-15T11:00:00Z", 60,
                  depends_on=["task-circ-1"], category="marginCheck"),
        ],
        resources=[_resource("res-swift-imp", "SWIFT-IMP")],
        orders=[_order("order-circ", "TO-CIRC", "2024-01-16T16:00:00Z")],
    )  # fmt: skip


def pinned_conflict() -> ReflowInput:
    """A pinned task overlapping a blackout: reported, never moved."""
    return ReflowInput(
        tasks=[
            _task("task-rh-1", "STL-RH-001", "order-rh", "res-swift-rh",
                  "2024-01-15T10:00:00Z", "2024-01-15T12:00:00Z", 120,
                  pinned=True, category="regulatoryHold"),
        ],
        resources=[
            _resource(
                "res-swift-rh",
                "SWIFT-RH",
                [("2024-01-15T11:00:00Z", "2024-01-15T11:30:00Z", "Regulatory system update")],
            )
        ],
        orders=[_order("order-rh", "TO-RH", "2024-01-16T16:00:00Z")],
    )  # fmt: skip


def deadline_breach() -> ReflowInput:
    """A late chain on one resource overruns a tight order deadline."""
    return ReflowInput(
        tasks=[
            _task("task-dl-1", "STL-DL-001", "order-dl", "res-swift-dl",
                  "2024-01-15T14:00:00Z", "2024-01-15T16:00:00Z", 120,
                  category="complianceScreen"),
            _task("task-dl-2", "STL-DL-002", "order-dl", "res-swift-dl",
                  "2024-01-15T10:00:00Z", "2024-01-15T14:00:00Z", 240,
                  depends_on=["task-dl-1"], category="fundTransfer"),
            _task("task-dl-3", "STL-DL-003", "order-dl", "res-swift-dl",
                  "2024-01-15T14:00:00Z", "2024-01-15T16:00:00Z", 120,
                  depends_on=["task-dl-2"], category="reconciliation"),
        ],
        resources=[_resource("res-swift-dl", "SWIFT-DL")],
        orders=[_order("order-dl", "TO-DL", "2024-01-16T12:00:00Z")],
    )  # fmt: skip


SCENARIOS: dict[str, Scenario] = {
    scenario.key: scenario
    for scenario in (
        Scenario("delay-cascade", "Delay Cascade",
                 "A first step starting three hours late shifts its whole chain.", delay_cascade),
        Scenario("blackout", "Availability + Blackout",
                 "Work pauses at close and resumes after a morning blackout.", blackout),
        Scenario("multi-constraint", "Multi-Constraint",
                 "Dependency, blackout and contention on one resource.", multi_constraint),
        Scenario("resource-contention", "Resource Contention",
                 "Independent tasks serialized in original-start order.", resource_contention),
        Scenario("circular-dependency", "Circular Dependency",
                 "A dependency cycle aborts the run.", circular_dependency),
        Scenario("pinned-conflict", "Pinned Task Conflict",
                 "A pinned task overlapping a blackout is reported, not moved.", pinned_conflict),
        Scenario("deadline-breach", "Deadline Breach",
                 "Cascading delays overrun the order deadline.", deadline_breach),
    )
}  # fmt: skip


def list_scenarios() -> list[Scenario]:
    """All scenarios in catalog order."""
    return list(SCENARIOS.values())


def find_scenario(key: str) -> Scenario:
    """Look up a scenario by key.

    Raises:
        ScenarioNotFoundError: If the key is unknown
    """
    scenario = SCENARIOS.get(key)
    if scenario is None:
        available = ", ".join(SCENARIOS)
        raise ScenarioNotFoundError(f"Unknown scenario '{key}'. Available: {available}")
    return scenario


def get_scenario(key: str) -> ReflowInput:
    """Build the input of a named scenario."""
    return find_scenario(key).build()
