"""Status, health and progress aggregates over work items and updates."""

from typing import Iterable

import structlog

from goal_rollup.attribution import AttributionIndex
from goal_rollup.hierarchy import Hierarchy
from goal_rollup.models import (
    DepartmentHealth,
    Entity,
    Health,
    HealthCounts,
    PeriodicUpdate,
    Rollup,
    Status,
    StatusChange,
    StatusCounts,
    TeamTotals,
    WorkItem,
)
from goal_rollup.periods import in_period, latest_by_subject
from goal_rollup.settings import DEFAULT_SETTINGS, EngineSettings

logger = structlog.get_logger()

_STATUS_FIELDS = {
    Status.NOT_STARTED: "not_started",
    Status.IN_PROGRESS: "in_progress",
    Status.DONE: "done",
    Status.BLOCKED: "blocked",
    Status.PAUSED: "paused",
}


def count_by_status(items: Iterable[WorkItem]) -> StatusCounts:
    """Partition items by status."""
    counts = StatusCounts()
    for item in items:
        attr = _STATUS_FIELDS[item.status]
        setattr(counts, attr, getattr(counts, attr) + 1)
    return counts


def count_by_health(updates: Iterable[PeriodicUpdate], month: str, year: int) -> HealthCounts:
    """Count updates of one exact (month, year) period by health."""
    period_updates = in_period(updates, month, year)
    counts = HealthCounts(total=len(period_updates))
    for update in period_updates:
        if update.health == Health.GREEN:
            counts.green += 1
        elif update.health == Health.AMBER:
            counts.amber += 1
        elif update.health == Health.RED:
            counts.red += 1
    return counts


def status_change(previous: Health | None, current: Health | None) -> StatusChange:
    """Classify a health transition between two periods.

    Moving up the red < amber < green ordering is an improvement, moving
    down is a decline. Everything else is stable, including a transition
    where either side has no update.
    """
    if previous is None or current is None:
        return StatusChange.STABLE
    if current.rank > previous.rank:
        return StatusChange.IMPROVED
    if current.rank < previous.rank:
        return StatusChange.DECLINED
    return StatusChange.STABLE


def average_progress(items: Iterable[WorkItem]) -> float:
    """Mean progress of the items, 0 when there are none."""
    values = [item.progress for item in items]
    if not values:
        return 0.0
    return sum(values) / len(values)


def completion_rate(items: Iterable[WorkItem]) -> float:
    """Percentage of items that are done, 0 when there are none."""
    items = list(items)
    if not items:
        return 0.0
    return sum(1 for item in items if item.status == Status.DONE) / len(items) * 100


def infer_health_from_items(
    items: Iterable[WorkItem],
    updates_for_period: Iterable[PeriodicUpdate],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Health:
    """Approximate objective health from its items when no explicit update exists.

    An item is troubled when its latest update in the period is red or it is
    blocked. More than `red_item_fraction` troubled items gives red, any
    troubled item gives amber, otherwise green.
    """
    items = list(items)
    latest = latest_by_subject(updates_for_period)
    troubled = [
        item
        for item in items
        if item.status == Status.BLOCKED or (item.id in latest and latest[item.id].health == Health.RED)
    ]
    if len(troubled) > len(items) * settings.red_item_fraction:
        return Health.RED
    if troubled or any(item.status == Status.BLOCKED for item in items):
        return Health.AMBER
    return Health.GREEN


def rollup(items: Iterable[WorkItem], updates: Iterable[PeriodicUpdate], month: str, year: int) -> Rollup:
    """Status counts, period health counts and average progress for a set of items."""
    items = list(items)
    result = Rollup(
        status_counts=count_by_status(items),
        health_counts=count_by_health(updates, month, year),
        average_progress=average_progress(items),
    )
    logger.debug(
        "Rollup computed",
        month=month,
        year=year,
        item_count=len(items),
        update_count=result.health_counts.total,
    )
    return result


def team_totals(
    entity: Entity,
    entities: Iterable[Entity],
    items: Iterable[WorkItem],
    hierarchy: Hierarchy | None = None,
    index: AttributionIndex | None = None,
) -> TeamTotals:
    """Item counts for a person plus everyone reporting into them.

    Each person in the subtree is counted once even when the roster loops.
    """
    hierarchy = hierarchy or Hierarchy(entities)
    index = index or AttributionIndex(items)

    totals = TeamTotals()
    for person in [entity, *hierarchy.transitive_reports(entity)]:
        owned = index.owned_by(person)
        counts = count_by_status(owned)
        totals.blocked += counts.blocked
        totals.active += counts.in_progress
        totals.done += counts.done
        totals.total += len(owned)
    return totals


def department_health(
    entities: Iterable[Entity],
    items: Iterable[WorkItem],
    updates: Iterable[PeriodicUpdate],
    month: str,
    year: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[DepartmentHealth]:
    """Health of each department's items for one period.

    Departments are listed in the order they first appear in the roster.
    """
    entities = list(entities)
    index = AttributionIndex(items)
    period_updates = in_period(updates, month, year)

    departments: list[str] = []
    for entity in entities:
        if entity.department not in departments:
            departments.append(entity.department)

    results = []
    for department in departments:
        people = [e for e in entities if e.department == department]
        dept_items = index.owned_by_any(people)
        item_ids = {item.id for item in dept_items}
        dept_updates = [u for u in period_updates if u.subject_id in item_ids]

        red = sum(1 for u in dept_updates if u.health == Health.RED)
        amber = sum(1 for u in dept_updates if u.health == Health.AMBER)
        health = Health.GREEN
        if red > len(dept_updates) * settings.red_update_fraction:
            health = Health.RED
        elif red > 0 or amber > len(dept_updates) * settings.amber_update_fraction:
            health = Health.AMBER

        results.append(
            DepartmentHealth(
                name=department,
                health=health,
                goals_completed=sum(1 for item in dept_items if item.status == Status.DONE),
                goals_total=len(dept_items),
            )
        )
    return results
