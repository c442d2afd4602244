"""CLI for the goal rollup engine."""

from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from goal_rollup.board import board_summary, objective_progress, risks_issues, trend_series
from goal_rollup.config import get_config
from goal_rollup.config_commands import config_app
from goal_rollup.hierarchy_commands import hierarchy_app
from goal_rollup.identity import find_owner
from goal_rollup.models import Entity, PeriodicUpdate, WorkItem
from goal_rollup.periods import current_period, month_index
from goal_rollup.rollup import rollup
from goal_rollup.scope import Scope, filter_items, resolve_scope, sales_view_entities
from goal_rollup.settings import EngineSettings
from goal_rollup.source import Snapshot, SnapshotSource
from goal_rollup.sources import YamlSnapshotSource

logger = structlog.get_logger()

app = App(
    help="Goal Rollup - Hierarchy, scope and health rollups for goal tracking",
)

app.command(hierarchy_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_source() -> SnapshotSource:
    """Get the configured snapshot source."""
    config = get_config()
    source_type = config.get("snapshot.type", "yaml")

    if source_type == "yaml":
        path = config.get("snapshot.path", "snapshot.yaml")
        return YamlSnapshotSource(path)
    raise ValueError(f"Unknown snapshot type: {source_type}")


def load_snapshot() -> Snapshot:
    """Load a fresh snapshot from the configured source."""
    return get_source().load()


def get_settings() -> EngineSettings:
    """Engine settings from the merged configuration."""
    return get_config().engine_settings()


def resolve_period(month: str | None, year: int | None) -> tuple[str, int]:
    """Fill in the current month or year when not given."""
    default_month, default_year = current_period()
    month = month or default_month
    month_index(month)
    return month, year or default_year


def find_viewer(viewer: str, entities: list[Entity]) -> Entity | None:
    """Look up the acting viewer by id or name."""
    entity = find_owner(viewer, entities)
    if entity is None:
        print(f"No entity matches {viewer!r}; nothing is visible")
    return entity


def _viewer_scope(viewer: str | None, snapshot: Snapshot) -> Scope:
    if viewer is None:
        return Scope.all()
    return resolve_scope(find_viewer(viewer, snapshot.entities), snapshot.entities)


def _updates_for(items: list[WorkItem], updates: list[PeriodicUpdate]) -> list[PeriodicUpdate]:
    item_ids = {item.id for item in items}
    return [u for u in updates if u.subject_id in item_ids]


@app.command
def scope(viewer: str) -> None:
    """Show the entity keys a viewer may see."""
    snapshot = load_snapshot()
    visible = _viewer_scope(viewer, snapshot)

    if visible.unrestricted:
        print("Scope: all (unrestricted)")
        return
    if visible.is_empty:
        print("Scope: empty")
        return
    print(f"Scope ({len(visible.keys)} key(s)):\n")
    for key in sorted(visible.keys):
        print(f"  {key}")


@app.command
def items(viewer: str) -> None:
    """List the work items a viewer may see."""
    snapshot = load_snapshot()
    visible = filter_items(snapshot.items, _viewer_scope(viewer, snapshot))

    print(f"Found {len(visible)} item(s):\n")
    for item in visible:
        print(f"{item.id}: {item.title} [{item.status.value}, {item.priority.value}, {item.progress:g}%] ({item.owner})")


@app.command
def sales(viewer: str) -> None:
    """List the people visible in the sales views."""
    snapshot = load_snapshot()
    entity = find_viewer(viewer, snapshot.entities)
    visible = sales_view_entities(entity, snapshot.entities)

    print(f"Found {len(visible)} person(s):\n")
    for person in visible:
        team = f" / {person.team}" if person.team else ""
        print(f"{person.id}: {person.name} ({person.department}{team})")


@app.command
def report(viewer: str | None = None, month: str | None = None, year: int | None = None) -> None:
    """Show status counts, health counts and average progress."""
    month, year = resolve_period(month, year)
    snapshot = load_snapshot()
    visible = filter_items(snapshot.items, _viewer_scope(viewer, snapshot))
    updates = _updates_for(visible, snapshot.item_updates)

    result = rollup(visible, updates, month, year)
    status = result.status_counts
    health = result.health_counts
    print(f"Rollup for {month} {year} ({status.total} item(s))\n")
    print(
        f"Status: not started {status.not_started}, in progress {status.in_progress}, "
        f"done {status.done}, blocked {status.blocked}, paused {status.paused}"
    )
    print(f"Health: green {health.green}, amber {health.amber}, red {health.red} of {health.total}")
    print(f"Average progress: {result.average_progress:.2f}%")


@app.command
def progress(month: str | None = None, year: int | None = None) -> None:
    """Show per-objective progress, health and trend."""
    month, year = resolve_period(month, year)
    snapshot = load_snapshot()
    results = objective_progress(
        snapshot.objectives,
        snapshot.items,
        snapshot.objective_updates,
        month,
        year,
        item_updates=snapshot.item_updates,
        settings=get_settings(),
    )

    for entry in results:
        source = "inferred" if entry.inferred else "reported"
        print(
            f"{entry.objective.id}: {entry.objective.title} - {entry.progress}% "
            f"{entry.health.value} ({source}, {entry.status_change.value})"
        )
        for milestone in entry.milestones:
            marker = "✓" if milestone.completed else "○"
            print(f"    {marker} {milestone.date} {milestone.title}")


@app.command
def summary(viewer: str | None = None, month: str | None = None, year: int | None = None) -> None:
    """Show the executive summary for a period."""
    month, year = resolve_period(month, year)
    snapshot = load_snapshot()
    visible = filter_items(snapshot.items, _viewer_scope(viewer, snapshot))
    updates = _updates_for(visible, snapshot.item_updates)
    result = board_summary(
        visible, updates, snapshot.objective_updates, month, year, settings=get_settings()
    )

    health = result.overall_health
    print(f"Executive summary for {month} {year}\n")
    print(f"Health: green {health.green}, amber {health.amber}, red {health.red} of {health.total}\n")
    for heading, titles in (("Key achievements", result.key_achievements), ("Top priorities", result.top_priorities)):
        print(f"{heading}:")
        for title in titles:
            print(f"  - {title}")
        print()
    print("Critical blockers:")
    for blocker in result.critical_blockers:
        flag = " [escalated]" if blocker.escalated else ""
        print(f"  - {blocker.title} ({blocker.owner}, {blocker.health.value}){flag}")


@app.command
def risks(viewer: str | None = None, month: str | None = None, year: int | None = None) -> None:
    """Show the risk register for a period, most urgent first."""
    month, year = resolve_period(month, year)
    snapshot = load_snapshot()
    visible = filter_items(snapshot.items, _viewer_scope(viewer, snapshot))
    entries = risks_issues(
        visible,
        _updates_for(visible, snapshot.item_updates),
        snapshot.objective_updates,
        month,
        year,
        objectives=snapshot.objectives,
    )

    if not entries:
        print(f"No risks for {month} {year}")
        return
    print(f"Found {len(entries)} risk(s):\n")
    for entry in entries:
        flag = "!" if entry.escalated else " "
        print(f"{flag} [{entry.health.value}] {entry.title} - {entry.owner} ({entry.department})")


@app.command
def trend(metric: str = "Revenue", month: str | None = None, year: int | None = None) -> None:
    """Show the trailing trend of a sales metric."""
    month, year = resolve_period(month, year)
    snapshot = load_snapshot()
    points = trend_series(snapshot.sales_metrics, metric, month, year, get_settings().trend_points)

    print(f"{metric} trend:\n")
    for point in points:
        print(f"  {point.period}: {point.actual:g} / {point.target:g}")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


if __name__ == "__main__":
    app.meta()
