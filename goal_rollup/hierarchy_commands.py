"""Reporting hierarchy commands for the goal rollup CLI."""

from typing import Any

from cyclopts import App

hierarchy_app = App(name="hierarchy", help="Inspect the reporting hierarchy")


def _print_tree(node: dict[str, Any], depth: int = 0) -> None:
    entity = node["entity"]
    print(f"{'  ' * depth}- {entity['id']} {entity['name']} ({entity['access_level']})")
    for child in node["reports"]:
        _print_tree(child, depth + 1)


@hierarchy_app.command
def tree(entity_id: str | None = None) -> None:
    """Display the reporting tree under an entity, or the whole roster."""
    from goal_rollup.cli import load_snapshot
    from goal_rollup.hierarchy import Hierarchy
    from goal_rollup.identity import find_owner

    snapshot = load_snapshot()
    hierarchy = Hierarchy(snapshot.entities)

    if entity_id is None:
        roots = hierarchy.roots()
    else:
        entity = find_owner(entity_id, snapshot.entities)
        if entity is None:
            raise ValueError(f"No entity matches {entity_id!r}")
        roots = [entity]

    visited: set[str] = set()
    for root in roots:
        _print_tree(hierarchy.reporting_tree(root, visited))


@hierarchy_app.command
def reports(entity_id: str, direct: bool = False) -> None:
    """List everyone reporting into an entity."""
    from goal_rollup.cli import load_snapshot
    from goal_rollup.hierarchy import Hierarchy
    from goal_rollup.identity import find_owner

    snapshot = load_snapshot()
    entity = find_owner(entity_id, snapshot.entities)
    if entity is None:
        raise ValueError(f"No entity matches {entity_id!r}")

    hierarchy = Hierarchy(snapshot.entities)
    people = hierarchy.direct_reports(entity) if direct else hierarchy.transitive_reports(entity)

    if not people:
        print(f"No reports found for {entity.name}")
        return
    kind = "Direct reports" if direct else "Reports"
    print(f"{kind} of {entity.name}:\n")
    for person in people:
        print(f"  {person.id} {person.name} ({person.department})")


@hierarchy_app.command
def totals(entity_id: str) -> None:
    """Show item counts for an entity and their whole team."""
    from goal_rollup.cli import load_snapshot
    from goal_rollup.identity import find_owner
    from goal_rollup.rollup import team_totals

    snapshot = load_snapshot()
    entity = find_owner(entity_id, snapshot.entities)
    if entity is None:
        raise ValueError(f"No entity matches {entity_id!r}")

    result = team_totals(entity, snapshot.entities, snapshot.items)
    print(f"Team of {entity.name}: {result.total} item(s)")
    print(f"  active {result.active}, blocked {result.blocked}, done {result.done}")


@hierarchy_app.command
def cycles() -> None:
    """Find and display loops in reporting lines."""
    from goal_rollup.cli import load_snapshot
    from goal_rollup.hierarchy import Hierarchy

    snapshot = load_snapshot()
    found = Hierarchy(snapshot.entities).find_cycles()

    if not found:
        print("No cycles found")
        return

    print(f"Found {len(found)} cycle(s):\n")
    for i, cycle in enumerate(found, 1):
        cycle_str = " -> ".join(cycle)
        print(f"{i}. {cycle_str} -> {cycle[0]}")
