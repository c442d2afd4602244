"""Reporting hierarchy built from the roster's free-form reports-to field."""

from typing import Any, Iterable

import structlog

from goal_rollup.identity import normalize
from goal_rollup.models import AccessLevel, Entity

logger = structlog.get_logger()


def reports_to_matches(entity: Entity, manager: Entity) -> bool:
    """Check whether an entity's reports-to field names the manager.

    The field may hold the manager's id or display name in any casing.
    An empty field never matches.
    """
    target = normalize(entity.reports_to)
    if not target:
        return False
    return target == normalize(manager.id) or target == normalize(manager.name)


def direct_reports(manager: Entity, all_entities: Iterable[Entity]) -> list[Entity]:
    """Entities reporting straight into the manager, self-reference excluded."""
    return [e for e in all_entities if e.id != manager.id and reports_to_matches(e, manager)]


def transitive_reports(
    manager: Entity,
    all_entities: Iterable[Entity],
    visited: set[str] | None = None,
) -> list[Entity]:
    """All entities reporting into the manager, directly or indirectly.

    `visited` holds the ids already walked during this call and is shared by
    every branch of the recursion. A node seen twice yields nothing the second
    time, so cycles terminate and no entity is listed twice. Pass nothing to
    start a fresh walk.
    """
    roster = list(all_entities)
    if visited is None:
        visited = set()
    if manager.id in visited:
        logger.debug("Cycle in reporting line, stopping branch", entity_id=manager.id)
        return []
    visited.add(manager.id)

    reports: list[Entity] = []
    for report in direct_reports(manager, roster):
        if report.id in visited:
            continue
        reports.append(report)
        reports.extend(transitive_reports(report, roster, visited))
    return reports


class Hierarchy:
    """Indexed view of one roster snapshot.

    Lookups are indexed once at construction and transitive subtrees are
    memoized per root. Build a new instance whenever the roster changes.
    """

    def __init__(self, entities: Iterable[Entity]) -> None:
        """Initialize the hierarchy.

        Args:
            entities: Full roster snapshot
        """
        self.entities: list[Entity] = list(entities)
        self._reports_by_key: dict[str, list[int]] = {}
        self._entities_by_key: dict[str, list[int]] = {}
        self._subtrees: dict[str, list[Entity]] = {}

        for position, entity in enumerate(self.entities):
            target = normalize(entity.reports_to)
            if target:
                self._reports_by_key.setdefault(target, []).append(position)
            for key in {normalize(entity.id), normalize(entity.name)}:
                if key:
                    self._entities_by_key.setdefault(key, []).append(position)

        logger.debug(
            "Hierarchy indexed",
            entity_count=len(self.entities),
            manager_key_count=len(self._reports_by_key),
        )

    def direct_reports(self, manager: Entity) -> list[Entity]:
        """Entities reporting straight into the manager, in roster order."""
        positions: set[int] = set()
        for key in (normalize(manager.id), normalize(manager.name)):
            positions.update(self._reports_by_key.get(key, []))
        return [self.entities[p] for p in sorted(positions) if self.entities[p].id != manager.id]

    def transitive_reports(self, manager: Entity) -> list[Entity]:
        """All direct and indirect reports, memoized per root."""
        if manager.id not in self._subtrees:
            self._subtrees[manager.id] = self._walk(manager, set())
        return list(self._subtrees[manager.id])

    def _walk(self, manager: Entity, visited: set[str]) -> list[Entity]:
        if manager.id in visited:
            return []
        visited.add(manager.id)
        reports: list[Entity] = []
        for report in self.direct_reports(manager):
            if report.id in visited:
                logger.debug("Cycle in reporting line, stopping branch", entity_id=report.id)
                continue
            reports.append(report)
            reports.extend(self._walk(report, visited))
        return reports

    def is_manager(self, entity: Entity) -> bool:
        """Managers by access level, or anyone with direct reports."""
        return entity.access_level == AccessLevel.MANAGER or bool(self.direct_reports(entity))

    def managers_of(self, entity: Entity) -> list[Entity]:
        """Every roster entry the reports-to field could name, self included."""
        target = normalize(entity.reports_to)
        if not target:
            return []
        return [self.entities[p] for p in self._entities_by_key.get(target, [])]

    def manager_of(self, entity: Entity) -> Entity | None:
        """Resolve the manager, preferring an id match over a name match."""
        candidates = [m for m in self.managers_of(entity) if m.id != entity.id]
        if not candidates:
            return None
        target = normalize(entity.reports_to)
        for candidate in candidates:
            if normalize(candidate.id) == target:
                return candidate
        return candidates[0]

    def roots(self) -> list[Entity]:
        """Top-level entities covering the whole roster.

        Entities without a resolvable manager come first. Any entity left
        unreachable from them sits on a closed reporting loop; the first such
        entity in roster order is promoted to a root for its loop.
        """
        roots = [e for e in self.entities if self.manager_of(e) is None]
        covered: set[str] = set()
        for root in roots:
            covered.add(root.id)
            covered.update(r.id for r in self.transitive_reports(root))
        for entity in self.entities:
            if entity.id not in covered:
                roots.append(entity)
                covered.add(entity.id)
                covered.update(r.id for r in self.transitive_reports(entity))
        return roots

    def reporting_tree(self, entity: Entity, visited: set[str] | None = None) -> dict[str, Any]:
        """Nested reporting structure under an entity.

        Returns:
            Dictionary with structure:
            {
                "entity": {"id": str, "name": str, "access_level": str},
                "reports": list[dict]  # same structure, one per direct report
            }
        """
        if visited is None:
            visited = set()
        visited.add(entity.id)
        subtrees = []
        for report in self.direct_reports(entity):
            if report.id in visited:
                continue
            subtrees.append(self.reporting_tree(report, visited))
        return {
            "entity": {
                "id": entity.id,
                "name": entity.name,
                "access_level": entity.access_level.value,
            },
            "reports": subtrees,
        }

    def find_cycles(self) -> list[list[str]]:
        """Find every distinct reporting loop, as lists of entity ids.

        Each loop is reported once, rotated to start at its smallest id.
        Self-reference counts as a loop of one.
        """
        edges = {e.id: [m.id for m in self.managers_of(e)] for e in self.entities}
        state: dict[str, int] = {}
        seen: set[frozenset[str]] = set()
        cycles: list[list[str]] = []

        def visit(node: str, path: list[str]) -> None:
            state[node] = 1
            path.append(node)
            for target in edges.get(node, []):
                if state.get(target) == 1:
                    cycle = path[path.index(target):]
                    key = frozenset(cycle)
                    if key not in seen:
                        seen.add(key)
                        start = cycle.index(min(cycle))
                        cycles.append(cycle[start:] + cycle[:start])
                elif target not in state:
                    visit(target, path)
            path.pop()
            state[node] = 2

        for entity in self.entities:
            if entity.id not in state:
                visit(entity.id, [])

        logger.debug("Cycle search finished", cycle_count=len(cycles))
        return cycles
