"""Visibility scopes: what a viewer is allowed to see.

Two independent policies live here. The reporting scope follows the
management hierarchy and drives which work items and people a viewer sees.
The sales scope follows `sales_performance_access` grants and drives the
sales views. Neither one widens or narrows the other.
"""

from dataclasses import dataclass
from typing import Iterable

import structlog

from goal_rollup.hierarchy import Hierarchy
from goal_rollup.identity import key_matches, normalize
from goal_rollup.models import AccessLevel, Entity, WorkItem

logger = structlog.get_logger()

ALL_SALES_ACCESS = "all"


@dataclass(frozen=True)
class Scope:
    """Entity keys (ids and names) a viewer may see, or everything."""

    keys: frozenset[str] = frozenset()
    unrestricted: bool = False

    @classmethod
    def all(cls) -> "Scope":
        return cls(unrestricted=True)

    @classmethod
    def empty(cls) -> "Scope":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.keys

    def allows_owner(self, owner_text: str | None) -> bool:
        """Check free-text owner against every key with fuzzy containment."""
        if self.unrestricted:
            return True
        return any(key_matches(owner_text, key) for key in self.keys)

    def allows_entity(self, entity: Entity) -> bool:
        """Check an entity's own id exactly and its name with fuzzy containment."""
        if self.unrestricted:
            return True
        entity_id = normalize(entity.id)
        return any(normalize(key) == entity_id or key_matches(entity.name, key) for key in self.keys)


def _entity_keys(entity: Entity) -> set[str]:
    return {key for key in (entity.id, entity.name) if key}


def resolve_scope(
    viewer: Entity | None,
    entities: Iterable[Entity],
    hierarchy: Hierarchy | None = None,
) -> Scope:
    """Compute the reporting scope of a viewer.

    Admins see everything, managers see themselves and everyone reporting
    into them, ICs see themselves. An unresolved viewer sees nothing.

    Args:
        viewer: The acting entity, or None when the viewer matched nobody
        entities: Full roster snapshot
        hierarchy: Prebuilt hierarchy for the same roster, if the caller has one
    """
    if viewer is None:
        logger.debug("No viewer, empty scope")
        return Scope.empty()
    if viewer.access_level == AccessLevel.ADMIN:
        logger.debug("Admin viewer, unrestricted scope", viewer_id=viewer.id)
        return Scope.all()

    keys = _entity_keys(viewer)
    if viewer.access_level == AccessLevel.MANAGER:
        hierarchy = hierarchy or Hierarchy(entities)
        for report in hierarchy.transitive_reports(viewer):
            keys |= _entity_keys(report)

    logger.debug("Resolved scope", viewer_id=viewer.id, access_level=viewer.access_level.value, key_count=len(keys))
    return Scope(keys=frozenset(keys))


def filter_items(items: Iterable[WorkItem], scope: Scope) -> list[WorkItem]:
    """Keep the items whose owner falls inside the scope."""
    items = list(items)
    if scope.unrestricted:
        return items
    return [item for item in items if scope.allows_owner(item.owner)]


def filter_entities(entities: Iterable[Entity], scope: Scope) -> list[Entity]:
    """Keep the entities that fall inside the scope."""
    entities = list(entities)
    if scope.unrestricted:
        return entities
    return [entity for entity in entities if scope.allows_entity(entity)]


@dataclass(frozen=True)
class SalesScope:
    """Sales-view visibility granted to a viewer.

    `mode` is one of:
        "all": the whole roster (admins, sales-department managers)
        "sales": every entity in a sales department
        "regions": entities whose team names one of `regions`
        "reporting": no sales grant, fall back to the reporting scope
        "none": nothing (unresolved viewer)
    """

    mode: str
    regions: tuple[str, ...] = ()

    def allows(self, entity: Entity, reporting: Scope) -> bool:
        if self.mode == "all":
            return True
        if self.mode == "sales":
            return "sales" in normalize(entity.department)
        if self.mode == "regions":
            team = normalize(entity.team)
            return bool(team) and any(normalize(region) in team for region in self.regions)
        if self.mode == "reporting":
            return reporting.allows_entity(entity)
        return False


def resolve_sales_scope(viewer: Entity | None) -> SalesScope:
    """Compute the sales-view scope of a viewer from their grants."""
    if viewer is None:
        return SalesScope(mode="none")
    if viewer.access_level == AccessLevel.ADMIN:
        return SalesScope(mode="all")

    grants = [g for g in viewer.sales_performance_access if normalize(g)]
    if grants:
        if any(normalize(g) == ALL_SALES_ACCESS for g in grants):
            return SalesScope(mode="sales")
        return SalesScope(mode="regions", regions=tuple(grants))

    if viewer.access_level == AccessLevel.MANAGER and "sales" in normalize(viewer.department):
        return SalesScope(mode="all")
    return SalesScope(mode="reporting")


def sales_view_entities(
    viewer: Entity | None,
    entities: Iterable[Entity],
    reporting: Scope | None = None,
) -> list[Entity]:
    """Entities visible in the sales views.

    Args:
        viewer: The acting entity, or None
        entities: Full roster snapshot
        reporting: The viewer's reporting scope, used when no sales grant applies
    """
    entities = list(entities)
    sales_scope = resolve_sales_scope(viewer)
    if sales_scope.mode == "reporting" and reporting is None:
        reporting = resolve_scope(viewer, entities)
    reporting = reporting or Scope.empty()
    visible = [e for e in entities if sales_scope.allows(e, reporting)]
    logger.debug("Sales view resolved", mode=sales_scope.mode, visible_count=len(visible))
    return visible


def can_view_sales_dashboard(viewer: Entity | None) -> bool:
    """Admins, holders of a sales grant, and sales-department members."""
    if viewer is None:
        return False
    if viewer.access_level == AccessLevel.ADMIN:
        return True
    if any(normalize(g) for g in viewer.sales_performance_access):
        return True
    return "sales" in normalize(viewer.department)


def can_manage_sales_actions(viewer: Entity | None) -> bool:
    """Admins, sales managers, and sales operations staff."""
    if viewer is None:
        return False
    if viewer.access_level == AccessLevel.ADMIN:
        return True
    department = normalize(viewer.department)
    team = normalize(viewer.team)
    if viewer.access_level == AccessLevel.MANAGER and "sales" in department:
        return True
    return any("sales ops" in text or "sales operations" in text for text in (department, team))
