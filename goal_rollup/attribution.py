"""Attribution of work items to the entities that own them."""

from typing import Iterable

import structlog

from goal_rollup.identity import matches
from goal_rollup.models import Entity, WorkItem

logger = structlog.get_logger()


def items_owned_by(entity: Entity, all_items: Iterable[WorkItem]) -> list[WorkItem]:
    """Items whose owner text refers to the entity, in item order."""
    return [item for item in all_items if item.owner == entity.id or matches(item.owner, entity)]


class AttributionIndex:
    """Items grouped by owner text for repeated per-entity lookups.

    Returns exactly what `items_owned_by` returns, but tests each distinct
    owner string once per entity instead of every item.
    """

    def __init__(self, items: Iterable[WorkItem]) -> None:
        """Initialize the index.

        Args:
            items: Full work item snapshot
        """
        self.items: list[WorkItem] = list(items)
        self._positions_by_owner: dict[str, list[int]] = {}
        for position, item in enumerate(self.items):
            self._positions_by_owner.setdefault(item.owner, []).append(position)
        logger.debug(
            "Attribution index built",
            item_count=len(self.items),
            owner_count=len(self._positions_by_owner),
        )

    def _positions(self, entity: Entity) -> set[int]:
        positions: set[int] = set()
        for owner, owned in self._positions_by_owner.items():
            if owner == entity.id or matches(owner, entity):
                positions.update(owned)
        return positions

    def owned_by(self, entity: Entity) -> list[WorkItem]:
        """Items attributed to one entity."""
        return [self.items[p] for p in sorted(self._positions(entity))]

    def owned_by_any(self, entities: Iterable[Entity]) -> list[WorkItem]:
        """Items attributed to any entity of a group, each listed once."""
        positions: set[int] = set()
        for entity in entities:
            positions.update(self._positions(entity))
        return [self.items[p] for p in sorted(positions)]

    def unattributed(self, entities: Iterable[Entity]) -> list[WorkItem]:
        """Items whose owner text matches nobody on the roster."""
        owned = {p for entity in entities for p in self._positions(entity)}
        orphans = [item for p, item in enumerate(self.items) if p not in owned]
        if orphans:
            logger.debug("Unattributed items found", count=len(orphans))
        return orphans
