"""Free-text owner resolution against the roster.

Work items carry their owner as free text: sometimes an entity id, sometimes
a full name, sometimes only a first name. Matching is permissive on purpose.
Either normalized string containing the other counts as a match, so
"Federico" resolves to "Federico Rossi". Short names can therefore match
several people ("Ann" matches "Anna" and "Hannah"); callers that care use
`owner_candidates` to see every match.
"""

from typing import Iterable

import structlog

from goal_rollup.models import Entity

logger = structlog.get_logger()


def normalize(text: str | None) -> str:
    """Lowercase and trim a key for comparison."""
    return (text or "").strip().lower()


def key_matches(owner_text: str | None, key: str | None) -> bool:
    """Check whether owner text and a bare key refer to the same person.

    Equal after normalization, or either one a non-empty substring of the other.
    """
    owner = normalize(owner_text)
    other = normalize(key)
    if not owner or not other:
        return False
    return owner == other or owner in other or other in owner


def exact_match(owner_text: str | None, entity: Entity) -> bool:
    """Match by id or by normalized name, without containment."""
    owner = normalize(owner_text)
    if not owner:
        return False
    return owner_text == entity.id or owner == normalize(entity.name)


def matches(owner_text: str | None, entity: Entity) -> bool:
    """Check whether owner text refers to an entity."""
    return exact_match(owner_text, entity) or key_matches(owner_text, entity.name)


def owner_candidates(owner_text: str | None, entities: Iterable[Entity]) -> list[Entity]:
    """Return every entity the owner text could refer to.

    Exact matches come first, then containment matches, each in roster order.
    """
    exact: list[Entity] = []
    fuzzy: list[Entity] = []
    for entity in entities:
        if exact_match(owner_text, entity):
            exact.append(entity)
        elif key_matches(owner_text, entity.name):
            fuzzy.append(entity)
    if len(exact) + len(fuzzy) > 1:
        logger.debug("Ambiguous owner text", owner=owner_text, exact=len(exact), fuzzy=len(fuzzy))
    return exact + fuzzy


def find_owner(owner_text: str | None, entities: Iterable[Entity]) -> Entity | None:
    """Resolve owner text to a single entity, preferring exact matches."""
    candidates = owner_candidates(owner_text, entities)
    if not candidates:
        logger.debug("Owner text matches no entity", owner=owner_text)
        return None
    return candidates[0]
