"""Snapshot source reading one exported YAML or JSON document."""

from pathlib import Path
from typing import Any

import structlog
import yaml

from goal_rollup.models import (
    AccessLevel,
    Entity,
    Health,
    Objective,
    PeriodicUpdate,
    Priority,
    SalesMetric,
    Status,
    UpdateKind,
    WorkItem,
)
from goal_rollup.source import SnapshotSource

logger = structlog.get_logger()

_MISSING = object()


def _field(record: dict[str, Any], kind: str, *names: str, default: Any = _MISSING) -> Any:
    """Read the first present key among snake_case and camelCase spellings.

    Raises:
        ValueError: If no spelling is present and no default is given
    """
    for name in names:
        if name in record and record[name] is not None:
            return record[name]
    if default is _MISSING:
        raise ValueError(f"{kind} record {record.get('id', '?')!r} is missing required field {names[0]!r}")
    return default


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _number(record: dict[str, Any], kind: str, *names: str) -> float:
    raw = _field(record, kind, *names, default=0)
    try:
        return float(raw or 0)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{kind} record {record.get('id', '?')!r} has non-numeric {names[0]!r}: {raw!r}") from e


def _year(record: dict[str, Any], kind: str) -> int:
    raw = _field(record, kind, "year")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{kind} record {record.get('id', '?')!r} has invalid year: {raw!r}") from e


def _tags(value: Any) -> list[str]:
    """Accept a list or a comma-separated string."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [_text(part) for part in value or [] if _text(part)]


class YamlSnapshotSource(SnapshotSource):
    """Snapshot source backed by a single YAML (or JSON) file.

    The document holds top-level lists `entities`, `objectives`, `items`,
    `item_updates`, `objective_updates` and `sales_metrics`. Record keys may
    use snake_case or the dashboard's camelCase spellings.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the source.

        Args:
            path: Path to the snapshot document
        """
        self.path = Path(path)
        self._document: dict[str, Any] | None = None
        logger.debug("Initializing YAML snapshot source", path=str(self.path))

    def _records(self, section: str) -> list[dict[str, Any]]:
        if self._document is None:
            try:
                with open(self.path, "r") as f:
                    document = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.error("Failed to read snapshot", path=str(self.path), error=str(e))
                raise ValueError(f"Failed to read snapshot from {self.path}: {e}") from e
            if not isinstance(document, dict):
                raise ValueError(f"Snapshot {self.path} must contain a mapping of sections")
            self._document = document
            logger.info("Snapshot loaded", path=str(self.path), sections=list(document.keys()))

        records = self._document.get(section) or []
        if not isinstance(records, list):
            raise ValueError(f"Snapshot section {section!r} must be a list")
        return records

    def _record_to_entity(self, record: dict[str, Any]) -> Entity:
        kind = "Entity"
        return Entity(
            id=_text(_field(record, kind, "id")),
            name=_text(_field(record, kind, "name")),
            access_level=AccessLevel.parse(_field(record, kind, "access_level", "accessLevel", default="IC")),
            department=_text(_field(record, kind, "department", default="")),
            team=_text(_field(record, kind, "team", default="")) or None,
            reports_to=_text(_field(record, kind, "reports_to", "reportsTo", default="")) or None,
            sales_performance_access=_tags(
                _field(record, kind, "sales_performance_access", "salesPerformanceAccess", default=[])
            ),
            role=_text(_field(record, kind, "role", default="")),
            email=_text(_field(record, kind, "email", default="")) or None,
        )

    def _record_to_item(self, record: dict[str, Any]) -> WorkItem:
        kind = "Item"
        return WorkItem(
            id=_text(_field(record, kind, "id")),
            objective_id=_text(_field(record, kind, "objective_id", "objectiveId", "goal_id", "goalId")),
            owner=_text(_field(record, kind, "owner")),
            title=_text(_field(record, kind, "title", default="")),
            description=_text(_field(record, kind, "description", default="")),
            status=Status.parse(_field(record, kind, "status", default=Status.NOT_STARTED)),
            priority=Priority.parse(_field(record, kind, "priority", default=Priority.MEDIUM)),
            progress=_number(record, kind, "progress"),
            department=_text(_field(record, kind, "department", default="")),
            team=_text(_field(record, kind, "team", default="")) or None,
            start_date=_text(_field(record, kind, "start_date", "startDate", default="")),
            end_date=_text(_field(record, kind, "end_date", "endDate", default="")),
            tags=_tags(_field(record, kind, "tags", default=[])),
        )

    def _record_to_update(self, record: dict[str, Any], update_kind: UpdateKind) -> PeriodicUpdate:
        kind = "Update"
        if update_kind == UpdateKind.OBJECTIVE:
            subject = _field(record, kind, "subject_id", "subjectId", "objective_id", "objectiveId", "goal_id", "goalId")
        else:
            subject = _field(record, kind, "subject_id", "subjectId", "item_id", "itemId")
        created_at = _text(_field(record, kind, "created_at", "createdAt", default=""))
        updated_at = _text(_field(record, kind, "updated_at", "updatedAt", default=""))
        return PeriodicUpdate(
            subject_id=_text(subject),
            month=_text(_field(record, kind, "month")),
            year=_year(record, kind),
            health=Health.parse(_field(record, kind, "health", "status")),
            content=_text(_field(record, kind, "content", default="")),
            created_at=created_at,
            updated_at=updated_at,
            kind=update_kind,
            id=_text(_field(record, kind, "id", default="")) or None,
            author_id=_text(_field(record, kind, "author_id", "authorId", default="")) or None,
            source=_text(_field(record, kind, "source", default="")) or None,
        )

    def _record_to_sales_metric(self, record: dict[str, Any]) -> SalesMetric:
        kind = "Sales metric"
        return SalesMetric(
            employee_id=_text(_field(record, kind, "employee_id", "employeeId")),
            month=_text(_field(record, kind, "month")),
            year=_year(record, kind),
            metric_type=_text(_field(record, kind, "metric_type", "metricType")),
            target=_number(record, kind, "target"),
            actual=_number(record, kind, "actual"),
        )

    def load_entities(self) -> list[Entity]:
        """Load the roster."""
        entities = [self._record_to_entity(r) for r in self._records("entities")]
        logger.debug("Loaded entities", count=len(entities))
        return entities

    def load_objectives(self) -> list[Objective]:
        """Load the objectives."""
        kind = "Objective"
        objectives = [
            Objective(
                id=_text(_field(r, kind, "id")),
                title=_text(_field(r, kind, "title")),
                description=_text(_field(r, kind, "description", default="")),
            )
            for r in self._records("objectives")
        ]
        logger.debug("Loaded objectives", count=len(objectives))
        return objectives

    def load_items(self) -> list[WorkItem]:
        """Load the work items."""
        items = [self._record_to_item(r) for r in self._records("items")]
        logger.debug("Loaded items", count=len(items))
        return items

    def load_item_updates(self) -> list[PeriodicUpdate]:
        """Load item-level periodic updates."""
        return [self._record_to_update(r, UpdateKind.ITEM) for r in self._records("item_updates")]

    def load_objective_updates(self) -> list[PeriodicUpdate]:
        """Load objective-level periodic updates."""
        return [self._record_to_update(r, UpdateKind.OBJECTIVE) for r in self._records("objective_updates")]

    def load_sales_metrics(self) -> list[SalesMetric]:
        """Load monthly sales metrics."""
        return [self._record_to_sales_metric(r) for r in self._records("sales_metrics")]
