"""Tests for the YAML snapshot source."""

from pathlib import Path

import pytest
import yaml

from goal_rollup.models import AccessLevel, Health, Priority, Status, UpdateKind
from goal_rollup.sources import YamlSnapshotSource


@pytest.fixture
def document() -> dict:
    """A snapshot mixing the dashboard's camelCase and snake_case keys."""
    return {
        "entities": [
            {
                "id": "e1",
                "name": "Alice",
                "accessLevel": "Manager",
                "department": "Sales",
                "team": "North Region",
                "reportsTo": "",
                "salesPerformanceAccess": "North, South",
            },
            {"id": "e2", "name": "Bob", "access_level": "ic", "reports_to": "Alice"},
        ],
        "objectives": [{"id": "o1", "title": "Grow revenue", "description": "Big rock"}],
        "items": [
            {
                "id": "i1",
                "goalId": "o1",
                "owner": "Bob",
                "title": "Close deals",
                "status": "in_progress",
                "priority": "high",
                "progress": "45",
                "endDate": "2025-03-31",
                "tags": ["q1", "sales"],
            },
        ],
        "item_updates": [
            {
                "itemId": "i1",
                "month": "Feb",
                "year": "2025",
                "status": "Red",
                "content": "Pipeline thin",
                "createdAt": "2025-02-10T08:00:00Z",
            },
        ],
        "objective_updates": [
            {"goalId": "o1", "month": "Feb", "year": 2025, "health": "amber", "authorId": "e1"},
        ],
        "sales_metrics": [
            {"employeeId": "e2", "month": "Feb", "year": 2025, "metricType": "Revenue", "target": 100, "actual": 80},
        ],
    }


def write_snapshot(tmp_path: Path, document: dict) -> Path:
    path = tmp_path / "snapshot.yaml"
    path.write_text(yaml.safe_dump(document))
    return path


def test_load_snapshot(tmp_path: Path, document: dict) -> None:
    """Test reading every section with mixed key spellings."""
    snapshot = YamlSnapshotSource(write_snapshot(tmp_path, document)).load()

    alice, bob = snapshot.entities
    assert alice.access_level == AccessLevel.MANAGER
    assert alice.reports_to is None
    assert alice.sales_performance_access == ["North", "South"]
    assert (bob.access_level, bob.reports_to, bob.department) == (AccessLevel.IC, "Alice", "")

    assert snapshot.objectives[0].title == "Grow revenue"

    (item,) = snapshot.items
    assert (item.objective_id, item.status, item.priority, item.progress) == ("o1", Status.IN_PROGRESS, Priority.HIGH, 45.0)
    assert item.end_date == "2025-03-31"
    assert item.tags == ["q1", "sales"]

    (item_update,) = snapshot.item_updates
    assert (item_update.subject_id, item_update.year, item_update.health) == ("i1", 2025, Health.RED)
    assert item_update.kind == UpdateKind.ITEM
    assert item_update.created_at == "2025-02-10T08:00:00Z"

    (objective_update,) = snapshot.objective_updates
    assert (objective_update.subject_id, objective_update.kind) == ("o1", UpdateKind.OBJECTIVE)
    assert objective_update.author_id == "e1"

    (sale,) = snapshot.sales_metrics
    assert (sale.employee_id, sale.metric_type, sale.target, sale.actual) == ("e2", "Revenue", 100.0, 80.0)


def test_missing_sections_are_empty(tmp_path: Path) -> None:
    """Test a document holding only a roster."""
    path = write_snapshot(tmp_path, {"entities": [{"id": "e1", "name": "Alice"}]})
    snapshot = YamlSnapshotSource(path).load()
    assert len(snapshot.entities) == 1
    assert snapshot.items == []
    assert snapshot.sales_metrics == []


def test_missing_required_field(tmp_path: Path, document: dict) -> None:
    """Test that an item without an owner is rejected."""
    del document["items"][0]["owner"]
    source = YamlSnapshotSource(write_snapshot(tmp_path, document))

    with pytest.raises(ValueError, match="Item record 'i1' is missing required field 'owner'"):
        source.load_items()


def test_unknown_status(tmp_path: Path, document: dict) -> None:
    """Test that an unknown status value is rejected."""
    document["items"][0]["status"] = "Stalled"
    source = YamlSnapshotSource(write_snapshot(tmp_path, document))

    with pytest.raises(ValueError, match="Unknown Status value"):
        source.load_items()


def test_missing_file(tmp_path: Path) -> None:
    """Test reading a snapshot that does not exist."""
    source = YamlSnapshotSource(tmp_path / "absent.yaml")

    with pytest.raises(ValueError, match="Failed to read snapshot"):
        source.load()


def test_section_must_be_a_list(tmp_path: Path) -> None:
    """Test a malformed section."""
    source = YamlSnapshotSource(write_snapshot(tmp_path, {"items": {"id": "i1"}}))

    with pytest.raises(ValueError, match="must be a list"):
        source.load_items()
