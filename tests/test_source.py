"""Tests for the snapshot source interface."""

import pytest

from goal_rollup.models import Entity, Health, Objective, PeriodicUpdate, SalesMetric, UpdateKind, WorkItem
from goal_rollup.source import Snapshot, SnapshotSource


class MemorySource(SnapshotSource):
    """In-memory source for testing."""

    def __init__(self) -> None:
        """Initialize with a one-person roster."""
        self.calls: list[str] = []

    def load_entities(self) -> list[Entity]:
        self.calls.append("entities")
        return [Entity(id="e1", name="Alice")]

    def load_objectives(self) -> list[Objective]:
        self.calls.append("objectives")
        return [Objective(id="o1", title="Grow revenue")]

    def load_items(self) -> list[WorkItem]:
        self.calls.append("items")
        return [WorkItem(id="i1", objective_id="o1", owner="Alice")]

    def load_item_updates(self) -> list[PeriodicUpdate]:
        self.calls.append("item_updates")
        return [PeriodicUpdate(subject_id="i1", month="Feb", year=2025, health=Health.GREEN)]

    def load_objective_updates(self) -> list[PeriodicUpdate]:
        self.calls.append("objective_updates")
        return [
            PeriodicUpdate(subject_id="o1", month="Feb", year=2025, health=Health.AMBER, kind=UpdateKind.OBJECTIVE)
        ]

    def load_sales_metrics(self) -> list[SalesMetric]:
        self.calls.append("sales_metrics")
        return []


def test_load_collects_every_section() -> None:
    """Test that load reads each collection once."""
    source = MemorySource()

    snapshot = source.load()

    assert source.calls == ["entities", "objectives", "items", "item_updates", "objective_updates", "sales_metrics"]
    assert snapshot.entities[0].name == "Alice"
    assert snapshot.items[0].objective_id == "o1"
    assert snapshot.objective_updates[0].kind == UpdateKind.OBJECTIVE
    assert snapshot.sales_metrics == []


def test_source_is_abstract() -> None:
    """Test that the interface cannot be instantiated."""
    with pytest.raises(TypeError):
        SnapshotSource()  # type: ignore[abstract]


def test_empty_snapshot() -> None:
    """Test snapshot defaults."""
    snapshot = Snapshot()
    assert snapshot.entities == []
    assert snapshot.item_updates == []
