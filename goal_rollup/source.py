"""Snapshot source interface for feeding rosters into the engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from goal_rollup.models import Entity, Objective, PeriodicUpdate, SalesMetric, WorkItem


@dataclass
class Snapshot:
    """One consistent read of everything the engine consumes."""

    entities: list[Entity] = field(default_factory=list)
    objectives: list[Objective] = field(default_factory=list)
    items: list[WorkItem] = field(default_factory=list)
    item_updates: list[PeriodicUpdate] = field(default_factory=list)
    objective_updates: list[PeriodicUpdate] = field(default_factory=list)
    sales_metrics: list[SalesMetric] = field(default_factory=list)


class SnapshotSource(ABC):
    """Abstract base class for snapshot sources."""

    @abstractmethod
    def load_entities(self) -> list[Entity]:
        """Load the roster."""
        pass

    @abstractmethod
    def load_objectives(self) -> list[Objective]:
        """Load the objectives."""
        pass

    @abstractmethod
    def load_items(self) -> list[WorkItem]:
        """Load the work items."""
        pass

    @abstractmethod
    def load_item_updates(self) -> list[PeriodicUpdate]:
        """Load item-level periodic updates."""
        pass

    @abstractmethod
    def load_objective_updates(self) -> list[PeriodicUpdate]:
        """Load objective-level periodic updates."""
        pass

    @abstractmethod
    def load_sales_metrics(self) -> list[SalesMetric]:
        """Load monthly sales metrics."""
        pass

    def load(self) -> Snapshot:
        """Load every collection into one snapshot."""
        return Snapshot(
            entities=self.load_entities(),
            objectives=self.load_objectives(),
            items=self.load_items(),
            item_updates=self.load_item_updates(),
            objective_updates=self.load_objective_updates(),
            sales_metrics=self.load_sales_metrics(),
        )
