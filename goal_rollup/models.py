"""Data models for the goal rollup engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class _ParsableEnum(str, Enum):
    """String enum accepting display values, member names and loose casing."""

    @classmethod
    def parse(cls, value: Any) -> "_ParsableEnum":
        """Parse a raw value into a member.

        Raises:
            ValueError: If the value matches no member
        """
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower().replace("_", " ").replace("-", " ")
        for member in cls:
            if token in (member.value.lower(), member.name.lower().replace("_", " ")):
                return member
        raise ValueError(f"Unknown {cls.__name__} value: {value!r}")


class AccessLevel(_ParsableEnum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    IC = "IC"


class Status(_ParsableEnum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    BLOCKED = "Blocked"
    PAUSED = "Paused"


class Priority(_ParsableEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Health(_ParsableEnum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"

    @property
    def rank(self) -> int:
        """Position in the Red < Amber < Green ordering."""
        return {"red": 0, "amber": 1, "green": 2}[self.value]


class StatusChange(str, Enum):
    IMPROVED = "improved"
    DECLINED = "declined"
    STABLE = "stable"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class UpdateKind(str, Enum):
    OBJECTIVE = "objective"
    ITEM = "item"


@dataclass
class Entity:
    """An organizational person from the roster."""

    id: str
    name: str
    access_level: AccessLevel = AccessLevel.IC
    department: str = ""
    team: str | None = None
    reports_to: str | None = None
    sales_performance_access: list[str] = field(default_factory=list)
    role: str = ""
    email: str | None = None


@dataclass
class Objective:
    """A strategic objective ("Big Rock")."""

    id: str
    title: str
    description: str = ""


@dataclass
class WorkItem:
    """A trackable unit of work attributed to a free-text owner."""

    id: str
    objective_id: str
    owner: str
    title: str = ""
    description: str = ""
    status: Status = Status.NOT_STARTED
    priority: Priority = Priority.MEDIUM
    progress: float = 0
    department: str = ""
    team: str | None = None
    start_date: str = ""
    end_date: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class PeriodicUpdate:
    """A monthly health note on an objective or a work item."""

    subject_id: str
    month: str
    year: int
    health: Health
    content: str = ""
    created_at: str = ""
    updated_at: str = ""
    kind: UpdateKind = UpdateKind.ITEM
    id: str | None = None
    author_id: str | None = None
    source: str | None = None


@dataclass
class SalesMetric:
    """A monthly sales target/actual pair for one person."""

    employee_id: str
    month: str
    year: int
    metric_type: str
    target: float = 0
    actual: float = 0


# Derived views


@dataclass
class StatusCounts:
    not_started: int = 0
    in_progress: int = 0
    done: int = 0
    blocked: int = 0
    paused: int = 0

    @property
    def total(self) -> int:
        return self.not_started + self.in_progress + self.done + self.blocked + self.paused


@dataclass
class HealthCounts:
    green: int = 0
    amber: int = 0
    red: int = 0
    total: int = 0


@dataclass
class Rollup:
    """Status, health and progress aggregate for one scope and period."""

    status_counts: StatusCounts
    health_counts: HealthCounts
    average_progress: float


@dataclass
class TeamTotals:
    """Item counts for a person and everyone reporting into them."""

    blocked: int = 0
    active: int = 0
    done: int = 0
    total: int = 0


@dataclass
class Milestone:
    title: str
    date: str
    completed: bool


@dataclass
class ObjectiveProgress:
    """Per-objective progress rollup for a reporting period."""

    objective: Objective
    progress: int
    health: Health
    status_change: StatusChange
    update: PeriodicUpdate | None = None
    inferred: bool = False
    milestones: list[Milestone] = field(default_factory=list)


@dataclass
class Blocker:
    title: str
    description: str
    owner: str
    health: Health
    escalated: bool


@dataclass
class ExecutiveSummary:
    overall_health: HealthCounts
    key_achievements: list[str] = field(default_factory=list)
    top_priorities: list[str] = field(default_factory=list)
    critical_blockers: list[Blocker] = field(default_factory=list)
    objective_health: HealthCounts = field(default_factory=HealthCounts)


@dataclass
class RiskIssue:
    """An entry of the board-level risks and issues list."""

    id: str
    title: str
    description: str
    health: Health
    owner: str
    department: str
    escalated: bool
    item: WorkItem | None = None
    update: PeriodicUpdate | None = None


@dataclass
class DepartmentHealth:
    name: str
    health: Health
    goals_completed: int
    goals_total: int


@dataclass
class GoalMetrics:
    completion_rate: int
    on_track: int
    at_risk: int
    blocked: int


@dataclass
class SalesMetricSummary:
    target: float
    actual: float
    trend: Trend


@dataclass
class KeyMetrics:
    sales: dict[str, SalesMetricSummary]
    goals: GoalMetrics
    departments: list[DepartmentHealth] = field(default_factory=list)


@dataclass
class TrendPoint:
    month: str
    year: int
    actual: float
    target: float

    @property
    def period(self) -> str:
        return f"{self.month} {self.year}"


@dataclass
class RevenueSummary:
    current: float
    target: float
    variance: float
    variance_percent: float


@dataclass
class MetricHighlight:
    label: str
    value: float
    format: str
    trend: Trend | None = None


@dataclass
class FinancialHighlights:
    revenue: RevenueSummary
    trends: list[TrendPoint] = field(default_factory=list)
    key_metrics: list[MetricHighlight] = field(default_factory=list)
