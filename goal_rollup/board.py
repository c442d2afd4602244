"""Leadership-facing board summaries built on the rollup aggregates."""

import math
from datetime import date
from typing import Iterable

import structlog

from goal_rollup.models import (
    Blocker,
    Entity,
    ExecutiveSummary,
    FinancialHighlights,
    GoalMetrics,
    Health,
    KeyMetrics,
    MetricHighlight,
    Milestone,
    Objective,
    ObjectiveProgress,
    PeriodicUpdate,
    Priority,
    RevenueSummary,
    RiskIssue,
    SalesMetric,
    SalesMetricSummary,
    Status,
    Trend,
    TrendPoint,
    WorkItem,
)
from goal_rollup.periods import in_period, latest_update, previous_period
from goal_rollup.rollup import (
    average_progress,
    completion_rate,
    count_by_health,
    department_health,
    infer_health_from_items,
    status_change,
)
from goal_rollup.settings import DEFAULT_SETTINGS, EngineSettings

logger = structlog.get_logger()

HIGH_PRIORITIES = (Priority.HIGH, Priority.CRITICAL)

# Rates are averaged across people; everything else is summed.
RATE_METRICS = ("Conversion", "Sales Rate")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _milestone_date(text: str) -> date:
    try:
        return date.fromisoformat(text.strip()[:10])
    except ValueError:
        return date.max


def _is_escalated(item: WorkItem) -> bool:
    return item.priority == Priority.CRITICAL or item.status == Status.BLOCKED


def board_summary(
    items: Iterable[WorkItem],
    updates: Iterable[PeriodicUpdate],
    objective_updates: Iterable[PeriodicUpdate],
    month: str,
    year: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> ExecutiveSummary:
    """Executive snapshot of one reporting period.

    Lists keep roster order and are truncated, never ranked.

    Args:
        items: Work items in scope
        updates: Item-level updates
        objective_updates: Objective-level updates
        month: Month token of the period
        year: Year of the period
        settings: List limits
    """
    items = list(items)
    period_updates = in_period(updates, month, year)

    def period_health(item: WorkItem) -> Health | None:
        update = latest_update(period_updates, item.id)
        return update.health if update else None

    achievements = [
        item.title for item in items if period_health(item) == Health.GREEN and item.progress >= 80
    ][: settings.achievement_limit]

    priorities = [
        item.title for item in items if item.priority in HIGH_PRIORITIES and item.status != Status.DONE
    ][: settings.priority_limit]

    blockers = [
        Blocker(
            title=item.title,
            description=item.description or "No description",
            owner=item.owner,
            health=period_health(item) or Health.RED,
            escalated=_is_escalated(item),
        )
        for item in items
        if item.status == Status.BLOCKED or period_health(item) == Health.RED
    ][: settings.blocker_limit]

    summary = ExecutiveSummary(
        overall_health=count_by_health(period_updates, month, year),
        key_achievements=achievements,
        top_priorities=priorities,
        critical_blockers=blockers,
        objective_health=count_by_health(objective_updates, month, year),
    )
    logger.info(
        "Executive summary composed",
        month=month,
        year=year,
        achievements=len(achievements),
        priorities=len(priorities),
        blockers=len(blockers),
    )
    return summary


def objective_progress(
    objectives: Iterable[Objective],
    items: Iterable[WorkItem],
    updates: Iterable[PeriodicUpdate],
    month: str,
    year: int,
    item_updates: Iterable[PeriodicUpdate] = (),
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[ObjectiveProgress]:
    """Progress, health and trend of every objective for one period.

    Health comes from the latest objective update of the period when there is
    one, otherwise it is inferred from the objective's items. The status
    change compares the explicit updates of this period and the previous one.

    Args:
        objectives: Objectives to report on
        items: Work items, matched to objectives by objective id
        updates: Objective-level updates
        month: Month token of the period
        year: Year of the period
        item_updates: Item-level updates, used when health must be inferred
        settings: Inference thresholds and milestone limit
    """
    items = list(items)
    updates = list(updates)
    period_item_updates = in_period(item_updates, month, year)
    prev_month, prev_year = previous_period(month, year)

    results = []
    for objective in objectives:
        objective_items = [item for item in items if item.objective_id == objective.id]
        current = latest_update(updates, objective.id, month, year)
        previous = latest_update(updates, objective.id, prev_month, prev_year)

        if current is not None:
            health = current.health
        else:
            health = infer_health_from_items(objective_items, period_item_updates, settings)

        milestones = sorted(
            (
                Milestone(
                    title=item.title,
                    date=item.end_date,
                    completed=item.status == Status.DONE or item.progress == 100,
                )
                for item in objective_items
                if item.end_date
            ),
            key=lambda m: _milestone_date(m.date),
        )[: settings.milestone_limit]

        results.append(
            ObjectiveProgress(
                objective=objective,
                progress=_round_half_up(average_progress(objective_items)),
                health=health,
                status_change=status_change(
                    previous.health if previous else None,
                    current.health if current else None,
                ),
                update=current,
                inferred=current is None,
                milestones=milestones,
            )
        )

    logger.info("Objective progress computed", month=month, year=year, objective_count=len(results))
    return results


def risks_issues(
    items: Iterable[WorkItem],
    updates: Iterable[PeriodicUpdate],
    objective_updates: Iterable[PeriodicUpdate],
    month: str,
    year: int,
    objectives: Iterable[Objective] = (),
) -> list[RiskIssue]:
    """Board risk register for one period, most urgent first.

    Entries are gathered in a fixed sequence: red item updates, amber updates
    on high or critical items, blocked items not yet listed, then red
    objective updates. An item appears at most once. The result is stably
    sorted with escalated entries first, then red before amber.
    """
    items_by_id: dict[str, WorkItem] = {}
    for item in items:
        items_by_id.setdefault(item.id, item)
    titles = {objective.id: objective.title for objective in objectives}
    period_updates = in_period(updates, month, year)

    risks: list[RiskIssue] = []
    listed: set[str] = set()

    for update in period_updates:
        item = items_by_id.get(update.subject_id)
        if item is None or item.id in listed or update.health != Health.RED:
            continue
        listed.add(item.id)
        risks.append(
            RiskIssue(
                id=f"risk-{item.id}",
                title=item.title,
                description=update.content or item.description or "No description",
                health=Health.RED,
                owner=item.owner,
                department=item.department,
                escalated=_is_escalated(item),
                item=item,
                update=update,
            )
        )

    for update in period_updates:
        item = items_by_id.get(update.subject_id)
        if item is None or item.id in listed or update.health != Health.AMBER:
            continue
        if item.priority not in HIGH_PRIORITIES:
            continue
        listed.add(item.id)
        risks.append(
            RiskIssue(
                id=f"risk-{item.id}",
                title=item.title,
                description=update.content or item.description or "No description",
                health=Health.AMBER,
                owner=item.owner,
                department=item.department,
                escalated=False,
                item=item,
                update=update,
            )
        )

    for item in items_by_id.values():
        if item.status != Status.BLOCKED or item.id in listed:
            continue
        listed.add(item.id)
        risks.append(
            RiskIssue(
                id=f"blocked-{item.id}",
                title=item.title,
                description=item.description or "Item is blocked",
                health=Health.RED,
                owner=item.owner,
                department=item.department,
                escalated=True,
                item=item,
                update=latest_update(period_updates, item.id),
            )
        )

    flagged_objectives: set[str] = set()
    for update in in_period(objective_updates, month, year):
        if update.health != Health.RED or update.subject_id in flagged_objectives:
            continue
        flagged_objectives.add(update.subject_id)
        risks.append(
            RiskIssue(
                id=f"rock-{update.subject_id}",
                title=f"Strategic Goal: {titles.get(update.subject_id, update.subject_id)}",
                description=update.content or "Strategic goal at risk",
                health=Health.RED,
                owner="Leadership",
                department="Strategic",
                escalated=True,
                update=update,
            )
        )

    risks.sort(key=lambda r: (not r.escalated, r.health != Health.RED))
    logger.info("Risk register composed", month=month, year=year, risk_count=len(risks))
    return risks


def _aggregate(records: list[SalesMetric], metric_type: str) -> tuple[float, float]:
    """Return (actual, target) for one metric across people."""
    matching = [r for r in records if r.metric_type == metric_type]
    if not matching:
        return 0.0, 0.0
    actual = sum(r.actual for r in matching)
    target = sum(r.target for r in matching)
    if metric_type in RATE_METRICS:
        return actual / len(matching), target / len(matching)
    return actual, target


def sales_trend(actual: float, previous_actual: float, band: float = DEFAULT_SETTINGS.trend_band) -> Trend:
    """Direction of a metric versus the previous period, stable inside the band."""
    if previous_actual <= 0:
        return Trend.STABLE
    if actual > previous_actual * (1 + band):
        return Trend.UP
    if actual < previous_actual * (1 - band):
        return Trend.DOWN
    return Trend.STABLE


def key_metrics(
    sales: Iterable[SalesMetric],
    items: Iterable[WorkItem],
    updates: Iterable[PeriodicUpdate],
    entities: Iterable[Entity],
    month: str,
    year: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> KeyMetrics:
    """Sales, goal and department indicators for one period."""
    sales = list(sales)
    items = list(items)
    updates = list(updates)
    prev_month, prev_year = previous_period(month, year)
    current_sales = [s for s in sales if s.month == month and s.year == year]
    previous_sales = [s for s in sales if s.month == prev_month and s.year == prev_year]

    sales_summary = {}
    for metric_type in ("Revenue", "Conversion", "Listings"):
        actual, target = _aggregate(current_sales, metric_type)
        previous_actual, _ = _aggregate(previous_sales, metric_type)
        sales_summary[metric_type.lower()] = SalesMetricSummary(
            target=target,
            actual=actual,
            trend=sales_trend(actual, previous_actual, settings.trend_band),
        )

    period_updates = in_period(updates, month, year)
    goals = GoalMetrics(
        completion_rate=_round_half_up(completion_rate(items)),
        on_track=sum(1 for u in period_updates if u.health == Health.GREEN),
        at_risk=sum(1 for u in period_updates if u.health == Health.AMBER),
        blocked=sum(1 for item in items if item.status == Status.BLOCKED),
    )

    return KeyMetrics(
        sales=sales_summary,
        goals=goals,
        departments=department_health(entities, items, updates, month, year, settings),
    )


def trend_series(
    records: Iterable[SalesMetric],
    metric_type: str,
    month: str,
    year: int,
    points: int = DEFAULT_SETTINGS.trend_points,
) -> list[TrendPoint]:
    """Trailing per-period totals for one metric, oldest first, ending at (month, year)."""
    records = [r for r in records if r.metric_type == metric_type]
    series = []
    for offset in range(points - 1, -1, -1):
        trend_month, trend_year = previous_period(month, year, offset)
        period_records = [r for r in records if r.month == trend_month and r.year == trend_year]
        series.append(
            TrendPoint(
                month=trend_month,
                year=trend_year,
                actual=sum(r.actual for r in period_records),
                target=sum(r.target for r in period_records),
            )
        )
    return series


def financial_highlights(
    sales: Iterable[SalesMetric],
    month: str,
    year: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> FinancialHighlights:
    """Revenue versus target, its trailing trend, and headline sales rates."""
    sales = list(sales)
    period_sales = [s for s in sales if s.month == month and s.year == year]

    current, target = _aggregate(period_sales, "Revenue")
    variance = current - target
    variance_percent = variance / target * 100 if target > 0 else 0.0

    revenue_trend = Trend.STABLE
    if variance_percent > 5:
        revenue_trend = Trend.UP
    elif variance_percent < -5:
        revenue_trend = Trend.DOWN

    conversion, _ = _aggregate(period_sales, "Conversion")
    listings, _ = _aggregate(period_sales, "Listings")
    sales_rate, _ = _aggregate(period_sales, "Sales Rate")

    return FinancialHighlights(
        revenue=RevenueSummary(
            current=current,
            target=target,
            variance=variance,
            variance_percent=_round_half_up(variance_percent * 10) / 10,
        ),
        trends=trend_series(sales, "Revenue", month, year, settings.trend_points),
        key_metrics=[
            MetricHighlight(label="Revenue", value=current, format="currency", trend=revenue_trend),
            MetricHighlight(label="Conversion Rate", value=conversion * 100, format="percentage"),
            MetricHighlight(label="Listings", value=listings, format="number"),
            MetricHighlight(label="Sales Rate", value=sales_rate * 100, format="percentage"),
        ],
    )
