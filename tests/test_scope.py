"""Tests for reporting and sales visibility scopes."""

import pytest

from goal_rollup.hierarchy import Hierarchy
from goal_rollup.models import AccessLevel, Entity, Status, WorkItem
from goal_rollup.scope import (
    SalesScope,
    Scope,
    can_manage_sales_actions,
    can_view_sales_dashboard,
    filter_entities,
    filter_items,
    resolve_sales_scope,
    resolve_scope,
    sales_view_entities,
)


@pytest.fixture
def roster() -> list[Entity]:
    return [
        Entity(id="e1", name="Alice", access_level=AccessLevel.MANAGER, department="Tech"),
        Entity(id="e2", name="Bob", reports_to="Alice", department="Tech"),
        Entity(id="e3", name="Carol", access_level=AccessLevel.MANAGER, reports_to="e1", department="Tech"),
        Entity(id="e4", name="Dave", reports_to="Carol", department="Tech"),
        Entity(id="e5", name="Erin", access_level=AccessLevel.ADMIN, department="Exec"),
        Entity(id="e6", name="Frank", department="Sales", team="North Region"),
        Entity(id="e7", name="Gina", department="Sales", team="South Region"),
        Entity(id="e8", name="Hugo", department="Marketing"),
    ]


@pytest.fixture
def work() -> list[WorkItem]:
    return [
        WorkItem(id="i1", objective_id="o1", owner="Bob", status=Status.BLOCKED),
        WorkItem(id="i2", objective_id="o1", owner="e4"),
        WorkItem(id="i3", objective_id="o1", owner="Frank"),
        WorkItem(id="i4", objective_id="o2", owner="Alice"),
        WorkItem(id="i5", objective_id="o2", owner="Nobody"),
    ]


def by_id(roster: list[Entity], entity_id: str) -> Entity:
    return next(e for e in roster if e.id == entity_id)


def test_manager_sees_direct_report() -> None:
    """Test that a manager's scope includes a direct report's items."""
    alice = Entity(id="e1", name="Alice", access_level=AccessLevel.MANAGER, reports_to="")
    bob = Entity(id="e2", name="Bob", reports_to="Alice")
    item = WorkItem(id="i1", objective_id="o1", owner="Bob", status=Status.BLOCKED)

    scope = resolve_scope(alice, [alice, bob])

    assert {"e2", "Bob"} <= scope.keys
    assert filter_items([item], scope) == [item]


def test_manager_scope_is_transitive(roster: list[Entity], work: list[WorkItem]) -> None:
    """Test that a manager sees the whole subtree."""
    scope = resolve_scope(by_id(roster, "e1"), roster)
    assert scope.keys == frozenset({"e1", "Alice", "e2", "Bob", "e3", "Carol", "e4", "Dave"})
    assert [i.id for i in filter_items(work, scope)] == ["i1", "i2", "i4"]


def test_admin_sees_everything(roster: list[Entity], work: list[WorkItem]) -> None:
    """Test the unrestricted admin scope."""
    scope = resolve_scope(by_id(roster, "e5"), roster)
    assert scope.unrestricted
    assert filter_items(work, scope) == work
    assert filter_entities(roster, scope) == roster


def test_ic_sees_only_self(roster: list[Entity], work: list[WorkItem]) -> None:
    """Test the IC scope."""
    scope = resolve_scope(by_id(roster, "e6"), roster)
    assert scope.keys == frozenset({"e6", "Frank"})
    assert [i.id for i in filter_items(work, scope)] == ["i3"]
    assert [e.id for e in filter_entities(roster, scope)] == ["e6"]


def test_unresolved_viewer_sees_nothing(roster: list[Entity], work: list[WorkItem]) -> None:
    """Test the empty scope."""
    scope = resolve_scope(None, roster)
    assert scope.is_empty
    assert filter_items(work, scope) == []
    assert filter_entities(roster, scope) == []


def test_manager_scope_with_prebuilt_hierarchy(roster: list[Entity]) -> None:
    """Test that a supplied hierarchy gives the same scope."""
    carol = by_id(roster, "e3")
    assert resolve_scope(carol, roster, Hierarchy(roster)) == resolve_scope(carol, roster)


def test_report_scope_is_subset_of_manager_scope(roster: list[Entity], work: list[WorkItem]) -> None:
    """Test that everything a report sees, the manager sees too."""
    alice_items = filter_items(work, resolve_scope(by_id(roster, "e1"), roster))
    for report_id in ("e2", "e3", "e4"):
        report_items = filter_items(work, resolve_scope(by_id(roster, report_id), roster))
        assert all(item in alice_items for item in report_items)


def test_manager_scope_survives_cycle() -> None:
    """Test scope resolution on a reporting loop."""
    roster = [
        Entity(id="c1", name="Xavier", access_level=AccessLevel.MANAGER, reports_to="c2"),
        Entity(id="c2", name="Yvonne", reports_to="Xavier"),
    ]
    assert resolve_scope(roster[0], roster).keys == frozenset({"c1", "Xavier", "c2", "Yvonne"})


def test_filter_entities_fuzzy_name(roster: list[Entity]) -> None:
    """Test that entity filtering matches names by containment."""
    scope = Scope(keys=frozenset({"Alic"}))
    assert [e.id for e in filter_entities(roster, scope)] == ["e1"]


def test_sales_scope_modes() -> None:
    """Test sales scope resolution from grants and roles."""
    assert resolve_sales_scope(None).mode == "none"
    assert resolve_sales_scope(Entity(id="a", name="A", access_level=AccessLevel.ADMIN)).mode == "all"
    assert resolve_sales_scope(Entity(id="b", name="B", sales_performance_access=["All"])).mode == "sales"
    regional = resolve_sales_scope(Entity(id="c", name="C", sales_performance_access=["North", " "]))
    assert regional == SalesScope(mode="regions", regions=("North",))
    manager = Entity(id="d", name="D", access_level=AccessLevel.MANAGER, department="Sales")
    assert resolve_sales_scope(manager).mode == "all"
    assert resolve_sales_scope(Entity(id="e", name="E", department="Tech")).mode == "reporting"


def test_sales_view_entities(roster: list[Entity]) -> None:
    """Test which people show up in the sales views."""
    everyone = sales_view_entities(by_id(roster, "e5"), roster)
    assert everyone == roster

    all_sales = Entity(id="s1", name="Sid", sales_performance_access=["all"])
    assert [e.id for e in sales_view_entities(all_sales, roster)] == ["e6", "e7"]

    north = Entity(id="s2", name="Nia", sales_performance_access=["north"])
    assert [e.id for e in sales_view_entities(north, roster)] == ["e6"]

    carol = by_id(roster, "e3")
    assert [e.id for e in sales_view_entities(carol, roster)] == ["e3", "e4"]

    assert sales_view_entities(None, roster) == []


def test_sales_scope_is_independent_of_reporting_scope(roster: list[Entity]) -> None:
    """Test that a sales grant does not widen the reporting scope."""
    viewer = Entity(id="s1", name="Sid", sales_performance_access=["all"])
    assert resolve_scope(viewer, roster).keys == frozenset({"s1", "Sid"})


def test_can_view_sales_dashboard() -> None:
    """Test sales dashboard permission."""
    assert can_view_sales_dashboard(Entity(id="a", name="A", access_level=AccessLevel.ADMIN))
    assert can_view_sales_dashboard(Entity(id="b", name="B", sales_performance_access=["North"]))
    assert can_view_sales_dashboard(Entity(id="c", name="C", department="Sales"))
    assert not can_view_sales_dashboard(Entity(id="d", name="D", department="Tech"))
    assert not can_view_sales_dashboard(None)


def test_can_manage_sales_actions() -> None:
    """Test sales action permission."""
    assert can_manage_sales_actions(Entity(id="a", name="A", access_level=AccessLevel.ADMIN))
    assert can_manage_sales_actions(Entity(id="b", name="B", access_level=AccessLevel.MANAGER, department="Sales"))
    assert can_manage_sales_actions(Entity(id="c", name="C", department="Sales", team="Sales Ops"))
    assert can_manage_sales_actions(Entity(id="d", name="D", department="Sales Operations"))
    assert not can_manage_sales_actions(Entity(id="e", name="E", department="Sales"))
    assert not can_manage_sales_actions(None)
