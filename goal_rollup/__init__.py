"""Hierarchical attribution and rollup engine for goal tracking."""

from goal_rollup.board import board_summary, objective_progress
from goal_rollup.rollup import rollup
from goal_rollup.scope import Scope, filter_entities, filter_items, resolve_scope

__all__ = [
    "Scope",
    "board_summary",
    "filter_entities",
    "filter_items",
    "objective_progress",
    "resolve_scope",
    "rollup",
]
