"""Snapshot source implementations."""

from goal_rollup.sources.yaml_file import YamlSnapshotSource

__all__ = ["YamlSnapshotSource"]
