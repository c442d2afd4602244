"""Tunable thresholds and limits used by the rollup engine."""

from dataclasses import dataclass, fields
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class _ConfigReader(Protocol):
    def get(self, key: str, default: str | None = None) -> Any: ...


@dataclass(frozen=True)
class EngineSettings:
    """Thresholds for health inference and sizes of board lists.

    The fractions are empirical and kept configurable rather than fixed.
    """

    # Share of red-or-blocked items above which an objective is inferred red
    red_item_fraction: float = 0.3
    # Department health: share of red / amber updates in the period
    red_update_fraction: float = 0.3
    amber_update_fraction: float = 0.4
    # Period-over-period change that counts as a sales trend
    trend_band: float = 0.05
    achievement_limit: int = 5
    priority_limit: int = 3
    blocker_limit: int = 5
    milestone_limit: int = 5
    trend_points: int = 6

    @classmethod
    def from_config(cls, config: _ConfigReader, prefix: str = "engine.") -> "EngineSettings":
        """Build settings from `engine.*` config keys, keeping defaults for unset keys.

        Raises:
            ValueError: If a configured value is not a number
        """
        values: dict[str, Any] = {}
        for spec in fields(cls):
            raw = config.get(prefix + spec.name)
            if raw is None:
                continue
            cast = int if spec.type in (int, "int") else float
            try:
                values[spec.name] = cast(raw)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid value for {prefix}{spec.name}: {raw!r}") from e
        logger.debug("Engine settings loaded", overrides=sorted(values))
        return cls(**values)


DEFAULT_SETTINGS = EngineSettings()
