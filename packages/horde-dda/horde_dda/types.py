"""Core data types for adaptive difficulty."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from horde.types import ConfigError


class PerformanceState(str, Enum):
    STRUGGLING = "struggling"
    NEUTRAL = "neutral"
    DOMINATING = "dominating"


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Player metrics pulled from the telemetry feed on demand."""

    accuracy: float = 0.5
    damage_taken_per_min: float = 30.0
    health_fraction: float = 1.0
    avg_wave_clear_seconds: float = 0.0  # 0 when no wave has been cleared yet
    kills_per_min: float = 0.0


@runtime_checkable
class TelemetryFeed(Protocol):
    def get_performance_snapshot(self) -> PerformanceSnapshot: ...


@dataclass(frozen=True)
class DifficultyModifiers:
    """Multipliers read by the allocator and the reward layer."""

    spawn_delay_multiplier: float = 1.0  # >1 slower spawns
    budget_multiplier: float = 1.0
    drop_rate_multiplier: float = 1.0

    @classmethod
    def neutral(cls) -> DifficultyModifiers:
        return cls()


@dataclass(frozen=True)
class Bounds:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ConfigError(f"bounds inverted: min {self.min} > max {self.max}")
        if not self.min <= 1.0 <= self.max:
            raise ConfigError("bounds must contain the neutral value 1.0")

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))


@dataclass(frozen=True)
class StrugglingThresholds:
    accuracy: float = 0.25  # below
    damage_taken_per_min: float = 50.0  # above
    health_fraction: float = 0.3  # below
    wave_clear_seconds: float | None = None  # above; disabled by default


@dataclass(frozen=True)
class DominatingThresholds:
    accuracy: float = 0.6  # above
    damage_taken_per_min: float = 15.0  # below
    health_fraction: float = 0.8  # above
    wave_clear_seconds: float = 20.0  # below


@dataclass(frozen=True)
class Thresholds:
    struggling: StrugglingThresholds = field(default_factory=StrugglingThresholds)
    dominating: DominatingThresholds = field(default_factory=DominatingThresholds)


@dataclass(frozen=True)
class DDAConfig:
    enabled: bool = True
    adjustment_cooldown_ms: float = 10_000.0
    adjustment_step: float = 0.05
    thresholds: Thresholds = field(default_factory=Thresholds)
    spawn_delay_bounds: Bounds = field(default_factory=lambda: Bounds(0.6, 1.5))
    budget_bounds: Bounds = field(default_factory=lambda: Bounds(0.7, 1.3))
    drop_rate_bounds: Bounds = field(default_factory=lambda: Bounds(0.8, 1.5))
    history_size: int = 50

    def __post_init__(self) -> None:
        if self.adjustment_step <= 0:
            raise ConfigError("adjustment_step must be positive")
        if self.adjustment_cooldown_ms < 0:
            raise ConfigError("adjustment_cooldown_ms must not be negative")
        if self.history_size < 0:
            raise ConfigError("history_size must not be negative")


@dataclass(frozen=True)
class Adjustment:
    """One applied controller step, stamped with controller time."""

    at_ms: float
    state: PerformanceState
    action: str
    modifiers: DifficultyModifiers
