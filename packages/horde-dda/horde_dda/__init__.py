"""horde-dda - Adaptive difficulty from live player performance."""
from horde_dda.controller import DifficultyController
from horde_dda.systems import make_difficulty_system
from horde_dda.types import (
    Adjustment,
    Bounds,
    DDAConfig,
    DifficultyModifiers,
    DominatingThresholds,
    PerformanceSnapshot,
    PerformanceState,
    StrugglingThresholds,
    TelemetryFeed,
    Thresholds,
)

__all__ = [
    "DifficultyController",
    "DDAConfig",
    "Bounds",
    "Thresholds",
    "StrugglingThresholds",
    "DominatingThresholds",
    "DifficultyModifiers",
    "PerformanceSnapshot",
    "PerformanceState",
    "TelemetryFeed",
    "Adjustment",
    "make_difficulty_system",
]
