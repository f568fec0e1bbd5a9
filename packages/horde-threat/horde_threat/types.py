"""Core data types for threat budget allocation."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping

from horde.types import ConfigError


class Role(str, Enum):
    """Coarse category used to cap how many of a kind one wave may plan."""

    FODDER = "fodder"
    RUSHER = "rusher"
    TANK = "tank"
    RANGED = "ranged"
    SPECIAL = "special"


class BudgetCurve(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"


class CapPolicy(str, Enum):
    """How role counters are seeded at the start of a generation pass."""

    RESET_PER_WAVE = "reset_per_wave"
    CARRY_OVER_LIVE_COUNTS = "carry_over_live_counts"


class StopReason(str, Enum):
    """Why the spend loop ended. Anything but BUDGET_MET is an under-spend."""

    BUDGET_MET = "budget_met"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    NO_ELIGIBLE_TYPES = "no_eligible_types"
    NO_AFFORDABLE_TYPE = "no_affordable_type"


@dataclass(frozen=True)
class EntityProfile:
    """Catalog row for one hostile entity type. Read-only to the allocator."""

    type: str
    cost: float
    role: Role
    unlock_wave: int = 1
    weight: float = 0.1

    def __post_init__(self) -> None:
        if self.cost <= 0:
            raise ConfigError(f"cost of {self.type!r} must be positive")
        if self.weight < 0:
            raise ConfigError(f"weight of {self.type!r} must not be negative")
        if self.unlock_wave < 1:
            raise ConfigError(f"unlock_wave of {self.type!r} must be at least 1")


def _default_role_caps() -> dict[Role, int]:
    return {
        Role.FODDER: 15,
        Role.RUSHER: 6,
        Role.TANK: 2,
        Role.RANGED: 3,
        Role.SPECIAL: 3,
    }


@dataclass(frozen=True)
class ThreatConfig:
    """Budget curve, caps, pacing and termination parameters."""

    base_budget: float = 5.0
    budget_per_wave: float = 2.5
    budget_curve: BudgetCurve = BudgetCurve.LINEAR
    exponential_factor: float = 1.1
    role_caps: Mapping[Role, int] = field(default_factory=_default_role_caps)
    min_spawn_gap_ms: float = 300.0
    breathing_ratio: float = 0.2
    min_breathing_interval: int = 3
    overspend_ratio: float = 1.1
    max_attempts: int = 100
    fallback_type: str = "shambler"
    cap_policy: CapPolicy = CapPolicy.RESET_PER_WAVE

    def __post_init__(self) -> None:
        if self.base_budget < 0:
            raise ConfigError("base_budget must not be negative")
        if self.exponential_factor <= 0:
            raise ConfigError("exponential_factor must be positive")
        if not 0.0 <= self.breathing_ratio < 1.0:
            raise ConfigError("breathing_ratio must lie in [0, 1)")
        if self.min_breathing_interval < 1:
            raise ConfigError("min_breathing_interval must be at least 1")
        if self.overspend_ratio < 1.0:
            raise ConfigError("overspend_ratio must be >= 1.0")
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be at least 1")
        if self.min_spawn_gap_ms < 0:
            raise ConfigError("min_spawn_gap_ms must not be negative")
        for role, cap in self.role_caps.items():
            if cap < 0:
                raise ConfigError(f"role cap for {role} must not be negative")

    def cap_for(self, role: Role) -> int:
        # Roles without a configured cap are unbounded
        return self.role_caps.get(role, math.inf)  # type: ignore[return-value]


@dataclass(frozen=True)
class SpawnEntry:
    """One planned spawn: which type, and when relative to wave start."""

    entity_type: str
    delay_ms: int = 0


def count_types(entries: Iterable[SpawnEntry]) -> dict[str, int]:
    return dict(Counter(e.entity_type for e in entries))


@dataclass(frozen=True)
class WaveComposition:
    """The spawn plan for one wave. Immutable once produced."""

    wave_number: int
    entries: tuple[SpawnEntry, ...]
    total_budget: float
    spent_budget: float
    counts: Mapping[str, int]
    stop_reason: StopReason = StopReason.BUDGET_MET
    attempts: int = 0

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def exhausted(self) -> bool:
        return self.stop_reason is not StopReason.BUDGET_MET

    def count_of(self, entity_type: str) -> int:
        return self.counts.get(entity_type, 0)

    def with_entries(self, entries: Iterable[SpawnEntry]) -> WaveComposition:
        """Copy with a rewritten plan; counts follow the new entries."""
        new_entries = tuple(entries)
        return replace(self, entries=new_entries, counts=count_types(new_entries))

    @classmethod
    def empty(cls, wave_number: int = 0) -> WaveComposition:
        return cls(
            wave_number=wave_number,
            entries=(),
            total_budget=0.0,
            spent_budget=0.0,
            counts={},
        )
