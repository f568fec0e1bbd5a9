"""Core data types for special events."""
from __future__ import annotations

import random as _random_mod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from horde.types import ConfigError

if TYPE_CHECKING:
    from horde import Announcer, EconomyService, GatewayControl, SpawnExecutor


class EventKind(str, Enum):
    """Closed set of scripted wave modifiers."""

    HORDE = "horde"
    BLACKOUT = "blackout"
    OVERHEATED_DOOR = "overheated_door"
    BOSS_RUSH = "boss_rush"


class EventState(str, Enum):
    INACTIVE = "inactive"
    PENDING = "pending"
    ACTIVE = "active"
    ENDING = "ending"


class EventDuration(str, Enum):
    WAVE = "wave"  # expired centrally at wave completion
    TIMED = "timed"
    INSTANT = "instant"
    CONDITION = "condition"  # ends itself by moving to ENDING


# --- Per-kind settings ---


@dataclass(frozen=True)
class HordeSettings:
    multiplier: int = 3
    allowed_types: frozenset[str] = frozenset({"shambler", "runner", "crawler"})
    delay_factor: float = 0.6
    copy_stagger_ms: int = 500
    drop_rate_bonus: float = 0.5
    kill_milestone: int = 25
    fallback_mix: tuple[tuple[str, int], ...] = (("shambler", 2), ("runner", 1))

    def __post_init__(self) -> None:
        if self.multiplier < 1:
            raise ConfigError("horde multiplier must be at least 1")
        if self.delay_factor <= 0:
            raise ConfigError("horde delay_factor must be positive")
        if self.kill_milestone < 1:
            raise ConfigError("horde kill_milestone must be at least 1")


@dataclass(frozen=True)
class BlackoutSettings:
    light_radius: float = 150.0
    darkness_alpha: float = 0.92
    glowing_eyes: bool = True


@dataclass(frozen=True)
class DoorHazardSettings:
    warning_ms: float = 10_000.0
    punisher_type: str = "tank"
    speed_multiplier: float = 1.5
    damage_multiplier: float = 1.25
    health_multiplier: float = 1.2


def _default_boss_roster() -> tuple[str, ...]:
    return ("abomination", "patient_zero", "colossus")


@dataclass(frozen=True)
class BossRushSettings:
    min_bosses: int = 2
    max_bosses: int = 3
    roster: tuple[str, ...] = field(default_factory=_default_boss_roster)
    first_delay_ms: float = 2000.0
    between_delay_ms: float = 3000.0
    health_multiplier: float = 0.7
    points_per_boss: int = 500
    reward_multiplier: float = 3.0
    reward_drops: tuple[str, ...] = ("health_medium",)
    bonus_drop: str = "power_up"
    bonus_drop_chance: float = 0.5

    def __post_init__(self) -> None:
        if not 1 <= self.min_bosses <= self.max_bosses:
            raise ConfigError("boss rush needs 1 <= min_bosses <= max_bosses")
        if not self.roster:
            raise ConfigError("boss rush roster must not be empty")


EventSettings = Union[HordeSettings, BlackoutSettings, DoorHazardSettings, BossRushSettings]


@dataclass(frozen=True)
class EventConfig:
    """Static definition of one event kind."""

    kind: EventKind
    name: str
    description: str = ""
    duration: EventDuration = EventDuration.WAVE
    min_wave: int = 1
    probability: float = 1.0
    cooldown_waves: int = 0
    priority: int = 0
    can_stack: bool = False
    milestone_waves: frozenset[int] = frozenset()
    conditions: tuple[str, ...] = ()
    settings: EventSettings | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 1.0:
            raise ConfigError(f"{self.name}: probability must lie in [0, 1]")
        if self.cooldown_waves < 0:
            raise ConfigError(f"{self.name}: cooldown_waves must not be negative")

    @property
    def is_milestone(self) -> bool:
        return bool(self.milestone_waves)


@dataclass
class EventDescriptor:
    """One event kind's config plus its lifecycle. Persists across waves."""

    config: EventConfig
    state: EventState = EventState.INACTIVE
    last_activation_wave: int = -999
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> EventKind:
        return self.config.kind

    @property
    def name(self) -> str:
        return self.config.name

    def reset(self) -> None:
        self.state = EventState.INACTIVE
        self.last_activation_wave = -999
        self.data.clear()


@dataclass(frozen=True)
class BossSchedule:
    """Which waves are boss waves and which boss each one brings."""

    interval: int = 5
    order: tuple[str, ...] = field(default_factory=_default_boss_roster)

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ConfigError("boss interval must be at least 1")

    def is_boss_wave(self, wave: int) -> bool:
        return wave > 0 and wave % self.interval == 0

    def boss_for_wave(self, wave: int) -> str | None:
        if not self.is_boss_wave(wave) or not self.order:
            return None
        index = wave // self.interval - 1
        return self.order[index % len(self.order)]


@dataclass
class EventContext:
    """Collaborators handed to every event hook."""

    announcer: Announcer | None = None
    economy: EconomyService | None = None
    spawner: SpawnExecutor | None = None
    gateways: GatewayControl | None = None
    random: _random_mod.Random = field(default_factory=_random_mod.Random)
    wave_number: int = 0

    def announce(self, text: str, subtext: str = "", style: str = "info", duration_ms: int = 3000) -> None:
        if self.announcer is not None:
            self.announcer.announce(text, subtext=subtext, style=style, duration_ms=duration_ms)
