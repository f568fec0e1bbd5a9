"""Core data types for the wave lifecycle."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from horde.types import ConfigError

if TYPE_CHECKING:
    from horde_event import EventDescriptor
    from horde_threat import WaveComposition


class WaveState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    ACTIVE = "active"
    CLEARING = "clearing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class WaveSettings:
    transition_delay_ms: float = 3000.0
    initial_gateways: int = 2
    gateways_every: int = 5
    max_gateways: int = 8
    spawn_boss_on_boss_waves: bool = True

    def __post_init__(self) -> None:
        if self.transition_delay_ms < 0:
            raise ConfigError("transition_delay_ms must not be negative")
        if self.gateways_every < 1:
            raise ConfigError("gateways_every must be at least 1")
        if self.initial_gateways > self.max_gateways:
            raise ConfigError("initial_gateways must not exceed max_gateways")

    def gateways_for_wave(self, wave: int) -> int:
        return min(self.max_gateways, self.initial_gateways + (wave - 1) // self.gateways_every)


@dataclass
class WaveRuntimeState:
    """Mutable lifecycle state. Only the orchestrator writes to it."""

    wave_number: int = 0
    state: WaveState = WaveState.IDLE
    spawned: int = 0
    killed: int = 0
    remaining: int = 0
    composition: WaveComposition | None = None
    active_gateways: int = 0
    event: EventDescriptor | None = None
    boss: str | None = None

    def clear_counts(self) -> None:
        self.spawned = 0
        self.killed = 0
        self.remaining = 0
