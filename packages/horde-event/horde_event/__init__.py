"""horde-event - Scripted wave modifiers with lifecycle and cooldowns."""
from horde_event.guards import EventGuards, default_guards, gateway_available
from horde_event.kinds import KIND_HOOKS, EventHooks, default_event_configs
from horde_event.scheduler import SchedulerConfig, SpecialEventScheduler
from horde_event.systems import make_event_system
from horde_event.types import (
    BlackoutSettings,
    BossRushSettings,
    BossSchedule,
    DoorHazardSettings,
    EventConfig,
    EventContext,
    EventDescriptor,
    EventDuration,
    EventKind,
    EventState,
    HordeSettings,
)

__all__ = [
    "SpecialEventScheduler",
    "SchedulerConfig",
    "EventConfig",
    "EventDescriptor",
    "EventContext",
    "EventKind",
    "EventState",
    "EventDuration",
    "EventHooks",
    "KIND_HOOKS",
    "EventGuards",
    "default_guards",
    "gateway_available",
    "default_event_configs",
    "BossSchedule",
    "HordeSettings",
    "BlackoutSettings",
    "DoorHazardSettings",
    "BossRushSettings",
    "make_event_system",
]
