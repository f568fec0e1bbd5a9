"""Lifecycle hooks for each event kind, dispatched by tag through KIND_HOOKS.

Every hook takes the kind's descriptor and the shared EventContext. Hooks
keep their runtime state in ``descriptor.data`` and end condition-driven
events by moving the descriptor to ``EventState.ENDING``; the scheduler
does the actual deactivation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from horde_threat import SpawnEntry, WaveComposition

from horde_event.types import (
    BlackoutSettings,
    BossRushSettings,
    DoorHazardSettings,
    EventConfig,
    EventContext,
    EventDescriptor,
    EventDuration,
    EventKind,
    EventState,
    HordeSettings,
)

logger = logging.getLogger(__name__)

Hook = Callable[[EventDescriptor, EventContext], None]


@dataclass(frozen=True)
class EventHooks:
    activate: Hook
    deactivate: Hook
    update: Optional[Callable[[EventDescriptor, EventContext, float], None]] = None
    modify_wave_config: Optional[
        Callable[[EventDescriptor, EventContext, WaveComposition], WaveComposition]
    ] = None
    on_entity_killed: Optional[Callable[[EventDescriptor, EventContext, str], None]] = None
    on_wave_complete: Optional[Hook] = None
    on_boss_defeated: Optional[Hook] = None
    on_gateway_barricaded: Optional[Callable[[EventDescriptor, EventContext, str], None]] = None


def _settings(descriptor: EventDescriptor, default_type: type):
    settings = descriptor.config.settings
    return settings if isinstance(settings, default_type) else default_type()


# --- Horde ---


def horde_activate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: HordeSettings = _settings(descriptor, HordeSettings)
    descriptor.data["kills"] = 0
    descriptor.data["drop_rate_bonus"] = settings.drop_rate_bonus
    ctx.announce("HORDE", "A massive wave is coming", style="danger", duration_ms=3000)


def horde_deactivate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    kills = descriptor.data.get("kills", 0)
    descriptor.data["drop_rate_bonus"] = 0.0
    ctx.announce("HORDE SURVIVED", f"{kills} enemies eliminated", style="success")


def horde_modify(
    descriptor: EventDescriptor, ctx: EventContext, composition: WaveComposition
) -> WaveComposition:
    """Keep the safe types, speed them up, then append staggered copies."""
    settings: HordeSettings = _settings(descriptor, HordeSettings)
    factor = settings.delay_factor
    stagger = settings.copy_stagger_ms

    kept = [
        SpawnEntry(e.entity_type, int(e.delay_ms * factor))
        for e in composition.entries
        if e.entity_type in settings.allowed_types
    ]
    if kept:
        entries = list(kept)
        for i in range(1, settings.multiplier):
            entries.extend(SpawnEntry(e.entity_type, e.delay_ms + i * stagger) for e in kept)
    else:
        mix = [t for t, n in settings.fallback_mix for _ in range(n)]
        entries = []
        for e in composition.entries:
            base = int(e.delay_ms * factor)
            entries.extend(SpawnEntry(t, base + i * stagger) for i, t in enumerate(mix))

    entries.sort(key=lambda e: e.delay_ms)
    modified = composition.with_entries(entries)
    logger.info(
        "Horde rewrote wave %d: %d -> %d entities",
        composition.wave_number,
        composition.total,
        modified.total,
    )
    return modified


def horde_on_entity_killed(
    descriptor: EventDescriptor, ctx: EventContext, entity_type: str
) -> None:
    if descriptor.state is not EventState.ACTIVE:
        return
    settings: HordeSettings = _settings(descriptor, HordeSettings)
    kills = descriptor.data.get("kills", 0) + 1
    descriptor.data["kills"] = kills
    if kills % settings.kill_milestone == 0:
        ctx.announce(f"{kills} KILLS!", style="combo", duration_ms=1500)


# --- Blackout ---


def blackout_activate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: BlackoutSettings = _settings(descriptor, BlackoutSettings)
    descriptor.data.update(
        light_radius=settings.light_radius,
        darkness_alpha=settings.darkness_alpha,
        glowing_eyes=settings.glowing_eyes,
    )
    ctx.announce("BLACKOUT", "Visibility reduced", style="warning")


def blackout_deactivate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    descriptor.data.clear()


# --- Overheated door ---


def _find_gateway(ctx: EventContext, gateway_id: str):
    if ctx.gateways is None:
        return None
    for gateway in ctx.gateways.get_gateways():
        if gateway.id == gateway_id:
            return gateway
    return None


def _pick_overheating_gateway(ctx: EventContext):
    if ctx.gateways is None:
        return None
    standing = [
        g for g in ctx.gateways.get_gateways() if not g.has_barricade() and not g.is_destroyed()
    ]
    for gateway in standing:
        if not gateway.is_active():
            return gateway
    return standing[0] if standing else None


def door_activate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: DoorHazardSettings = _settings(descriptor, DoorHazardSettings)
    gateway = _pick_overheating_gateway(ctx)
    if gateway is None:
        logger.warning("Overheated door found no eligible gateway")
        descriptor.state = EventState.INACTIVE
        return
    descriptor.data["gateway_id"] = gateway.id
    descriptor.data["warning_remaining_ms"] = settings.warning_ms
    ctx.announce("DOOR OVERHEATING", "Barricade it quickly!", style="danger", duration_ms=5000)


def door_deactivate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    descriptor.data.pop("warning_remaining_ms", None)


def _door_resolved(descriptor: EventDescriptor, ctx: EventContext) -> None:
    descriptor.data["outcome"] = "barricaded"
    descriptor.state = EventState.ENDING
    ctx.announce("OVERHEAT AVERTED", "Barricade placed in time", style="success", duration_ms=2000)


def _door_explodes(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: DoorHazardSettings = _settings(descriptor, DoorHazardSettings)
    gateway_id = descriptor.data.get("gateway_id")
    gateway = _find_gateway(ctx, gateway_id) if gateway_id is not None else None
    if gateway is not None:
        gateway.activate()
    if ctx.spawner is not None:
        ctx.spawner.spawn_entity(
            settings.punisher_type,
            gateway_id=gateway_id,
            enraged=True,
            speed_multiplier=settings.speed_multiplier,
            damage_multiplier=settings.damage_multiplier,
            health_multiplier=settings.health_multiplier,
        )
    logger.info("Gateway %s exploded, releasing enraged %s", gateway_id, settings.punisher_type)
    descriptor.data["outcome"] = "exploded"
    descriptor.state = EventState.ENDING
    ctx.announce("ENRAGED TANK", "The door exploded!", style="danger")


def door_update(descriptor: EventDescriptor, ctx: EventContext, dt_ms: float) -> None:
    if descriptor.state is not EventState.ACTIVE:
        return
    remaining = descriptor.data.get("warning_remaining_ms")
    if remaining is None:
        return
    remaining -= dt_ms
    descriptor.data["warning_remaining_ms"] = remaining
    if remaining > 0:
        return
    gateway = _find_gateway(ctx, descriptor.data.get("gateway_id", ""))
    if gateway is not None and gateway.has_barricade():
        _door_resolved(descriptor, ctx)
    else:
        _door_explodes(descriptor, ctx)


def door_on_gateway_barricaded(
    descriptor: EventDescriptor, ctx: EventContext, gateway_id: str
) -> None:
    if descriptor.state is not EventState.ACTIVE:
        return
    if gateway_id == descriptor.data.get("gateway_id"):
        _door_resolved(descriptor, ctx)


# --- Boss rush ---


def boss_rush_activate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: BossRushSettings = _settings(descriptor, BossRushSettings)
    total = ctx.random.randint(settings.min_bosses, settings.max_bosses)
    roster = list(settings.roster)
    ctx.random.shuffle(roster)
    queue = [roster[i % len(roster)] for i in range(total)]
    descriptor.data.update(
        queue=queue,
        index=0,
        defeated=0,
        total=total,
        next_boss_in_ms=settings.first_delay_ms,
    )
    logger.info("Boss rush starting with %d bosses: %s", total, ", ".join(queue))
    ctx.announce("BOSS RUSH", f"{total} bosses to defeat", style="danger", duration_ms=4000)


def boss_rush_deactivate(descriptor: EventDescriptor, ctx: EventContext) -> None:
    descriptor.data["next_boss_in_ms"] = None


def _spawn_next_boss(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: BossRushSettings = _settings(descriptor, BossRushSettings)
    data = descriptor.data
    if data["index"] >= len(data["queue"]):
        _complete_rush(descriptor, ctx)
        return
    boss = data["queue"][data["index"]]
    if ctx.spawner is not None:
        ctx.spawner.spawn_entity(boss, boss=True, health_multiplier=settings.health_multiplier)
    ctx.announce(f"BOSS {data['index'] + 1}/{data['total']}", boss, style="boss", duration_ms=2000)


def _complete_rush(descriptor: EventDescriptor, ctx: EventContext) -> None:
    settings: BossRushSettings = _settings(descriptor, BossRushSettings)
    total = descriptor.data["total"]
    points = int(settings.points_per_boss * total * settings.reward_multiplier)
    if ctx.economy is not None:
        ctx.economy.add_points(points)
        for _ in range(total):
            dx = ctx.random.uniform(-50, 50)
            dy = ctx.random.uniform(-50, 50)
            if ctx.random.random() < settings.bonus_drop_chance:
                ctx.economy.spawn_reward(settings.bonus_drop, dx, dy)
            for drop in settings.reward_drops:
                ctx.economy.spawn_reward(drop, dx * 2, dy * 2)
    descriptor.data["points_awarded"] = points
    descriptor.state = EventState.ENDING
    logger.info("Boss rush completed, %d points awarded", points)
    ctx.announce("BOSS RUSH COMPLETE", f"+{points} points", style="legendary", duration_ms=4000)


def boss_rush_update(descriptor: EventDescriptor, ctx: EventContext, dt_ms: float) -> None:
    if descriptor.state is not EventState.ACTIVE:
        return
    countdown = descriptor.data.get("next_boss_in_ms")
    if countdown is None:
        return
    countdown -= dt_ms
    if countdown > 0:
        descriptor.data["next_boss_in_ms"] = countdown
        return
    descriptor.data["next_boss_in_ms"] = None
    _spawn_next_boss(descriptor, ctx)


def boss_rush_on_boss_defeated(descriptor: EventDescriptor, ctx: EventContext) -> None:
    if descriptor.state is not EventState.ACTIVE:
        return
    settings: BossRushSettings = _settings(descriptor, BossRushSettings)
    data = descriptor.data
    data["defeated"] += 1
    data["index"] += 1
    if data["defeated"] >= data["total"]:
        _complete_rush(descriptor, ctx)
        return
    remaining = data["total"] - data["defeated"]
    ctx.announce(f"{remaining} BOSS{'ES' if remaining > 1 else ''} LEFT", duration_ms=2000)
    data["next_boss_in_ms"] = settings.between_delay_ms


# --- Tables ---

KIND_HOOKS: dict[EventKind, EventHooks] = {
    EventKind.HORDE: EventHooks(
        activate=horde_activate,
        deactivate=horde_deactivate,
        modify_wave_config=horde_modify,
        on_entity_killed=horde_on_entity_killed,
    ),
    EventKind.BLACKOUT: EventHooks(
        activate=blackout_activate,
        deactivate=blackout_deactivate,
    ),
    EventKind.OVERHEATED_DOOR: EventHooks(
        activate=door_activate,
        deactivate=door_deactivate,
        update=door_update,
        on_gateway_barricaded=door_on_gateway_barricaded,
    ),
    EventKind.BOSS_RUSH: EventHooks(
        activate=boss_rush_activate,
        deactivate=boss_rush_deactivate,
        update=boss_rush_update,
        on_boss_defeated=boss_rush_on_boss_defeated,
    ),
}


def default_event_configs() -> list[EventConfig]:
    """Balance defaults, in registration order."""
    return [
        EventConfig(
            kind=EventKind.BLACKOUT,
            name="Blackout",
            description="Reduced visibility, eyes glow in the dark",
            duration=EventDuration.WAVE,
            min_wave=4,
            probability=0.25,
            cooldown_waves=4,
            priority=2,
            settings=BlackoutSettings(),
        ),
        EventConfig(
            kind=EventKind.HORDE,
            name="Horde",
            description="Massive wave of weak enemies, better drops",
            duration=EventDuration.WAVE,
            min_wave=5,
            probability=0.20,
            cooldown_waves=5,
            priority=3,
            settings=HordeSettings(),
        ),
        EventConfig(
            kind=EventKind.OVERHEATED_DOOR,
            name="Overheated Door",
            description="A neglected door threatens to explode",
            duration=EventDuration.CONDITION,
            min_wave=6,
            probability=0.15,
            cooldown_waves=6,
            priority=1,
            conditions=("gateway_available",),
            settings=DoorHazardSettings(),
        ),
        EventConfig(
            kind=EventKind.BOSS_RUSH,
            name="Boss Rush",
            description="Several bosses in a row, exceptional rewards",
            duration=EventDuration.CONDITION,
            min_wave=15,
            probability=1.0,
            cooldown_waves=10,
            priority=5,
            milestone_waves=frozenset({15, 25, 35, 45, 55}),
            settings=BossRushSettings(),
        ),
    ]
