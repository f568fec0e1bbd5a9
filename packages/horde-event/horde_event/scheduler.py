"""SpecialEventScheduler — picks, runs and retires scripted wave modifiers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterable

from horde.types import ConfigError
from horde_threat import WaveComposition, weighted_pick

from horde_event.guards import EventGuards, default_guards
from horde_event.kinds import KIND_HOOKS, default_event_configs
from horde_event.types import (
    BossSchedule,
    EventConfig,
    EventContext,
    EventDescriptor,
    EventDuration,
    EventKind,
    EventState,
)

if TYPE_CHECKING:
    from horde_signal import SignalBus

logger = logging.getLogger(__name__)

_LIVE = (EventState.ACTIVE, EventState.ENDING)


@dataclass(frozen=True)
class SchedulerConfig:
    base_event_chance: float = 0.15
    min_wave_for_events: int = 3
    max_concurrent_events: int = 1
    enabled: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.base_event_chance <= 1.0:
            raise ConfigError("base_event_chance must lie in [0, 1]")
        if self.max_concurrent_events < 0:
            raise ConfigError("max_concurrent_events must not be negative")


class SpecialEventScheduler:
    """Owns one descriptor per event kind and decides, once per wave, whether
    one of them fires.

    Selection runs in this order: forced kind, concurrency ceiling,
    milestone override (highest priority wins), no regular event on boss
    waves, base-chance roll, then a probability-weighted pick among the
    eligible regular events.
    """

    def __init__(
        self,
        configs: Iterable[EventConfig] | None = None,
        config: SchedulerConfig | None = None,
        guards: EventGuards | None = None,
        bosses: BossSchedule | None = None,
        context: EventContext | None = None,
        bus: SignalBus | None = None,
    ) -> None:
        self._config = config if config is not None else SchedulerConfig()
        self._guards = guards if guards is not None else default_guards()
        self._bosses = bosses if bosses is not None else BossSchedule()
        self._context = context if context is not None else EventContext()
        self._bus = bus
        self._descriptors: dict[EventKind, EventDescriptor] = {}
        self._definition_order: list[EventKind] = []
        self._pending: EventDescriptor | None = None
        self._forced: EventKind | None = None

        for event_config in configs if configs is not None else default_event_configs():
            self.define(event_config)

    # --- Registration ---

    def define(self, event_config: EventConfig) -> None:
        """Register an event kind. Redefining keeps its original position."""
        for name in event_config.conditions:
            if not self._guards.has(name):
                raise ConfigError(f"{event_config.name}: unknown guard {name!r}")
        kind = event_config.kind
        if kind not in self._descriptors:
            self._definition_order.append(kind)
            self._descriptors[kind] = EventDescriptor(config=event_config)
        else:
            self._descriptors[kind].config = event_config

    # --- Configuration ---

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    def update_config(self, **changes: Any) -> None:
        self._config = replace(self._config, **changes)

    @property
    def context(self) -> EventContext:
        return self._context

    @property
    def guards(self) -> EventGuards:
        return self._guards

    @property
    def bosses(self) -> BossSchedule:
        return self._bosses

    def set_enabled(self, flag: bool) -> None:
        self._config = replace(self._config, enabled=flag)
        if not flag:
            self._clear_pending()
            self.stop_all()

    # --- Queries ---

    def descriptor(self, kind: EventKind | str) -> EventDescriptor | None:
        return self._lookup(kind)

    def descriptors(self) -> list[EventDescriptor]:
        return [self._descriptors[k] for k in self._definition_order]

    def active_events(self) -> list[EventDescriptor]:
        return [d for d in self.descriptors() if d.state in _LIVE]

    def is_active(self, kind: EventKind | str) -> bool:
        desc = self._lookup(kind, warn=False)
        return desc is not None and desc.state in _LIVE

    @property
    def pending(self) -> EventDescriptor | None:
        return self._pending

    @property
    def forced(self) -> EventKind | None:
        return self._forced

    def drop_rate_bonus(self) -> float:
        """Sum of loot bonuses granted by the running events."""
        return sum(
            d.data.get("drop_rate_bonus", 0.0)
            for d in self.active_events()
            if d.state is EventState.ACTIVE
        )

    def _lookup(self, kind: EventKind | str, warn: bool = True) -> EventDescriptor | None:
        try:
            kind = EventKind(kind)
        except ValueError:
            if warn:
                logger.warning("Unknown event kind %r", kind)
            return None
        desc = self._descriptors.get(kind)
        if desc is None and warn:
            logger.warning("Event kind %s is not registered", kind.value)
        return desc

    # --- Eligibility ---

    def _at_capacity(self) -> bool:
        return len(self.active_events()) >= self._config.max_concurrent_events

    def _compatible(self, desc: EventDescriptor) -> bool:
        if desc.config.can_stack:
            return True
        return not any(d.kind is desc.kind for d in self.active_events())

    def _off_cooldown(self, desc: EventDescriptor, wave: int) -> bool:
        return wave - desc.last_activation_wave >= desc.config.cooldown_waves

    def is_eligible(self, desc: EventDescriptor, wave: int) -> bool:
        return (
            desc.state is EventState.INACTIVE
            and wave >= desc.config.min_wave
            and self._off_cooldown(desc, wave)
            and self._compatible(desc)
            and not self._at_capacity()
            and self._guards.check_all(desc.config.conditions, self, wave)
        )

    # --- Selection ---

    def _clear_pending(self) -> None:
        if self._pending is not None and self._pending.state is EventState.PENDING:
            self._pending.state = EventState.INACTIVE
        self._pending = None

    def _make_pending(self, desc: EventDescriptor, wave: int, reason: str) -> EventDescriptor:
        desc.state = EventState.PENDING
        self._pending = desc
        logger.debug("Event %s pending for wave %d (%s)", desc.name, wave, reason)
        return desc

    def check_for_event(self, wave: int) -> EventDescriptor | None:
        """Decide whether an event fires this wave. No-ops return None."""
        cfg = self._config
        if not cfg.enabled or wave < cfg.min_wave_for_events:
            return None
        self._context.wave_number = wave
        self._clear_pending()

        if self._forced is not None:
            kind, self._forced = self._forced, None
            desc = self._descriptors.get(kind)
            if (
                desc is not None
                and desc.state is EventState.INACTIVE
                and self._compatible(desc)
                and not self._at_capacity()
            ):
                return self._make_pending(desc, wave, "forced")
            logger.info("Forced event %s cannot fire on wave %d", kind.value, wave)

        if self._at_capacity():
            return None

        ordered = self.descriptors()
        milestones = [
            d
            for d in ordered
            if wave in d.config.milestone_waves and self.is_eligible(d, wave)
        ]
        if milestones:
            chosen = max(milestones, key=lambda d: d.config.priority)
            return self._make_pending(chosen, wave, "milestone")

        if self._bosses.is_boss_wave(wave):
            return None

        rng = self._context.random
        if rng.random() > cfg.base_event_chance:
            return None

        eligible = [
            d for d in ordered if not d.config.is_milestone and self.is_eligible(d, wave)
        ]
        if not eligible:
            return None
        chosen = weighted_pick(eligible, [d.config.probability for d in eligible], rng)
        return self._make_pending(chosen, wave, "rolled")

    # --- Lifecycle ---

    def _publish(self, signal_name: str, desc: EventDescriptor) -> None:
        if self._bus is not None:
            self._bus.publish(
                signal_name,
                kind=desc.kind,
                name=desc.name,
                wave=self._context.wave_number,
            )

    def _activate(self, desc: EventDescriptor) -> bool:
        desc.state = EventState.ACTIVE
        KIND_HOOKS[desc.kind].activate(desc, self._context)
        if desc.state is not EventState.ACTIVE:
            desc.state = EventState.INACTIVE
            desc.data.clear()
            return False
        desc.last_activation_wave = self._context.wave_number
        logger.info("Event %s activated on wave %d", desc.name, self._context.wave_number)
        self._publish("event_activated", desc)
        return True

    def _deactivate(self, desc: EventDescriptor) -> None:
        KIND_HOOKS[desc.kind].deactivate(desc, self._context)
        desc.state = EventState.INACTIVE
        logger.info("Event %s deactivated", desc.name)
        self._publish("event_deactivated", desc)

    def activate_pending(self) -> EventDescriptor | None:
        desc, self._pending = self._pending, None
        if desc is None or desc.state is not EventState.PENDING:
            return None
        return desc if self._activate(desc) else None

    def modify_wave_config(self, composition: WaveComposition) -> WaveComposition:
        """Fold every running event's rewrite over the plan, in registration order."""
        for desc in self.descriptors():
            hook = KIND_HOOKS[desc.kind].modify_wave_config
            if desc.state is EventState.ACTIVE and hook is not None:
                composition = hook(desc, self._context, composition)
        return composition

    def update(self, dt_ms: float) -> None:
        for desc in self.active_events():
            hook = KIND_HOOKS[desc.kind].update
            if desc.state is EventState.ACTIVE and hook is not None:
                hook(desc, self._context, dt_ms)
        for desc in self.active_events():
            if desc.state is EventState.ENDING:
                self._deactivate(desc)

    def on_wave_complete(self) -> None:
        for desc in self.active_events():
            hook = KIND_HOOKS[desc.kind].on_wave_complete
            if desc.state is EventState.ACTIVE and hook is not None:
                hook(desc, self._context)
        self.expire_wave_events()

    def expire_wave_events(self) -> int:
        """End every live ``wave``-duration event without running completion hooks."""
        expired = [
            d for d in self.active_events() if d.config.duration is EventDuration.WAVE
        ]
        for desc in expired:
            self._deactivate(desc)
        return len(expired)

    def on_entity_killed(self, entity_type: str) -> None:
        for desc in self.active_events():
            hook = KIND_HOOKS[desc.kind].on_entity_killed
            if hook is not None:
                hook(desc, self._context, entity_type)

    def on_boss_defeated(self) -> None:
        for desc in self.active_events():
            hook = KIND_HOOKS[desc.kind].on_boss_defeated
            if hook is not None:
                hook(desc, self._context)

    def on_gateway_barricaded(self, gateway_id: str) -> None:
        for desc in self.active_events():
            hook = KIND_HOOKS[desc.kind].on_gateway_barricaded
            if hook is not None:
                hook(desc, self._context, gateway_id)

    # --- Manual controls ---

    def trigger(self, kind: EventKind | str) -> bool:
        """Activate now, skipping wave, cooldown and chance rules."""
        desc = self._lookup(kind)
        if desc is None or desc.state is not EventState.INACTIVE:
            return False
        if not self._compatible(desc) or self._at_capacity():
            return False
        return self._activate(desc)

    def stop(self, kind: EventKind | str) -> bool:
        desc = self._lookup(kind)
        if desc is None or desc.state not in _LIVE:
            return False
        self._deactivate(desc)
        return True

    def force_next(self, kind: EventKind | str) -> None:
        """Make the next eligible check pick ``kind`` without rolling."""
        desc = self._lookup(kind)
        if desc is None:
            return
        self._forced = desc.kind
        logger.info("Event %s forced for the next wave", desc.name)

    def stop_all(self) -> int:
        live = self.active_events()
        for desc in live:
            self._deactivate(desc)
        return len(live)

    def reset(self) -> None:
        self.stop_all()
        self._clear_pending()
        self._forced = None
        for desc in self.descriptors():
            desc.reset()
