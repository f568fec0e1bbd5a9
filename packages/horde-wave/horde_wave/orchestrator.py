"""WaveOrchestrator — the round lifecycle state machine.

Idle -> Preparing -> Active -> Clearing -> Completed -> Preparing -> ...

The only asynchronous step is the transition delay between phases, held
as a single cancellable TimerToken. Skipping, jumping and resetting all
cancel it first, so no stale callback can fire against a newer wave.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from horde_event import EventKind
from horde_schedule import TimerQueue, TimerToken

from horde_wave.types import WaveRuntimeState, WaveSettings, WaveState

if TYPE_CHECKING:
    from horde import Announcer, GatewayControl, SpawnExecutor
    from horde_dda import DifficultyController
    from horde_event import EventDescriptor, SpecialEventScheduler
    from horde_signal import SignalBus
    from horde_threat import ThreatAllocator, WaveComposition

logger = logging.getLogger(__name__)

_IN_PROGRESS = (WaveState.PREPARING, WaveState.ACTIVE, WaveState.CLEARING)


class WaveOrchestrator:
    def __init__(
        self,
        allocator: ThreatAllocator,
        controller: DifficultyController,
        scheduler: SpecialEventScheduler,
        spawner: SpawnExecutor,
        gateways: GatewayControl | None = None,
        announcer: Announcer | None = None,
        settings: WaveSettings | None = None,
        bus: SignalBus | None = None,
        timers: TimerQueue | None = None,
    ) -> None:
        self._allocator = allocator
        self._controller = controller
        self._scheduler = scheduler
        self._spawner = spawner
        self._gateways = gateways
        self._announcer = announcer
        self._settings = settings if settings is not None else WaveSettings()
        self._bus = bus
        # A private queue is advanced by update(); a shared one by its owner
        self._owns_timers = timers is None
        self._timers = timers if timers is not None else TimerQueue()
        self._transition: TimerToken | None = None
        self._paused_phase: tuple[str, float] | None = None
        self._runtime = WaveRuntimeState()

    # --- Read-only state ---

    @property
    def wave_number(self) -> int:
        return self._runtime.wave_number

    @property
    def state(self) -> WaveState:
        return self._runtime.state

    @property
    def spawned(self) -> int:
        return self._runtime.spawned

    @property
    def killed(self) -> int:
        return self._runtime.killed

    @property
    def remaining(self) -> int:
        return self._runtime.remaining

    @property
    def composition(self) -> WaveComposition | None:
        return self._runtime.composition

    @property
    def active_gateways(self) -> int:
        return self._runtime.active_gateways

    @property
    def event(self) -> EventDescriptor | None:
        return self._runtime.event

    @property
    def settings(self) -> WaveSettings:
        return self._settings

    @property
    def paused(self) -> bool:
        return self._paused_phase is not None

    @property
    def transition_pending(self) -> bool:
        return self._timers.is_pending(self._transition) or self.paused

    def snapshot(self) -> WaveRuntimeState:
        return replace(self._runtime)

    def progress(self) -> float:
        """Fraction of this wave's planned entities killed, in [0, 1]."""
        rt = self._runtime
        total = rt.composition.total if rt.composition is not None else 0
        if total == 0:
            return 1.0 if rt.state in (WaveState.CLEARING, WaveState.COMPLETED) else 0.0
        return min(1.0, rt.killed / total)

    # --- Helpers ---

    def _publish(self, signal_name: str, **data) -> None:
        if self._bus is not None:
            self._bus.publish(signal_name, wave=self._runtime.wave_number, **data)

    def _announce(self, text: str, subtext: str = "", style: str = "info") -> None:
        if self._announcer is not None:
            self._announcer.announce(text, subtext=subtext, style=style)

    def _phase_callback(self, name: str):
        return self._begin_wave if name == "begin_wave" else self.start_next_wave

    def _schedule(self, name: str, delay_ms: float | None = None) -> None:
        self._cancel_transition()
        if delay_ms is None:
            delay_ms = self._settings.transition_delay_ms
        self._transition = self._timers.schedule(
            delay_ms, self._phase_callback(name), name=name
        )

    def _cancel_transition(self) -> None:
        self._timers.cancel(self._transition)
        self._transition = None
        self._paused_phase = None

    # --- Lifecycle ---

    def start(self) -> None:
        """Begin a fresh run from wave 1."""
        self._cancel_transition()
        self._runtime = WaveRuntimeState()
        self.start_next_wave()

    def start_next_wave(self) -> None:
        self._cancel_transition()
        rt = self._runtime
        rt.wave_number += 1
        rt.state = WaveState.PREPARING
        rt.clear_counts()
        wave = rt.wave_number

        event = None
        if self._scheduler.check_for_event(wave) is not None:
            event = self._scheduler.activate_pending()

        mods = self._controller.get_modifiers()
        planned = self._allocator.generate(
            wave,
            spawn_delay_multiplier=mods.spawn_delay_multiplier,
            budget_multiplier=mods.budget_multiplier,
        )
        composition = self._scheduler.modify_wave_config(planned)
        self._allocator.reconcile(planned, composition)
        rt.composition = composition
        rt.event = event
        rt.boss = self._scheduler.bosses.boss_for_wave(wave)

        rt.active_gateways = self._settings.gateways_for_wave(wave)
        if self._gateways is not None:
            self._gateways.activate(rt.active_gateways)

        logger.info(
            "Wave %d preparing: %d entities, %d gateways%s",
            wave,
            composition.total,
            rt.active_gateways,
            f", event {event.name}" if event is not None else "",
        )
        self._publish(
            "wave_preparing",
            total=composition.total,
            gateways=rt.active_gateways,
            event=event.kind if event is not None else None,
        )
        self._announce(f"WAVE {wave}", subtext=event.name if event is not None else "")
        self._schedule("begin_wave")

    def _begin_wave(self) -> None:
        self._transition = None
        rt = self._runtime
        if rt.composition is None:
            return
        rt.clear_counts()
        rt.remaining = rt.composition.total
        rt.state = WaveState.ACTIVE
        logger.info("Wave %d started", rt.wave_number)
        self._publish("wave_started", total=rt.composition.total)
        self._spawner.start_wave(rt.composition)

        if (
            rt.boss is not None
            and self._settings.spawn_boss_on_boss_waves
            and not self._scheduler.is_active(EventKind.BOSS_RUSH)
        ):
            self._spawner.spawn_entity(rt.boss, boss=True)
            self._announce("BOSS!", subtext=rt.boss, style="danger")

        if rt.composition.total == 0:
            self._enter_clearing()

    def _enter_clearing(self) -> None:
        rt = self._runtime
        rt.state = WaveState.CLEARING
        self._spawner.stop()
        logger.debug("Wave %d clearing, %d remaining", rt.wave_number, rt.remaining)
        self._publish("wave_clearing", remaining=rt.remaining)
        self._check_complete()

    def _check_complete(self) -> None:
        rt = self._runtime
        if rt.state is WaveState.CLEARING and rt.remaining <= 0:
            self._complete_wave()

    def _notify_wave_complete(self, skipped: bool = False) -> None:
        self._controller.on_wave_complete()
        self._scheduler.on_wave_complete()
        self._publish("wave_completed", killed=self._runtime.killed, skipped=skipped)

    def _complete_wave(self) -> None:
        rt = self._runtime
        rt.state = WaveState.COMPLETED
        logger.info("Wave %d completed (%d killed)", rt.wave_number, rt.killed)
        self._notify_wave_complete()
        self._announce(f"WAVE {rt.wave_number} COMPLETE", style="success")
        self._schedule("next_wave")

    # --- Inbound notifications ---

    def on_entity_spawned(self) -> None:
        rt = self._runtime
        if rt.state is not WaveState.ACTIVE or rt.composition is None:
            return
        rt.spawned += 1
        if rt.spawned >= rt.composition.total:
            self._enter_clearing()

    def on_entity_killed(self, entity_type: str) -> None:
        self._allocator.on_entity_killed(entity_type)
        self._scheduler.on_entity_killed(entity_type)
        rt = self._runtime
        if rt.state not in (WaveState.ACTIVE, WaveState.CLEARING):
            return
        rt.killed += 1
        rt.remaining = max(0, rt.remaining - 1)
        self._publish(
            "wave_progress",
            killed=rt.killed,
            remaining=rt.remaining,
            total=rt.composition.total if rt.composition is not None else 0,
        )
        self._check_complete()

    def on_boss_defeated(self) -> None:
        logger.info("Boss defeated on wave %d", self._runtime.wave_number)
        self._scheduler.on_boss_defeated()

    def on_gateway_barricaded(self, gateway_id: str) -> None:
        self._scheduler.on_gateway_barricaded(gateway_id)

    # --- Operator controls ---

    def _abandon_wave(self) -> bool:
        """Close an unfinished wave: stop spawning and free its unspawned plan.

        Returns False when no wave is in progress.
        """
        rt = self._runtime
        if rt.state not in _IN_PROGRESS:
            return False
        self._spawner.stop()
        if rt.composition is not None:
            # Entries spawn in delay order, so the unspawned ones are the tail
            self._allocator.release(rt.composition.entries[rt.spawned:])
        rt.state = WaveState.COMPLETED
        return True

    def skip_wave(self) -> None:
        """End the current wave now and prepare the next one immediately."""
        self._cancel_transition()
        if self._abandon_wave():
            logger.info("Wave %d skipped", self._runtime.wave_number)
            self._notify_wave_complete(skipped=True)
        self.start_next_wave()

    def set_wave(self, wave: int) -> None:
        """Jump to ``wave`` and run its preparing phase as usual."""
        if wave < 1:
            raise ValueError(f"wave must be >= 1, got {wave}")
        self._cancel_transition()
        if self._abandon_wave():
            self._scheduler.expire_wave_events()
        else:
            self._spawner.stop()
        logger.info("Jumping to wave %d", wave)
        self._runtime.wave_number = wave - 1
        self.start_next_wave()

    def reset(self) -> None:
        """Back to Idle at wave 0 with nothing pending (game over)."""
        self._cancel_transition()
        self._spawner.stop()
        self._runtime = WaveRuntimeState()
        self._allocator.reset()
        self._scheduler.reset()
        self._controller.reset()
        logger.info("Wave orchestrator reset")
        self._publish("wave_reset")

    def pause(self) -> None:
        """Freeze the transition countdown, if one is running."""
        if self.paused or not self._timers.is_pending(self._transition):
            return
        token = self._transition
        phase = (token.name, self._timers.remaining(token))
        self._cancel_transition()
        self._paused_phase = phase
        logger.debug("Wave %d paused with %.0f ms left", self._runtime.wave_number, phase[1])

    def resume(self) -> None:
        if self._paused_phase is None:
            return
        name, remaining = self._paused_phase
        self._schedule(name, remaining)

    def update(self, dt_ms: float) -> None:
        if self._owns_timers:
            self._timers.update(dt_ms)
