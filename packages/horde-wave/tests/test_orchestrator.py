"""Tests for horde_wave.orchestrator — WaveOrchestrator."""
from __future__ import annotations

import random
from collections import Counter

import pytest
from horde import Engine
from horde_dda import DDAConfig, DifficultyController, PerformanceSnapshot
from horde_event import (
    EventContext,
    EventKind,
    EventState,
    SchedulerConfig,
    SpecialEventScheduler,
    default_event_configs,
)
from horde_signal import SignalBus
from horde_threat import CapPolicy, Role, ThreatAllocator, ThreatConfig, default_catalog

from horde_wave import WaveOrchestrator, WaveSettings, WaveState, make_wave_system


class RecordingSpawner:
    def __init__(self) -> None:
        self.started = []
        self.stops = 0
        self.spawned: list[tuple[str, dict]] = []

    def start_wave(self, composition) -> None:
        self.started.append(composition)

    def stop(self) -> None:
        self.stops += 1

    def spawn_entity(self, entity_type, gateway_id=None, **traits) -> None:
        self.spawned.append((entity_type, traits))


class RecordingGateways:
    def __init__(self) -> None:
        self.requests: list[int] = []

    def get_gateways(self):
        return []

    def activate(self, count: int) -> None:
        self.requests.append(count)


class FixedTelemetry:
    def __init__(self, snapshot: PerformanceSnapshot) -> None:
        self.snapshot = snapshot

    def get_performance_snapshot(self) -> PerformanceSnapshot:
        return self.snapshot


STRUGGLING = PerformanceSnapshot(accuracy=0.1, damage_taken_per_min=80, health_fraction=0.2)


def _orchestrator(
    events=None,
    controller: DifficultyController | None = None,
    bus: SignalBus | None = None,
    gateways=None,
    seed: int = 1,
    **threat,
):
    rng = random.Random(seed)
    allocator = ThreatAllocator(default_catalog(), ThreatConfig(**threat), rng=rng)
    scheduler = SpecialEventScheduler(
        configs=events if events is not None else [],
        config=SchedulerConfig(base_event_chance=0.0),
        context=EventContext(random=rng),
        bus=bus,
    )
    spawner = RecordingSpawner()
    orch = WaveOrchestrator(
        allocator,
        controller if controller is not None else DifficultyController(),
        scheduler,
        spawner,
        gateways=gateways,
        settings=WaveSettings(transition_delay_ms=100),
        bus=bus,
    )
    return orch, spawner


def _to_active(orch: WaveOrchestrator) -> None:
    orch.update(orch.settings.transition_delay_ms)
    assert orch.state is WaveState.ACTIVE


def _spawn_all(orch: WaveOrchestrator) -> None:
    for _ in range(orch.composition.total):
        orch.on_entity_spawned()


def _kill_all(orch: WaveOrchestrator) -> None:
    for entry in orch.composition.entries:
        orch.on_entity_killed(entry.entity_type)


def _roles(orch: WaveOrchestrator, entries) -> dict[Role, int]:
    catalog = orch._allocator.catalog
    return dict(Counter(catalog.role_of(e.entity_type) for e in entries))


class TestGatewaySteps:
    def test_step_function(self) -> None:
        settings = WaveSettings()
        assert [settings.gateways_for_wave(w) for w in (1, 5, 6, 11, 31, 100)] == [2, 2, 3, 4, 8, 8]

    def test_requested_each_wave(self) -> None:
        gateways = RecordingGateways()
        orch, _ = _orchestrator(gateways=gateways)
        orch.start()
        orch.set_wave(6)
        assert gateways.requests == [2, 3]
        assert orch.active_gateways == 3


class TestLifecycle:
    def test_start_prepares_wave_one(self) -> None:
        orch, spawner = _orchestrator()
        assert orch.state is WaveState.IDLE
        orch.start()
        assert orch.wave_number == 1
        assert orch.state is WaveState.PREPARING
        assert orch.composition is not None
        assert spawner.started == []

    def test_begin_after_transition_delay(self) -> None:
        orch, spawner = _orchestrator()
        orch.start()
        orch.update(99)
        assert orch.state is WaveState.PREPARING
        orch.update(1)
        assert orch.state is WaveState.ACTIVE
        assert spawner.started == [orch.composition]
        assert orch.remaining == orch.composition.total

    def test_full_cycle(self) -> None:
        orch, spawner = _orchestrator()
        orch.start()
        _to_active(orch)
        _spawn_all(orch)
        assert orch.state is WaveState.CLEARING
        assert spawner.stops == 1
        _kill_all(orch)
        assert orch.state is WaveState.COMPLETED
        assert orch.progress() == 1.0
        orch.update(100)
        assert orch.wave_number == 2
        assert orch.state is WaveState.PREPARING

    def test_clearing_entered_exactly_once(self) -> None:
        bus = SignalBus()
        clearing = []
        bus.subscribe("wave_clearing", lambda name, data: clearing.append(data["wave"]))
        orch, _ = _orchestrator(bus=bus)
        orch.start()
        _to_active(orch)
        total = orch.composition.total
        for i in range(total - 1):
            orch.on_entity_spawned()
            assert orch.state is WaveState.ACTIVE
        orch.on_entity_spawned()
        assert orch.state is WaveState.CLEARING
        for _ in range(5):
            orch.on_entity_spawned()
        assert orch.spawned == total
        bus.flush()
        assert clearing == [1]

    def test_kills_before_clearing_do_not_complete(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        _to_active(orch)
        _kill_all(orch)
        assert orch.remaining == 0
        assert orch.state is WaveState.ACTIVE
        _spawn_all(orch)
        # clearing with nothing left completes at once
        assert orch.state is WaveState.COMPLETED

    def test_remaining_never_negative(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        _to_active(orch)
        _spawn_all(orch)
        _kill_all(orch)
        orch.on_entity_killed("shambler")
        assert orch.remaining == 0

    def test_kills_outside_a_wave_ignored(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        orch.on_entity_killed("shambler")
        assert orch.killed == 0

    def test_empty_composition_completes(self) -> None:
        orch, spawner = _orchestrator(base_budget=0, budget_per_wave=0)
        orch.start()
        assert orch.composition.total == 0
        orch.update(100)
        assert orch.state is WaveState.COMPLETED
        assert spawner.stops == 1
        assert orch.progress() == 1.0

    def test_progress(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        assert orch.progress() == 0.0
        _to_active(orch)
        orch.on_entity_killed(orch.composition.entries[0].entity_type)
        assert orch.progress() == pytest.approx(1 / orch.composition.total)

    def test_snapshot_is_a_copy(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        snap = orch.snapshot()
        snap.wave_number = 99
        assert orch.wave_number == 1

    def test_signals_in_order(self) -> None:
        bus = SignalBus()
        names = []
        bus.subscribe_all(lambda name, data: names.append(name))
        orch, _ = _orchestrator(bus=bus)
        orch.start()
        _to_active(orch)
        _spawn_all(orch)
        orch.on_entity_killed("shambler")
        bus.flush()
        assert names[:4] == ["wave_preparing", "wave_started", "wave_clearing", "wave_progress"]


class TestCollaborators:
    def test_modifiers_feed_allocator(self) -> None:
        controller = DifficultyController(telemetry=FixedTelemetry(STRUGGLING))
        controller.tick(0)
        orch, _ = _orchestrator(controller=controller)
        orch.start()
        assert orch.composition.total_budget == pytest.approx(5 * 0.95)

    def test_completion_forces_controller_evaluation(self) -> None:
        controller = DifficultyController(
            DDAConfig(adjustment_cooldown_ms=60_000), telemetry=FixedTelemetry(STRUGGLING)
        )
        controller.tick(0)
        orch, _ = _orchestrator(controller=controller)
        orch.start()
        _to_active(orch)
        _spawn_all(orch)
        _kill_all(orch)
        assert len(controller.history()) == 2

    def test_kills_reach_allocator_ledger(self) -> None:
        orch, _ = _orchestrator(cap_policy=CapPolicy.CARRY_OVER_LIVE_COUNTS)
        orch.set_wave(8)
        fodder = orch.composition.count_of("shambler")
        assert orch._allocator.live_counts().get(Role.FODDER, 0) == fodder
        # still preparing, so only the ledger sees this kill
        orch.on_entity_killed("shambler")
        assert orch._allocator.live_counts().get(Role.FODDER, 0) == max(0, fodder - 1)
        assert orch.killed == 0

    def test_forced_event_rewrites_plan(self) -> None:
        orch, _ = _orchestrator(events=default_event_configs())
        orch._scheduler.force_next(EventKind.HORDE)
        orch.set_wave(6)
        assert orch.event is not None
        assert orch.event.kind is EventKind.HORDE
        assert set(orch.composition.counts) <= {"shambler", "runner", "crawler"}
        assert orch.composition.total % 3 == 0

    def test_event_rewrite_keeps_ledger_in_step(self) -> None:
        orch, _ = _orchestrator(
            events=default_event_configs(), cap_policy=CapPolicy.CARRY_OVER_LIVE_COUNTS
        )
        orch._scheduler.force_next(EventKind.HORDE)
        orch.set_wave(6)
        assert orch.event is not None
        # the tripled plan is what will spawn and be killed
        assert orch._allocator.live_counts() == _roles(orch, orch.composition.entries)

    def test_wave_events_expire_at_completion(self) -> None:
        orch, _ = _orchestrator(events=default_event_configs())
        orch.start()
        orch._scheduler.trigger(EventKind.BLACKOUT)
        _to_active(orch)
        _spawn_all(orch)
        _kill_all(orch)
        assert not orch._scheduler.is_active(EventKind.BLACKOUT)

    def test_boss_wave_spawns_boss(self) -> None:
        orch, spawner = _orchestrator()
        orch.set_wave(10)
        _to_active(orch)
        assert spawner.spawned == [("patient_zero", {"boss": True})]

    def test_boss_defeat_forwarded(self) -> None:
        orch, _ = _orchestrator(events=default_event_configs())
        orch._scheduler.trigger(EventKind.BOSS_RUSH)
        orch.on_boss_defeated()
        assert orch._scheduler.descriptor(EventKind.BOSS_RUSH).data["defeated"] == 1


class TestOperatorControls:
    def test_skip_wave(self) -> None:
        bus = SignalBus()
        completed = []
        bus.subscribe("wave_completed", lambda name, data: completed.append(data))
        orch, spawner = _orchestrator(bus=bus)
        orch.start()
        _to_active(orch)
        orch.skip_wave()
        assert orch.wave_number == 2
        assert orch.state is WaveState.PREPARING
        assert spawner.stops == 1
        bus.flush()
        assert completed == [{"wave": 1, "killed": 0, "skipped": True}]

    def test_skip_cancels_pending_transition(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        orch.update(50)
        orch.skip_wave()
        orch.update(60)
        # the wave-1 timer would have fired here
        assert orch.wave_number == 2
        assert orch.state is WaveState.PREPARING
        orch.update(40)
        assert orch.state is WaveState.ACTIVE

    def test_skip_from_idle_starts(self) -> None:
        orch, _ = _orchestrator()
        orch.skip_wave()
        assert orch.wave_number == 1

    def test_set_wave(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        orch.set_wave(12)
        assert orch.wave_number == 12
        assert orch.state is WaveState.PREPARING
        assert orch.composition.wave_number == 12

    def test_skip_after_completion_completes_once(self) -> None:
        bus = SignalBus()
        completed = []
        bus.subscribe("wave_completed", lambda name, data: completed.append(data["wave"]))
        controller = DifficultyController(
            DDAConfig(adjustment_cooldown_ms=60_000), telemetry=FixedTelemetry(STRUGGLING)
        )
        orch, _ = _orchestrator(controller=controller, bus=bus)
        orch.start()
        _to_active(orch)
        _spawn_all(orch)
        _kill_all(orch)
        assert orch.state is WaveState.COMPLETED
        adjustments = len(controller.history())

        orch.skip_wave()
        assert len(controller.history()) == adjustments
        assert orch.wave_number == 2
        assert orch.state is WaveState.PREPARING
        bus.flush()
        assert completed == [1]

    def test_set_wave_ends_wave_events(self) -> None:
        orch, _ = _orchestrator(events=default_event_configs())
        orch._scheduler.force_next(EventKind.HORDE)
        orch.set_wave(6)
        assert orch._scheduler.is_active(EventKind.HORDE)

        orch.set_wave(20)
        assert not orch._scheduler.is_active(EventKind.HORDE)
        assert orch._scheduler.descriptor(EventKind.HORDE).state is EventState.INACTIVE
        assert orch.event is None

    def test_set_wave_keeps_condition_events(self) -> None:
        orch, _ = _orchestrator(events=default_event_configs())
        orch.start()
        orch._scheduler.trigger(EventKind.BOSS_RUSH)
        orch.set_wave(4)
        assert orch._scheduler.is_active(EventKind.BOSS_RUSH)

    @pytest.mark.parametrize("policy", list(CapPolicy))
    def test_skip_releases_unspawned_entries(self, policy: CapPolicy) -> None:
        orch, _ = _orchestrator(cap_policy=policy)
        orch.set_wave(8)
        _to_active(orch)
        abandoned = orch.composition
        orch.on_entity_spawned()
        orch.on_entity_spawned()

        orch.skip_wave()
        expected = Counter(_roles(orch, orch.composition.entries))
        if policy is CapPolicy.CARRY_OVER_LIVE_COUNTS:
            # the two that did spawn are still alive
            expected.update(_roles(orch, abandoned.entries[:2]))
        assert orch._allocator.live_counts() == dict(expected)

    def test_repeated_skips_keep_waves_playable(self) -> None:
        orch, _ = _orchestrator(cap_policy=CapPolicy.CARRY_OVER_LIVE_COUNTS)
        orch.start()
        totals = []
        for _ in range(8):
            totals.append(orch.composition.total)
            orch.skip_wave()
        assert all(totals)
        assert orch._allocator.live_counts() == _roles(orch, orch.composition.entries)

    def test_set_wave_releases_abandoned_plan(self) -> None:
        orch, _ = _orchestrator(cap_policy=CapPolicy.CARRY_OVER_LIVE_COUNTS)
        orch.set_wave(8)
        orch.set_wave(3)
        assert orch._allocator.live_counts() == _roles(orch, orch.composition.entries)

    @pytest.mark.parametrize("wave", [0, -3])
    def test_set_wave_rejects_non_positive(self, wave: int) -> None:
        orch, _ = _orchestrator()
        with pytest.raises(ValueError):
            orch.set_wave(wave)

    def test_pause_and_resume(self) -> None:
        orch, _ = _orchestrator()
        orch.start()
        orch.update(50)
        orch.pause()
        assert orch.paused
        orch.update(1_000)
        assert orch.state is WaveState.PREPARING
        orch.resume()
        orch.update(49)
        assert orch.state is WaveState.PREPARING
        orch.update(1)
        assert orch.state is WaveState.ACTIVE

    def test_pause_without_transition_is_noop(self) -> None:
        orch, _ = _orchestrator()
        orch.pause()
        assert not orch.paused

    def test_reset(self) -> None:
        bus = SignalBus()
        names = []
        bus.subscribe("wave_reset", lambda name, data: names.append(name))
        orch, _ = _orchestrator(bus=bus)
        orch.start()
        orch.reset()
        assert orch.state is WaveState.IDLE
        assert orch.wave_number == 0
        assert orch.composition is None
        assert not orch.transition_pending
        orch.update(10_000)
        assert orch.state is WaveState.IDLE
        bus.flush()
        assert names == ["wave_reset"]


class TestSystem:
    def test_engine_advances_transition(self) -> None:
        orch, _ = _orchestrator()
        engine = Engine(fps=10, seed=1)
        engine.add_system(make_wave_system(orch))
        orch.start()
        engine.run(1)
        assert orch.state is WaveState.ACTIVE
