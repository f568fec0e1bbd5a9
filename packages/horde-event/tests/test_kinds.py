"""Tests for horde_event.kinds — per-kind lifecycle hooks."""
from __future__ import annotations

import random

from horde_threat import SpawnEntry, WaveComposition

from horde_event import (
    BossRushSettings,
    DoorHazardSettings,
    EventConfig,
    EventContext,
    EventDuration,
    EventKind,
    EventState,
    SpecialEventScheduler,
    default_event_configs,
)
from horde_event.kinds import horde_modify


class RecordingAnnouncer:
    def __init__(self) -> None:
        self.texts: list[str] = []
        self.subtexts: list[str] = []

    def announce(self, text, subtext="", style="info", duration_ms=3000) -> None:
        self.texts.append(text)
        self.subtexts.append(subtext)


class RecordingSpawner:
    def __init__(self) -> None:
        self.spawned: list[tuple[str, str | None, dict]] = []

    def start_wave(self, composition) -> None:
        pass

    def stop(self) -> None:
        pass

    def spawn_entity(self, entity_type, gateway_id=None, **traits) -> None:
        self.spawned.append((entity_type, gateway_id, traits))


class RecordingEconomy:
    def __init__(self) -> None:
        self.points: list[int] = []
        self.rewards: list[str] = []

    def add_points(self, amount: int) -> None:
        self.points.append(amount)

    def spawn_reward(self, reward_type: str, x: float, y: float) -> None:
        self.rewards.append(reward_type)


class FakeGateway:
    def __init__(self, id: str, active: bool = False, barricaded: bool = False) -> None:
        self.id = id
        self.active = active
        self.barricaded = barricaded
        self.destroyed = False

    def is_active(self) -> bool:
        return self.active

    def has_barricade(self) -> bool:
        return self.barricaded

    def is_destroyed(self) -> bool:
        return self.destroyed

    def activate(self) -> None:
        self.active = True


class FakeGateways:
    def __init__(self, *gateways: FakeGateway) -> None:
        self.gateways = list(gateways)

    def get_gateways(self) -> list[FakeGateway]:
        return self.gateways

    def activate(self, count: int) -> None:
        for gateway in self.gateways[:count]:
            gateway.activate()


def _plan(*types: str, gap: int = 1000) -> WaveComposition:
    return WaveComposition.empty(5).with_entries(
        SpawnEntry(t, i * gap) for i, t in enumerate(types)
    )


def _scheduler(configs=None, **collaborators) -> SpecialEventScheduler:
    collaborators.setdefault("announcer", RecordingAnnouncer())
    collaborators.setdefault("random", random.Random(0))
    return SpecialEventScheduler(
        configs=configs if configs is not None else default_event_configs(),
        context=EventContext(**collaborators),
    )


def _horde_descriptor():
    s = _scheduler()
    s.trigger(EventKind.HORDE)
    return s, s.descriptor(EventKind.HORDE)


class TestHorde:
    def test_triples_allowed_plan(self) -> None:
        s, desc = _horde_descriptor()
        plan = _plan(*(["shambler"] * 6 + ["runner"] * 4))
        out = horde_modify(desc, s.context, plan)
        assert plan.total == 10
        assert out.total == 30
        assert out.count_of("shambler") == 18
        assert out.count_of("runner") == 12

    def test_drops_disallowed_types(self) -> None:
        s, desc = _horde_descriptor()
        out = horde_modify(desc, s.context, _plan("shambler", "tank", "crawler", "spitter"))
        assert set(out.counts) == {"shambler", "crawler"}
        assert out.total == 6

    def test_delays_scaled_and_staggered(self) -> None:
        s, desc = _horde_descriptor()
        out = horde_modify(desc, s.context, _plan("runner", "runner", gap=1000))
        # originals at 0 and 600, copies 500 and 1000 ms later
        assert [e.delay_ms for e in out.entries] == [0, 500, 600, 1000, 1100, 1600]

    def test_fallback_mix_when_nothing_allowed(self) -> None:
        s, desc = _horde_descriptor()
        out = horde_modify(desc, s.context, _plan("tank", "necromancer"))
        assert out.count_of("shambler") == 4
        assert out.count_of("runner") == 2
        assert out.total == 6

    def test_budget_fields_preserved(self) -> None:
        s, desc = _horde_descriptor()
        plan = _plan("shambler")
        out = horde_modify(desc, s.context, plan)
        assert out.wave_number == plan.wave_number
        assert out.total_budget == plan.total_budget

    def test_kill_milestones_announced(self) -> None:
        announcer = RecordingAnnouncer()
        s = _scheduler(announcer=announcer)
        s.trigger(EventKind.HORDE)
        for _ in range(50):
            s.on_entity_killed("shambler")
        assert "25 KILLS!" in announcer.texts
        assert "50 KILLS!" in announcer.texts
        s.stop(EventKind.HORDE)
        assert announcer.texts[-1] == "HORDE SURVIVED"
        assert announcer.subtexts[-1] == "50 enemies eliminated"

    def test_kills_ignored_when_inactive(self) -> None:
        s = _scheduler()
        s.on_entity_killed("shambler")
        assert s.descriptor(EventKind.HORDE).data == {}


class TestBlackout:
    def test_publishes_darkness_parameters(self) -> None:
        s = _scheduler()
        s.trigger(EventKind.BLACKOUT)
        data = s.descriptor(EventKind.BLACKOUT).data
        assert data["light_radius"] == 150.0
        assert data["darkness_alpha"] == 0.92
        s.stop(EventKind.BLACKOUT)
        assert data == {}

    def test_leaves_plan_alone(self) -> None:
        s = _scheduler()
        s.trigger(EventKind.BLACKOUT)
        plan = _plan("tank", "runner")
        assert s.modify_wave_config(plan) is plan


class TestOverheatedDoor:
    def _setup(self, *gateways: FakeGateway):
        spawner = RecordingSpawner()
        control = FakeGateways(*gateways)
        s = _scheduler(spawner=spawner, gateways=control)
        return s, spawner, control

    def test_prefers_inactive_gateway(self) -> None:
        s, _, _ = self._setup(
            FakeGateway("a", active=True),
            FakeGateway("b", barricaded=True),
            FakeGateway("c"),
        )
        assert s.trigger(EventKind.OVERHEATED_DOOR)
        assert s.descriptor(EventKind.OVERHEATED_DOOR).data["gateway_id"] == "c"

    def test_falls_back_to_active_gateway(self) -> None:
        s, _, _ = self._setup(FakeGateway("a", active=True), FakeGateway("b", barricaded=True))
        s.trigger(EventKind.OVERHEATED_DOOR)
        assert s.descriptor(EventKind.OVERHEATED_DOOR).data["gateway_id"] == "a"

    def test_barricade_resolves_safely(self) -> None:
        s, spawner, _ = self._setup(FakeGateway("a"))
        s.trigger(EventKind.OVERHEATED_DOOR)
        s.on_gateway_barricaded("other")
        assert s.descriptor(EventKind.OVERHEATED_DOOR).state is EventState.ACTIVE
        s.on_gateway_barricaded("a")
        desc = s.descriptor(EventKind.OVERHEATED_DOOR)
        assert desc.state is EventState.ENDING
        s.update(0)
        assert desc.state is EventState.INACTIVE
        assert desc.data["outcome"] == "barricaded"
        assert spawner.spawned == []

    def test_expiry_releases_enraged_punisher(self) -> None:
        gate = FakeGateway("a")
        s, spawner, _ = self._setup(gate)
        s.trigger(EventKind.OVERHEATED_DOOR)
        s.update(9_999)
        assert spawner.spawned == []
        s.update(1)
        entity_type, gateway_id, traits = spawner.spawned[0]
        assert entity_type == "tank"
        assert gateway_id == "a"
        assert traits["enraged"] is True
        assert traits["speed_multiplier"] == 1.5
        assert gate.active
        assert not s.is_active(EventKind.OVERHEATED_DOOR)

    def test_barricaded_at_expiry_is_safe(self) -> None:
        gate = FakeGateway("a")
        s, spawner, _ = self._setup(gate)
        s.trigger(EventKind.OVERHEATED_DOOR)
        gate.barricaded = True
        s.update(10_000)
        assert spawner.spawned == []
        assert s.descriptor(EventKind.OVERHEATED_DOOR).data["outcome"] == "barricaded"

    def test_custom_warning(self) -> None:
        config = EventConfig(
            kind=EventKind.OVERHEATED_DOOR,
            name="Door",
            duration=EventDuration.CONDITION,
            conditions=("gateway_available",),
            settings=DoorHazardSettings(warning_ms=100, punisher_type="brute"),
        )
        spawner = RecordingSpawner()
        s = _scheduler(configs=[config], spawner=spawner, gateways=FakeGateways(FakeGateway("z")))
        s.trigger(EventKind.OVERHEATED_DOOR)
        s.update(100)
        assert spawner.spawned[0][0] == "brute"


class TestBossRush:
    def _setup(self, bosses: int = 2):
        spawner = RecordingSpawner()
        economy = RecordingEconomy()
        config = EventConfig(
            kind=EventKind.BOSS_RUSH,
            name="Boss Rush",
            duration=EventDuration.CONDITION,
            settings=BossRushSettings(min_bosses=bosses, max_bosses=bosses),
        )
        s = _scheduler(configs=[config], spawner=spawner, economy=economy)
        s.trigger(EventKind.BOSS_RUSH)
        return s, spawner, economy

    def test_queue_drawn_from_roster(self) -> None:
        s, _, _ = self._setup(bosses=3)
        queue = s.descriptor(EventKind.BOSS_RUSH).data["queue"]
        assert sorted(queue) == ["abomination", "colossus", "patient_zero"]

    def test_default_count_in_range(self) -> None:
        for seed in range(10):
            s = _scheduler(random=random.Random(seed))
            s.trigger(EventKind.BOSS_RUSH)
            assert s.descriptor(EventKind.BOSS_RUSH).data["total"] in (2, 3)

    def test_bosses_spawn_one_at_a_time(self) -> None:
        s, spawner, economy = self._setup()
        s.update(1_999)
        assert spawner.spawned == []
        s.update(1)
        assert len(spawner.spawned) == 1
        assert spawner.spawned[0][2] == {"boss": True, "health_multiplier": 0.7}

        s.on_boss_defeated()
        s.update(2_999)
        assert len(spawner.spawned) == 1
        s.update(1)
        assert len(spawner.spawned) == 2
        assert economy.points == []

    def test_rewards_after_last_defeat(self) -> None:
        s, _, economy = self._setup()
        s.update(2_000)
        s.on_boss_defeated()
        s.update(3_000)
        s.on_boss_defeated()
        desc = s.descriptor(EventKind.BOSS_RUSH)
        assert desc.state is EventState.ENDING
        assert economy.points == [3000]
        assert economy.rewards.count("health_medium") == 2
        s.update(0)
        assert desc.state is EventState.INACTIVE

    def test_wave_completion_does_not_end_rush(self) -> None:
        s, _, _ = self._setup()
        s.on_wave_complete()
        assert s.is_active(EventKind.BOSS_RUSH)

    def test_defeat_outside_rush_ignored(self) -> None:
        s, _, economy = self._setup()
        s.stop(EventKind.BOSS_RUSH)
        s.on_boss_defeated()
        assert economy.points == []
