"""build_director — wires every scheduling component onto one Engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from horde import Engine
from horde_dda import DDAConfig, DifficultyController, TelemetryFeed, make_difficulty_system
from horde_event import (
    BossSchedule,
    EventContext,
    SchedulerConfig,
    SpecialEventScheduler,
    make_event_system,
)
from horde_schedule import TimerQueue, make_timer_system
from horde_signal import SignalBus, make_signal_system
from horde_threat import EntityCatalog, ThreatAllocator, ThreatConfig, default_catalog

from horde_wave.orchestrator import WaveOrchestrator
from horde_wave.types import WaveSettings

if TYPE_CHECKING:
    from horde import Announcer, EconomyService, GatewayControl, SpawnExecutor


@dataclass
class WaveDirector:
    engine: Engine
    orchestrator: WaveOrchestrator
    allocator: ThreatAllocator
    controller: DifficultyController
    scheduler: SpecialEventScheduler
    timers: TimerQueue
    bus: SignalBus


def build_director(
    spawner: SpawnExecutor,
    *,
    catalog: EntityCatalog | None = None,
    telemetry: TelemetryFeed | None = None,
    gateways: GatewayControl | None = None,
    announcer: Announcer | None = None,
    economy: EconomyService | None = None,
    threat_config: ThreatConfig | None = None,
    dda_config: DDAConfig | None = None,
    scheduler_config: SchedulerConfig | None = None,
    bosses: BossSchedule | None = None,
    settings: WaveSettings | None = None,
    fps: int = 60,
    seed: int | None = None,
) -> WaveDirector:
    """Build the default component stack sharing one seeded RNG.

    Systems run in this order each frame: transition timers, difficulty,
    events, then signal delivery.
    """
    engine = Engine(fps=fps, seed=seed)
    timers = TimerQueue()
    bus = SignalBus()

    allocator = ThreatAllocator(
        catalog if catalog is not None else default_catalog(),
        threat_config,
        rng=engine.random,
    )
    controller = DifficultyController(dda_config, telemetry=telemetry)
    context = EventContext(
        announcer=announcer,
        economy=economy,
        spawner=spawner,
        gateways=gateways,
        random=engine.random,
    )
    scheduler = SpecialEventScheduler(
        config=scheduler_config, bosses=bosses, context=context, bus=bus
    )
    orchestrator = WaveOrchestrator(
        allocator,
        controller,
        scheduler,
        spawner,
        gateways=gateways,
        announcer=announcer,
        settings=settings,
        bus=bus,
        timers=timers,
    )

    engine.add_system(make_timer_system(timers))
    engine.add_system(make_difficulty_system(controller))
    engine.add_system(make_event_system(scheduler))
    engine.add_system(make_signal_system(bus))

    return WaveDirector(
        engine=engine,
        orchestrator=orchestrator,
        allocator=allocator,
        controller=controller,
        scheduler=scheduler,
        timers=timers,
        bus=bus,
    )
