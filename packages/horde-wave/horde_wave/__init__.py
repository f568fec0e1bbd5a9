"""horde-wave - Wave lifecycle orchestration."""
from horde import Announcer, EconomyService, Gateway, GatewayControl, SpawnExecutor

from horde_wave.director import WaveDirector, build_director
from horde_wave.orchestrator import WaveOrchestrator
from horde_wave.systems import make_wave_system
from horde_wave.types import WaveRuntimeState, WaveSettings, WaveState

__all__ = [
    "WaveOrchestrator",
    "WaveState",
    "WaveSettings",
    "WaveRuntimeState",
    "WaveDirector",
    "build_director",
    "make_wave_system",
    "SpawnExecutor",
    "Gateway",
    "GatewayControl",
    "Announcer",
    "EconomyService",
]
