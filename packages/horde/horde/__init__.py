"""horde - frame-driven host runtime for the wave scheduling core."""

from horde.clock import Clock
from horde.collaborators import (
    Announcer,
    EconomyService,
    Gateway,
    GatewayControl,
    SpawnExecutor,
)
from horde.engine import Engine
from horde.types import ConfigError, FrameContext, System

__all__ = [
    "Engine",
    "Clock",
    "FrameContext",
    "System",
    "ConfigError",
    "SpawnExecutor",
    "Gateway",
    "GatewayControl",
    "Announcer",
    "EconomyService",
]
