"""System factory for the wave lifecycle."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from horde_wave.orchestrator import WaveOrchestrator

if TYPE_CHECKING:
    from horde import FrameContext


def make_wave_system(orchestrator: WaveOrchestrator) -> Callable[[FrameContext], None]:
    """Return a system that advances the orchestrator's transition timer."""

    def wave_system(ctx: FrameContext) -> None:
        orchestrator.update(ctx.dt_ms)

    return wave_system
