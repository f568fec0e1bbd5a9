"""System factory for adaptive difficulty."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from horde_dda.controller import DifficultyController
from horde_dda.types import PerformanceState

if TYPE_CHECKING:
    from horde import FrameContext


def make_difficulty_system(
    controller: DifficultyController,
    on_adjust: Callable[[FrameContext, PerformanceState], None] | None = None,
) -> Callable[[FrameContext], None]:
    """Return a system that ticks the controller by each frame's delta.

    ``on_adjust`` fires on frames where the cooldown allowed a step.
    """

    def difficulty_system(ctx: FrameContext) -> None:
        state = controller.tick(ctx.dt_ms)
        if state is not None and on_adjust is not None:
            on_adjust(ctx, state)

    return difficulty_system
