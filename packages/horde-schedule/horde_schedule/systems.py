"""System factory for timer queue processing."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from horde_schedule.queue import TimerQueue

if TYPE_CHECKING:
    from horde import FrameContext


def make_timer_system(queue: TimerQueue) -> Callable[[FrameContext], None]:
    """Return a system that advances the queue by each frame's delta."""

    def timer_system(ctx: FrameContext) -> None:
        queue.update(ctx.dt_ms)

    return timer_system
