"""System factory for special event processing."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from horde_event.scheduler import SpecialEventScheduler

if TYPE_CHECKING:
    from horde import FrameContext


def make_event_system(
    scheduler: SpecialEventScheduler,
) -> Callable[[FrameContext], None]:
    """Return a system that runs event update hooks and retires ended events."""

    def event_system(ctx: FrameContext) -> None:
        scheduler.update(ctx.dt_ms)

    return event_system
