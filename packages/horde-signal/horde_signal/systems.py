"""System factories for signal dispatch."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from horde_signal.bus import SignalBus

if TYPE_CHECKING:
    from horde import FrameContext


def make_signal_system(bus: SignalBus) -> Callable[[FrameContext], None]:
    def signal_system(ctx: FrameContext) -> None:
        bus.flush()

    return signal_system
