"""horde-signal - In-process signal bus for the horde engine."""
from __future__ import annotations

from horde_signal.bus import SignalBus
from horde_signal.systems import make_signal_system

__all__ = ["SignalBus", "make_signal_system"]
