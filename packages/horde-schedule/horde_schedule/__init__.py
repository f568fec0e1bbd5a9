"""horde-schedule - Deferred callback primitives for the horde engine."""
from __future__ import annotations

from horde_schedule.components import Deferred, TimerToken
from horde_schedule.queue import TimerQueue
from horde_schedule.systems import make_timer_system

__all__ = ["Deferred", "TimerToken", "TimerQueue", "make_timer_system"]
