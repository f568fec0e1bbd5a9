"""Shared types and errors for the horde engine."""

from __future__ import annotations

import random as _random
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class FrameContext:
    frame_number: int
    dt_ms: float
    elapsed_ms: float
    request_stop: Callable[[], None]
    random: _random.Random


class ConfigError(ValueError):
    """Raised when a configuration record is internally inconsistent."""


System = Callable[[FrameContext], None]
