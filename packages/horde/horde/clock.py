"""Clock and FrameContext for the host frame loop."""

import random
from typing import Callable

from horde.types import FrameContext


class Clock:
    def __init__(self, frame_ms: float) -> None:
        if frame_ms <= 0:
            raise ValueError("frame_ms must be positive")
        self._frame_ms = float(frame_ms)
        self._frame_number = 0
        self._elapsed_ms = 0.0
        self._last_dt_ms = float(frame_ms)

    @property
    def frame_ms(self) -> float:
        return self._frame_ms

    @property
    def frame_number(self) -> int:
        return self._frame_number

    @property
    def elapsed_ms(self) -> float:
        return self._elapsed_ms

    @property
    def dt_ms(self) -> float:
        return self._last_dt_ms

    def advance(self, dt_ms: float | None = None) -> int:
        """Move to the next frame. Hosts with variable frame times pass dt_ms."""
        if dt_ms is None:
            dt_ms = self._frame_ms
        if dt_ms < 0:
            raise ValueError("dt_ms must not be negative")
        self._frame_number += 1
        self._last_dt_ms = float(dt_ms)
        self._elapsed_ms += self._last_dt_ms
        return self._frame_number

    def context(self, stop_fn: Callable[[], None], rng: random.Random) -> FrameContext:
        return FrameContext(
            frame_number=self._frame_number,
            dt_ms=self._last_dt_ms,
            elapsed_ms=self._elapsed_ms,
            request_stop=stop_fn,
            random=rng,
        )

    def reset(self) -> None:
        self._frame_number = 0
        self._elapsed_ms = 0.0
        self._last_dt_ms = self._frame_ms
