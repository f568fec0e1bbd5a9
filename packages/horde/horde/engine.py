"""Engine - host frame loop, pacing, and lifecycle hooks."""

import os
import random
import time
from typing import Callable

from horde.clock import Clock
from horde.types import FrameContext, System


class Engine:
    def __init__(self, fps: int = 60, seed: int | None = None) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive")
        self._clock = Clock(1000.0 / fps)
        self._systems: list[System] = []
        self._start_hooks: list[Callable[[FrameContext], None]] = []
        self._stop_hooks: list[Callable[[FrameContext], None]] = []
        self._stop_requested: bool = False

        if seed is None:
            seed = int.from_bytes(os.urandom(8))
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def random(self) -> random.Random:
        return self._rng

    def add_system(self, system: System) -> None:
        self._systems.append(system)

    def on_start(self, hook: Callable[[FrameContext], None]) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: Callable[[FrameContext], None]) -> None:
        self._stop_hooks.append(hook)

    def _request_stop(self) -> None:
        self._stop_requested = True

    def _frame(self, dt_ms: float | None = None) -> None:
        self._clock.advance(dt_ms)
        ctx = self._clock.context(self._request_stop, self._rng)
        for system in self._systems:
            system(ctx)
            if self._stop_requested:
                break

    def step(self, dt_ms: float | None = None) -> None:
        self._stop_requested = False
        self._frame(dt_ms)

    def run(self, n: int) -> None:
        self._stop_requested = False
        ctx = self._clock.context(self._request_stop, self._rng)
        for hook in self._start_hooks:
            hook(ctx)

        for _ in range(n):
            self._frame()
            if self._stop_requested:
                break

        ctx = self._clock.context(self._request_stop, self._rng)
        for hook in self._stop_hooks:
            hook(ctx)

    def run_forever(self) -> None:
        self._stop_requested = False
        ctx = self._clock.context(self._request_stop, self._rng)
        for hook in self._start_hooks:
            hook(ctx)

        frame_s = self._clock.frame_ms / 1000.0
        last = time.monotonic()
        while not self._stop_requested:
            start = time.monotonic()
            self._frame((start - last) * 1000.0)
            last = start
            if self._stop_requested:
                break
            sleep_time = frame_s - (time.monotonic() - start)
            if sleep_time > 0:
                time.sleep(sleep_time)

        ctx = self._clock.context(self._request_stop, self._rng)
        for hook in self._stop_hooks:
            hook(ctx)
