"""TimerToken and Deferred records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class TimerToken:
    """Handle returned by TimerQueue.schedule. Used to cancel or query."""

    id: int
    name: str = ""


@dataclass
class Deferred:
    """One-shot countdown in milliseconds. Fires once when remaining reaches 0."""

    token: TimerToken
    remaining_ms: float
    callback: Callable[[], None]
    cancelled: bool = False
