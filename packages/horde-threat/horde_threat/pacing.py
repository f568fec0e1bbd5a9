"""Weighted selection and spawn pacing helpers."""
from __future__ import annotations

import math
import random
from typing import Sequence, TypeVar

from horde_threat.types import SpawnEntry

T = TypeVar("T")


def weighted_pick(
    candidates: Sequence[T], weights: Sequence[float], rng: random.Random
) -> T:
    """Cumulative-weight roll. Ties go to the earliest candidate.

    Raises ValueError on an empty candidate list. Non-positive total weight
    degrades to the first candidate.
    """
    if not candidates:
        raise ValueError("weighted_pick needs at least one candidate")
    if len(candidates) == 1:
        return candidates[0]
    total = sum(weights)
    if total <= 0:
        return candidates[0]
    roll = rng.random() * total
    cumulative = 0.0
    for candidate, weight in zip(candidates, weights):
        cumulative += weight
        if roll < cumulative:
            return candidate
    return candidates[-1]


def breathing_interval(count: int, breathing_ratio: float, minimum: int) -> int:
    return max(minimum, math.ceil(count * (1.0 - breathing_ratio)))


def apply_pacing(
    types: list[str],
    base_gap_ms: float,
    breathing_ratio: float,
    min_interval: int,
    rng: random.Random,
) -> tuple[SpawnEntry, ...]:
    """Shuffle the spend list and assign cumulative spawn offsets.

    Dense bursts use ``base + U(0, base/2)``; every breathing interval a
    lull of ``3*base + U(0, base)`` is inserted. The first entry always
    lands at ``base/2`` so the wave opens almost immediately.
    """
    if not types:
        return ()
    order = list(types)
    rng.shuffle(order)

    interval = breathing_interval(len(order), breathing_ratio, min_interval)
    entries: list[SpawnEntry] = []
    offset = base_gap_ms * 0.5
    entries.append(SpawnEntry(order[0], round(offset)))
    for i in range(1, len(order)):
        if i % interval == 0:
            offset += base_gap_ms * 3 + rng.random() * base_gap_ms
        else:
            offset += base_gap_ms + rng.random() * base_gap_ms * 0.5
        entries.append(SpawnEntry(order[i], round(offset)))
    return tuple(entries)
