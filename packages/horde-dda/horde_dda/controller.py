"""DifficultyController — closed-loop nudging of spawn pacing, budget and loot."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import replace
from typing import Any

from horde_dda.types import (
    Adjustment,
    DDAConfig,
    DifficultyModifiers,
    PerformanceSnapshot,
    PerformanceState,
    TelemetryFeed,
)

logger = logging.getLogger(__name__)

_WIN_SCORE = 2


def _toward_neutral(value: float, step: float) -> float:
    if value > 1.0:
        return max(1.0, value - step)
    if value < 1.0:
        return min(1.0, value + step)
    return value


class DifficultyController:
    """Classifies player performance and moves bounded multipliers.

    Adjustments are rate-limited by a cooldown measured in controller time
    (the sum of ``tick`` deltas). The controller starts ready, so the first
    tick with telemetry attached applies a step.
    """

    def __init__(
        self,
        config: DDAConfig | None = None,
        telemetry: TelemetryFeed | None = None,
    ) -> None:
        self._config = config if config is not None else DDAConfig()
        self._telemetry = telemetry
        self._modifiers = DifficultyModifiers.neutral()
        self._history: deque[Adjustment] = deque(maxlen=self._config.history_size)
        self._since_adjustment_ms = self._config.adjustment_cooldown_ms
        self._elapsed_ms = 0.0
        self._neutral_ticks = 0

    # --- Configuration ---

    @property
    def config(self) -> DDAConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def update_config(self, **changes: Any) -> None:
        self._config = replace(self._config, **changes)
        if self._history.maxlen != self._config.history_size:
            self._history = deque(self._history, maxlen=self._config.history_size)
        if not self._config.enabled:
            self._modifiers = DifficultyModifiers.neutral()
        else:
            self._modifiers = self._clamped(self._modifiers)

    def set_telemetry(self, feed: TelemetryFeed | None) -> None:
        self._telemetry = feed

    def set_enabled(self, flag: bool) -> None:
        """Toggle adjustments. Disabling snaps every multiplier to neutral."""
        self._config = replace(self._config, enabled=flag)
        if not flag:
            self._modifiers = DifficultyModifiers.neutral()
        logger.info("Adaptive difficulty %s", "enabled" if flag else "disabled")

    # --- Classification ---

    def classify(
        self, snapshot: PerformanceSnapshot
    ) -> tuple[PerformanceState, int, int]:
        """Return ``(state, struggling_score, dominating_score)``.

        Each metric counts toward at most one side. Clear time only counts
        once a wave has actually been cleared.
        """
        low = self._config.thresholds.struggling
        high = self._config.thresholds.dominating
        struggling = 0
        dominating = 0

        if snapshot.accuracy < low.accuracy:
            struggling += 1
        elif snapshot.accuracy > high.accuracy:
            dominating += 1

        if snapshot.damage_taken_per_min > low.damage_taken_per_min:
            struggling += 1
        elif snapshot.damage_taken_per_min < high.damage_taken_per_min:
            dominating += 1

        if snapshot.health_fraction < low.health_fraction:
            struggling += 1
        elif snapshot.health_fraction > high.health_fraction:
            dominating += 1

        clear = snapshot.avg_wave_clear_seconds
        if clear > 0:
            if low.wave_clear_seconds is not None and clear > low.wave_clear_seconds:
                struggling += 1
            elif clear < high.wave_clear_seconds:
                dominating += 1

        if struggling >= _WIN_SCORE:
            return PerformanceState.STRUGGLING, struggling, dominating
        if dominating >= _WIN_SCORE:
            return PerformanceState.DOMINATING, struggling, dominating
        return PerformanceState.NEUTRAL, struggling, dominating

    def evaluate(self) -> PerformanceState:
        if self._telemetry is None:
            return PerformanceState.NEUTRAL
        state, _, _ = self.classify(self._telemetry.get_performance_snapshot())
        return state

    # --- Adjustment ---

    def _clamped(self, mods: DifficultyModifiers) -> DifficultyModifiers:
        cfg = self._config
        return DifficultyModifiers(
            spawn_delay_multiplier=cfg.spawn_delay_bounds.clamp(mods.spawn_delay_multiplier),
            budget_multiplier=cfg.budget_bounds.clamp(mods.budget_multiplier),
            drop_rate_multiplier=cfg.drop_rate_bounds.clamp(mods.drop_rate_multiplier),
        )

    def _step(self, state: PerformanceState) -> None:
        step = self._config.adjustment_step
        mods = self._modifiers
        if state is PerformanceState.STRUGGLING:
            mods = DifficultyModifiers(
                spawn_delay_multiplier=mods.spawn_delay_multiplier + step,
                budget_multiplier=mods.budget_multiplier - step,
                drop_rate_multiplier=mods.drop_rate_multiplier + step,
            )
            action = "eased"
        elif state is PerformanceState.DOMINATING:
            mods = DifficultyModifiers(
                spawn_delay_multiplier=mods.spawn_delay_multiplier - step,
                budget_multiplier=mods.budget_multiplier + step,
                drop_rate_multiplier=mods.drop_rate_multiplier - step,
            )
            action = "ramped"
        else:
            half = step * 0.5
            mods = DifficultyModifiers(
                spawn_delay_multiplier=_toward_neutral(mods.spawn_delay_multiplier, half),
                budget_multiplier=_toward_neutral(mods.budget_multiplier, half),
                drop_rate_multiplier=_toward_neutral(mods.drop_rate_multiplier, half),
            )
            action = "normalized"

        self._modifiers = self._clamped(mods)
        if state is PerformanceState.NEUTRAL:
            self._neutral_ticks += 1
            return

        self._neutral_ticks = 0
        self._history.append(
            Adjustment(
                at_ms=self._elapsed_ms,
                state=state,
                action=action,
                modifiers=self._modifiers,
            )
        )
        logger.info(
            "Difficulty %s (%s): spawn delay %.2f, budget %.2f, drops %.2f",
            action,
            state.value,
            self._modifiers.spawn_delay_multiplier,
            self._modifiers.budget_multiplier,
            self._modifiers.drop_rate_multiplier,
        )

    def tick(self, dt_ms: float) -> PerformanceState | None:
        """Advance controller time; apply one step if the cooldown allows."""
        self._elapsed_ms += dt_ms
        self._since_adjustment_ms += dt_ms
        if not self._config.enabled or self._telemetry is None:
            return None
        if self._since_adjustment_ms < self._config.adjustment_cooldown_ms:
            return None

        state = self.evaluate()
        self._step(state)
        self._since_adjustment_ms = 0.0
        return state

    def on_wave_complete(self) -> PerformanceState | None:
        """Force an evaluation regardless of where the cooldown stands."""
        self._since_adjustment_ms = self._config.adjustment_cooldown_ms
        return self.tick(0.0)

    # --- Queries ---

    def get_modifiers(self) -> DifficultyModifiers:
        return self._modifiers

    def history(self) -> list[Adjustment]:
        return list(self._history)

    @property
    def neutral_ticks(self) -> int:
        """Consecutive neutral evaluations since the last real adjustment."""
        return self._neutral_ticks

    def report(self) -> str:
        mods = self._modifiers
        lines = ["=== DDA STATUS ===", f"Enabled: {self._config.enabled}", ""]
        lines.append("Current Modifiers:")
        lines.append(f"  Spawn Delay: {mods.spawn_delay_multiplier * 100:.0f}%")
        lines.append(f"  Budget: {mods.budget_multiplier * 100:.0f}%")
        lines.append(f"  Drop Rate: {mods.drop_rate_multiplier * 100:.0f}%")
        if self._telemetry is not None:
            snap = self._telemetry.get_performance_snapshot()
            state, _, _ = self.classify(snap)
            lines.append("")
            lines.append("Current Performance:")
            lines.append(f"  State: {state.value}")
            lines.append(f"  Accuracy: {snap.accuracy * 100:.1f}%")
            lines.append(f"  Damage/min: {snap.damage_taken_per_min:.1f}")
            lines.append(f"  Health: {snap.health_fraction * 100:.0f}%")
            lines.append(f"  Kills/min: {snap.kills_per_min:.1f}")
        lines.append("")
        lines.append(f"Adjustments: {len(self._history)}")
        recent = list(self._history)[-5:]
        if recent:
            lines.append("Recent:")
            for adj in reversed(recent):
                ago = (self._elapsed_ms - adj.at_ms) / 1000
                lines.append(f"  {ago:.0f}s ago: {adj.state.value} -> {adj.action}")
        return "\n".join(lines)

    def reset(self) -> None:
        self._modifiers = DifficultyModifiers.neutral()
        self._history.clear()
        self._since_adjustment_ms = self._config.adjustment_cooldown_ms
        self._elapsed_ms = 0.0
        self._neutral_ticks = 0
