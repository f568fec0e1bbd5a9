"""ThreatAllocator — turns a wave number into a budgeted, paced spawn plan."""
from __future__ import annotations

import logging
import math
import random as _random_mod
from collections import Counter
from dataclasses import replace
from typing import Any, Iterable

from horde_threat.catalog import EntityCatalog
from horde_threat.pacing import apply_pacing, weighted_pick
from horde_threat.types import (
    BudgetCurve,
    CapPolicy,
    Role,
    SpawnEntry,
    StopReason,
    ThreatConfig,
    WaveComposition,
    count_types,
)

logger = logging.getLogger(__name__)

# Average planned cost used for quick HUD estimates
_AVERAGE_COST = 1.2


class ThreatAllocator:
    """Spends a per-wave threat budget on catalog entity types.

    The spend loop is bounded by ``config.max_attempts`` so generation
    always terminates; an under-spent wave is reported through the
    composition's ``stop_reason`` and logged, never raised.
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        config: ThreatConfig | None = None,
        rng: _random_mod.Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._config = config if config is not None else ThreatConfig()
        self._rng = rng if rng is not None else _random_mod.Random()
        self._live_by_role: Counter[Role] = Counter()

    # --- Configuration ---

    @property
    def config(self) -> ThreatConfig:
        return self._config

    @property
    def catalog(self) -> EntityCatalog:
        return self._catalog

    def update_config(self, **changes: Any) -> None:
        self._config = replace(self._config, **changes)

    # --- Budget ---

    def budget(self, wave: int) -> float:
        cfg = self._config
        if cfg.budget_curve is BudgetCurve.EXPONENTIAL:
            return cfg.base_budget * cfg.exponential_factor ** (wave - 1)
        if cfg.budget_curve is BudgetCurve.LOGARITHMIC:
            return cfg.base_budget + cfg.budget_per_wave * math.log2(wave + 1) * 2
        return cfg.base_budget + (wave - 1) * cfg.budget_per_wave

    def estimate_count(self, budget: float) -> int:
        return round(budget / _AVERAGE_COST)

    # --- Role bookkeeping ---

    def live_counts(self) -> dict[Role, int]:
        return {role: n for role, n in self._live_by_role.items() if n > 0}

    def on_entity_killed(self, entity_type: str) -> None:
        """Free one slot of the killed type's role. Unknown types are ignored."""
        if entity_type not in self._catalog:
            return
        role = self._catalog.role_of(entity_type)
        if self._live_by_role[role] > 0:
            self._live_by_role[role] -= 1

    def claim(self, entries: Iterable[SpawnEntry]) -> None:
        """Count entries added to a plan after generation as live."""
        for entry in entries:
            self._live_by_role[self._role_of(entry.entity_type)] += 1

    def release(self, entries: Iterable[SpawnEntry]) -> None:
        """Drop planned entries that will never spawn from the live counts."""
        for entry in entries:
            role = self._role_of(entry.entity_type)
            if self._live_by_role[role] > 0:
                self._live_by_role[role] -= 1

    def reconcile(self, planned: WaveComposition, final: WaveComposition) -> None:
        """Swap a generated plan's live counts for those of its rewrite."""
        if final is planned:
            return
        self.release(planned.entries)
        self.claim(final.entries)

    def _role_of(self, entity_type: str) -> Role:
        if entity_type in self._catalog:
            return self._catalog.role_of(entity_type)
        return Role.FODDER

    def _cost_of(self, entity_type: str) -> float:
        if entity_type in self._catalog:
            return self._catalog.cost_of(entity_type)
        return 1.0

    def _weight_of(self, entity_type: str) -> float:
        if entity_type in self._catalog:
            return self._catalog.weight_of(entity_type)
        return 1.0

    # --- Generation ---

    def _unlocked(self, wave: int) -> list[str]:
        unlocked = self._catalog.types_unlocked_at(wave)
        if unlocked:
            return unlocked
        logger.warning(
            "No entity types unlocked at wave %d; falling back to %r",
            wave,
            self._config.fallback_type,
        )
        return [self._config.fallback_type]

    def _eligible(self, unlocked: list[str]) -> list[str]:
        return [
            t
            for t in unlocked
            if self._live_by_role[self._role_of(t)] < self._config.cap_for(self._role_of(t))
        ]

    def _pick(self, candidates: list[str]) -> str:
        weights = [self._weight_of(t) for t in candidates]
        return weighted_pick(candidates, weights, self._rng)

    def generate(
        self,
        wave_number: int,
        spawn_delay_multiplier: float = 1.0,
        budget_multiplier: float = 1.0,
    ) -> WaveComposition:
        cfg = self._config
        if cfg.cap_policy is CapPolicy.RESET_PER_WAVE:
            self._live_by_role.clear()

        total_budget = self.budget(wave_number) * budget_multiplier
        ceiling = total_budget * cfg.overspend_ratio
        unlocked = self._unlocked(wave_number)

        spent = 0.0
        planned: list[str] = []
        attempts = 0
        reason = StopReason.BUDGET_MET

        while spent < total_budget:
            if attempts >= cfg.max_attempts:
                reason = StopReason.ATTEMPTS_EXHAUSTED
                break
            attempts += 1

            eligible = self._eligible(unlocked)
            if not eligible:
                reason = StopReason.NO_ELIGIBLE_TYPES
                break

            chosen = self._pick(eligible)
            if spent + self._cost_of(chosen) > ceiling:
                affordable = [t for t in eligible if spent + self._cost_of(t) <= ceiling]
                if not affordable:
                    reason = StopReason.NO_AFFORDABLE_TYPE
                    break
                chosen = self._pick(affordable)

            planned.append(chosen)
            spent += self._cost_of(chosen)
            self._live_by_role[self._role_of(chosen)] += 1

        entries = apply_pacing(
            planned,
            cfg.min_spawn_gap_ms * spawn_delay_multiplier,
            cfg.breathing_ratio,
            cfg.min_breathing_interval,
            self._rng,
        )
        composition = WaveComposition(
            wave_number=wave_number,
            entries=entries,
            total_budget=total_budget,
            spent_budget=spent,
            counts=count_types(entries),
            stop_reason=reason,
            attempts=attempts,
        )
        if composition.exhausted:
            logger.info(
                "Wave %d under budget: spent %.2f of %.2f (%s after %d attempts)",
                wave_number,
                spent,
                total_budget,
                reason.value,
                attempts,
            )
        else:
            logger.debug(
                "Wave %d composed: %d entities, %.2f/%.2f budget",
                wave_number,
                composition.total,
                spent,
                total_budget,
            )
        return composition

    # --- Reporting ---

    def report(self, composition: WaveComposition) -> str:
        lines = [f"=== WAVE {composition.wave_number} ==="]
        lines.append(
            f"Budget: {composition.spent_budget:.1f} / {composition.total_budget:.1f}"
        )
        lines.append(f"Entities: {composition.total}")
        if composition.exhausted:
            lines.append(f"Stopped: {composition.stop_reason.value}")
        lines.append("")
        lines.append("Composition:")
        for entity_type, count in composition.counts.items():
            cost = self._cost_of(entity_type)
            lines.append(
                f"  {entity_type}: {count} (cost: {cost:.2f} x {count} = {cost * count:.1f})"
            )
        return "\n".join(lines)

    def reset(self) -> None:
        self._live_by_role.clear()
