"""Wave-Sim — headless run of the full wave scheduling stack.

Drives build_director() against a simulated arena: planned spawns are
released on their delays, every entity dies after a short random lifetime,
and a fake player feed reports performance that drifts over the run so the
difficulty controller has something to react to.

Run:
    python examples/wave-sim/main.py --waves 12 --seed 7
    python examples/wave-sim/main.py --waves 20 --verbose
"""
from __future__ import annotations

import argparse
import logging
import random

from horde_dda import PerformanceSnapshot
from horde_wave import build_director


# ---------------------------------------------------------------------------
# Simulated collaborators
# ---------------------------------------------------------------------------

class ArenaSpawner:
    """Releases planned spawns on schedule and kills them off over time."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self._queue: list[tuple[float, str]] = []
        self._alive: list[tuple[float, str, str]] = []  # (dies_at, type, kind)
        self._clock = 0.0
        self.orchestrator = None
        self.scheduler = None
        self.total_spawned = 0
        self.extra_spawned = 0

    def start_wave(self, composition) -> None:
        self._queue = [
            (self._clock + entry.delay_ms, entry.entity_type)
            for entry in composition.entries
        ]

    def stop(self) -> None:
        self._queue.clear()

    def spawn_entity(self, entity_type, gateway_id=None, **traits) -> None:
        kind = "boss" if traits.get("boss") else "extra"
        self.extra_spawned += 1
        self._alive.append((self._clock + self._lifetime(kind), entity_type, kind))

    def _lifetime(self, kind: str) -> float:
        if kind == "boss":
            return self._rng.uniform(8000, 15000)
        return self._rng.uniform(1500, 6000)

    def advance(self, dt_ms: float) -> None:
        self._clock += dt_ms
        orch = self.orchestrator

        due = [item for item in self._queue if item[0] <= self._clock]
        self._queue = [item for item in self._queue if item[0] > self._clock]
        for _, entity_type in due:
            self.total_spawned += 1
            self._alive.append((self._clock + self._lifetime("planned"), entity_type, "planned"))
            orch.on_entity_spawned()

        dead = [item for item in self._alive if item[0] <= self._clock]
        self._alive = [item for item in self._alive if item[0] > self._clock]
        for _, entity_type, kind in dead:
            if kind == "planned":
                orch.on_entity_killed(entity_type)
            elif kind == "boss":
                orch.on_boss_defeated()
            else:
                # Event extras do not count toward the wave's planned total
                self.scheduler.on_entity_killed(entity_type)


class DriftingPlayer:
    """Performance feed that starts strong and tires as waves go on."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self.wave = 1

    def get_performance_snapshot(self) -> PerformanceSnapshot:
        fatigue = min(0.6, self.wave * 0.04)
        return PerformanceSnapshot(
            accuracy=max(0.05, 0.75 - fatigue + self._rng.uniform(-0.05, 0.05)),
            damage_taken_per_min=10 + fatigue * 80,
            health_fraction=max(0.1, 0.95 - fatigue),
            avg_wave_clear_seconds=15 + fatigue * 30,
            kills_per_min=40 - fatigue * 30,
        )


class Gate:
    def __init__(self, gateway_id: str) -> None:
        self._id = gateway_id
        self._active = False

    @property
    def id(self) -> str:
        return self._id

    def is_active(self) -> bool:
        return self._active

    def has_barricade(self) -> bool:
        return False

    def is_destroyed(self) -> bool:
        return False

    def activate(self) -> None:
        self._active = True


class GateControl:
    def __init__(self, count: int = 8) -> None:
        self._gates = [Gate(f"gate-{i}") for i in range(count)]

    def get_gateways(self):
        return self._gates

    def activate(self, count: int) -> None:
        for gate in self._gates[:count]:
            gate.activate()


class ConsoleAnnouncer:
    def announce(self, text, subtext="", style="info", duration_ms=3000) -> None:
        suffix = f" - {subtext}" if subtext else ""
        print(f"  [{style:>7s}] {text}{suffix}")


class Wallet:
    def __init__(self) -> None:
        self.points = 0
        self.rewards: list[str] = []

    def add_points(self, amount: int) -> None:
        self.points += amount

    def spawn_reward(self, reward_type: str, x: float, y: float) -> None:
        self.rewards.append(reward_type)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Wave-Sim — headless wave scheduling demo")
    p.add_argument("--waves", type=int, default=12, help="Waves to complete (default: 12)")
    p.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    p.add_argument("--fps", type=int, default=30, help="Simulation frames per second (default: 30)")
    p.add_argument("--max-minutes", type=float, default=60.0,
                   help="Simulated time limit in minutes (default: 60)")
    p.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = p.parse_args()
    args.waves = max(1, args.waves)
    return args


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    sim_rng = random.Random(args.seed + 1)
    spawner = ArenaSpawner(sim_rng)
    player = DriftingPlayer(sim_rng)
    wallet = Wallet()
    director = build_director(
        spawner,
        telemetry=player,
        gateways=GateControl(),
        announcer=ConsoleAnnouncer(),
        economy=wallet,
        fps=args.fps,
        seed=args.seed,
    )
    orch = director.orchestrator
    spawner.orchestrator = orch
    spawner.scheduler = director.scheduler
    finished = False

    def arena_system(ctx) -> None:
        if finished:
            ctx.request_stop()
            return
        spawner.advance(ctx.dt_ms)

    director.engine.add_system(arena_system)

    def _on_preparing(signal: str, data: dict) -> None:
        player.wave = data["wave"]
        composition = orch.composition
        if composition is not None:
            print()
            print(director.allocator.report(composition))

    def _on_completed(signal: str, data: dict) -> None:
        nonlocal finished
        mods = director.controller.get_modifiers()
        print(
            f"  wave {data['wave']} done: {data['killed']} killed, "
            f"budget x{mods.budget_multiplier:.2f}, "
            f"spawn delay x{mods.spawn_delay_multiplier:.2f}"
        )
        if data["wave"] >= args.waves:
            finished = True

    def _on_event(signal: str, data: dict) -> None:
        print(f"  event {signal}: {data['name']}")

    director.bus.subscribe("wave_preparing", _on_preparing)
    director.bus.subscribe("wave_completed", _on_completed)
    director.bus.subscribe("event_activated", _on_event)
    director.bus.subscribe("event_deactivated", _on_event)

    print("=" * 60)
    print(f"  WAVE-SIM  seed={args.seed}  waves={args.waves}")
    print("=" * 60)

    orch.start()
    max_frames = int(args.max_minutes * 60 * args.fps)
    director.engine.run(max_frames)

    print()
    print("=" * 60)
    if finished:
        print(f"  Finished {args.waves} waves")
    else:
        print(f"  Time limit hit on wave {orch.wave_number} ({orch.state.value})")
    print(f"  Planned spawns released: {spawner.total_spawned}")
    print(f"  Event/boss spawns: {spawner.extra_spawned}")
    print(f"  Points awarded: {wallet.points}, rewards dropped: {len(wallet.rewards)}")
    print("=" * 60)
    print()
    print(director.controller.report())


if __name__ == "__main__":
    main()
