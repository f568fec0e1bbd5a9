"""EventGuards registry for event activation conditions."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from horde_event.scheduler import SpecialEventScheduler

Guard = Callable[["SpecialEventScheduler", int], bool]


def gateway_available(scheduler: SpecialEventScheduler, wave: int) -> bool:
    """True when some gateway could overheat: standing and unbarricaded."""
    gateways = scheduler.context.gateways
    if gateways is None:
        return False
    return any(
        not g.has_barricade() and not g.is_destroyed() for g in gateways.get_gateways()
    )


class EventGuards:
    """Maps guard names to ``(scheduler, wave) -> bool`` predicates."""

    def __init__(self) -> None:
        self._guards: dict[str, Guard] = {}

    def register(self, name: str, fn: Guard) -> None:
        """Register a named guard. Overwrites if already registered."""
        self._guards[name] = fn

    def check(self, name: str, scheduler: SpecialEventScheduler, wave: int) -> bool:
        """Evaluate a guard. Raises KeyError if not registered."""
        return self._guards[name](scheduler, wave)

    def check_all(
        self, names: tuple[str, ...], scheduler: SpecialEventScheduler, wave: int
    ) -> bool:
        return all(self.check(name, scheduler, wave) for name in names)

    def has(self, name: str) -> bool:
        return name in self._guards

    def names(self) -> list[str]:
        return list(self._guards)


def default_guards() -> EventGuards:
    guards = EventGuards()
    guards.register("gateway_available", gateway_available)
    return guards
