"""Host-side collaborator contracts the scheduling core talks to.

The core never materializes entities, draws text or pays out rewards
itself. Hosts hand in objects satisfying these protocols; any of them may
be omitted, in which case the calls that would reach it are skipped.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from horde_threat import WaveComposition


@runtime_checkable
class SpawnExecutor(Protocol):
    def start_wave(self, composition: WaveComposition) -> None: ...

    def stop(self) -> None: ...

    def spawn_entity(
        self, entity_type: str, gateway_id: str | None = None, **traits: Any
    ) -> None: ...


@runtime_checkable
class Gateway(Protocol):
    """A door or portal hostile entities enter through."""

    @property
    def id(self) -> str: ...

    def is_active(self) -> bool: ...

    def has_barricade(self) -> bool: ...

    def is_destroyed(self) -> bool: ...

    def activate(self) -> None: ...


@runtime_checkable
class GatewayControl(Protocol):
    def get_gateways(self) -> Sequence[Gateway]: ...

    def activate(self, count: int) -> None: ...


@runtime_checkable
class Announcer(Protocol):
    def announce(
        self,
        text: str,
        subtext: str = "",
        style: str = "info",
        duration_ms: int = 3000,
    ) -> None: ...


@runtime_checkable
class EconomyService(Protocol):
    def add_points(self, amount: int) -> None: ...

    def spawn_reward(self, reward_type: str, x: float, y: float) -> None: ...
