"""Entity catalog contract and an in-memory table implementation."""
from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from horde_threat.types import EntityProfile, Role


class UnknownEntityError(KeyError):
    """Raised when a catalog is asked about a type it does not hold."""

    def __init__(self, entity_type: str) -> None:
        self.entity_type = entity_type
        super().__init__(f"Unknown entity type {entity_type!r}")


@runtime_checkable
class EntityCatalog(Protocol):
    def cost_of(self, entity_type: str) -> float: ...

    def role_of(self, entity_type: str) -> Role: ...

    def weight_of(self, entity_type: str) -> float: ...

    def unlock_wave_of(self, entity_type: str) -> int: ...

    def types_unlocked_at(self, wave: int) -> list[str]: ...

    def __contains__(self, entity_type: object) -> bool: ...


class TableCatalog:
    """Catalog backed by a list of profiles. Insertion order is iteration order."""

    def __init__(self, profiles: Iterable[EntityProfile]) -> None:
        self._profiles: dict[str, EntityProfile] = {}
        for profile in profiles:
            self._profiles[profile.type] = profile

    def profile(self, entity_type: str) -> EntityProfile:
        try:
            return self._profiles[entity_type]
        except KeyError:
            raise UnknownEntityError(entity_type) from None

    def cost_of(self, entity_type: str) -> float:
        return self.profile(entity_type).cost

    def role_of(self, entity_type: str) -> Role:
        return self.profile(entity_type).role

    def weight_of(self, entity_type: str) -> float:
        return self.profile(entity_type).weight

    def unlock_wave_of(self, entity_type: str) -> int:
        return self.profile(entity_type).unlock_wave

    def types_unlocked_at(self, wave: int) -> list[str]:
        return [p.type for p in self._profiles.values() if wave >= p.unlock_wave]

    def types(self) -> list[str]:
        return list(self._profiles)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)


def default_profiles() -> list[EntityProfile]:
    """Stock balance table: costs normalized so a shambler costs 1."""
    return [
        EntityProfile("shambler", 1.0, Role.FODDER, unlock_wave=1, weight=0.7),
        EntityProfile("runner", 1.6, Role.RUSHER, unlock_wave=1, weight=0.3),
        EntityProfile("crawler", 1.5, Role.RUSHER, unlock_wave=6, weight=0.2),
        EntityProfile("spitter", 2.0, Role.RANGED, unlock_wave=6, weight=0.15),
        EntityProfile("tank", 4.5, Role.TANK, unlock_wave=11, weight=0.1),
        EntityProfile("bomber", 2.2, Role.SPECIAL, unlock_wave=11, weight=0.1),
        EntityProfile("screamer", 3.5, Role.SPECIAL, unlock_wave=16, weight=0.1),
        EntityProfile("splitter", 1.8, Role.SPECIAL, unlock_wave=16, weight=0.1),
        EntityProfile("invisible", 2.5, Role.SPECIAL, unlock_wave=21, weight=0.05),
        EntityProfile("necromancer", 5.0, Role.SPECIAL, unlock_wave=21, weight=0.05),
    ]


def default_catalog() -> TableCatalog:
    return TableCatalog(default_profiles())
