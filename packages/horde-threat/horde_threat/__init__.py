"""horde-threat - Threat budget allocation for wave compositions."""
from horde_threat.allocator import ThreatAllocator
from horde_threat.catalog import (
    EntityCatalog,
    TableCatalog,
    UnknownEntityError,
    default_catalog,
    default_profiles,
)
from horde_threat.pacing import apply_pacing, weighted_pick
from horde_threat.types import (
    BudgetCurve,
    CapPolicy,
    EntityProfile,
    Role,
    SpawnEntry,
    StopReason,
    ThreatConfig,
    WaveComposition,
)

__all__ = [
    "ThreatAllocator",
    "ThreatConfig",
    "BudgetCurve",
    "CapPolicy",
    "Role",
    "EntityProfile",
    "EntityCatalog",
    "TableCatalog",
    "UnknownEntityError",
    "default_catalog",
    "default_profiles",
    "SpawnEntry",
    "StopReason",
    "WaveComposition",
    "apply_pacing",
    "weighted_pick",
]
