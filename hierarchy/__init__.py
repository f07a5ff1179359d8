"""
Hierarchical Leader Election and Collection
===========================================

Modules:
    - records: leader records, identities, measurement-set merge
    - election: diameter-bounded elections (hysteresis, partition-aware)
    - collection: idempotent collection in isolated partitions
    - orchestrator: level-by-level hierarchy with aggregation
    - storage: observational per-device outputs
"""

from .records import LeaderRecord, Identity, sorted_merge, accumulate_entries
from .election import hysteresis_diameter_election, partitioned_diameter_election
from .collection import partitioned_idempotent_collection

# The orchestrator depends on config.HierarchyConfig and is imported on demand:
#   from hierarchy.orchestrator import hierarchical_collection

__all__ = [
    'LeaderRecord',
    'Identity',
    'sorted_merge',
    'accumulate_entries',
    'hysteresis_diameter_election',
    'partitioned_diameter_election',
    'partitioned_idempotent_collection',
]
