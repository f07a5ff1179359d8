"""
Baseline Algorithms
===================

Simpler building blocks run alongside the hierarchical collection for
comparison:
    - gradient: network-wide leader election and metric distance estimate
    - collection: single-path and weighted multi-path collection
"""

from .gradient import flooding_election, distance_to
from .collection import sp_collection, wmp_collection

__all__ = ['flooding_election', 'distance_to', 'sp_collection', 'wmp_collection']
