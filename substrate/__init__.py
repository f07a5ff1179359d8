"""
Neighbor-Exchange Substrate
===========================

Simulated environment the aggregate algorithms run on.

Modules:
    - field: keyed neighbor fields and their reductions
    - context: per-round execution context (nbr, share, scope)
    - network: devices, message delivery, sync/async round scheduling
    - mobility: deployment and movement models
"""

from .field import Field, mux
from .context import Context, AlignmentError
from .network import Network

__all__ = ['Field', 'mux', 'Context', 'AlignmentError', 'Network']
