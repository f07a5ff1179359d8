"""
Core Analysis Utilities
========================

History loading and preprocessing.
"""

from .loaders import (
    load_history,
    load_batch,
    filter_history_steps,
    convergence_time,
)

__all__ = [
    'load_history',
    'load_batch',
    'filter_history_steps',
    'convergence_time',
]
