"""
Analysis Module
===============

Loading and plotting toolkit for hierarchical collection runs.

Modules:
    - core: History loading and preprocessing utilities
    - plots: Count evolution and network snapshot plots
"""

from . import core
from . import plots

__all__ = ['core', 'plots']
