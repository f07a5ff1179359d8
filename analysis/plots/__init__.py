"""
Analysis Plotting Modules
==========================

Specialized plotting functions:
- counts: count estimates over time (single run and batch splits)
- network: snapshot of the deployment coloured by leader
"""

# Plot modules will be imported on demand
# This keeps imports lightweight

__all__ = []
