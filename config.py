#!/usr/bin/env python3
"""
Hierarchy Configuration
=======================

Configuration of one hierarchical collection instance, with derived values
exposed as properties:

- config.max_level instead of recomputing ceil(log_base(devices))
- config.diameter(i) / config.reduced_diameter(i) for the election bounds
- config.sentinel for the synthetic network-wide leader

Radii grow geometrically: rad[0] = 1, rad[i] = rad[i-1] * hierarchy_base.
"""

from dataclasses import dataclass
from typing import List

from hierarchy.records import LeaderRecord


# =============================================================================
# Integer helpers
# =============================================================================

def discrete_sqrt(n: int) -> int:
    """Minimum integer whose square is at least n."""
    lo, hi = 0, n
    while lo < hi:
        mid = (lo + hi) // 2
        if mid * mid < n:
            lo = mid + 1
        else:
            hi = mid
    return lo


def ceil_log(b: int, n: int) -> int:
    """Minimum exponent e such that b**e is at least n (0 for n <= 1)."""
    e, r = 0, 1
    while r < n:
        r *= b
        e += 1
    return e


# =============================================================================
# Hierarchy Configuration
# =============================================================================

@dataclass
class HierarchyConfig:
    """Configuration for hierarchical collection."""

    devices: int = 100           # Total device count (also the sentinel leader id)
    hierarchy_base: int = 2      # Branching factor between levels
    bottom_up: bool = True       # False = top-down, partition-aware elections
    hysteresis: bool = False     # Reduced bound (rad+1)//3 for stepping down

    def __post_init__(self):
        """Validate configuration."""
        self.validate()

    def validate(self) -> None:
        if self.hierarchy_base < 2:
            raise ValueError(f"hierarchy_base must be >= 2, got {self.hierarchy_base}")
        if self.devices < 0:
            raise ValueError(f"devices must be non-negative, got {self.devices}")

    @property
    def max_level(self) -> int:
        return ceil_log(self.hierarchy_base, self.devices)

    @property
    def radii(self) -> List[int]:
        rad = [1]
        for _ in range(self.max_level):
            rad.append(rad[-1] * self.hierarchy_base)
        return rad

    def diameter(self, level: int) -> int:
        return self.radii[level] - 1

    def reduced_diameter(self, level: int) -> int:
        if self.hysteresis:
            return (self.radii[level] + 1) // 3
        return self.diameter(level)

    @property
    def sentinel(self) -> LeaderRecord:
        """Synthetic leader enclosing the whole network."""
        return LeaderRecord(self.devices, self.radii[-1])

    @property
    def orientation(self) -> str:
        return "bottom-up" if self.bottom_up else "top-down"
