"""
Leader Election and Distance Estimation
=======================================

flooding_election: every device converges to the smallest identifier of its
connected component (a diameter election whose bound exceeds any diameter).

distance_to: self-stabilizing metric distance from source devices,

    d(source) = 0
    d(other)  = min over neighbors n of d(n) + range(n)

capped to infinity beyond max_distance so that estimates toward a source
that disappeared stop rising after a bounded number of rounds.
"""

import math

from substrate.context import Context
from hierarchy.election import hysteresis_diameter_election


def flooding_election(ctx: Context, bound: int, name: str = "main_leader") -> int:
    """Identifier of the network-wide leader (minimum identifier within bound hops)."""
    return hysteresis_diameter_election(ctx, bound, bound, name=name).leader


def distance_to(ctx: Context,
                source: bool,
                max_distance: float = math.inf,
                name: str = "distance") -> float:
    """Estimated distance to the closest source device."""
    ranges = ctx.nbr_range()

    def body(x):
        if source:
            return 0.0
        d = x.zip_with(ranges, lambda est, r: est + r).min_hood(math.inf)
        return d if d <= max_distance else math.inf

    return ctx.share(name, math.inf, body)
