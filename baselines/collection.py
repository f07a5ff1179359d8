"""
Single-Path and Weighted Multi-Path Collection
==============================================

Both collect toward the source of a distance estimate.

sp_collection: each device picks one parent, the neighbor with the smallest
distance below its own, and folds the values of the neighbors that picked
it. Fragile under movement (a lost parent drops a whole subtree for a
round) but never double counts.

wmp_collection: each device splits its value among every neighbor closer
to the source, with weight

    w(n) ∝ max(radius - range(n), 0) * max(distance - distance(n), 0)

normalised to one, and folds the weighted shares addressed to it. Smoother
under movement; only meaningful for divisible values (sums).
"""

import math
from typing import Callable, Optional, TypeVar

from substrate.context import Context
from substrate.field import mux

T = TypeVar("T")


def sp_collection(ctx: Context,
                  distance: float,
                  value: T,
                  null: T,
                  accumulate: Callable[[T, T], T],
                  name: str = "sp") -> T:
    """Single-path collection of value toward distance 0."""
    with ctx.scope(name):
        nbr_dist = ctx.nbr("distance", distance)
        candidates = [(d, nid) for nid, d in nbr_dist.items() if d < distance]
        parent: Optional[int] = min(candidates)[1] if candidates else None

        def body(x):
            children = ctx.nbr("parent", parent).map(lambda p: p == ctx.uid)
            return mux(children, x, null).fold_hood(accumulate, value)

        return ctx.share("value", null, body)


def wmp_collection(ctx: Context,
                   distance: float,
                   radius: float,
                   value: T,
                   accumulate: Callable[[T, T], T],
                   multiply: Callable[[T, float], T],
                   name: str = "wmp") -> T:
    """Weighted multi-path collection of value toward distance 0."""
    with ctx.scope(name):
        nbr_dist = ctx.nbr("distance", distance)
        ranges = ctx.nbr_range()

        weights = {}
        if math.isfinite(distance):
            for nid, d in nbr_dist.items():
                if not math.isfinite(d) or d >= distance:
                    continue
                w = max(radius - ranges.get(nid, radius), 0.0) * (distance - d)
                if w > 0:
                    weights[nid] = w
        total = sum(weights.values())
        shares = {nid: w / total for nid, w in weights.items()} if total > 0 else {}

        incoming = ctx.nbr("shares", shares).map(lambda s: s.get(ctx.uid, 0.0))

        def body(x):
            return x.zip_with(incoming, multiply).fold_hood(accumulate, value)

        return ctx.share("value", value, body)
