"""
Idempotent Collection in Isolated Partitions
============================================

Every round a device folds its own contribution with the previous
collected values of the neighbors that are *farther* from the same leader:

    accept(n)  <=>  hops(n) > hops(self)  and  leader(n) == leader(self)

Information therefore only flows up the tree rooted at the leader. With an
idempotent accumulate (e.g. sorted_merge over keyed entries) values that
reach a device along several paths are counted once, and re-running the
fold on a converged partition changes nothing.
"""

from typing import Callable, TypeVar

from substrate.context import Context
from substrate.field import mux
from hierarchy.records import LeaderRecord

T = TypeVar("T")


def partitioned_idempotent_collection(ctx: Context,
                                      leader: LeaderRecord,
                                      value: T,
                                      null: T,
                                      accumulate: Callable[[T, T], T],
                                      name: str = "collection") -> T:
    """
    Collect value toward the partition leader.

    Args:
        ctx: Round context
        leader: This device's leader record for the partition
        value: Local contribution
        null: Identity of accumulate
        accumulate: Commutative, associative, idempotent combination

    Returns:
        The fold of the contributions upstream of this device (the whole
        partition at the leader)
    """
    with ctx.scope(name):
        def body(x):
            nbr_leader = ctx.nbr("leader", leader)
            upstream = nbr_leader.map(lambda rec: rec.hops > leader.hops and rec.leader == leader.leader)
            return mux(upstream, x, null).fold_hood(accumulate, value)

        return ctx.share("value", null, body)
