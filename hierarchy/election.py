"""
Diameter-Bounded Leader Election
================================

Both variants elect, inside a neighborhood of bounded diameter, the device
with the smallest identifier, by propagating (leader, hops) records:

    1. keep neighbor records with hops < diameter, replace the rest by the
       local floor record (hops = -1)
    2. take the minimum, with the floor record standing in for the device
    3. add one hop
    4. hysteresis: a device that currently leads (previous hops == 0) keeps
       its own record unless the winner is within reduced_diameter hops

With reduced_diameter == diameter step 4 never fires, since the winning
distance is at most diameter after the increment.

The partition-aware variant additionally ignores neighbors announcing a
different outer leader, and derives its floor record from the outer
leader record so devices close to the outer leader do not compete with
their own identifier.
"""

from substrate.context import Context
from substrate.field import mux
from hierarchy.records import LeaderRecord


def _elect(x, loc: LeaderRecord, keep, reduced_diameter: int) -> LeaderRecord:
    r = mux(keep, x, loc).min_hood(loc).step()
    own = x.self_value
    if r.hops > reduced_diameter and own.hops == 0:
        r = own
    return r


def hysteresis_diameter_election(ctx: Context,
                                 diameter: int,
                                 reduced_diameter: int,
                                 name: str = "election") -> LeaderRecord:
    """
    Leader election by diameter with a hysteresis band.

    Args:
        ctx: Round context
        diameter: Records at or beyond this distance are not trusted
        reduced_diameter: A leader only steps down for a winner this close

    Returns:
        LeaderRecord (leader id, hops to it) chosen this round
    """
    loc = LeaderRecord(ctx.uid, -1)

    def body(x):
        keep = x.map(lambda rec: rec.hops < diameter)
        return _elect(x, loc, keep, reduced_diameter)

    return ctx.share(name, LeaderRecord(ctx.uid, 0), body)


def partitioned_diameter_election(ctx: Context,
                                  outer: LeaderRecord,
                                  diameter: int,
                                  reduced_diameter: int,
                                  name: str = "partitioned_election") -> LeaderRecord:
    """
    Leader election by diameter restricted to the outer partition.

    Args:
        ctx: Round context
        outer: This device's leader record at the enclosing level
        diameter: Records at or beyond this distance are not trusted
        reduced_diameter: A leader only steps down for a winner this close

    Returns:
        LeaderRecord chosen this round
    """
    floor = outer if outer.hops <= diameter else LeaderRecord(ctx.uid, 0)
    loc = floor.step(-1)

    with ctx.scope(name):
        same_outer = ctx.nbr("outer", outer.leader).map(lambda leader: leader == outer.leader)

        def body(x):
            keep = same_outer.zip_with(x, lambda same, rec: same and rec.hops < diameter)
            return _elect(x, loc, keep, reduced_diameter)

        return ctx.share("record", loc, body)
