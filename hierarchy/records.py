"""
Leader Records and Measurement Sets
===================================

Data shared by the elections, the collection primitive and the
hierarchical orchestrator.

LeaderRecord
------------
(leader, hops) ordered lexicographically: the smaller identifier wins
regardless of distance; among equal identifiers the smaller distance wins.
Distances are signed, the floor record of a device carries hops = -1 so
that after the per-round increment a device that elects itself sits at 0.

Identity
--------
A device identifier plus a "promoted" flag. Once promoted, the identity no
longer matches any leader identifier, which stops the device from claiming
further levels in the same pass.

Measurement set
---------------
A list of (origin id, value) entries sorted by origin id, ids unique.
sorted_merge is commutative, associative and idempotent, so folding the
same entries twice (multi-path delivery) never double counts.
"""

from typing import Callable, List, NamedTuple, Tuple, TypeVar

T = TypeVar("T")

Entry = Tuple[int, T]
MeasurementSet = List[Entry]


class LeaderRecord(NamedTuple):
    """Candidate leader identifier and hop distance to it."""
    leader: int
    hops: int

    def step(self, delta: int = 1) -> "LeaderRecord":
        """Same leader, distance shifted by delta."""
        return LeaderRecord(self.leader, self.hops + delta)


class Identity(NamedTuple):
    """Device identifier with the promoted flag kept out of band."""
    uid: int
    promoted: bool = False

    def promote(self) -> "Identity":
        return Identity(self.uid, True)

    def is_own(self, leader: int) -> bool:
        """True when leader names this device and it has not been promoted yet."""
        return not self.promoted and self.uid == leader


def sorted_merge(x: MeasurementSet, y: MeasurementSet) -> MeasurementSet:
    """
    Merge two measurement sets sorted by origin id.

    Entries with the same origin collapse to the smaller of the two.
    """
    z = []
    i = j = 0
    while i < len(x) and j < len(y):
        if x[i][0] < y[j][0]:
            z.append(x[i])
            i += 1
        elif x[i][0] > y[j][0]:
            z.append(y[j])
            j += 1
        else:
            z.append(min(x[i], y[j]))
            i += 1
            j += 1
    z.extend(x[i:])
    z.extend(y[j:])
    return z


def accumulate_entries(entries: MeasurementSet,
                       uid: int,
                       accumulate: Callable[[T, T], T]) -> MeasurementSet:
    """
    Reduce a collected set to a single entry owned by uid.

    The first entry's slot absorbs every other value and its origin is
    rewritten to uid. An empty set stays empty.
    """
    if not entries:
        return []
    total = entries[0][1]
    for _, value in entries[1:]:
        total = accumulate(total, value)
    return [(uid, total)]


def level_array(uid: int, max_level: int, sentinel: LeaderRecord) -> List[LeaderRecord]:
    """
    Per-level leader records for one device.

    Index 0 is the device itself, index max_level+1 the synthetic network
    leader; the levels in between are filled in by the elections.
    """
    leaders = [LeaderRecord(uid, 0)] * (max_level + 2)
    leaders[max_level + 1] = sentinel
    return leaders
