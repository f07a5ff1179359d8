#!/usr/bin/env python3
"""
Election Tests
==============

Convergence of the diameter elections on static graphs, hysteresis
stability, and gating of the partition-aware variant by the outer leader.
"""

import numpy as np

from substrate.network import Network
from hierarchy.records import LeaderRecord, Identity, sorted_merge, accumulate_entries, level_array
from hierarchy.election import hysteresis_diameter_election, partitioned_diameter_election


def random_connected_edges(rng, n, extra):
    """Random spanning tree plus a few extra links."""
    edges = [(i, int(rng.integers(0, i))) for i in range(1, n)]
    for _ in range(extra):
        a, b = rng.integers(0, n, size=2)
        edges.append((int(a), int(b)))
    return edges


def election_program(diameter, reduced_diameter):
    def program(ctx, storage):
        return hysteresis_diameter_election(ctx, diameter, reduced_diameter)
    return program


def bfs_hops(n, edges, source):
    adj = {i: set() for i in range(n)}
    for a, b in edges:
        if a != b:
            adj[a].add(b)
            adj[b].add(a)
    hops = {source: 0}
    frontier = [source]
    while frontier:
        nxt = []
        for u in frontier:
            for v in adj[u]:
                if v not in hops:
                    hops[v] = hops[u] + 1
                    nxt.append(v)
        frontier = nxt
    return hops


# =============================================================================
# Records
# =============================================================================

def test_leader_record_ordering():
    """Smaller id wins regardless of distance; then smaller distance."""
    assert LeaderRecord(1, 9) < LeaderRecord(2, 0)
    assert LeaderRecord(3, -1) < LeaderRecord(3, 0)
    assert LeaderRecord(3, -1).step() == LeaderRecord(3, 0)


def test_identity_promotion():
    me = Identity(4)
    assert me.is_own(4)
    assert not me.is_own(5)
    promoted = me.promote()
    assert promoted.promoted
    assert not promoted.is_own(4)


def test_sorted_merge_is_idempotent_and_commutative():
    x = [(0, 1), (2, 5), (4, 1)]
    y = [(1, 1), (2, 3)]
    assert sorted_merge(x, x) == x
    assert sorted_merge(x, y) == sorted_merge(y, x) == [(0, 1), (1, 1), (2, 3), (4, 1)]
    assert sorted_merge([], y) == y


def test_accumulate_entries_rewrites_origin():
    assert accumulate_entries([(3, 2), (5, 4), (9, 1)], 3, lambda a, b: a + b) == [(3, 7)]
    assert accumulate_entries([], 3, lambda a, b: a + b) == []


def test_level_array_shape():
    leaders = level_array(7, 3, LeaderRecord(100, 8))
    assert len(leaders) == 5
    assert leaders[0] == LeaderRecord(7, 0)
    assert leaders[-1] == LeaderRecord(100, 8)


# =============================================================================
# Hysteresis election
# =============================================================================

def test_election_converges_to_minimum_on_random_graphs():
    """With a bound above the diameter everyone elects 0 at its hop distance."""
    rng = np.random.default_rng(11)
    for trial in range(5):
        n = 10
        edges = random_connected_edges(rng, n, extra=3)
        net = Network.from_edges(n, edges, election_program(2 * n, 2 * n))
        net.run(3 * n)
        hops = bfs_hops(n, edges, 0)
        for uid, record in enumerate(net.results()):
            assert record == LeaderRecord(0, hops[uid]), (trial, uid, record)


def test_line_of_four_pairs_up():
    """Radius 2 on a 4-device line: {0, 1} -> 0 and {2, 3} -> 2."""
    net = Network.from_edges(4, [(0, 1), (1, 2), (2, 3)], election_program(1, 1))
    net.run(10)
    assert net.results() == [
        LeaderRecord(0, 0), LeaderRecord(0, 1), LeaderRecord(2, 0), LeaderRecord(2, 1)
    ]


def test_hysteresis_keeps_leader_for_distant_winner():
    """
    Device 1 leads {1, 2}; then 0 appears two hops away. With reduced bound 1
    device 1 keeps leading, without it device 1 steps down.
    """
    results = {}
    for reduced in (1, 3):
        net = Network.from_edges(3, [(1, 2)], election_program(3, reduced))
        net.run(5)
        assert net.results()[1] == LeaderRecord(1, 0)
        net.add_edge(2, 0)
        net.run(15)
        results[reduced] = net.results()

    assert results[1][1] == LeaderRecord(1, 0)
    assert results[1][2] == LeaderRecord(0, 1)
    assert results[3][1] == LeaderRecord(0, 2)


def test_hysteresis_steps_down_for_close_winner():
    net = Network.from_edges(2, [], election_program(3, 1))
    net.run(5)
    assert net.results()[1] == LeaderRecord(1, 0)
    net.add_edge(0, 1)
    net.run(10)
    assert net.results()[1] == LeaderRecord(0, 1)


def test_hysteresis_holds_while_winner_oscillates():
    """
    Device 0 hops between two and three hops from leader 1 (above the
    reduced bound 1, below the bound 5): device 1 never steps down.
    """
    base = [(1, 2), (2, 3)]
    net = Network.from_edges(4, base, election_program(5, 1))
    for _ in range(3):
        net.step()
        assert net.results()[1] == LeaderRecord(1, 0)

    for phase in range(6):
        anchor = 2 if phase % 2 == 0 else 3
        net.set_edges(base + [(anchor, 0)])
        for _ in range(5):
            net.step()
            assert net.results()[1] == LeaderRecord(1, 0), (phase, net.results())
        # The competitor is heard: device 2 follows it
        assert net.results()[2].leader == 0


# =============================================================================
# Partition-aware election
# =============================================================================

def test_partitioned_election_respects_outer_leader():
    """Devices 1 and 2 are adjacent but belong to different outer partitions."""
    outer = [LeaderRecord(0, 0), LeaderRecord(0, 1), LeaderRecord(2, 0), LeaderRecord(2, 1)]

    def program(ctx, storage):
        return partitioned_diameter_election(ctx, outer[ctx.uid], 5, 5)

    net = Network.from_edges(4, [(0, 1), (1, 2), (2, 3)], program)
    net.run(10)
    assert net.results() == [
        LeaderRecord(0, 0), LeaderRecord(0, 1), LeaderRecord(2, 0), LeaderRecord(2, 1)
    ]


def test_partitioned_election_floor_beyond_bound():
    """An outer leader farther than the bound is replaced by the device itself."""
    outer = [LeaderRecord(0, 4), LeaderRecord(0, 5)]

    def program(ctx, storage):
        return partitioned_diameter_election(ctx, outer[ctx.uid], 1, 1)

    net = Network.from_edges(2, [(0, 1)], program)
    net.run(5)
    assert net.results() == [LeaderRecord(0, 0), LeaderRecord(0, 1)]

    isolated = Network.from_edges(1, [], lambda ctx, storage: partitioned_diameter_election(
        ctx, LeaderRecord(9, 4), 1, 1))
    isolated.run(3)
    assert isolated.results() == [LeaderRecord(0, 0)]


if __name__ == "__main__":
    print("="*70)
    print("ELECTION TESTS")
    print("="*70)
    test_leader_record_ordering()
    test_identity_promotion()
    test_sorted_merge_is_idempotent_and_commutative()
    test_accumulate_entries_rewrites_origin()
    test_level_array_shape()
    test_election_converges_to_minimum_on_random_graphs()
    test_line_of_four_pairs_up()
    test_hysteresis_keeps_leader_for_distant_winner()
    test_hysteresis_steps_down_for_close_winner()
    test_hysteresis_holds_while_winner_oscillates()
    test_partitioned_election_respects_outer_leader()
    test_partitioned_election_floor_beyond_bound()
    print("✓ All election tests passed")
