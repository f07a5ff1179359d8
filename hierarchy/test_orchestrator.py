#!/usr/bin/env python3
"""
Hierarchical Collection Tests
=============================

Device counting (value 1, accumulate +) through the full hierarchy:

- 4-device line, every orientation, with and without hysteresis
- per-level count chain and observational storage
- degenerate networks (single device, depth 0)
- conservation on random static graphs
- a partition split: both halves end up with their own exact count, and
  the merged line counts everyone again
"""

import operator

import numpy as np
import pytest

from config import HierarchyConfig, ceil_log, discrete_sqrt
from substrate.network import Network
from hierarchy.records import LeaderRecord
from hierarchy.orchestrator import LevelState, hierarchical_collection, hierarchical_collection_state
from hierarchy.storage import Shape, UNINITIALIZED_LEVEL, LevelStorage, identifier_color


LINE4 = [(0, 1), (1, 2), (2, 3)]


def counting_program(config, store=False):
    def program(ctx, storage):
        return hierarchical_collection(
            ctx, config, 1, 0, operator.add, storage=storage if store else None
        )
    return program


def line_edges(n):
    return [(i, i + 1) for i in range(n - 1)]


# =============================================================================
# Configuration
# =============================================================================

def test_integer_helpers():
    assert ceil_log(2, 0) == 0
    assert ceil_log(2, 1) == 0
    assert ceil_log(2, 4) == 2
    assert ceil_log(2, 5) == 3
    assert ceil_log(3, 100) == 5
    assert discrete_sqrt(0) == 0
    assert discrete_sqrt(9) == 3
    assert discrete_sqrt(10) == 4


def test_hierarchy_config_bounds():
    cfg = HierarchyConfig(devices=100, hierarchy_base=2)
    assert cfg.max_level == 7
    assert cfg.radii == [1, 2, 4, 8, 16, 32, 64, 128]
    assert cfg.diameter(3) == 7
    assert cfg.reduced_diameter(3) == 7
    assert cfg.sentinel == LeaderRecord(100, 128)

    hyst = HierarchyConfig(devices=100, hierarchy_base=2, hysteresis=True)
    assert hyst.reduced_diameter(3) == 3
    assert hyst.reduced_diameter(1) == 1


def test_hierarchy_config_validation():
    with pytest.raises(ValueError):
        HierarchyConfig(hierarchy_base=1)
    with pytest.raises(ValueError):
        HierarchyConfig(devices=-1)
    empty = HierarchyConfig(devices=0)
    assert empty.max_level == 0
    assert empty.radii == [1]


# =============================================================================
# 4-device line
# =============================================================================

@pytest.mark.parametrize("bottom_up", [True, False])
@pytest.mark.parametrize("hysteresis", [False, True])
def test_line_of_four_counts_four(bottom_up, hysteresis):
    config = HierarchyConfig(devices=4, hierarchy_base=2, bottom_up=bottom_up, hysteresis=hysteresis)
    net = Network.from_edges(4, LINE4, counting_program(config))
    net.run(30)
    assert net.results() == [4, 0, 0, 0]


def test_line_of_four_count_chain():
    config = HierarchyConfig(devices=4, hierarchy_base=2)

    def program(ctx, storage):
        return hierarchical_collection_state(ctx, config, 1, 0, operator.add, storage=storage)

    net = Network.from_edges(4, LINE4, program)
    net.run(20)
    state = net.results()[0]

    assert state.value == 4
    assert state.counts == [[(0, 1)], [(0, 1), (1, 1)], [(0, 2), (2, 2)]]
    assert state.leaders == [LeaderRecord(0, 0), LeaderRecord(0, 0), LeaderRecord(0, 0), LeaderRecord(4, 4)]
    assert net.storage(0)["count_chain"] == state.counts
    assert net.storage(3)["leader_chain"] == [
        LeaderRecord(3, 0), LeaderRecord(2, 1), LeaderRecord(0, 3), LeaderRecord(4, 4)
    ]


def test_line_of_four_levels():
    """Bottom-up: 0 tops the hierarchy, 2 leads {2, 3} at level 1."""
    config = HierarchyConfig(devices=4, hierarchy_base=2)
    net = Network.from_edges(4, LINE4, counting_program(config, store=True))
    net.run(20)

    levels = [net.storage(uid)["level"] for uid in range(4)]
    leaders = [net.storage(uid)["leader"] for uid in range(4)]
    dists = [net.storage(uid)["leader_dist"] for uid in range(4)]
    assert levels == [2, 0, 1, 0]
    assert leaders == [4, 0, 0, 2]
    assert dists == [4, 1, 2, 1]
    assert net.storage(2)["node_size"] == 7
    assert net.storage(2)["node_shape"] is Shape.CUBE
    assert net.storage(3)["leader_col"] == identifier_color(2, 4)


def test_top_down_promotion_levels():
    config = HierarchyConfig(devices=4, hierarchy_base=2, bottom_up=False)
    net = Network.from_edges(4, LINE4, counting_program(config, store=True))
    net.run(30)
    levels = [net.storage(uid)["level"] for uid in range(4)]
    leaders = [net.storage(uid)["leader"] for uid in range(4)]
    assert levels == [2, 0, 1, 0]
    assert leaders == [4, 0, 0, 2]


def test_storage_level_assigned_every_round():
    rng = np.random.default_rng(5)
    for bottom_up in (True, False):
        config = HierarchyConfig(devices=9, hierarchy_base=2, bottom_up=bottom_up, hysteresis=True)
        positions = rng.uniform(0, 4, size=(9, 2))
        net = Network(positions, comm=1.5, program=counting_program(config, store=True))
        for _ in range(10):
            net.step()
            for uid in range(9):
                assert net.storage(uid)["level"] >= 0


def test_level_storage_disabled_and_check():
    writer = LevelStorage(None, 4)
    assert not writer.enabled
    writer.reset(1)
    writer.check()

    storage = {}
    writer = LevelStorage(storage, 4)
    writer.reset(1)
    assert storage["level"] == UNINITIALIZED_LEVEL
    with pytest.raises(AssertionError):
        writer.check()


def test_level_state_starts_unassigned():
    """Unassigned levels use the storage marker; every round assigns a real one."""
    assert LevelState(value=None).level == UNINITIALIZED_LEVEL

    for bottom_up in (True, False):
        config = HierarchyConfig(devices=4, hierarchy_base=2, bottom_up=bottom_up)

        def program(ctx, storage):
            return hierarchical_collection_state(ctx, config, 1, 0, operator.add)

        net = Network.from_edges(4, LINE4, program)
        for _ in range(6):
            net.step()
            assert all(0 <= state.level <= config.max_level for state in net.results())


# =============================================================================
# Degenerate networks
# =============================================================================

@pytest.mark.parametrize("bottom_up", [True, False])
def test_single_device(bottom_up):
    config = HierarchyConfig(devices=1, hierarchy_base=2, bottom_up=bottom_up)
    assert config.max_level == 0
    net = Network.from_edges(1, [], counting_program(config, store=True))
    net.run(3)
    assert net.results() == [1]
    assert net.storage(0)["level"] == 0


def test_empty_network():
    config = HierarchyConfig(devices=0)
    net = Network.from_edges(0, [], counting_program(config))
    net.run(3)
    assert net.results() == []


# =============================================================================
# Conservation and partitions
# =============================================================================

@pytest.mark.parametrize("bottom_up", [True, False])
@pytest.mark.parametrize("hysteresis", [False, True])
def test_conservation_on_random_trees(bottom_up, hysteresis):
    """Spanning trees of 20 devices: the estimates always add up to n."""
    rng = np.random.default_rng(7)
    n = 20
    config = HierarchyConfig(devices=n, hierarchy_base=2, bottom_up=bottom_up, hysteresis=hysteresis)
    for trial in range(3):
        edges = [(i, int(rng.integers(0, i))) for i in range(1, n)]
        net = Network.from_edges(n, edges, counting_program(config))
        net.run(300)
        results = net.results()
        assert sum(results) == n, (trial, results)
        if not hysteresis:
            assert results[0] == n


def test_conservation_on_random_graphs():
    """Exactly one device holds the full count once the network is static."""
    rng = np.random.default_rng(2024)
    n = 12
    config = HierarchyConfig(devices=n, hierarchy_base=2)
    for trial in range(3):
        edges = [(i, int(rng.integers(0, i))) for i in range(1, n)]
        edges += [tuple(int(v) for v in rng.integers(0, n, size=2)) for _ in range(4)]
        net = Network.from_edges(n, edges, counting_program(config))
        net.run(150)
        results = net.results()
        assert sum(results) == n, (trial, results)
        assert results[0] == n


@pytest.mark.parametrize("bottom_up", [True, False])
@pytest.mark.parametrize("hysteresis", [False, True])
def test_partition_split_and_merge(bottom_up, hysteresis):
    """A 6-device line is cut in halves of 3, then rejoined."""
    n = 6
    config = HierarchyConfig(devices=n, hierarchy_base=2, bottom_up=bottom_up, hysteresis=hysteresis)
    net = Network.from_edges(n, line_edges(n), counting_program(config))
    net.run(80)
    results = net.results()
    assert sum(results) == n, results
    if not hysteresis:
        assert results == [6, 0, 0, 0, 0, 0]

    net.remove_edge(2, 3)
    net.run(200)
    results = net.results()
    assert sum(results[:3]) == 3, results
    assert sum(results[3:]) == 3, results
    if not hysteresis:
        assert results == [3, 0, 0, 3, 0, 0]

    net.add_edge(2, 3)
    net.run(320)
    results = net.results()
    assert sum(results) == n, results
    if not hysteresis:
        assert results[0] == n


if __name__ == "__main__":
    print("="*70)
    print("HIERARCHICAL COLLECTION TESTS")
    print("="*70)
    test_integer_helpers()
    test_hierarchy_config_bounds()
    test_hierarchy_config_validation()
    for bu in (True, False):
        for hy in (False, True):
            test_line_of_four_counts_four(bu, hy)
    test_line_of_four_count_chain()
    test_line_of_four_levels()
    test_top_down_promotion_levels()
    test_storage_level_assigned_every_round()
    test_level_storage_disabled_and_check()
    test_level_state_starts_unassigned()
    test_single_device(True)
    test_single_device(False)
    test_empty_network()
    test_conservation_on_random_graphs()
    for bu in (True, False):
        for hy in (False, True):
            test_conservation_on_random_trees(bu, hy)
            test_partition_split_and_merge(bu, hy)
    print("✓ All hierarchical collection tests passed")
