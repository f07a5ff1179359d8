# -*- coding: utf-8 -*-
"""
Hierarchical Collection
=======================

Builds a tower of nested partitions and aggregates a per-device value
through it, one election and one collection pass per level and round.

Levels
------
    level 0            each device alone, leaders[0] = (uid, 0)
    level 1..L         elected, radius rad[i] = base**i
    level L+1          synthetic network leader (devices, rad[L])

Orientation
-----------
bottom-up:  independent hysteresis elections at every level; a device is
            promoted at the first level it does not win, and recorded as
            a member at the level below.
top-down:   partition-aware elections from level L down to 1, each gated
            by the leader of the enclosing level; a device is promoted at
            the first (outermost) level it wins.

Aggregation
-----------
Level i collects the keyed entries of the level i-1 leaders with the
idempotent collection primitive (sorted_merge, so multi-path delivery
never double counts). The level i leader folds its collected entries into
a single entry keyed by itself and carries it up; everybody else carries
nothing. The value left at the top is the network-wide aggregate.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, MutableMapping, Optional, TypeVar

from config import HierarchyConfig
from substrate.context import Context
from hierarchy.records import (
    Identity,
    LeaderRecord,
    MeasurementSet,
    accumulate_entries,
    level_array,
    sorted_merge,
)
from hierarchy.election import hysteresis_diameter_election, partitioned_diameter_election
from hierarchy.collection import partitioned_idempotent_collection
from hierarchy.storage import UNINITIALIZED_LEVEL, LevelStorage

T = TypeVar("T")


@dataclass
class LevelState:
    """Outcome of one round of hierarchical collection on one device."""
    value: Any
    leaders: List[LeaderRecord] = field(default_factory=list)
    counts: List[MeasurementSet] = field(default_factory=list)
    level: int = UNINITIALIZED_LEVEL
    leader: Optional[int] = None
    leader_dist: Optional[int] = None


def _elect_levels(ctx: Context, config: HierarchyConfig, writer: LevelStorage) -> LevelState:
    """Run the per-level elections and assign this device its level."""
    max_level = config.max_level
    leaders = level_array(ctx.uid, max_level, config.sentinel)
    identity = Identity(ctx.uid)
    state = LevelState(value=None, leaders=leaders, level=UNINITIALIZED_LEVEL)

    def set_level_data(level: int, leader: int):
        state.level = level
        state.leader = leader
        state.leader_dist = leaders[level + 1].hops
        writer.set_level(level, leader, state.leader_dist)

    writer.reset(ctx.uid)

    if config.bottom_up:
        for i in range(1, max_level + 1):
            with ctx.scope("level", i):
                leaders[i] = hysteresis_diameter_election(
                    ctx, config.diameter(i), config.reduced_diameter(i)
                )
            if leaders[i].leader != ctx.uid and not identity.promoted:
                identity = identity.promote()
                set_level_data(i - 1, leaders[i].leader)
        if leaders[max_level].leader == ctx.uid:
            set_level_data(max_level, config.devices)
    else:
        for i in range(max_level, 0, -1):
            with ctx.scope("level", i):
                leaders[i] = partitioned_diameter_election(
                    ctx, leaders[i + 1], config.diameter(i), config.reduced_diameter(i)
                )
            if identity.is_own(leaders[i].leader):
                identity = identity.promote()
                set_level_data(i, leaders[i + 1].leader)
        if not identity.promoted:
            set_level_data(0, leaders[1].leader)

    writer.check()
    writer.set("leader_chain", list(leaders))
    return state


def hierarchical_collection_state(ctx: Context,
                                  config: HierarchyConfig,
                                  value: T,
                                  null: T,
                                  accumulate: Callable[[T, T], T],
                                  storage: Optional[MutableMapping[str, Any]] = None,
                                  name: str = "hierarchy") -> LevelState:
    """
    One round of hierarchical collection, with the full per-level trace.

    Args:
        ctx: Round context
        config: Hierarchy configuration
        value: This device's measurement
        null: Result on devices not holding the top-level aggregate
        accumulate: Associative, commutative combination of measurements
        storage: Per-device storage receiving the observational outputs
        name: Alignment scope, distinct per instance running side by side

    Returns:
        LevelState with the result, leader chain and count chain
    """
    writer = LevelStorage(storage, config.devices)

    with ctx.scope(name):
        state = _elect_levels(ctx, config, writer)
        leaders = state.leaders

        res: MeasurementSet = [(ctx.uid, value)]
        counts = [res]
        for i in range(1, config.max_level + 1):
            with ctx.scope("collect", i):
                res = partitioned_idempotent_collection(ctx, leaders[i], res, [], sorted_merge)
            counts.append(res)
            if leaders[i].leader == ctx.uid and res:
                res = accumulate_entries(res, ctx.uid, accumulate)
            else:
                res = []

    writer.set("count_chain", counts)
    state.counts = counts
    state.value = res[0][1] if res else null
    return state


def hierarchical_collection(ctx: Context,
                            config: HierarchyConfig,
                            value: T,
                            null: T,
                            accumulate: Callable[[T, T], T],
                            storage: Optional[MutableMapping[str, Any]] = None,
                            name: str = "hierarchy") -> T:
    """Hierarchical collection result: the aggregate at the top leader, null elsewhere."""
    return hierarchical_collection_state(ctx, config, value, null, accumulate, storage, name).value
