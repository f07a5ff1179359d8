"""
Aggregate Program
=================

The program every device runs at each round: four hierarchical collection
instances counting devices (bottom-up / top-down, with and without
hysteresis) and, for comparison, the single-path and weighted multi-path
collections toward a network-wide leader.

Storage keys written per device:
    count_bus, count_tds, count_buh, count_tdh   hierarchical counts
    main_leader, dist                              baseline leader and distance
    count_sp, count_wmp                            baseline counts (leader only)
plus the observational keys of the instance selected by store_hierarchy.
"""

import operator
from typing import Any, Callable, Dict

from simulation_config import SimulationConfig
from substrate.context import Context
from hierarchy.orchestrator import hierarchical_collection
from baselines.gradient import flooding_election, distance_to
from baselines.collection import sp_collection, wmp_collection


# (bottom_up, hysteresis) for every hierarchical instance
HIERARCHIES = {
    "bus": (True, False),
    "tds": (False, False),
    "buh": (True, True),
    "tdh": (False, True),
}

BASELINES = ("sp", "wmp")


def algorithm_keys(cfg: SimulationConfig):
    """Names of the count estimates the program produces under cfg."""
    keys = [
        key for key, (bottom_up, _) in HIERARCHIES.items()
        if (cfg.run_bottom_up if bottom_up else cfg.run_top_down)
    ]
    if cfg.run_baselines:
        keys.extend(BASELINES)
    return keys


def make_program(cfg: SimulationConfig) -> Callable[[Context, Dict[str, Any]], Any]:
    """Build the per-device program for a simulation configuration."""
    hierarchies = {
        key: cfg.hierarchy(bottom_up, hysteresis)
        for key, (bottom_up, hysteresis) in HIERARCHIES.items()
        if (cfg.run_bottom_up if bottom_up else cfg.run_top_down)
    }
    max_distance = cfg.comm * cfg.n_devices

    def program(ctx: Context, storage: Dict[str, Any]):
        for key, hierarchy_cfg in hierarchies.items():
            store = storage if key == cfg.store_hierarchy else None
            storage[f"count_{key}"] = hierarchical_collection(
                ctx, hierarchy_cfg, 1, 0, operator.add, storage=store, name=key
            )

        if cfg.run_baselines:
            leader = storage["main_leader"] = flooding_election(ctx, cfg.n_devices)
            dist = storage["dist"] = distance_to(ctx, ctx.uid == leader, max_distance)
            wmp = wmp_collection(ctx, dist, cfg.comm, 1.0, operator.add, operator.mul)
            sp = sp_collection(ctx, dist, 1, 0, operator.add)
            storage["count_wmp"] = wmp if ctx.uid == leader else 0.0
            storage["count_sp"] = sp if ctx.uid == leader else 0

        return {key: storage[f"count_{key}"] for key in hierarchies}

    return program
