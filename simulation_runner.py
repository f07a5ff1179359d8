#!/usr/bin/env python3
"""
Simulation Runner

Runs the hierarchical collection program on a simulated network and
records, after every unit of time, the count estimate of each algorithm
against the ideal: the sizes of the connected components, each counted once.

Usage:
    python simulation_runner.py                     # Default config
    python simulation_runner.py --preset line       # Moving devices, jumping leader
    python simulation_runner.py --preset async      # Asynchronous rounds
    python simulation_runner.py --devices 30 --end-time 100 --speed 4
"""

import argparse
import pickle
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from simulation_config import (
    SimulationConfig,
    default_config,
    line_config,
    square_config,
    async_config,
    small_config,
)
from substrate.network import Network
from substrate.mobility import (
    RectangleWalk,
    ScenarioMobility,
    leader_jump_position,
    random_deployment,
)
from program import make_program, algorithm_keys


PRESETS = {
    'default': default_config,
    'line': line_config,
    'square': square_config,
    'async': async_config,
    'small': small_config,
}


# =============================================================================
# Network Building
# =============================================================================

def _area(cfg: SimulationConfig):
    low = np.zeros(3)
    high = np.array([cfg.xside, cfg.yside, cfg.height])
    return low[:cfg.dim], high[:cfg.dim]


def build_positions(cfg: SimulationConfig, rng: np.random.Generator) -> np.ndarray:
    """Uniform initial deployment over the configured area."""
    low, high = _area(cfg)
    positions = random_deployment(rng, cfg.n_devices, low, high)
    if cfg.leader_jump:
        positions[0] = leader_jump_position(0.0, cfg.end_time, cfg.xside, cfg.yside, cfg.height)[:cfg.dim]
    return positions


def build_mobility(cfg: SimulationConfig, rng: np.random.Generator) -> Optional[ScenarioMobility]:
    """Random waypoint walk plus the jumping device 0."""
    walk = None
    if cfg.speed > 0:
        low, high = _area(cfg)
        walk = RectangleWalk(low, high, cfg.speed, rng)
    pinned = {}
    if cfg.leader_jump:
        pinned[0] = lambda t: leader_jump_position(t, cfg.end_time, cfg.xside, cfg.yside, cfg.height)
    if walk is None and not pinned:
        return None
    return ScenarioMobility(walk, pinned)


def build_network(cfg: SimulationConfig, rng: np.random.Generator) -> Network:
    """Create the Network running the aggregate program."""
    return Network(
        positions=build_positions(cfg, rng),
        comm=cfg.comm,
        program=make_program(cfg),
        rng=rng,
        synchronous=cfg.synchronous,
        retain=cfg.retain,
        async_mean=cfg.async_mean,
        async_std=cfg.async_std,
        mobility=build_mobility(cfg, rng),
        verbose=cfg.verbose,
    )


# =============================================================================
# Recording
# =============================================================================

def new_history(keys: List[str]) -> Dict[str, list]:
    history = {'time': [], 'ideal': [], 'largest': [], 'components': [], 'rounds': []}
    for key in keys:
        history[f'count_{key}'] = []
        history[f'holders_{key}'] = []
    return history


def record_tick(network: Network, history: Dict[str, list], keys: List[str]):
    """
    Append one sample to history.

    For each algorithm: the sum of the estimates held across devices (equal
    to the number of devices when every partition is counted exactly once)
    and the number of devices holding a non-zero estimate.
    """
    sizes = network.ideal_counts()
    components = int(round(np.sum(1.0 / sizes))) if sizes.size else 0
    history['time'].append(network.time)
    # Each component counted once by its own leader: the sizes add up to n
    history['ideal'].append(network.n)
    history['largest'].append(int(sizes.max()) if sizes.size else 0)
    history['components'].append(components)
    history['rounds'].append(network.total_rounds)
    for key in keys:
        values = np.array([network.storage(uid).get(f'count_{key}', 0) for uid in range(network.n)],
                          dtype=float)
        history[f'count_{key}'].append(float(values.sum()))
        history[f'holders_{key}'].append(int(np.count_nonzero(values)))


def run_simulation(cfg: SimulationConfig, output_dir: Optional[Path] = None):
    """
    Run one simulation.

    Args:
        cfg: Simulation configuration
        output_dir: Where history, config and plots go (None = keep in memory)

    Returns:
        (history dict, network)
    """
    rng = np.random.default_rng(cfg.seed)
    network = build_network(cfg, rng)
    keys = algorithm_keys(cfg)
    history = new_history(keys)

    network.run(cfg.end_time,
                on_tick=lambda net: record_tick(net, history, keys),
                log_every=cfg.log_every)

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        cfg.save(str(output_dir / "config.txt"))
        _save_history(history, output_dir)
        if cfg.save_plots:
            _plot_results(history, network, output_dir)

    return history, network


# =============================================================================
# Saving and Visualization
# =============================================================================

def _save_history(history, output_dir):
    """Save simulation history."""
    hist_path = output_dir / "history.pkl"
    with open(hist_path, "wb") as f:
        pickle.dump(history, f)
    print(f"✓ Saved {hist_path}")


def _plot_results(history, network, output_dir):
    from analysis.plots.counts import plot_count_evolution
    from analysis.plots.network import plot_network_snapshot

    try:
        plot_count_evolution(history, output_dir / "count_evolution.png")
        plot_network_snapshot(network, output_dir / "network_snapshot.png")
    except (ValueError, OSError) as e:
        print(f"  ⚠️  Error generating plots: {e}")


def summarize(history: Dict[str, list], keys: List[str]):
    """Print the final estimate of every algorithm."""
    print(f"\n{'='*70}")
    print("FINAL ESTIMATES")
    print(f"{'='*70}")
    print(f"  {'ideal':<8} {history['ideal'][-1]:>8}  ({history['components'][-1]} component(s), "
          f"largest {history['largest'][-1]})")
    for key in keys:
        total = history[f'count_{key}'][-1]
        holders = history[f'holders_{key}'][-1]
        print(f"  {key:<8} {total:>8.1f}  held by {holders} device(s)")


# =============================================================================
# Main
# =============================================================================

def main():
    parser = argparse.ArgumentParser(description="Hierarchical Collection Simulation Runner")
    parser.add_argument('--preset', type=str, default='default',
                        choices=list(PRESETS),
                        help='Configuration preset')
    parser.add_argument('--devices', type=int, default=None, help='Number of devices')
    parser.add_argument('--end-time', type=int, default=None, help='Simulated time')
    parser.add_argument('--speed', type=float, default=None, help='Device movement speed')
    parser.add_argument('--async', dest='asynchronous', action='store_true',
                        help='Asynchronous rounds')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--output-dir', type=str, default=None, help='Results directory')
    parser.add_argument('--quiet', action='store_true', help='No progress lines')
    args = parser.parse_args()

    cfg = load_preset(args.preset)
    overrides = {
        'n_devices': args.devices,
        'end_time': args.end_time,
        'speed': args.speed,
        'seed': args.seed,
        'output_dir': args.output_dir,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    if args.asynchronous:
        cfg.synchronous = False
    if args.quiet:
        cfg.verbose = False
    cfg.__post_init__()

    output_dir = Path(cfg.output_dir) / cfg.experiment_name

    print(f"\n{'='*70}")
    print("HIERARCHICAL COLLECTION SIMULATION")
    print(f"{'='*70}")
    print(f"Preset:   {args.preset}")
    print(f"Devices:  {cfg.n_devices} (depth {cfg.hierarchy(True, False).max_level})")
    print(f"Rounds:   {'synchronous' if cfg.synchronous else 'asynchronous'}, until t={cfg.end_time}")
    print(f"Output:   {output_dir}")
    print(f"{'='*70}\n")

    history, _ = run_simulation(cfg, output_dir)
    summarize(history, algorithm_keys(cfg))

    print(f"\n{'='*70}")
    print("✓ SIMULATION COMPLETE")
    print(f"{'='*70}")
    print(f"Results: {output_dir}")
    print(f"{'='*70}\n")


def load_preset(name: str) -> SimulationConfig:
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Valid options: {list(PRESETS)}")
    return PRESETS[name]()


if __name__ == "__main__":
    main()
