# -*- coding: utf-8 -*-
"""
Batch Experiments for Hierarchical Collection
=============================================

Runs the simulation over a grid of

    seeds x speeds x {synchronous, asynchronous}

and averages, for every (speed, synchrony) split, the per-tick count
estimate of each algorithm over the seeds. One plot per split.

Usage:
    python batch_runner.py                              # 16 seeds, speeds 0 and 4
    python batch_runner.py --seeds 4 --devices 30 --end-time 100
    python batch_runner.py --speeds 0 2 4 6 --sync-only
"""

import argparse
import pickle
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List

import numpy as np

from simulation_config import SimulationConfig
from simulation_runner import run_simulation
from program import algorithm_keys


@dataclass
class BatchResult:
    """Seed-averaged time series for one (speed, synchrony) split."""
    speed: float
    synchronous: bool
    n_runs: int
    time: np.ndarray
    ideal: np.ndarray
    counts: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def label(self) -> str:
        mode = "sync" if self.synchronous else "async"
        return f"speed={self.speed:g}, {mode}"


def run_split(base: SimulationConfig, speed: float, synchronous: bool, seeds: List[int]) -> BatchResult:
    """Run every seed for one split and average the histories."""
    keys = algorithm_keys(base)
    runs = []
    for seed in seeds:
        cfg = replace(base, seed=seed, speed=speed, synchronous=synchronous,
                      verbose=False, save_plots=False)
        history, _ = run_simulation(cfg)
        runs.append(history)

    # Async runs sample at the same integer ticks, so histories line up
    length = min(len(h['time']) for h in runs)
    counts = {
        key: np.mean([h[f'count_{key}'][:length] for h in runs], axis=0)
        for key in keys
    }
    return BatchResult(
        speed=speed,
        synchronous=synchronous,
        n_runs=len(runs),
        time=np.asarray(runs[0]['time'][:length]),
        ideal=np.mean([h['ideal'][:length] for h in runs], axis=0),
        counts=counts,
    )


def run_batch(base: SimulationConfig,
              seeds: List[int],
              speeds: List[float],
              modes: List[bool],
              output_dir: Path = None) -> List[BatchResult]:
    """
    Run the whole grid.

    Args:
        base: Configuration shared by every run
        seeds: Random seeds
        speeds: Device speeds
        modes: Synchrony flags to run (True = synchronous)
        output_dir: Directory to save results

    Returns:
        One BatchResult per (speed, synchrony) split
    """
    results = []
    total = len(seeds) * len(speeds) * len(modes)

    print(f"\n{'='*70}")
    print("HIERARCHICAL COLLECTION BATCH")
    print(f"{'='*70}")
    print(f"Running {total} simulations for total {total * (base.end_time + 1)} samples")
    print()

    for synchronous in modes:
        for i, speed in enumerate(speeds):
            mode = "sync" if synchronous else "async"
            print(f"[{mode} {i+1}/{len(speeds)}] speed = {speed:g} ... ", end="", flush=True)
            result = run_split(base, speed, synchronous, seeds)
            finals = ", ".join(f"{k}={v[-1]:.1f}" for k, v in result.counts.items())
            print(f"✓ {finals}")
            results.append(result)

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        results_path = output_dir / "batch.pkl"
        with open(results_path, 'wb') as f:
            pickle.dump(results, f)
        print(f"\n✓ Results saved to {results_path}")

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Batch runs of hierarchical collection over seeds, speeds and synchrony."
    )
    parser.add_argument("--seeds", type=int, default=16, help="Number of seeds (0..N-1)")
    parser.add_argument("--speeds", type=float, nargs="+", default=[0.0, 4.0],
                        help="Device speeds to scan")
    parser.add_argument("--devices", type=int, default=100, help="Number of devices")
    parser.add_argument("--end-time", type=int, default=500, help="Simulated time per run")
    parser.add_argument("--sync-only", action="store_true", help="Skip asynchronous runs")
    parser.add_argument("--output-dir", type=str, default="_results/batch",
                        help="Directory to save results")
    args = parser.parse_args()

    base = SimulationConfig(
        experiment_name="_batch",
        n_devices=args.devices,
        end_time=args.end_time,
    )
    modes = [True] if args.sync_only else [True, False]
    output_dir = Path(args.output_dir)

    results = run_batch(base, list(range(args.seeds)), args.speeds, modes, output_dir)

    from analysis.plots.counts import plot_batch_counts
    plot_batch_counts(results, output_dir)

    print(f"\nResults saved to: {output_dir}")
    print(f"{'='*70}\n")


if __name__ == "__main__":
    main()
