"""
Count Estimate Plots
====================

Plotting functions for the count estimates of each algorithm over time,
against the ideal count: the component sizes, each counted once (all devices).
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
from typing import Dict, Any, List


STYLES = {
    'bus': ('tab:blue', '-', 'bottom-up'),
    'tds': ('tab:orange', '-', 'top-down'),
    'buh': ('tab:blue', '--', 'bottom-up, hysteresis'),
    'tdh': ('tab:orange', '--', 'top-down, hysteresis'),
    'sp': ('tab:green', ':', 'single-path'),
    'wmp': ('tab:red', ':', 'weighted multi-path'),
}


def _count_keys(source: Dict[str, Any]):
    return [k[len('count_'):] for k in source if k.startswith('count_')]


def plot_count_evolution(history: Dict[str, Any], save_path: Path):
    """
    Plot count estimates and the number of devices holding them.

    Args:
        history: Dictionary with per-tick time series
        save_path: Path to save figure
    """
    times = history.get('time', [])
    if not times:
        print("No time data in history")
        return

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle('Device Count Estimates', fontsize=16, fontweight='bold')

    # Estimates
    ax = axes[0]
    ax.plot(times, history['ideal'], 'k-', linewidth=2, label='ideal', alpha=0.8)
    for key in _count_keys(history):
        color, style, label = STYLES.get(key, (None, '-', key))
        ax.plot(times, history[f'count_{key}'], color=color, linestyle=style,
                linewidth=1.5, label=label)
    ax.set_title('Count')
    ax.set_xlabel('Time')
    ax.set_ylabel('Devices')
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)

    # Holders
    ax = axes[1]
    if 'components' in history:
        ax.plot(times, history['components'], 'k-', linewidth=2, label='components', alpha=0.8)
    for key in _count_keys(history):
        if f'holders_{key}' not in history:
            continue
        color, style, label = STYLES.get(key, (None, '-', key))
        ax.plot(times, history[f'holders_{key}'], color=color, linestyle=style,
                linewidth=1.5, label=label)
    ax.set_title('Devices Holding an Estimate')
    ax.set_xlabel('Time')
    ax.set_ylabel('Holders')
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"  ✓ Saved count plot: {save_path}")


def plot_batch_counts(results: List[Any], output_dir: Path):
    """
    One figure per (speed, synchrony) split, averaged over seeds.

    Args:
        results: BatchResult list from batch_runner.run_batch
        output_dir: Directory to save figures
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    for result in results:
        fig, ax = plt.subplots(figsize=(8, 5))
        ax.plot(result.time, result.ideal, 'k-', linewidth=2, label='ideal', alpha=0.8)
        for key, series in result.counts.items():
            color, style, label = STYLES.get(key, (None, '-', key))
            ax.plot(result.time, series, color=color, linestyle=style, linewidth=1.5, label=label)

        ax.set_title(f'{result.label} ({result.n_runs} runs)')
        ax.set_xlabel('Time')
        ax.set_ylabel('Devices')
        ax.set_ylim(0, max(1.0, 1.5 * float(np.max(result.ideal))))
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        mode = 'sync' if result.synchronous else 'async'
        save_path = output_dir / f'count_speed{result.speed:g}_{mode}.png'
        plt.tight_layout()
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        print(f"  ✓ Saved batch plot: {save_path}")
