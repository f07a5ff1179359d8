"""
Data Loading and Preprocessing for Analysis
============================================

Functions for loading simulation history and batch results, and filtering
initial transients.
"""

import pickle
import numpy as np
from pathlib import Path
from typing import Optional, Dict, Any, List



def load_history(run_dir: Path) -> Optional[Dict[str, Any]]:
    """Load simulation history from history.pkl."""
    pkl_path = Path(run_dir) / "history.pkl"
    if not pkl_path.exists():
        print("⚠️  No history.pkl found in run directory.")
        return None

    with open(pkl_path, "rb") as f:
        history = pickle.load(f)
    print(f"✓ Loaded history from {pkl_path}")
    return history


def load_batch(path: Path) -> Optional[List[Any]]:
    """Load the list of BatchResult objects written by batch_runner."""
    path = Path(path)
    if path.is_dir():
        path = path / "batch.pkl"
    if not path.exists():
        print(f"⚠️  No batch results at {path}")
        return None

    with open(path, "rb") as f:
        results = pickle.load(f)
    print(f"✓ Loaded {len(results)} batch splits from {path}")
    return results


def filter_history_steps(history, skip_initial_steps=0):
    """
    Filter history to skip initial transient ticks.

    Args:
        history: History dict of per-tick lists
        skip_initial_steps: Number of initial ticks to skip

    Returns:
        Filtered history dict
    """
    if history is None or skip_initial_steps <= 0:
        return history

    # Every per-tick series has one entry per recorded tick
    return {
        key: value[skip_initial_steps:] if isinstance(value, (list, np.ndarray)) else value
        for key, value in history.items()
    }


def convergence_time(history: Dict[str, Any], key: str, tolerance: float = 0.0) -> Optional[float]:
    """
    First time after which the estimate of `key` stays within tolerance of ideal.

    Returns None if the estimate is off at the last sample.
    """
    counts = np.asarray(history.get(f'count_{key}', []), dtype=float)
    ideal = np.asarray(history.get('ideal', []), dtype=float)
    times = history.get('time', [])
    if counts.size == 0:
        return None

    ok = np.abs(counts - ideal[:counts.size]) <= tolerance
    if not ok[-1]:
        return None
    bad = np.flatnonzero(~ok)
    first = 0 if bad.size == 0 else int(bad[-1]) + 1
    return float(times[first])
