"""
Network Snapshot Plot
=====================

Final positions of the devices, drawn with the hierarchy storage of the
stored instance: marker per level, size per level, colour per leader.
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

from hierarchy.storage import snapshot


def plot_network_snapshot(network, save_path: Path):
    """
    Plot device positions, links and leader colouring.

    Args:
        network: Network after a run
        save_path: Path to save figure
    """
    if network.n == 0:
        print("No devices to plot")
        return

    pos = network.positions[:, :2]
    adj = network.adjacency()

    fig, ax = plt.subplots(figsize=(12, 5))

    # Links
    rows, cols = np.nonzero(np.triu(adj, k=1))
    for a, b in zip(rows, cols):
        ax.plot(pos[[a, b], 0], pos[[a, b], 1], color='gray', linewidth=0.5, alpha=0.3, zorder=1)

    # Devices
    for uid in range(network.n):
        data = snapshot(network.storage(uid))
        shape = data.get('node_shape')
        ax.scatter(
            pos[uid, 0], pos[uid, 1],
            s=4 * data.get('node_size', 5) ** 2,
            c=[data.get('leader_col', (0.5, 0.5, 0.5, 1.0))],
            marker=shape.marker if shape is not None else 'o',
            edgecolors=[data.get('personal_col', (0.0, 0.0, 0.0, 1.0))],
            linewidths=1.0,
            zorder=2,
        )

    ax.set_title(f'Network at t={network.time:g}')
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_aspect('equal', adjustable='datalim')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"  ✓ Saved network plot: {save_path}")
