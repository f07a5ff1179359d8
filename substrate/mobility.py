"""
Device Placement and Movement
=============================

- random_deployment: uniform positions inside a box
- RectangleWalk: random waypoint walk inside a box
- leader_jump_position: device 0 scenario (left end, then right end at half time)
- ScenarioMobility: walk for everyone, explicit trajectories for pinned devices
"""

import numpy as np
from typing import Callable, Dict, Optional


def random_deployment(rng: np.random.Generator,
                      n: int,
                      low: np.ndarray,
                      high: np.ndarray) -> np.ndarray:
    """Uniform positions in the box [low, high], shape (n, dim)."""
    low = np.asarray(low, dtype=float)
    high = np.asarray(high, dtype=float)
    return rng.uniform(low, high, size=(n, low.shape[0]))


def leader_jump_position(time: float,
                         end_time: float,
                         xside: float,
                         yside: float,
                         height: float) -> np.ndarray:
    """Position of the jumping device at a given time."""
    x = 0.0 if 2 * time < end_time else float(xside)
    return np.array([x, yside / 2, height / 2])


class RectangleWalk:
    """
    Random waypoint walk inside a box.

    Each device moves straight toward its target at the given speed and
    draws a new uniform target inside the box once it gets there.
    """

    def __init__(self,
                 low: np.ndarray,
                 high: np.ndarray,
                 speed: float,
                 rng: np.random.Generator):
        self.low = np.asarray(low, dtype=float)
        self.high = np.asarray(high, dtype=float)
        self.speed = float(speed)
        self.rng = rng
        self.targets: Optional[np.ndarray] = None

    def _draw(self, n: int) -> np.ndarray:
        return self.rng.uniform(self.low, self.high, size=(n, self.low.shape[0]))

    def advance(self, positions: np.ndarray, dt: float, movable: Optional[np.ndarray] = None):
        """Move positions in place by dt time units."""
        if self.speed <= 0 or dt <= 0:
            return
        n = positions.shape[0]
        if self.targets is None or self.targets.shape[0] != n:
            self.targets = self._draw(n)
        if movable is None:
            movable = np.ones(n, dtype=bool)

        budget = np.full(n, self.speed * dt)
        budget[~movable] = 0.0
        # A device reaching its target spends the rest of its budget on the next one
        while np.any(budget > 1e-12):
            delta = self.targets - positions
            dist = np.linalg.norm(delta, axis=1)
            active = budget > 1e-12
            arrive = active & (dist <= budget)
            move = active & ~arrive

            if np.any(move):
                step = (budget[move] / dist[move])[:, None] * delta[move]
                positions[move] += step
                budget[move] = 0.0
            if np.any(arrive):
                positions[arrive] = self.targets[arrive]
                budget[arrive] -= dist[arrive]
                self.targets[arrive] = self._draw(int(arrive.sum()))


class ScenarioMobility:
    """
    Combined mobility model.

    Args:
        walk: Optional RectangleWalk applied to every non-pinned device
        pinned: Mapping device id -> trajectory(time) giving its position
    """

    def __init__(self,
                 walk: Optional[RectangleWalk] = None,
                 pinned: Optional[Dict[int, Callable[[float], np.ndarray]]] = None):
        self.walk = walk
        self.pinned = pinned or {}

    def advance(self, positions: np.ndarray, t0: float, t1: float):
        if self.walk is not None:
            movable = np.ones(positions.shape[0], dtype=bool)
            for uid in self.pinned:
                if uid < positions.shape[0]:
                    movable[uid] = False
            self.walk.advance(positions, t1 - t0, movable)
        for uid, trajectory in self.pinned.items():
            if uid < positions.shape[0]:
                positions[uid] = trajectory(t1)[:positions.shape[1]]
