"""
Simulated Neighbor-Exchange Network
===================================

Devices run an aggregate program in rounds. After each round a device's
exports are delivered to every device currently within communication
range, where they are retained for ``retain`` time units.

Two schedulers:
- synchronous: every device fires at t = 1, 2, 3, ... and all rounds of a
  tick read the messages delivered before that tick
- asynchronous: each device fires independently; first round uniform in
  [0, 1), then Weibull-distributed periods with the given mean and std

Ground truth for collection (ideal counts) comes from the connected
components of the current unit-disk graph.
"""

import heapq
import warnings
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from scipy.optimize import brentq
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial.distance import cdist
from scipy.special import gamma

from substrate.context import Context


Program = Callable[[Context, Dict[str, Any]], Any]


@dataclass
class DeviceState:
    """Everything a single device carries between rounds."""
    uid: int
    exports: Dict = field(default_factory=dict)
    inbox: Dict[int, Tuple[float, Dict]] = field(default_factory=dict)
    storage: Dict[str, Any] = field(default_factory=dict)
    rounds: int = 0
    last_result: Any = None


# Below this coefficient of variation round periods are taken as constant
MIN_PERIOD_CV = 1e-3


def weibull_parameters(mean: float, std: float) -> Tuple[float, float]:
    """
    Weibull (shape, scale) with the given mean and standard deviation.

    The shape k solves Γ(1+2/k)/Γ(1+1/k)² - 1 = (std/mean)². Deviations
    under MIN_PERIOD_CV of the mean are rejected: use a constant period.
    """
    if mean <= 0:
        raise ValueError(f"Weibull mean must be positive, got {mean}")
    if std < MIN_PERIOD_CV * mean:
        raise ValueError(f"Weibull std {std} is below {MIN_PERIOD_CV} x mean {mean}; "
                         f"use a constant period instead")
    cv2 = (std / mean) ** 2

    def residual(k):
        g1 = gamma(1 + 1 / k)
        return gamma(1 + 2 / k) / (g1 * g1) - 1 - cv2

    k = brentq(residual, 0.1, 1.0e4)
    return k, mean / gamma(1 + 1 / k)


class Network:
    """
    A population of devices exchanging messages with in-range neighbors.

    Args:
        positions: Initial positions, shape (n, dim)
        comm: Communication radius
        program: Callable(ctx, storage) executed at every device round
        rng: Random generator (async schedule, mobility)
        synchronous: Scheduler choice
        retain: Lifetime of received messages
        async_mean, async_std: Round period distribution for async mode
        mobility: Object with advance(positions, t0, t1), or None
        edges: Fixed adjacency (overrides comm-based connectivity)
        verbose: Print progress lines
    """

    def __init__(self,
                 positions: np.ndarray,
                 comm: float,
                 program: Program,
                 rng: Optional[np.random.Generator] = None,
                 synchronous: bool = True,
                 retain: float = 2.0,
                 async_mean: float = 1.0,
                 async_std: float = 0.1,
                 mobility=None,
                 edges: Optional[Iterable[Tuple[int, int]]] = None,
                 verbose: bool = False):
        self.positions = np.array(positions, dtype=float)
        if self.positions.ndim != 2:
            raise ValueError(f"positions must have shape (n, dim), got {self.positions.shape}")
        self.n = self.positions.shape[0]
        self.comm = float(comm)
        self.program = program
        self.rng = rng if rng is not None else np.random.default_rng()
        self.synchronous = synchronous
        self.retain = float(retain)
        self.mobility = mobility
        self.verbose = verbose

        self.devices: List[DeviceState] = [DeviceState(uid=i) for i in range(self.n)]
        self.time = 0.0
        self.total_rounds = 0

        self._fixed: Optional[np.ndarray] = None
        if edges is not None:
            self.set_edges(edges)

        self._queue: List[Tuple[float, int]] = []
        self._shape, self._scale = None, float(async_mean)
        if not synchronous:
            if async_std >= MIN_PERIOD_CV * async_mean:
                self._shape, self._scale = weibull_parameters(async_mean, async_std)
            for uid in range(self.n):
                heapq.heappush(self._queue, (float(self.rng.uniform(0.0, 1.0)), uid))

    @classmethod
    def from_edges(cls, n: int, edges: Iterable[Tuple[int, int]], program: Program, **kwargs) -> "Network":
        """Network with fixed links and unit ranges; devices laid on a line for plotting."""
        positions = np.column_stack([np.arange(n, dtype=float), np.zeros(n)])
        return cls(positions, comm=1.0, program=program, edges=edges, **kwargs)

    # =========================================================================
    # Topology
    # =========================================================================

    def set_edges(self, edges: Iterable[Tuple[int, int]]):
        """Replace the adjacency with an explicit undirected edge list."""
        adj = np.zeros((self.n, self.n), dtype=bool)
        for a, b in edges:
            if a == b:
                continue
            adj[a, b] = adj[b, a] = True
        self._fixed = adj

    def remove_edge(self, a: int, b: int):
        if self._fixed is None:
            raise ValueError("remove_edge requires a network built from explicit edges")
        self._fixed[a, b] = self._fixed[b, a] = False

    def add_edge(self, a: int, b: int):
        if self._fixed is None:
            raise ValueError("add_edge requires a network built from explicit edges")
        self._fixed[a, b] = self._fixed[b, a] = True

    def set_positions(self, positions: np.ndarray):
        positions = np.asarray(positions, dtype=float)
        if positions.shape != self.positions.shape:
            raise ValueError(f"expected positions of shape {self.positions.shape}, got {positions.shape}")
        self.positions = positions.copy()

    def adjacency(self) -> np.ndarray:
        """Boolean (n, n) adjacency of the current topology."""
        if self._fixed is not None:
            return self._fixed.copy()
        dist = cdist(self.positions, self.positions)
        adj = dist <= self.comm
        np.fill_diagonal(adj, False)
        return adj

    def ideal_counts(self) -> np.ndarray:
        """Size of the connected component each device belongs to."""
        if self.n == 0:
            return np.zeros(0, dtype=int)
        _, labels = connected_components(csr_matrix(self.adjacency()), directed=False)
        sizes = np.bincount(labels)
        return sizes[labels]

    def _range(self, a: int, b: int) -> float:
        if self._fixed is not None:
            return 1.0
        return float(np.linalg.norm(self.positions[a] - self.positions[b]))

    # =========================================================================
    # Rounds
    # =========================================================================

    def storage(self, uid: int) -> Dict[str, Any]:
        return self.devices[uid].storage

    def _context(self, uid: int, now: float) -> Context:
        device = self.devices[uid]
        fresh = {
            nid: exports
            for nid, (stamp, exports) in device.inbox.items()
            if now - stamp < self.retain
        }
        # Expired messages are discarded for good
        device.inbox = {nid: msg for nid, msg in device.inbox.items() if nid in fresh}
        ranges = {nid: self._range(uid, nid) for nid in fresh}
        return Context(uid, time=now, previous=device.exports, neighbors=fresh, ranges=ranges)

    def _execute(self, uid: int, now: float) -> Context:
        ctx = self._context(uid, now)
        device = self.devices[uid]
        device.last_result = self.program(ctx, device.storage)
        device.rounds += 1
        self.total_rounds += 1
        return ctx

    def _deliver(self, uid: int, exports: Dict, now: float, adj: np.ndarray):
        self.devices[uid].exports = exports
        for nid in np.flatnonzero(adj[uid]):
            self.devices[nid].inbox[uid] = (now, exports)

    def _advance_mobility(self, t1: float):
        if self.mobility is not None and t1 > self.time:
            self.mobility.advance(self.positions, self.time, t1)
        self.time = t1

    def step(self):
        """One synchronous tick: everybody computes, then everybody delivers."""
        if not self.synchronous:
            raise RuntimeError("step() is only defined for synchronous networks")
        now = self.time + 1.0
        self._advance_mobility(now)
        contexts = [self._execute(uid, now) for uid in range(self.n)]
        adj = self.adjacency()
        for ctx in contexts:
            self._deliver(ctx.uid, ctx.exports, now, adj)

    def _run_async_until(self, until: float):
        while self._queue and self._queue[0][0] <= until:
            now, uid = heapq.heappop(self._queue)
            self._advance_mobility(now)
            ctx = self._execute(uid, now)
            self._deliver(uid, ctx.exports, now, self.adjacency())
            period = self._scale if self._shape is None else self._scale * self.rng.weibull(self._shape)
            heapq.heappush(self._queue, (now + float(period), uid))
        self._advance_mobility(until)

    def run(self,
            until: float,
            on_tick: Optional[Callable[["Network"], None]] = None,
            log_every: int = 0):
        """
        Advance the simulation to time `until`.

        Args:
            until: Final simulated time
            on_tick: Called after every unit of simulated time
            log_every: Print a progress line every N ticks (0 = silent)
        """
        if until < self.time:
            warnings.warn(f"run(until={until}) is in the past (t={self.time}); nothing to do")
            return
        tick = int(np.floor(self.time)) + 1
        while tick <= until:
            if self.synchronous:
                self.step()
            else:
                self._run_async_until(float(tick))
            if on_tick is not None:
                on_tick(self)
            if self.verbose and log_every and tick % log_every == 0:
                print(f"  t={tick:5d} | rounds: {self.total_rounds}")
            tick += 1

    def results(self) -> List[Any]:
        """Last value returned by the program on every device."""
        return [d.last_result for d in self.devices]
