"""
Aggregate Execution Context
===========================

One Context is built for every device round. It exposes the two
neighbor-exchange primitives the algorithms are written against:

    nbr(name, value)          -> Field of neighbors' latest values at this site
    share(name, init, body)   -> body(Field of previous outputs), exported

Values are aligned by *path*: the stack of scope names active at the call
site plus the local name. Two devices only see each other's value if they
exported it under the same path, so a loop over hierarchy levels must wrap
each iteration in ``ctx.scope(..., i)``.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from substrate.field import Field

Path = Tuple[Hashable, ...]


class AlignmentError(RuntimeError):
    """The same path was exported twice in one round."""


class Context:
    """
    Per-device, per-round execution context.

    Args:
        uid: Device identifier
        time: Time of the current round
        previous: The device's own exports from its previous round
        neighbors: Latest exports received from each neighbor
        ranges: Euclidean distance to each neighbor
    """

    def __init__(self,
                 uid: int,
                 time: float = 0.0,
                 previous: Optional[Dict[Path, Any]] = None,
                 neighbors: Optional[Dict[int, Dict[Path, Any]]] = None,
                 ranges: Optional[Dict[int, float]] = None):
        self.uid = uid
        self.time = time
        self._previous = previous or {}
        self._neighbors = neighbors or {}
        self._ranges = ranges or {}
        self._stack = []
        self.exports: Dict[Path, Any] = {}

    # =========================================================================
    # Alignment
    # =========================================================================

    @contextmanager
    def scope(self, *names: Hashable):
        """Extend the alignment path for the duration of the block."""
        self._stack.extend(names)
        try:
            yield self
        finally:
            if names:
                del self._stack[-len(names):]

    def path(self, name: Hashable) -> Path:
        return tuple(self._stack) + (name,)

    def _gather(self, path: Path) -> Dict[int, Any]:
        return {
            nid: exports[path]
            for nid, exports in self._neighbors.items()
            if path in exports
        }

    def _export(self, path: Path, value: Any):
        if path in self.exports:
            raise AlignmentError(f"path {path} exported twice in one round")
        self.exports[path] = value

    # =========================================================================
    # Primitives
    # =========================================================================

    @property
    def neighbors(self):
        """Identifiers of the neighbors heard from this round."""
        return list(self._neighbors)

    def nbr(self, name: Hashable, value: Any) -> Field:
        """
        Broadcast value and observe what neighbors broadcast at the same site.

        Returns:
            Field whose self entry is value and whose neighbor entries are the
            neighbors' most recently received values
        """
        path = self.path(name)
        self._export(path, value)
        return Field(value, self._gather(path))

    def previous(self, name: Hashable, init: Any) -> Any:
        """Own output at this site from the previous round (init on the first)."""
        return self._previous.get(self.path(name), init)

    def share(self, name: Hashable, init: Any, body: Callable[[Field], Any]) -> Any:
        """
        Recursive neighbor exchange.

        body receives a field of the neighbors' previous outputs at this site,
        whose self entry is this device's previous output (or init). The value
        body returns is both exported and returned.
        """
        path = self.path(name)
        own = self._previous.get(path, init)
        result = body(Field(own, self._gather(path)))
        self._export(path, result)
        return result

    def nbr_range(self) -> Field:
        """Distance to every neighbor heard from this round."""
        return Field(0.0, {nid: self._ranges.get(nid, 1.0) for nid in self._neighbors})
