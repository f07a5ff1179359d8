"""
Neighbor Fields
===============

A field is the set of values a device currently observes from its in-range
neighbors, plus the device's own entry.

    field = {neighbor_id: value}  +  self_value

Reductions (min_hood, fold_hood) work on the neighbor entries only; the
caller supplies the value standing in for the device itself. This matches
the usual aggregate-programming convention where the self entry of a field
is replaced by an explicit local value before reducing.
"""

from typing import Any, Callable, Dict, Iterator, TypeVar, Generic

T = TypeVar("T")
U = TypeVar("U")


class Field(Generic[T]):
    """
    Explicit keyed container of neighbor values.

    Attributes:
        self_value: The observing device's own entry
        values: Mapping neighbor id -> value (device itself excluded)
    """

    __slots__ = ("self_value", "values")

    def __init__(self, self_value: T, values: Dict[int, T] = None):
        self.self_value = self_value
        self.values = dict(values) if values else {}

    # =========================================================================
    # Container protocol
    # =========================================================================

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __contains__(self, nid: int) -> bool:
        return nid in self.values

    def __getitem__(self, nid: int) -> T:
        return self.values[nid]

    def get(self, nid: int, default: Any = None):
        return self.values.get(nid, default)

    def items(self):
        return self.values.items()

    def __repr__(self) -> str:
        return f"Field(self={self.self_value!r}, nbrs={self.values!r})"

    # =========================================================================
    # Elementwise operations
    # =========================================================================

    def map(self, fn: Callable[[T], U]) -> "Field[U]":
        """Apply fn to every entry (self included)."""
        return Field(fn(self.self_value), {n: fn(v) for n, v in self.values.items()})

    def zip_with(self, other: "Field[U]", fn: Callable[[T, U], Any]) -> "Field":
        """
        Combine two fields entry by entry.

        Only neighbors present in both fields survive (alignment).
        """
        return Field(
            fn(self.self_value, other.self_value),
            {n: fn(v, other.values[n]) for n, v in self.values.items() if n in other.values},
        )

    # =========================================================================
    # Reductions
    # =========================================================================

    def min_hood(self, fallback: T) -> T:
        """Minimum over neighbor entries, with fallback as the device's own entry."""
        result = fallback
        for v in self.values.values():
            if v < result:
                result = v
        return result

    def fold_hood(self, combine: Callable[[T, T], T], seed: T) -> T:
        """Fold neighbor entries onto seed (the device's own contribution)."""
        result = seed
        for v in self.values.values():
            result = combine(result, v)
        return result


def mux(condition: Field, if_true: Field, if_false) -> Field:
    """
    Elementwise conditional selection.

    Args:
        condition: Field of booleans
        if_true: Field of values chosen where condition holds
        if_false: Field or plain value chosen elsewhere

    Returns:
        Field aligned on the neighbors present in condition and if_true
    """
    if isinstance(if_false, Field):
        def pick(nid, c, t):
            return t if c else if_false.values.get(nid, if_false.self_value)
        self_false = if_false.self_value
    else:
        def pick(nid, c, t):
            return t if c else if_false
        self_false = if_false

    values = {
        n: pick(n, c, if_true.values[n])
        for n, c in condition.values.items()
        if n in if_true.values
    }
    self_value = if_true.self_value if condition.self_value else self_false
    return Field(self_value, values)

