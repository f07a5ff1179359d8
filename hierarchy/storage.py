"""
Per-Device Observational Storage
================================

Projections of the hierarchy state kept for visualization and logging.
None of these values feed back into the algorithm.

Keys written:
    level, node_size, node_shape, leader_dist, leader,
    leader_col, personal_col, leader_chain, count_chain
"""

from enum import Enum
from typing import Any, Dict, MutableMapping, Optional, Tuple

from matplotlib.colors import hsv_to_rgb


UNINITIALIZED_LEVEL = -42


class Shape(Enum):
    """Node shapes, one per hierarchy level modulo 6."""
    TETRAHEDRON = 0
    CUBE = 1
    OCTAHEDRON = 2
    DODECAHEDRON = 3
    ICOSAHEDRON = 4
    SPHERE = 5

    @property
    def marker(self) -> str:
        """Matching matplotlib marker."""
        return ["^", "s", "D", "p", "h", "o"][self.value]


def identifier_color(uid: int, devices: int) -> Tuple[float, float, float, float]:
    """RGBA colour with hue proportional to the identifier."""
    hue_scale = 360.0 / max(devices, 1)
    hue = min(uid, devices) * hue_scale / 360.0
    r, g, b = hsv_to_rgb((hue % 1.0, 1.0, 1.0))
    return (float(r), float(g), float(b), 1.0)


class LevelStorage:
    """
    Writer for the observational outputs of one hierarchy instance.

    Args:
        storage: Per-device mapping to write into, or None to disable
        devices: Total device count (colour scale)
    """

    def __init__(self, storage: Optional[MutableMapping[str, Any]], devices: int):
        self.storage = storage
        self.devices = devices

    @property
    def enabled(self) -> bool:
        return self.storage is not None

    def reset(self, uid: int):
        if not self.enabled:
            return
        self.storage["level"] = UNINITIALIZED_LEVEL
        self.storage["personal_col"] = identifier_color(uid, self.devices)

    def set_level(self, level: int, leader: int, leader_dist: int):
        if not self.enabled:
            return
        self.storage["level"] = level
        self.storage["node_size"] = 5 + 2 * level
        self.storage["node_shape"] = Shape(level % 6)
        self.storage["leader_dist"] = leader_dist
        self.storage["leader"] = leader
        self.storage["leader_col"] = identifier_color(leader, self.devices)

    def set(self, key: str, value: Any):
        if self.enabled:
            self.storage[key] = value

    def check(self):
        """The level pass always assigns a level to every device."""
        if self.enabled:
            assert self.storage["level"] >= 0, f"level not assigned: {self.storage['level']}"


def snapshot(storage: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the observational keys present in a device storage."""
    keys = ("level", "node_size", "node_shape", "leader_dist", "leader",
            "leader_col", "personal_col", "leader_chain", "count_chain")
    return {k: storage[k] for k in keys if k in storage}
