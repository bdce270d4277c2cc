"""
Box geometry — inclusive, axis-aligned integer boxes.

A Box covers every block whose coordinates lie between its min and max
corners on all three axes, bounds included. Volumes and areas are plain
Python ints, so boxes at extreme world coordinates never overflow.

Pure computation module with no external dependencies.
"""
from dataclasses import dataclass
from typing import Optional, Tuple


class InvalidBoxError(ValueError):
    """Raised when a box is built with min > max on some axis."""
    pass


@dataclass(frozen=True)
class Box:
    """Immutable axis-aligned box with inclusive bounds."""
    min_x: int
    min_y: int
    min_z: int
    max_x: int
    max_y: int
    max_z: int

    def __post_init__(self):
        for axis in ("x", "y", "z"):
            lo = getattr(self, f"min_{axis}")
            hi = getattr(self, f"max_{axis}")
            if not isinstance(lo, int) or not isinstance(hi, int):
                raise InvalidBoxError(f"{axis} bounds must be integers, got {lo!r}..{hi!r}")
            if lo > hi:
                raise InvalidBoxError(f"min_{axis}={lo} exceeds max_{axis}={hi}")

    @classmethod
    def from_points(cls, a: Tuple[int, int, int], b: Tuple[int, int, int]) -> "Box":
        """Build a box from two opposite corners given in any order."""
        return cls(
            min(a[0], b[0]), min(a[1], b[1]), min(a[2], b[2]),
            max(a[0], b[0]), max(a[1], b[1]), max(a[2], b[2]),
        )

    @property
    def min_point(self) -> Tuple[int, int, int]:
        return (self.min_x, self.min_y, self.min_z)

    @property
    def max_point(self) -> Tuple[int, int, int]:
        return (self.max_x, self.max_y, self.max_z)

    @property
    def size_x(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def size_y(self) -> int:
        return self.max_y - self.min_y + 1

    @property
    def size_z(self) -> int:
        return self.max_z - self.min_z + 1

    @property
    def volume(self) -> int:
        return self.size_x * self.size_y * self.size_z

    @property
    def footprint_area(self) -> int:
        """Horizontal (X×Z) extent, independent of height."""
        return self.size_x * self.size_z

    def intersect(self, other: "Box") -> Optional["Box"]:
        return intersect(self, other)

    def footprint_slice(self, y: Optional[int] = None) -> "Box":
        """Collapse the box to a single layer at ``y`` (default: its own min_y)."""
        layer = self.min_y if y is None else y
        return Box(self.min_x, layer, self.min_z, self.max_x, layer, self.max_z)

    def __str__(self) -> str:
        return f"({self.min_x}, {self.min_y}, {self.min_z})-({self.max_x}, {self.max_y}, {self.max_z})"


def intersect(a: Box, b: Box) -> Optional[Box]:
    """
    Intersect two boxes.

    Returns None when the boxes share no block on at least one axis.
    """
    min_x = max(a.min_x, b.min_x)
    min_y = max(a.min_y, b.min_y)
    min_z = max(a.min_z, b.min_z)
    max_x = min(a.max_x, b.max_x)
    max_y = min(a.max_y, b.max_y)
    max_z = min(a.max_z, b.max_z)

    if min_x > max_x or min_y > max_y or min_z > max_z:
        return None
    return Box(min_x, min_y, min_z, max_x, max_y, max_z)


def volume(box: Box) -> int:
    return box.volume


def footprint_area(box: Box) -> int:
    return box.footprint_area


def expand_vertically(box: Box, world_min_y: int, world_max_y: int) -> Box:
    """Stretch a box to the full world height, keeping its footprint."""
    if world_min_y > world_max_y:
        raise InvalidBoxError(f"world height {world_min_y}..{world_max_y} is empty")
    return Box(box.min_x, world_min_y, box.min_z, box.max_x, world_max_y, box.max_z)
