"""
Volume Union — exact union volume and footprint area of overlapping boxes.

Both measures use a coordinate sweep:

- Volume: sweep X. Between consecutive event coordinates the set of active
  boxes is constant, so the slab contributes dx * (union area of the active
  boxes projected onto Y-Z). The Y-Z area is itself a sweep along Y that
  merges the active Z-intervals of each slab.
- Footprint: sweep X, union length of active Z-intervals, Y ignored.

Boxes may overlap or repeat; every block is counted once.
"""
from typing import Iterable, List, Sequence, Tuple

from .box import Box, intersect

# Event kinds; starts sort before ends at the same coordinate.
_START = 0
_END = 1


def _events(intervals: Sequence[Tuple[int, int]]) -> List[Tuple[int, int, int]]:
    """Build (coordinate, kind, index) events for inclusive intervals."""
    events = []
    for index, (lo, hi) in enumerate(intervals):
        events.append((lo, _START, index))
        events.append((hi + 1, _END, index))
    events.sort()
    return events


def _sweep(intervals: Sequence[Tuple[int, int]], measure) -> int:
    """
    Generic 1D sweep.

    Calls ``measure(active_indices)`` for every run of constant activity and
    weights it by the run's length.
    """
    total = 0
    active = set()
    last = None
    for coord, kind, index in _events(intervals):
        if active and coord > last:
            total += (coord - last) * measure(active)
        if kind == _START:
            active.add(index)
        else:
            active.discard(index)
        last = coord
    return total


def union_length(intervals: Iterable[Tuple[int, int]]) -> int:
    """Length of the union of inclusive integer intervals."""
    merged_total = 0
    current_lo = current_hi = None
    for lo, hi in sorted(intervals):
        if current_hi is None or lo > current_hi + 1:
            if current_hi is not None:
                merged_total += current_hi - current_lo + 1
            current_lo, current_hi = lo, hi
        elif hi > current_hi:
            current_hi = hi
    if current_hi is not None:
        merged_total += current_hi - current_lo + 1
    return merged_total


def _yz_union_area(boxes: Sequence[Box]) -> int:
    """Union area of the boxes' Y-Z rectangles."""
    if len(boxes) == 1:
        box = boxes[0]
        return box.size_y * box.size_z
    y_intervals = [(b.min_y, b.max_y) for b in boxes]
    return _sweep(
        y_intervals,
        lambda active: union_length((boxes[i].min_z, boxes[i].max_z) for i in active),
    )


def union_volume(boxes: Iterable[Box]) -> int:
    """Exact volume of the union of ``boxes``."""
    boxes = list(boxes)
    if not boxes:
        return 0
    if len(boxes) == 1:
        return boxes[0].volume

    x_intervals = [(b.min_x, b.max_x) for b in boxes]
    return _sweep(
        x_intervals,
        lambda active: _yz_union_area([boxes[i] for i in sorted(active)]),
    )


def union_footprint_area(boxes: Iterable[Box]) -> int:
    """Exact area of the union of the boxes' X-Z footprints."""
    boxes = list(boxes)
    if not boxes:
        return 0
    if len(boxes) == 1:
        return boxes[0].footprint_area

    x_intervals = [(b.min_x, b.max_x) for b in boxes]
    return _sweep(
        x_intervals,
        lambda active: union_length((boxes[i].min_z, boxes[i].max_z) for i in active),
    )


def covered_volume(target: Box, others: Iterable[Box]) -> int:
    """Volume of ``target`` already covered by any of ``others``."""
    clipped = [part for part in (intersect(target, other) for other in others) if part is not None]
    return union_volume(clipped)


def covered_footprint(target: Box, others: Iterable[Box]) -> int:
    """
    Footprint area of ``target`` already covered by the footprints of ``others``.

    Every box is collapsed onto target's lowest layer first, so only the
    horizontal overlap matters.
    """
    layer = target.min_y
    flat_target = target.footprint_slice(layer)
    clipped = []
    for other in others:
        part = intersect(flat_target, other.footprint_slice(layer))
        if part is not None:
            clipped.append(part)
    return union_footprint_area(clipped)
