"""
shared.geometry — inclusive integer boxes and exact union measures.

Provides the geometry primitives for region billing:
- Box: immutable axis-aligned box with arbitrary-precision volume/footprint
- union_volume / union_footprint_area: coordinate-sweep union measures
- covered_volume / covered_footprint: overlap of a box with existing boxes
"""
from .box import (
    Box,
    InvalidBoxError,
    expand_vertically,
    footprint_area,
    intersect,
    volume,
)
from .volume_union import (
    covered_footprint,
    covered_volume,
    union_footprint_area,
    union_length,
    union_volume,
)

__all__ = [
    "Box",
    "InvalidBoxError",
    "covered_footprint",
    "covered_volume",
    "expand_vertically",
    "footprint_area",
    "intersect",
    "union_footprint_area",
    "union_length",
    "union_volume",
    "volume",
]
