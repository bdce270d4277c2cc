"""
Cost Calculator — billable blocks for region claims and redefinitions.

Only blocks not already covered by other registered regions are billed.
New blocks are split into a footprint (horizontal) share and a height
(vertical) share, priced at the tier's two rates.

Pure computation over a region registry; no I/O of its own.
"""
import logging
from enum import Enum
from typing import List, NamedTuple, Optional, Protocol

from shared.geometry import Box, covered_footprint, covered_volume

from .pricing import CostInfo, PricingTier

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    CLAIM = "claim"
    REDEFINE = "redefine"


class RegionEntry(NamedTuple):
    """A named region and its bounds as reported by the registry."""
    name: str
    box: Box


class RegionRegistry(Protocol):
    """Read-only view of registered regions, world-spanning sentinels excluded."""

    def regions_overlapping(self, box: Box) -> List[RegionEntry]:
        """Return every region whose bounds intersect ``box``."""
        ...

    def region_bounds(self, name: str) -> Optional[Box]:
        """Return the bounds of region ``name``, or None when unknown."""
        ...


class CostCalculator:
    """Computes CostInfo for claim and redefine requests."""

    def __init__(self, regions: RegionRegistry):
        self._regions = regions

    def quote(
        self,
        kind: ActionKind,
        selection: Box,
        region_name: str,
        tier: PricingTier,
    ) -> CostInfo:
        """Dispatch to the claim or redefine pricing for ``kind``."""
        if tier.is_free:
            return CostInfo.zero()
        if kind == ActionKind.CLAIM:
            return self.claim_cost(selection, tier)
        return self.redefine_cost(selection, region_name, tier)

    def _overlapping(self, box: Box, exclude: Optional[str] = None) -> List[Box]:
        return [
            entry.box
            for entry in self._regions.regions_overlapping(box)
            if entry.name != exclude and box.intersect(entry.box) is not None
        ]

    def claim_cost(self, new_box: Box, tier: PricingTier) -> CostInfo:
        """
        Price a brand-new region.

        new_volume is the part of new_box outside every existing region.
        The footprint share is the part of new_box's footprint outside every
        existing footprint; the rest of new_volume is vertical.
        """
        existing = self._overlapping(new_box)
        new_volume = new_box.volume - covered_volume(new_box, existing)
        if new_volume <= 0:
            return CostInfo.zero()

        new_footprint = max(0, new_box.footprint_area - covered_footprint(new_box, existing))
        vertical_blocks = max(0, new_volume - new_footprint)

        cost = CostInfo.priced(new_footprint, vertical_blocks, new_volume, tier)
        logger.debug(
            f"Claim {new_box}: overlaps={len(existing)}, new_volume={new_volume}, "
            f"horizontal={new_footprint}, vertical={vertical_blocks}, total={cost.total_cost}"
        )
        return cost

    def redefine_cost(self, new_box: Box, region_name: str, tier: PricingTier) -> CostInfo:
        """
        Price reshaping ``region_name`` to ``new_box``.

        Only net growth is billed: blocks of the new box outside other
        regions, minus blocks of the old box outside those same regions.
        Shrinking is free. Unknown regions are priced as claims.
        """
        old_box = self._regions.region_bounds(region_name)
        if old_box is None:
            logger.debug(f"Region '{region_name}' not found, pricing redefine as claim")
            return self.claim_cost(new_box, tier)

        others = self._overlapping(new_box, exclude=region_name)

        total_new = new_box.volume - covered_volume(new_box, others)
        actual_old = old_box.volume - covered_volume(old_box, others)
        additional = total_new - actual_old
        if additional <= 0:
            return CostInfo.zero()

        actual_new_footprint = new_box.footprint_area - covered_footprint(new_box, others)
        actual_old_footprint = old_box.footprint_area - covered_footprint(old_box, others)
        additional_horizontal = max(0, actual_new_footprint - actual_old_footprint)
        additional_vertical = max(0, additional - additional_horizontal)

        cost = CostInfo.priced(additional_horizontal, additional_vertical, additional, tier)
        logger.debug(
            f"Redefine '{region_name}' {old_box} -> {new_box}: others={len(others)}, "
            f"additional={additional}, horizontal={additional_horizontal}, "
            f"vertical={additional_vertical}, total={cost.total_cost}"
        )
        return cost
