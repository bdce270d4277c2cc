"""
Pricing — per-block rates, cost breakdowns, and tier resolution.

Money is a float, as everywhere else in billing. Block counts are Python
ints of any size; converting them to money saturates at MAX_COST instead of
overflowing.
"""
import logging
import math
import sys
from typing import Callable, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_COST = sys.float_info.max

# Largest block count converted to float exactly enough to price.
_MAX_EXACT_BLOCKS = 2 ** 63 - 1


class PricingTier(BaseModel):
    """Per-block rates for footprint (horizontal) and height (vertical) blocks."""
    model_config = ConfigDict(frozen=True)

    horizontal: float = Field(default=0.0, ge=0.0, description="Price per footprint block")
    vertical: float = Field(default=0.0, ge=0.0, description="Price per vertical block")

    @property
    def is_free(self) -> bool:
        return self.horizontal <= 0 and self.vertical <= 0

    def cheapest(self, other: "PricingTier") -> "PricingTier":
        """Element-wise minimum of two tiers."""
        return PricingTier(
            horizontal=min(self.horizontal, other.horizontal),
            vertical=min(self.vertical, other.vertical),
        )


class CostInfo(BaseModel):
    """Immutable cost breakdown for one claim or redefine."""
    model_config = ConfigDict(frozen=True)

    total_cost: float = 0.0
    horizontal_cost: float = 0.0
    vertical_cost: float = 0.0
    horizontal_blocks: int = 0
    vertical_blocks: int = 0
    total_volume: int = 0

    @classmethod
    def zero(cls) -> "CostInfo":
        return cls()

    @classmethod
    def priced(
        cls,
        horizontal_blocks: int,
        vertical_blocks: int,
        total_volume: int,
        tier: PricingTier,
    ) -> "CostInfo":
        """Price a block breakdown with ``tier``."""
        horizontal_cost = saturating_cost(horizontal_blocks, tier.horizontal)
        vertical_cost = saturating_cost(vertical_blocks, tier.vertical)
        return cls(
            total_cost=saturating_add(horizontal_cost, vertical_cost),
            horizontal_cost=horizontal_cost,
            vertical_cost=vertical_cost,
            horizontal_blocks=horizontal_blocks,
            vertical_blocks=vertical_blocks,
            total_volume=total_volume,
        )

    @property
    def is_free(self) -> bool:
        return self.total_cost <= 0


def saturating_cost(blocks: int, price_per_block: float) -> float:
    """
    blocks * price_per_block, clamped to [0, MAX_COST].

    Block counts too large to convert reliably price at MAX_COST.
    """
    if blocks <= 0 or price_per_block <= 0:
        return 0.0
    if blocks > _MAX_EXACT_BLOCKS:
        return MAX_COST
    cost = float(blocks) * price_per_block
    if math.isinf(cost):
        return MAX_COST
    return cost


def saturating_add(a: float, b: float) -> float:
    total = a + b
    if math.isinf(total):
        return MAX_COST
    return max(total, 0.0)


class TierResolver:
    """
    Resolves an actor's effective pricing tier from held permissions.

    Every configured tier is gated by ``<prefix>.<tier name>``. The effective
    tier is the element-wise minimum of the default and every held tier, so
    cheaper horizontal and vertical rates can come from different tiers.
    """

    def __init__(
        self,
        default_tier: PricingTier,
        price_permissions: Optional[Dict[str, PricingTier]] = None,
        has_permission: Optional[Callable[[str, str], bool]] = None,
        permission_prefix: str = "regions.pricing",
    ):
        self._default_tier = default_tier
        self._price_permissions = dict(price_permissions or {})
        self._has_permission = has_permission
        self._prefix = permission_prefix

    def permission_for(self, tier_name: str) -> str:
        return f"{self._prefix}.{tier_name}"

    def held_tiers(self, actor_id: str) -> Iterable[PricingTier]:
        if self._has_permission is None:
            return []
        return [
            tier
            for name, tier in self._price_permissions.items()
            if self._has_permission(actor_id, self.permission_for(name))
        ]

    def effective_tier(self, actor_id: str) -> PricingTier:
        best = self._default_tier
        for tier in self.held_tiers(actor_id):
            best = best.cheapest(tier)
        logger.debug(
            f"Effective tier for {actor_id}: horizontal={best.horizontal}, vertical={best.vertical}"
        )
        return best
