"""
shared.billing — Region pricing and billable-block calculation.

Provides the billing primitives for region economy:
- PricingTier / TierResolver: per-block rates and permission-based tier selection
- CostInfo: immutable cost breakdown with saturating money arithmetic
- CostCalculator: new-block pricing for claims and redefinitions
"""
from .cost_calculator import ActionKind, CostCalculator, RegionEntry, RegionRegistry
from .pricing import (
    MAX_COST,
    CostInfo,
    PricingTier,
    TierResolver,
    saturating_add,
    saturating_cost,
)

__all__ = [
    "ActionKind",
    "CostCalculator",
    "CostInfo",
    "MAX_COST",
    "PricingTier",
    "RegionEntry",
    "RegionRegistry",
    "TierResolver",
    "saturating_add",
    "saturating_cost",
]
