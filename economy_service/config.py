"""
Economy service configuration.

Pydantic schemas for region pricing, confirmation timeouts, selection
limits, message templates and logging, plus loading from environment
variables (and an optional .env file).
"""
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.billing import PricingTier

logger = logging.getLogger(__name__)


class BlockLimitsConfig(BaseModel):
    """Minimum selection size for claims and redefinitions."""
    model_config = ConfigDict(frozen=True)

    min_horizontal: int = Field(default=20, ge=0, description="Minimum of the X and Z sizes.")
    min_vertical: int = Field(default=20, ge=0, description="Minimum Y size.")
    bypass_permission: str = "regions.limits.bypass"


class VerticalExpandConfig(BaseModel):
    """Automatic full-height expansion of claim selections."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    world_min_y: int = -64
    world_max_y: int = 319

    @model_validator(mode="after")
    def _check_height(self):
        if self.world_min_y > self.world_max_y:
            raise ValueError("world_min_y must not exceed world_max_y")
        return self


class MessagesConfig(BaseModel):
    """Text templates shown to actors. Placeholders use str.format syntax."""
    model_config = ConfigDict(frozen=True)

    economy_not_available: str = "The economy is not available right now."
    insufficient_funds: str = "Insufficient funds: {required} required, you have {balance}."
    insufficient_funds_detailed: str = (
        "Insufficient funds: {total_cost} required "
        "({horizontal_blocks} horizontal blocks for {horizontal_cost}, "
        "{vertical_blocks} vertical blocks for {vertical_cost}). You have {balance}."
    )
    confirmation_required: str = (
        "This will cost {total_cost} "
        "({horizontal_blocks} horizontal blocks for {horizontal_cost}, "
        "{vertical_blocks} vertical blocks for {vertical_cost}). "
        "Your balance: {balance}. Type confirm within {timeout} seconds or cancel."
    )
    payment_processed: str = (
        "Paid {total_amount} "
        "({horizontal_blocks} horizontal blocks for {horizontal_amount}, "
        "{vertical_blocks} vertical blocks for {vertical_amount})."
    )
    payment_failed_after_command: str = (
        "Payment of {required} failed (balance {balance}); the change has been reverted."
    )
    no_pending_action: str = "You have no pending action to confirm."
    action_cancelled: str = "Pending action cancelled."
    selection_changed: str = "Your selection changed since the quote. Please run the command again."
    selection_lost: str = "Your selection could not be read. Please select the area again."
    region_too_small: str = (
        "Selection is too small ({current_x}x{current_y}x{current_z}); "
        "minimum is {min_x}x{min_y}x{min_z}."
    )
    vertical_expansion_applied: str = "Selection expanded to full world height."
    claim_usage: str = "Usage: claim <region>"
    redefine_usage: str = "Usage: redefine <region>"


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    json_output: bool = True


class EconomyConfig(BaseModel):
    """
    Top-level economy configuration.

    Loaded from environment variables or a JSON file, hot-reloadable via
    EconomyConfigManager.
    """
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    horizontal_price: float = Field(default=0.1, ge=0.0, description="Default price per footprint block.")
    vertical_price: float = Field(default=0.00005, ge=0.0, description="Default price per vertical block.")
    confirmation_timeout_seconds: float = Field(default=120.0, gt=0.0)
    price_permissions: Dict[str, PricingTier] = Field(default_factory=dict)
    pricing_permission_prefix: str = "regions.pricing"
    bypass_permission: str = "regions.economy.bypass"
    limits: BlockLimitsConfig = Field(default_factory=BlockLimitsConfig)
    vertical_expand: VerticalExpandConfig = Field(default_factory=VerticalExpandConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def default_tier(self) -> PricingTier:
        return PricingTier(horizontal=self.horizontal_price, vertical=self.vertical_price)


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes", "on")


def load_config_from_env(env_file: Optional[str] = None) -> EconomyConfig:
    """
    Load economy configuration from environment variables.

    Environment variables:
    - REGION_ECONOMY_ENABLED: Enable pricing (default: false)
    - REGION_ECONOMY_HORIZONTAL_PRICE: Price per footprint block (default: 0.1)
    - REGION_ECONOMY_VERTICAL_PRICE: Price per vertical block (default: 0.00005)
    - REGION_ECONOMY_CONFIRMATION_TIMEOUT: Quote lifetime seconds (default: 120)
    - REGION_ECONOMY_PRICE_PERMISSIONS: JSON {"vip": {"horizontal": .., "vertical": ..}}
    - REGION_ECONOMY_MIN_HORIZONTAL / REGION_ECONOMY_MIN_VERTICAL: Selection minimums (default: 20)
    - REGION_ECONOMY_VERTICAL_EXPAND: Expand claims to full height (default: false)
    - LOG_LEVEL / LOG_JSON: Logging level and JSON output

    Returns:
        EconomyConfig: Validated configuration instance
    """
    if env_file:
        load_dotenv(env_file)
    else:
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.info(f"Loaded configuration from {env_path}")

    price_permissions = {}
    raw_permissions = os.getenv("REGION_ECONOMY_PRICE_PERMISSIONS")
    if raw_permissions:
        try:
            price_permissions = {
                name: PricingTier.model_validate(tier)
                for name, tier in json.loads(raw_permissions).items()
            }
        except (ValueError, AttributeError) as e:
            logger.warning(f"Ignoring invalid REGION_ECONOMY_PRICE_PERMISSIONS: {e}")
            price_permissions = {}

    config = EconomyConfig(
        enabled=_env_bool("REGION_ECONOMY_ENABLED", False),
        horizontal_price=float(os.getenv("REGION_ECONOMY_HORIZONTAL_PRICE", "0.1")),
        vertical_price=float(os.getenv("REGION_ECONOMY_VERTICAL_PRICE", "0.00005")),
        confirmation_timeout_seconds=float(os.getenv("REGION_ECONOMY_CONFIRMATION_TIMEOUT", "120")),
        price_permissions=price_permissions,
        limits=BlockLimitsConfig(
            min_horizontal=int(os.getenv("REGION_ECONOMY_MIN_HORIZONTAL", "20")),
            min_vertical=int(os.getenv("REGION_ECONOMY_MIN_VERTICAL", "20")),
        ),
        vertical_expand=VerticalExpandConfig(
            enabled=_env_bool("REGION_ECONOMY_VERTICAL_EXPAND", False),
        ),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            json_output=_env_bool("LOG_JSON", True),
        ),
    )

    logger.info(
        f"Loaded EconomyConfig: enabled={config.enabled}, "
        f"horizontal={config.horizontal_price}, vertical={config.vertical_price}, "
        f"tiers={len(config.price_permissions)}"
    )
    return config
