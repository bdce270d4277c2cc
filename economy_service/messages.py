"""
Actor-facing message rendering.

Fills MessagesConfig templates with formatted amounts and block counts.
"""
import logging

from shared.billing import CostInfo

from .config import MessagesConfig

logger = logging.getLogger(__name__)


class Messages:
    """Renders configured templates; a broken template falls back to its raw text."""

    def __init__(self, templates: MessagesConfig, format_currency=None):
        self._templates = templates
        self._format_currency = format_currency or (lambda amount: f"{amount:.2f}")

    def _render(self, key: str, **values) -> str:
        template = getattr(self._templates, key)
        try:
            return template.format(**values)
        except (KeyError, IndexError, ValueError) as e:
            logger.warning(f"Message template '{key}' could not be rendered: {e}")
            return template

    def _money(self, amount: float) -> str:
        return self._format_currency(amount)

    def economy_not_available(self) -> str:
        return self._render("economy_not_available")

    def insufficient_funds(self, required: float, balance: float) -> str:
        return self._render(
            "insufficient_funds",
            required=self._money(required),
            balance=self._money(balance),
        )

    def insufficient_funds_detailed(self, cost: CostInfo, balance: float) -> str:
        return self._render(
            "insufficient_funds_detailed",
            total_cost=self._money(cost.total_cost),
            horizontal_cost=self._money(cost.horizontal_cost),
            vertical_cost=self._money(cost.vertical_cost),
            horizontal_blocks=cost.horizontal_blocks,
            vertical_blocks=cost.vertical_blocks,
            balance=self._money(balance),
        )

    def confirmation_required(self, cost: CostInfo, balance: float, timeout_seconds: float) -> str:
        return self._render(
            "confirmation_required",
            total_cost=self._money(cost.total_cost),
            horizontal_cost=self._money(cost.horizontal_cost),
            vertical_cost=self._money(cost.vertical_cost),
            horizontal_blocks=cost.horizontal_blocks,
            vertical_blocks=cost.vertical_blocks,
            balance=self._money(balance),
            timeout=f"{timeout_seconds:g}",
        )

    def payment_processed(self, cost: CostInfo) -> str:
        return self._render(
            "payment_processed",
            total_amount=self._money(cost.total_cost),
            horizontal_amount=self._money(cost.horizontal_cost),
            vertical_amount=self._money(cost.vertical_cost),
            horizontal_blocks=cost.horizontal_blocks,
            vertical_blocks=cost.vertical_blocks,
        )

    def payment_failed_after_command(self, required: float, balance: float) -> str:
        return self._render(
            "payment_failed_after_command",
            required=self._money(required),
            balance=self._money(balance),
        )

    def no_pending_action(self) -> str:
        return self._render("no_pending_action")

    def action_cancelled(self) -> str:
        return self._render("action_cancelled")

    def selection_changed(self) -> str:
        return self._render("selection_changed")

    def selection_lost(self) -> str:
        return self._render("selection_lost")

    def region_too_small(self, size_x: int, size_y: int, size_z: int,
                         min_horizontal: int, min_vertical: int) -> str:
        return self._render(
            "region_too_small",
            current_x=size_x,
            current_y=size_y,
            current_z=size_z,
            min_x=min_horizontal,
            min_y=min_vertical,
            min_z=min_horizontal,
        )

    def vertical_expansion_applied(self) -> str:
        return self._render("vertical_expansion_applied")

    def claim_usage(self) -> str:
        return self._render("claim_usage")

    def redefine_usage(self) -> str:
        return self._render("redefine_usage")
