"""
Selection limits — minimum region size and vertical auto-expansion.

Both act on the actor's current selection before it is priced:
- BlockLimits refuses selections that are too thin or too flat.
- VerticalExpander stretches a claim selection to the full world height.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from shared.geometry import Box, InvalidBoxError, expand_vertically

from .config import BlockLimitsConfig, VerticalExpandConfig
from .interfaces import Notifier, PermissionChecker, SelectionEditor, SelectionError, SelectionSource
from .messages import Messages
from .results import DenyReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimitResult:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""


class BlockLimits:
    """Enforces minimum horizontal and vertical selection sizes."""

    def __init__(self, config: BlockLimitsConfig, permissions: PermissionChecker, messages: Messages):
        self._config = config
        self._permissions = permissions
        self._messages = messages

    @property
    def active(self) -> bool:
        return self._config.min_horizontal > 1 or self._config.min_vertical > 1

    def validate(self, actor_id: str, selection: Optional[Box]) -> LimitResult:
        """
        Check ``selection`` against the configured minimums.

        The horizontal minimum applies to the smaller of the X and Z sizes.
        Missing selections pass; pricing deals with them.
        """
        if not self.active or selection is None:
            return LimitResult(allowed=True)
        if self._permissions.has_permission(actor_id, self._config.bypass_permission):
            return LimitResult(allowed=True)

        min_horizontal = min(selection.size_x, selection.size_z)
        if min_horizontal < self._config.min_horizontal or selection.size_y < self._config.min_vertical:
            logger.info(
                f"Selection {selection} of {actor_id} below limits "
                f"({self._config.min_horizontal}h/{self._config.min_vertical}v)"
            )
            return LimitResult(
                allowed=False,
                reason=DenyReason.REGION_TOO_SMALL,
                message=self._messages.region_too_small(
                    selection.size_x, selection.size_y, selection.size_z,
                    self._config.min_horizontal, self._config.min_vertical,
                ),
            )
        return LimitResult(allowed=True)


class VerticalExpander:
    """Expands an actor's selection from world bottom to build limit."""

    def __init__(
        self,
        config: VerticalExpandConfig,
        selections: SelectionSource,
        editor: SelectionEditor,
        messages: Messages,
        notifier: Optional[Notifier] = None,
    ):
        self._config = config
        self._selections = selections
        self._editor = editor
        self._messages = messages
        self._notifier = notifier

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def expand(self, actor_id: str) -> Optional[Box]:
        """Expand the selection; returns the new box, or None when nothing changed."""
        if not self._config.enabled:
            return None
        try:
            selection = self._selections.current_selection(actor_id)
        except (SelectionError, InvalidBoxError) as e:
            logger.debug(f"No selection to expand for {actor_id}: {e}")
            return None
        if selection is None:
            return None

        expanded = expand_vertically(selection, self._config.world_min_y, self._config.world_max_y)
        self._editor.update_selection(actor_id, expanded)
        if self._notifier is not None:
            self._notifier.notify(actor_id, self._messages.vertical_expansion_applied())
        return expanded
