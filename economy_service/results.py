"""
Workflow outcome types.

ProcessResult is a closed union of Allow, Deny and AwaitingConfirmation.
Callers dispatch on it with isinstance checks.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from shared.billing import ActionKind, CostInfo
from shared.geometry import Box


class DenyReason(str, Enum):
    """Standard reasons a request is refused."""
    NO_QUOTE = "no_quote"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    SELECTION_CHANGED = "selection_changed"
    SELECTION_LOST = "selection_lost"
    NO_PENDING_ACTION = "no_pending_action"
    SETTLEMENT_FAILED = "settlement_failed"
    ACTION_CANCELLED = "action_cancelled"
    ECONOMY_UNAVAILABLE = "economy_unavailable"
    REGION_TOO_SMALL = "region_too_small"
    USAGE = "usage"


class TransactionState(str, Enum):
    NONE = "none"
    QUOTED = "quoted"
    CONFIRMING = "confirming"
    SETTLING = "settling"
    SETTLED = "settled"
    SETTLE_FAILED = "settle_failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Allow:
    """Proceed with the external action."""
    pass


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    message: str = ""


@dataclass(frozen=True)
class AwaitingConfirmation:
    """A quote is pending; the actor must confirm or cancel."""
    cost_info: CostInfo


ProcessResult = Union[Allow, Deny, AwaitingConfirmation]


@dataclass(frozen=True)
class PendingAction:
    """
    An open price quote for one actor.

    Attributes:
        actor_id: Actor the quote belongs to
        action_kind: claim or redefine
        args: Raw command arguments, replayed after confirmation
        cost_info: Price at quote time (refreshed on confirm)
        region_name: Target region
        original_selection: Selection snapshot the quote was computed for
        state: QUOTED until confirmed, then SETTLING
        settled: True once settlement has started; a second settle is a no-op
        created_at: Epoch seconds when quoted
        expires_at: Epoch seconds when the quote lapses (None while settling)
    """
    actor_id: str
    action_kind: ActionKind
    cost_info: CostInfo
    region_name: str
    original_selection: Box
    args: Tuple[str, ...] = ()
    state: TransactionState = TransactionState.QUOTED
    settled: bool = False
    created_at: float = field(default_factory=time.time)
    expires_at: Optional[float] = None
