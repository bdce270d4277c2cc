"""
Transaction Workflow — quote, confirm, and settle region purchases.

State machine per actor:

    NONE -> QUOTED -> CONFIRMING -> SETTLING -> SETTLED | SETTLE_FAILED
                   -> CANCELLED | EXPIRED

Money is only withdrawn after the caller reports that the claim/redefine
actually succeeded. If the withdrawal then fails, settle() returns False and
the caller must roll the external change back.
"""
import dataclasses
import logging
from typing import Optional, Sequence

from shared.billing import ActionKind, CostCalculator, CostInfo, RegionRegistry
from shared.geometry import Box, InvalidBoxError
from shared.observability import LogContext

from .config import EconomyConfig
from .interfaces import (
    EconomyProvider,
    Notifier,
    PermissionChecker,
    Scheduler,
    SelectionError,
    SelectionSource,
    TierSource,
    WithdrawalError,
)
from .messages import Messages
from .pending_store import PendingActionStore
from .results import (
    Allow,
    AwaitingConfirmation,
    Deny,
    DenyReason,
    PendingAction,
    ProcessResult,
    TransactionState,
)

logger = logging.getLogger(__name__)


class TransactionWorkflow:
    """
    Per-actor quote/confirm/settle protocol for region claims and redefinitions.

    Example:
        >>> result = workflow.quote("steve", ActionKind.CLAIM, "home")
        >>> if isinstance(result, AwaitingConfirmation):
        ...     result = workflow.confirm("steve")
        >>> if isinstance(result, Allow):
        ...     ok = registry.claim(...)
        ...     if not workflow.settle("steve", ok):
        ...         registry.rollback(...)
    """

    def __init__(
        self,
        config: EconomyConfig,
        selections: SelectionSource,
        regions: RegionRegistry,
        tiers: TierSource,
        economy: EconomyProvider,
        permissions: PermissionChecker,
        scheduler: Scheduler,
        notifier: Optional[Notifier] = None,
    ):
        self._config = config
        self._selections = selections
        self._tiers = tiers
        self._economy = economy
        self._permissions = permissions
        self._notifier = notifier
        self._calculator = CostCalculator(regions)
        self._messages = Messages(config.messages, economy.format_currency)
        self._store = PendingActionStore(
            scheduler,
            config.confirmation_timeout_seconds,
            on_expire=self._on_expire,
        )

    @property
    def config(self) -> EconomyConfig:
        return self._config

    @property
    def messages(self) -> Messages:
        return self._messages

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def quote(
        self,
        actor_id: str,
        action_kind: ActionKind,
        region_name: str,
        args: Sequence[str] = (),
    ) -> ProcessResult:
        """
        Price a claim/redefine request.

        Returns Allow when the action is free (economy off, exempt actor,
        zero cost, or no quote could be computed), Deny when the actor
        cannot afford it, and AwaitingConfirmation once a quote is stored.
        """
        with LogContext(actor_id=actor_id, action=action_kind.value, region=region_name):
            available = self._economy.is_available()
            if not self._config.enabled or not available:
                if available:
                    return Allow()
                return Deny(DenyReason.ECONOMY_UNAVAILABLE, self._messages.economy_not_available())

            if self._permissions.has_permission(actor_id, self._config.bypass_permission):
                logger.info(f"{actor_id} is exempt from region pricing")
                return Allow()

            self.cancel_pending(actor_id)

            cost = self._calculate_cost(actor_id, action_kind, region_name)
            if cost is None:
                logger.info(f"{DenyReason.NO_QUOTE.value} for {actor_id}, proceeding without payment")
                return Allow()
            if cost.is_free:
                return Allow()

            balance = self._economy.balance(actor_id)
            if balance < cost.total_cost:
                logger.info(
                    f"{actor_id} cannot afford {action_kind.value}: "
                    f"cost={cost.total_cost}, balance={balance}"
                )
                return Deny(
                    DenyReason.INSUFFICIENT_FUNDS,
                    self._messages.insufficient_funds_detailed(cost, balance),
                )

            selection = self._snapshot_selection(actor_id)
            if selection is None:
                return Allow()

            self._store.put(actor_id, PendingAction(
                actor_id=actor_id,
                action_kind=action_kind,
                cost_info=cost,
                region_name=region_name,
                original_selection=selection,
                args=tuple(args),
            ))
            logger.info(
                f"{TransactionState.NONE.value} -> {TransactionState.QUOTED.value}: "
                f"{action_kind.value} '{region_name}' for {actor_id} at {cost.total_cost}"
            )
            self._notify(actor_id, self._messages.confirmation_required(
                cost, balance, self._store.timeout_seconds
            ))
            return AwaitingConfirmation(cost)

    def _calculate_cost(
        self,
        actor_id: str,
        action_kind: ActionKind,
        region_name: str,
    ) -> Optional[CostInfo]:
        """Fresh cost for the actor's current selection, or None when it can't be read or priced."""
        try:
            selection = self._selections.current_selection(actor_id)
        except (SelectionError, InvalidBoxError) as e:
            logger.warning(f"Could not read selection of {actor_id}, not pricing: {e}")
            return None
        if selection is None:
            return None
        try:
            tier = self._tiers.effective_tier(actor_id)
            return self._calculator.quote(action_kind, selection, region_name, tier)
        except Exception as e:
            logger.error(
                f"Pricing {action_kind.value} '{region_name}' for {actor_id} failed, not pricing: {e}",
                exc_info=True,
            )
            return None

    def _snapshot_selection(self, actor_id: str) -> Optional[Box]:
        try:
            return self._selections.current_selection(actor_id)
        except (SelectionError, InvalidBoxError) as e:
            logger.warning(f"Could not snapshot selection of {actor_id}: {e}")
            return None

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    def confirm(self, actor_id: str) -> ProcessResult:
        """
        Confirm the pending quote.

        Revalidates the selection, recomputes the price against the current
        region state and rechecks the balance. Allow means the caller must
        now perform the action and report back through settle().
        """
        with LogContext(actor_id=actor_id):
            action = self._store.get(actor_id)
            if action is None or action.state != TransactionState.QUOTED:
                return Deny(DenyReason.NO_PENDING_ACTION, self._messages.no_pending_action())

            logger.info(f"{TransactionState.QUOTED.value} -> {TransactionState.CONFIRMING.value} for {actor_id}")

            try:
                current = self._selections.current_selection(actor_id)
            except (SelectionError, InvalidBoxError) as e:
                logger.info(f"Selection of {actor_id} lost before confirmation: {e}")
                return self._abort(actor_id, DenyReason.SELECTION_LOST, self._messages.selection_lost())

            if current is None or current != action.original_selection:
                return self._abort(actor_id, DenyReason.SELECTION_CHANGED, self._messages.selection_changed())

            fresh = self._calculate_cost(actor_id, action.action_kind, action.region_name)
            if fresh is None or fresh.is_free:
                self._store.remove(actor_id)
                logger.info(f"Fresh quote for {actor_id} is free, proceeding without payment")
                return Allow()

            balance = self._economy.balance(actor_id)
            if balance < fresh.total_cost:
                return self._abort(
                    actor_id,
                    DenyReason.INSUFFICIENT_FUNDS,
                    self._messages.insufficient_funds(fresh.total_cost, balance),
                )

            settling = dataclasses.replace(action, cost_info=fresh, state=TransactionState.SETTLING)
            if self._store.promote(actor_id, action, settling) is None:
                # Expired or superseded while we were revalidating
                return Deny(DenyReason.NO_PENDING_ACTION, self._messages.no_pending_action())

            logger.info(
                f"{TransactionState.CONFIRMING.value} -> {TransactionState.SETTLING.value}: "
                f"{action.action_kind.value} '{action.region_name}' for {actor_id} at {fresh.total_cost}"
            )
            return Allow()

    def cancel(self, actor_id: str) -> ProcessResult:
        """Explicitly cancel the pending quote. Nothing is charged."""
        action = self._store.remove(actor_id)
        if action is None:
            return Deny(DenyReason.NO_PENDING_ACTION, self._messages.no_pending_action())
        logger.info(f"{action.state.value} -> {TransactionState.CANCELLED.value} for {actor_id}")
        return Deny(DenyReason.ACTION_CANCELLED, self._messages.action_cancelled())

    def cancel_pending(self, actor_id: str) -> None:
        """Silently drop any pending action of ``actor_id``."""
        action = self._store.remove(actor_id)
        if action is not None:
            logger.info(f"Superseded pending {action.action_kind.value} of {actor_id}")

    def _abort(self, actor_id: str, reason: DenyReason, message: str) -> Deny:
        self._store.remove(actor_id)
        logger.info(f"{TransactionState.CONFIRMING.value} -> {TransactionState.CANCELLED.value} for {actor_id}: {reason.value}")
        return Deny(reason, message)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def settle(self, actor_id: str, external_succeeded: bool) -> bool:
        """
        Settle after the external claim/redefine finished.

        Returns False only when the action succeeded but payment could not
        be taken; the caller must then roll the action back.
        """
        with LogContext(actor_id=actor_id):
            current = self._store.get(actor_id)
            if current is None or current.state != TransactionState.SETTLING or current.settled:
                # Nothing confirmed (free, exempt, awaiting confirmation) or already being settled
                return True
            action = self._store.promote(actor_id, current, dataclasses.replace(current, settled=True))
            if action is None:
                return True
            try:
                return self._charge(actor_id, action, external_succeeded)
            finally:
                self._store.discard(actor_id, action)

    def _charge(self, actor_id: str, action: PendingAction, external_succeeded: bool) -> bool:
        if not external_succeeded:
            logger.info(f"External {action.action_kind.value} failed for {actor_id}, nothing charged")
            return True

        cost = action.cost_info
        if cost.total_cost <= 0:
            logger.info(f"{TransactionState.SETTLING.value} -> {TransactionState.SETTLED.value} for {actor_id} (free)")
            return True

        try:
            self._economy.withdraw(actor_id, cost.total_cost)
        except WithdrawalError as e:
            logger.warning(
                f"{TransactionState.SETTLING.value} -> {TransactionState.SETTLE_FAILED.value} "
                f"for {actor_id}: {e}"
            )
            self._notify(actor_id, self._messages.payment_failed_after_command(
                cost.total_cost, self._economy.balance(actor_id)
            ))
            return False

        logger.info(
            f"{TransactionState.SETTLING.value} -> {TransactionState.SETTLED.value}: "
            f"charged {actor_id} {cost.total_cost} for {action.action_kind.value} '{action.region_name}'"
        )
        self._notify(actor_id, self._messages.payment_processed(cost))
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_tier_source(self, tiers: TierSource) -> None:
        self._tiers = tiers

    def pending(self, actor_id: str) -> Optional[PendingAction]:
        return self._store.get(actor_id)

    def reload(self, config: EconomyConfig) -> None:
        """Apply a new configuration; open quotes are dropped."""
        self._store.clear()
        self._config = config
        self._messages = Messages(config.messages, self._economy.format_currency)
        self._store.timeout_seconds = config.confirmation_timeout_seconds
        logger.info(
            f"Economy workflow reloaded: enabled={config.enabled}, "
            f"timeout={config.confirmation_timeout_seconds}s"
        )

    def shutdown(self) -> None:
        self._store.clear()

    def _on_expire(self, action: PendingAction) -> None:
        logger.info(
            f"{TransactionState.QUOTED.value} -> {TransactionState.EXPIRED.value}: "
            f"{action.action_kind.value} '{action.region_name}' for {action.actor_id}"
        )

    def _notify(self, actor_id: str, message: str) -> None:
        if self._notifier is not None:
            self._notifier.notify(actor_id, message)
