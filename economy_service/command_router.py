"""
Region command router — wraps region sub-commands with pricing.

Sub-commands:
- claim <region>                       priced as a new region
- redefine|update|move <region>         priced as net growth of an existing region
- confirm / cancel                      answer a pending quote
- anything else                         passed through to the executor

The executor performs the real claim/redefine outside this service. After
it reports success the router settles the payment, and if payment fails it
asks the executor to roll the change back.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Sequence

from shared.billing import ActionKind
from shared.geometry import InvalidBoxError

from .interfaces import Notifier, SelectionError, SelectionSource
from .limits import BlockLimits, VerticalExpander
from .results import Allow, AwaitingConfirmation, Deny, DenyReason, ProcessResult
from .workflow import TransactionWorkflow

logger = logging.getLogger(__name__)

SUBCOMMAND_KINDS: Dict[str, ActionKind] = {
    "claim": ActionKind.CLAIM,
    "redefine": ActionKind.REDEFINE,
    "update": ActionKind.REDEFINE,
    "move": ActionKind.REDEFINE,
}


class ActionExecutor(Protocol):
    """Performs region commands against the real region registry."""

    def execute(self, actor_id: str, args: Sequence[str]) -> bool:
        """Run the command; True when it succeeded."""
        ...

    def rollback(self, actor_id: str, kind: ActionKind, region_name: str) -> None:
        """Undo a claim/redefine whose payment could not be taken."""
        ...


@dataclass(frozen=True)
class CommandOutcome:
    result: ProcessResult
    executed: bool = False
    succeeded: bool = False
    rolled_back: bool = False


class RegionCommandRouter:
    """Routes region sub-commands through the transaction workflow."""

    def __init__(
        self,
        workflow: TransactionWorkflow,
        executor: ActionExecutor,
        selections: SelectionSource,
        limits: Optional[BlockLimits] = None,
        expander: Optional[VerticalExpander] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._workflow = workflow
        self._executor = executor
        self._selections = selections
        self._limits = limits
        self._expander = expander
        self._notifier = notifier

    def configure(self, limits: Optional[BlockLimits], expander: Optional[VerticalExpander]) -> None:
        """Swap the selection features, e.g. after a config reload."""
        self._limits = limits
        self._expander = expander

    def handle(self, actor_id: str, args: Sequence[str]) -> CommandOutcome:
        if not args:
            return self._pass_through(actor_id, args)

        subcommand = args[0].lower()
        if subcommand == "confirm":
            return self._handle_confirm(actor_id)
        if subcommand == "cancel":
            return self._deliver(actor_id, CommandOutcome(self._workflow.cancel(actor_id)))

        kind = SUBCOMMAND_KINDS.get(subcommand)
        if kind is None:
            return self._pass_through(actor_id, args)
        return self._handle_priced(actor_id, kind, args)

    def _handle_priced(self, actor_id: str, kind: ActionKind, args: Sequence[str]) -> CommandOutcome:
        messages = self._workflow.messages
        if len(args) < 2:
            usage = messages.claim_usage() if kind == ActionKind.CLAIM else messages.redefine_usage()
            return self._deliver(actor_id, CommandOutcome(Deny(DenyReason.USAGE, usage)))

        region_name = args[1]
        self._workflow.cancel_pending(actor_id)

        if kind == ActionKind.CLAIM and self._expander is not None:
            self._expander.expand(actor_id)

        denied = self._check_limits(actor_id)
        if denied is not None:
            return self._deliver(actor_id, CommandOutcome(denied))

        result = self._workflow.quote(actor_id, kind, region_name, args)
        if isinstance(result, Allow):
            return self._run_and_settle(actor_id, kind, region_name, args)
        if isinstance(result, AwaitingConfirmation):
            return CommandOutcome(result)
        return self._deliver(actor_id, CommandOutcome(result))

    def _handle_confirm(self, actor_id: str) -> CommandOutcome:
        action = self._workflow.pending(actor_id)
        result = self._workflow.confirm(actor_id)
        if not isinstance(result, Allow) or action is None:
            return self._deliver(actor_id, CommandOutcome(result))

        if action.action_kind == ActionKind.CLAIM and self._expander is not None:
            self._expander.expand(actor_id)
        args = action.args or (action.action_kind.value, action.region_name)
        return self._run_and_settle(actor_id, action.action_kind, action.region_name, args)

    def _run_and_settle(
        self,
        actor_id: str,
        kind: ActionKind,
        region_name: str,
        args: Sequence[str],
    ) -> CommandOutcome:
        try:
            succeeded = self._executor.execute(actor_id, args)
        except Exception:
            logger.error(f"{kind.value} '{region_name}' for {actor_id} raised, releasing its quote")
            self._workflow.settle(actor_id, False)
            raise
        if self._workflow.settle(actor_id, succeeded):
            return CommandOutcome(Allow(), executed=True, succeeded=succeeded)

        logger.warning(f"Rolling back {kind.value} '{region_name}' for {actor_id}: payment failed")
        self._executor.rollback(actor_id, kind, region_name)
        return CommandOutcome(
            Deny(DenyReason.SETTLEMENT_FAILED),
            executed=True,
            succeeded=succeeded,
            rolled_back=True,
        )

    def _check_limits(self, actor_id: str) -> Optional[Deny]:
        if self._limits is None or not self._limits.active:
            return None
        try:
            selection = self._selections.current_selection(actor_id)
        except (SelectionError, InvalidBoxError):
            return None
        verdict = self._limits.validate(actor_id, selection)
        if verdict.allowed:
            return None
        return Deny(verdict.reason, verdict.message)

    def _pass_through(self, actor_id: str, args: Sequence[str]) -> CommandOutcome:
        succeeded = self._executor.execute(actor_id, args)
        return CommandOutcome(Allow(), executed=True, succeeded=succeeded)

    def _deliver(self, actor_id: str, outcome: CommandOutcome) -> CommandOutcome:
        if isinstance(outcome.result, Deny) and outcome.result.message and self._notifier is not None:
            self._notifier.notify(actor_id, outcome.result.message)
        return outcome
