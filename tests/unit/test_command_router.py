"""
Unit tests for economy_service.command_router.RegionCommandRouter.

Tests sub-command dispatch, the claim -> confirm -> execute -> settle flow,
rollback when payment fails after the region change, and the selection
limits and vertical expansion hooks.
"""

import pytest

from shared.billing import ActionKind
from shared.geometry import Box
from economy_service.command_router import RegionCommandRouter
from economy_service.config import BlockLimitsConfig, EconomyConfig, VerticalExpandConfig
from economy_service.limits import BlockLimits, VerticalExpander
from economy_service.results import Allow, AwaitingConfirmation, Deny, DenyReason, TransactionState


@pytest.fixture
def router(workflow, executor, selections, notifier):
    return RegionCommandRouter(workflow, executor, selections, notifier=notifier)


class TestDispatch:
    """Tests for routing sub-commands."""

    def test_unknown_subcommand_passes_through(self, router, executor):
        outcome = router.handle("steve", ["info", "home"])
        assert outcome.result == Allow()
        assert outcome.executed and outcome.succeeded
        assert executor.executed == [("steve", ("info", "home"))]

    def test_empty_args_pass_through(self, router, executor):
        router.handle("steve", [])
        assert executor.executed == [("steve", ())]

    def test_claim_without_region_shows_usage(self, router, executor, notifier):
        outcome = router.handle("steve", ["claim"])
        assert outcome.result.reason == DenyReason.USAGE
        assert notifier.messages_for("steve") == ["Usage: claim <region>"]
        assert executor.executed == []

    def test_subcommands_are_case_insensitive(self, router, selections, home_box):
        selections.set("steve", home_box)
        outcome = router.handle("steve", ["CLAIM", "home"])
        assert isinstance(outcome.result, AwaitingConfirmation)

    @pytest.mark.parametrize("alias", ["redefine", "update", "move"])
    def test_redefine_aliases(self, alias, router, workflow, registry, selections, home_box):
        registry.add("home", home_box)
        selections.set("steve", Box(0, 0, 0, 19, 4, 9))
        outcome = router.handle("steve", [alias, "home"])
        assert isinstance(outcome.result, AwaitingConfirmation)
        assert workflow.pending("steve").action_kind == ActionKind.REDEFINE


class TestPricedFlow:
    """Tests for quoting, confirming and settling through the router."""

    def test_free_claim_executes_immediately(self, make_workflow, executor, selections, home_box):
        router = RegionCommandRouter(make_workflow(EconomyConfig(enabled=False)), executor, selections)
        selections.set("steve", home_box)
        outcome = router.handle("steve", ["claim", "home"])
        assert outcome.result == Allow()
        assert outcome.executed
        assert executor.executed == [("steve", ("claim", "home"))]

    def test_priced_claim_waits_for_confirm(self, router, executor, selections, home_box):
        selections.set("steve", home_box)
        outcome = router.handle("steve", ["claim", "home"])
        assert isinstance(outcome.result, AwaitingConfirmation)
        assert not outcome.executed
        assert executor.executed == []

    def test_confirm_executes_and_charges(self, router, executor, economy, selections, home_box):
        selections.set("steve", home_box)
        router.handle("steve", ["claim", "home"])
        outcome = router.handle("steve", ["confirm"])
        assert outcome.result == Allow()
        assert outcome.executed and outcome.succeeded
        assert executor.executed == [("steve", ("claim", "home"))]
        assert economy.withdrawals == [("steve", pytest.approx(300.0))]

    def test_failed_execution_charges_nothing(self, router, executor, economy, workflow, selections, home_box):
        executor.succeed = False
        selections.set("steve", home_box)
        router.handle("steve", ["claim", "home"])
        outcome = router.handle("steve", ["confirm"])
        assert outcome.executed and not outcome.succeeded
        assert economy.withdrawals == []
        assert workflow.pending("steve") is None

    def test_payment_failure_rolls_back(self, router, executor, economy, selections, home_box):
        selections.set("steve", home_box)
        router.handle("steve", ["claim", "home"])
        economy.fail_withdrawals = True
        outcome = router.handle("steve", ["confirm"])
        assert isinstance(outcome.result, Deny)
        assert outcome.result.reason == DenyReason.SETTLEMENT_FAILED
        assert outcome.rolled_back
        assert executor.rollbacks == [("steve", ActionKind.CLAIM, "home")]

    def test_executor_error_releases_confirmed_quote(self, router, executor, economy, workflow, selections, home_box):
        selections.set("steve", home_box)
        router.handle("steve", ["claim", "home"])
        executor.error = RuntimeError("region backend down")
        with pytest.raises(RuntimeError, match="region backend down"):
            router.handle("steve", ["confirm"])
        assert workflow.pending("steve") is None
        assert economy.withdrawals == []

        executor.error = None
        assert isinstance(router.handle("steve", ["claim", "home"]).result, AwaitingConfirmation)
        assert router.handle("steve", ["confirm"]).result == Allow()

    def test_confirm_without_quote(self, router, executor, notifier):
        outcome = router.handle("steve", ["confirm"])
        assert outcome.result.reason == DenyReason.NO_PENDING_ACTION
        assert notifier.messages_for("steve") == ["You have no pending action to confirm."]
        assert executor.executed == []

    def test_cancel(self, router, workflow, selections, home_box):
        selections.set("steve", home_box)
        router.handle("steve", ["claim", "home"])
        outcome = router.handle("steve", ["cancel"])
        assert outcome.result.reason == DenyReason.ACTION_CANCELLED
        assert workflow.pending("steve") is None

    def test_insufficient_funds_notifies(self, router, economy, notifier, selections, home_box):
        economy.balances["steve"] = 1.0
        selections.set("steve", home_box)
        outcome = router.handle("steve", ["claim", "home"])
        assert outcome.result.reason == DenyReason.INSUFFICIENT_FUNDS
        assert "Insufficient funds" in notifier.messages_for("steve")[-1]


class TestSelectionFeatures:
    """Tests for limits and vertical expansion inside the router."""

    def test_too_small_selection_denied_before_quote(
        self, workflow, executor, selections, permissions, notifier,
    ):
        limits = BlockLimits(BlockLimitsConfig(), permissions, workflow.messages)
        router = RegionCommandRouter(workflow, executor, selections, limits=limits, notifier=notifier)
        selections.set("steve", Box(0, 0, 0, 9, 29, 29))
        outcome = router.handle("steve", ["claim", "home"])
        assert outcome.result.reason == DenyReason.REGION_TOO_SMALL
        assert workflow.pending("steve") is None
        assert "too small" in notifier.messages_for("steve")[-1]

    def test_claim_priced_after_vertical_expansion(
        self, workflow, executor, economy, selections, notifier, home_box,
    ):
        economy.balances["steve"] = 100_000.0
        expander = VerticalExpander(
            VerticalExpandConfig(enabled=True, world_min_y=-64, world_max_y=319),
            selections, selections, workflow.messages, notifier,
        )
        router = RegionCommandRouter(workflow, executor, selections, expander=expander)
        selections.set("steve", home_box)
        outcome = router.handle("steve", ["claim", "home"])
        assert isinstance(outcome.result, AwaitingConfirmation)
        cost = outcome.result.cost_info
        assert cost.total_volume == 100 * 384
        assert cost.horizontal_blocks == 100
        assert cost.vertical_blocks == 100 * 384 - 100

        confirmed = router.handle("steve", ["confirm"])
        assert confirmed.result == Allow()

    def test_configure_swaps_features(self, router, workflow, selections, permissions):
        router.configure(BlockLimits(BlockLimitsConfig(), permissions, workflow.messages), None)
        selections.set("steve", Box(0, 0, 0, 1, 1, 1))
        assert router.handle("steve", ["claim", "tiny"]).result.reason == DenyReason.REGION_TOO_SMALL

        router.configure(None, None)
        outcome = router.handle("steve", ["claim", "tiny"])
        assert isinstance(outcome.result, AwaitingConfirmation)
        assert workflow.pending("steve").state == TransactionState.QUOTED
