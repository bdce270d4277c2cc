"""
Shared pytest fixtures for region economy tests.

Provides fixtures for:
- In-memory selection, region, permission and economy collaborators
- A manually driven scheduler for deterministic expiry tests
- Recording notifier and action executor
- A ready TransactionWorkflow wired to all of the above
- Logging capture
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from shared.billing import ActionKind, RegionEntry, TierResolver
from shared.geometry import Box
from economy_service.config import BlockLimitsConfig, EconomyConfig
from economy_service.interfaces import SelectionError, WithdrawalError
from economy_service.workflow import TransactionWorkflow


# ============================================================================
# Logging Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Configure logging for all tests."""
    caplog.set_level(logging.DEBUG)
    return caplog


# ============================================================================
# Fake Collaborators
# ============================================================================

class FakeSelections:
    """Selection source/editor backed by a dict. Store an exception to make reads fail."""

    def __init__(self):
        self.selections: Dict[str, object] = {}
        self.updates: List[Tuple[str, Box]] = []

    def set(self, actor_id: str, value) -> None:
        self.selections[actor_id] = value

    def current_selection(self, actor_id: str) -> Optional[Box]:
        value = self.selections.get(actor_id)
        if isinstance(value, Exception):
            raise value
        return value

    def update_selection(self, actor_id: str, box: Box) -> None:
        self.updates.append((actor_id, box))
        self.selections[actor_id] = box


class FakeRegistry:
    """Region registry holding named boxes."""

    def __init__(self):
        self.regions: Dict[str, Box] = {}
        self.error: Optional[Exception] = None

    def add(self, name: str, box: Box) -> None:
        self.regions[name] = box

    def regions_overlapping(self, box: Box) -> List[RegionEntry]:
        if self.error is not None:
            raise self.error
        return [
            RegionEntry(name, region)
            for name, region in self.regions.items()
            if box.intersect(region) is not None
        ]

    def region_bounds(self, name: str) -> Optional[Box]:
        return self.regions.get(name)


class FakePermissions:
    def __init__(self):
        self.granted: Dict[str, Set[str]] = {}

    def grant(self, actor_id: str, permission: str) -> None:
        self.granted.setdefault(actor_id, set()).add(permission)

    def has_permission(self, actor_id: str, permission: str) -> bool:
        return permission in self.granted.get(actor_id, set())


class FakeEconomy:
    """Economy provider with per-actor balances and a withdrawal failure switch."""

    def __init__(self):
        self.available = True
        self.fail_withdrawals = False
        self.balances: Dict[str, float] = {}
        self.withdrawals: List[Tuple[str, float]] = []

    def is_available(self) -> bool:
        return self.available

    def balance(self, actor_id: str) -> float:
        return self.balances.get(actor_id, 0.0)

    def withdraw(self, actor_id: str, amount: float) -> None:
        if self.fail_withdrawals:
            raise WithdrawalError(f"bank refused withdrawal of {amount}")
        self.balances[actor_id] = self.balance(actor_id) - amount
        self.withdrawals.append((actor_id, amount))

    def format_currency(self, amount: float) -> str:
        return f"${amount:.2f}"


class ManualHandle:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose callbacks only run when the test fires them."""

    def __init__(self):
        self.handles: List[ManualHandle] = []

    def schedule_after(self, delay_seconds: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(delay_seconds, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> List[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire(self, handle: ManualHandle, force: bool = False) -> None:
        """Run one callback; ``force`` simulates a timer that already started before cancel."""
        if handle.fired or (handle.cancelled and not force):
            return
        handle.fired = True
        handle.callback()

    def fire_all(self) -> int:
        live = self.live
        for handle in live:
            self.fire(handle)
        return len(live)


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def notify(self, actor_id: str, message: str) -> None:
        self.sent.append((actor_id, message))

    def messages_for(self, actor_id: str) -> List[str]:
        return [message for actor, message in self.sent if actor == actor_id]


class RecordingExecutor:
    """Action executor that records commands and rollbacks."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.error: Optional[Exception] = None
        self.executed: List[Tuple[str, Tuple[str, ...]]] = []
        self.rollbacks: List[Tuple[str, ActionKind, str]] = []

    def execute(self, actor_id: str, args: Sequence[str]) -> bool:
        self.executed.append((actor_id, tuple(args)))
        if self.error is not None:
            raise self.error
        return self.succeed

    def rollback(self, actor_id: str, kind: ActionKind, region_name: str) -> None:
        self.rollbacks.append((actor_id, kind, region_name))


# ============================================================================
# Collaborator Fixtures
# ============================================================================

# Footprint 100, volume 500, vertical blocks 400.
HOME_BOX = Box(0, 0, 0, 9, 4, 9)


@pytest.fixture
def home_box() -> Box:
    return HOME_BOX


@pytest.fixture
def selections() -> FakeSelections:
    return FakeSelections()


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def permissions() -> FakePermissions:
    return FakePermissions()


@pytest.fixture
def economy() -> FakeEconomy:
    economy = FakeEconomy()
    economy.balances["steve"] = 1000.0
    return economy


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


# ============================================================================
# Workflow Fixtures
# ============================================================================

@pytest.fixture
def economy_config() -> EconomyConfig:
    """Enabled economy at 1.0 per footprint block and 0.5 per vertical block, no size limits."""
    return EconomyConfig(
        enabled=True,
        horizontal_price=1.0,
        vertical_price=0.5,
        confirmation_timeout_seconds=30,
        limits=BlockLimitsConfig(min_horizontal=0, min_vertical=0),
    )


@pytest.fixture
def make_workflow(selections, registry, permissions, economy, scheduler, notifier):
    """Factory building a TransactionWorkflow over the fake collaborators."""
    def _make(config: EconomyConfig) -> TransactionWorkflow:
        tiers = TierResolver(
            default_tier=config.default_tier,
            price_permissions=config.price_permissions,
            has_permission=permissions.has_permission,
            permission_prefix=config.pricing_permission_prefix,
        )
        return TransactionWorkflow(
            config=config,
            selections=selections,
            regions=registry,
            tiers=tiers,
            economy=economy,
            permissions=permissions,
            scheduler=scheduler,
            notifier=notifier,
        )
    return _make


@pytest.fixture
def workflow(make_workflow, economy_config) -> TransactionWorkflow:
    return make_workflow(economy_config)


@pytest.fixture
def lost_selection() -> SelectionError:
    return SelectionError("selection incomplete")
