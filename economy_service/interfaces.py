"""
Economy service collaborator interfaces.

Provides Protocol-based interfaces so the workflow never depends on a
concrete selection tool, region registry, permission system, economy
provider or scheduler. Anything implementing these methods can be plugged
in.
"""
from typing import Callable, Optional, Protocol, runtime_checkable

from shared.billing import PricingTier, RegionEntry, RegionRegistry
from shared.geometry import Box


class EconomyError(Exception):
    """Base exception for collaborator failures seen by the economy service."""
    pass


class SelectionError(EconomyError):
    """Raised when an actor's selection cannot be read (incomplete or lost)."""
    pass


class WithdrawalError(EconomyError):
    """Raised when the economy provider rejects a withdrawal."""
    pass


@runtime_checkable
class SelectionSource(Protocol):
    """Reads the actor's active 3D selection."""

    def current_selection(self, actor_id: str) -> Optional[Box]:
        """Return the selection, None when there is none; may raise SelectionError."""
        ...


@runtime_checkable
class SelectionEditor(Protocol):
    """Replaces an actor's selection (used by vertical expansion)."""

    def update_selection(self, actor_id: str, box: Box) -> None:
        ...


@runtime_checkable
class PermissionChecker(Protocol):
    def has_permission(self, actor_id: str, permission: str) -> bool:
        ...


@runtime_checkable
class TierSource(Protocol):
    def effective_tier(self, actor_id: str) -> PricingTier:
        ...


@runtime_checkable
class EconomyProvider(Protocol):
    """Balance and withdrawal access for actors."""

    def is_available(self) -> bool:
        ...

    def balance(self, actor_id: str) -> float:
        ...

    def withdraw(self, actor_id: str, amount: float) -> None:
        """Withdraw ``amount``; raise WithdrawalError on failure."""
        ...

    def format_currency(self, amount: float) -> str:
        ...


@runtime_checkable
class CancelHandle(Protocol):
    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    def schedule_after(self, delay_seconds: float, callback: Callable[[], None]) -> CancelHandle:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Delivers plain-text messages to an actor."""

    def notify(self, actor_id: str, message: str) -> None:
        ...


__all__ = [
    "CancelHandle",
    "EconomyError",
    "EconomyProvider",
    "Notifier",
    "PermissionChecker",
    "RegionEntry",
    "RegionRegistry",
    "Scheduler",
    "SelectionEditor",
    "SelectionError",
    "SelectionSource",
    "TierSource",
    "WithdrawalError",
]
