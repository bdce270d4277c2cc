"""
Pending Action Store — one open quote per actor, with automatic expiry.

Every stored action gets its own scheduled expiry. The expiry callback only
removes the slot if it still holds the exact entry it was scheduled for, so
a confirm or re-quote that replaced the entry just before the timer fired
is never undone by the stale timer.
"""
import dataclasses
import logging
import threading
import time
from typing import Callable, Dict, Optional

from .interfaces import CancelHandle, Scheduler
from .results import PendingAction

logger = logging.getLogger(__name__)


class _Entry:
    """Slot contents: the action plus its expiry handle. Compared by identity."""

    __slots__ = ("action", "handle")

    def __init__(self, action: PendingAction, handle: Optional[CancelHandle] = None):
        self.action = action
        self.handle = handle

    def cancel_expiry(self) -> None:
        if self.handle is not None:
            self.handle.cancel()
            self.handle = None


class PendingActionStore:
    """Thread-safe per-actor single-slot store of pending actions."""

    def __init__(
        self,
        scheduler: Scheduler,
        timeout_seconds: float,
        on_expire: Optional[Callable[[PendingAction], None]] = None,
    ):
        self._scheduler = scheduler
        self.timeout_seconds = timeout_seconds
        self._on_expire = on_expire
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def put(self, actor_id: str, action: PendingAction) -> PendingAction:
        """
        Store ``action`` for ``actor_id``, replacing any previous one.

        The previous entry's expiry is cancelled and a fresh expiry is
        installed. Returns the stored action with ``expires_at`` set.
        """
        stored = dataclasses.replace(action, expires_at=time.time() + self.timeout_seconds)
        entry = _Entry(stored)
        with self._lock:
            previous = self._entries.get(actor_id)
            if previous is not None:
                previous.cancel_expiry()
            entry.handle = self._scheduler.schedule_after(
                self.timeout_seconds, lambda: self._expire(actor_id, entry)
            )
            self._entries[actor_id] = entry
        if previous is not None:
            logger.debug(f"Replaced pending {previous.action.action_kind.value} for {actor_id}")
        return stored

    def get(self, actor_id: str) -> Optional[PendingAction]:
        with self._lock:
            entry = self._entries.get(actor_id)
            return entry.action if entry is not None else None

    def remove(self, actor_id: str) -> Optional[PendingAction]:
        """Remove and cancel the actor's entry. Idempotent."""
        with self._lock:
            entry = self._entries.pop(actor_id, None)
            if entry is None:
                return None
            entry.cancel_expiry()
            return entry.action

    def promote(
        self,
        actor_id: str,
        expected: PendingAction,
        replacement: PendingAction,
    ) -> Optional[PendingAction]:
        """
        Swap ``expected`` for ``replacement`` and stop its expiry.

        Returns the stored replacement, or None when the slot no longer
        holds ``expected``, e.g. because the quote expired or was
        superseded meanwhile.
        """
        stored = dataclasses.replace(replacement, expires_at=None)
        with self._lock:
            entry = self._entries.get(actor_id)
            if entry is None or entry.action is not expected:
                return None
            entry.cancel_expiry()
            self._entries[actor_id] = _Entry(stored)
            return stored

    def discard(self, actor_id: str, expected: PendingAction) -> bool:
        """Remove the actor's entry only if it still holds ``expected``."""
        with self._lock:
            entry = self._entries.get(actor_id)
            if entry is None or entry.action is not expected:
                return False
            del self._entries[actor_id]
            entry.cancel_expiry()
            return True

    def clear(self) -> int:
        """Remove every entry and cancel all expiries. Returns the number removed."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.cancel_expiry()
        if entries:
            logger.info(f"Cleared {len(entries)} pending actions")
        return len(entries)

    def _expire(self, actor_id: str, entry: _Entry) -> None:
        with self._lock:
            if self._entries.get(actor_id) is not entry:
                return
            del self._entries[actor_id]
            entry.handle = None
        logger.debug(f"Pending {entry.action.action_kind.value} for {actor_id} expired")
        if self._on_expire is not None:
            self._on_expire(entry.action)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, actor_id: str) -> bool:
        with self._lock:
            return actor_id in self._entries
