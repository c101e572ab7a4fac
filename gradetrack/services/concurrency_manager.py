"""
Concurrency management for per-owner write commands.
"""

import logging
import threading
import time
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set

from ..core.exceptions import ConcurrencyError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 10.0


class LockType(Enum):
    """Types of locks available."""
    READ = "read"
    WRITE = "write"


@dataclass
class LockInfo:
    """Information about a held lock."""
    lock_id: str
    resource_id: str
    lock_type: LockType
    holder_id: str
    acquired_at: float


def owner_resource(owner_id: str) -> str:
    """Lock key covering every record of one user."""
    return f"owner:{owner_id}"


class ConcurrencyManager:
    """Resource-keyed read/write locks.

    Readers share a resource, a writer holds it alone. A holder that already
    owns a lock on the resource may take another one, so service commands can
    nest. Acquisition blocks until the resource frees up or the timeout
    passes, which raises ConcurrencyError.
    """

    def __init__(self, default_timeout: float = DEFAULT_LOCK_TIMEOUT):
        if default_timeout <= 0:
            raise ValidationError("Lock timeout must be positive")
        self._default_timeout = default_timeout
        self._locks: Dict[str, Dict[LockType, Set[str]]] = defaultdict(lambda: defaultdict(set))
        self._lock_holders: Dict[str, LockInfo] = {}
        self._lock = threading.RLock()
        self._released = threading.Condition(self._lock)

    def acquire_lock(self, resource_id: str, lock_type: LockType,
                     holder_id: Optional[str] = None, timeout: Optional[float] = None) -> str:
        """Acquire a lock on a resource, waiting at most ``timeout`` seconds."""
        holder_id = holder_id or self._current_holder()
        wait_for = self._default_timeout if timeout is None else timeout
        deadline = time.monotonic() + wait_for

        with self._released:
            while not self._can_acquire_lock(resource_id, lock_type, holder_id):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning("Timed out waiting for %s lock on %s", lock_type.value, resource_id)
                    raise ConcurrencyError(
                        f"Timeout acquiring {lock_type.value} lock on {resource_id}",
                        details={'resource_id': resource_id, 'timeout': wait_for}
                    )
                self._released.wait(remaining)

            lock_id = str(uuid.uuid4())
            self._locks[resource_id][lock_type].add(lock_id)
            self._lock_holders[lock_id] = LockInfo(
                lock_id=lock_id,
                resource_id=resource_id,
                lock_type=lock_type,
                holder_id=holder_id,
                acquired_at=time.time()
            )
            return lock_id

    def release_lock(self, lock_id: str) -> bool:
        """Release a lock."""
        with self._released:
            if lock_id not in self._lock_holders:
                return False

            lock_info = self._lock_holders.pop(lock_id)
            resource_id = lock_info.resource_id
            lock_type = lock_info.lock_type

            self._locks[resource_id][lock_type].discard(lock_id)

            if not self._locks[resource_id][lock_type]:
                del self._locks[resource_id][lock_type]

            if not self._locks[resource_id]:
                del self._locks[resource_id]

            self._released.notify_all()
            return True

    def _can_acquire_lock(self, resource_id: str, lock_type: LockType, holder_id: str) -> bool:
        """Check if a lock can be acquired."""
        if resource_id not in self._locks:
            return True
        existing_locks = self._locks[resource_id]
        holders = {
            self._lock_holders[lock_id].holder_id
            for locks in existing_locks.values() for lock_id in locks
        }

        # Reentrant for a holder that is alone on the resource
        if holders == {holder_id}:
            return True

        if lock_type == LockType.READ:
            return LockType.WRITE not in existing_locks
        return not any(existing_locks.values())

    @staticmethod
    def _current_holder() -> str:
        return f"thread:{threading.get_ident()}"

    @contextmanager
    def lock(self, resource_id: str, lock_type: LockType,
             holder_id: Optional[str] = None, timeout: Optional[float] = None):
        """Context manager for acquiring and releasing locks."""
        lock_id = None
        try:
            lock_id = self.acquire_lock(resource_id, lock_type, holder_id, timeout)
            yield lock_id
        finally:
            if lock_id:
                self.release_lock(lock_id)

