"""Tests for the read/write lock manager."""

import threading

import pytest

from gradetrack.core.exceptions import ConcurrencyError, ValidationError
from gradetrack.services.concurrency_manager import ConcurrencyManager, LockType, owner_resource


@pytest.fixture
def manager():
    return ConcurrencyManager(default_timeout=1)


class TestConcurrencyManager:
    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            ConcurrencyManager(default_timeout=0)

    def test_owner_resource_key(self):
        assert owner_resource("abc") == "owner:abc"

    def test_write_lock_blocks_other_holder(self, manager):
        manager.acquire_lock("owner:a", LockType.WRITE, holder_id="one")
        with pytest.raises(ConcurrencyError):
            manager.acquire_lock("owner:a", LockType.WRITE, holder_id="two", timeout=0.05)
        with pytest.raises(ConcurrencyError):
            manager.acquire_lock("owner:a", LockType.READ, holder_id="two", timeout=0.05)

    def test_other_resources_are_independent(self, manager):
        manager.acquire_lock("owner:a", LockType.WRITE, holder_id="one")
        assert manager.acquire_lock("owner:b", LockType.WRITE, holder_id="two", timeout=0.05)

    def test_reentrant_for_same_holder(self, manager):
        outer = manager.acquire_lock("owner:a", LockType.WRITE, holder_id="one")
        inner = manager.acquire_lock("owner:a", LockType.WRITE, holder_id="one", timeout=0.05)
        assert outer != inner
        manager.release_lock(inner)
        # the outer lock still keeps others out
        with pytest.raises(ConcurrencyError):
            manager.acquire_lock("owner:a", LockType.WRITE, holder_id="two", timeout=0.05)

    def test_read_locks_are_shared(self, manager):
        manager.acquire_lock("owner:a", LockType.READ, holder_id="one")
        assert manager.acquire_lock("owner:a", LockType.READ, holder_id="two", timeout=0.05)
        with pytest.raises(ConcurrencyError):
            manager.acquire_lock("owner:a", LockType.WRITE, holder_id="three", timeout=0.05)

    def test_release(self, manager):
        lock_id = manager.acquire_lock("owner:a", LockType.WRITE, holder_id="one")
        assert manager.release_lock(lock_id)
        assert not manager.release_lock(lock_id)
        assert manager.acquire_lock("owner:a", LockType.WRITE, holder_id="two", timeout=0.05)

    def test_context_manager_releases_on_error(self, manager):
        with pytest.raises(RuntimeError):
            with manager.lock("owner:a", LockType.WRITE):
                raise RuntimeError("boom")
        assert manager.acquire_lock("owner:a", LockType.WRITE, holder_id="other", timeout=0.05)

    def test_waiter_proceeds_after_release(self, manager):
        """A blocked writer gets the lock once the holder lets go."""
        lock_id = manager.acquire_lock("owner:a", LockType.WRITE, holder_id="one")
        acquired = threading.Event()

        def worker():
            manager.acquire_lock("owner:a", LockType.WRITE, holder_id="two", timeout=5)
            acquired.set()

        thread = threading.Thread(target=worker)
        thread.start()
        assert not acquired.wait(0.1)
        manager.release_lock(lock_id)
        thread.join(5)
        assert acquired.is_set()
