# booking_app/services/booking/resource_lock.py
"""Process-local exclusive locks keyed by staff id"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class StaffLockRegistry:
    """
    One lock per staff member.

    Serializes commit attempts inside this process. Across processes the
    database row lock taken by the commit engine does the same job.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, staff_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(staff_id)
            if lock is None:
                lock = self._locks[staff_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, staff_id: str, timeout: Optional[float] = None):
        """Hold the staff lock; raises TimeoutError when it cannot be taken in time"""
        lock = self._lock_for(staff_id)
        if not lock.acquire(timeout=-1 if timeout is None else timeout):
            logger.warning(f"Timed out waiting for commit lock of staff {staff_id}")
            raise TimeoutError(f"Commit lock for staff {staff_id} not acquired within {timeout}s")
        try:
            yield
        finally:
            lock.release()

    def is_locked(self, staff_id: str) -> bool:
        return self._lock_for(staff_id).locked()
