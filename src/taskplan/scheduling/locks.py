from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class RunInProgressError(RuntimeError):
    """Raised when a user's scheduling run could not start within the timeout."""


class UserRunLocks:
    """
    One lock per user so that scheduling runs for the same user never overlap.
    Runs for different users do not contend.

    A user's lock lives only while some thread holds it or waits for it, so
    the map stays as small as the number of users with runs in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._refs: dict[str, int] = {}
        self._guard = threading.Lock()

    def _checkout(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            self._refs[user_id] = self._refs.get(user_id, 0) + 1
            return lock

    def _checkin(self, user_id: str) -> None:
        with self._guard:
            self._refs[user_id] -= 1
            if self._refs[user_id] == 0:
                del self._refs[user_id]
                del self._locks[user_id]

    @contextmanager
    def hold(self, user_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        lock = self._checkout(user_id)
        try:
            acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
            if not acquired:
                raise RunInProgressError(
                    f"A scheduling run for user {user_id!r} is still in progress."
                )
            logger.debug("Acquired scheduling lock for user %s", user_id)
            try:
                yield
            finally:
                lock.release()
                logger.debug("Released scheduling lock for user %s", user_id)
        finally:
            self._checkin(user_id)

    def is_running(self, user_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
