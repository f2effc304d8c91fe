# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
A held lease on a key, with atomic refresh and release.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import leaselock
from leaselock.client.log import logger
from leaselock.core.lock.base import ScriptExecutor
from leaselock.core.lock.utils import _to_ms, call_store
from leaselock.util.exceptions import (
    LockDeadlineExceededException,
    LockNotHeldException,
    LockOwnershipConflictException,
)


class Lock:
    """A lease on ``key`` proven by ``token``.

    Instances are created by ``LockClient`` on a successful acquisition and
    belong to the caller that acquired them. A lock is only valid while the
    store entry still carries ``token``; after a successful ``unlock()`` or
    a failed renewal it must not be used again.

    Example:
        >>> client = LockClient(MemoryScriptExecutor())
        >>> with client.try_lock("orders", expiration=30) as lock:
        ...     lock.start_auto_refresh(interval=10)
        ...     # Critical section
        ...     pass

    Args:
        executor: The store operations the lock was acquired through.
        key: The locked key.
        token: The ownership token written at acquisition.
        expiration: Lease duration in seconds, re-armed by every refresh.
        pool: Worker pool used to bound refresh and release round trips.
    """

    def __init__(
        self,
        executor: ScriptExecutor,
        key: str,
        token: str,
        expiration: float,
        pool: Optional[ThreadPoolExecutor] = None,
    ):
        self.executor = executor
        self.key = key
        self.token = token
        self.expiration = expiration
        self._pool = pool
        self._released = threading.Event()
        self._thread = None
        self.refresh_error: Optional[Exception] = None

    @property
    def ttl_ms(self) -> int:
        return _to_ms(self.expiration)

    @property
    def released(self) -> bool:
        """Whether ``unlock()`` has been called."""
        return self._released.is_set()

    @property
    def active(self) -> bool:
        """Whether the lock is neither released nor lost by the renewal loop."""
        return not self._released.is_set() and self.refresh_error is None

    def __enter__(self):
        return self

    def __exit__(self, *args, **kwargs):
        self.unlock()

    def __repr__(self):
        return f"Lock(key={self.key!r}, expiration={self.expiration})"

    def refresh(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None):
        """Re-arm the lease for another ``expiration`` seconds.

        Args:
            timeout: Bound on the store round trip in seconds.
            cancel: Setting this event stops waiting for the round trip.

        Raises:
            LockNotHeldException: If the key no longer exists.
            LockOwnershipConflictException: If another holder owns the key now.
            LockDeadlineExceededException: If the round trip timed out.
            LockCancelledException: If ``cancel`` was set.
        """
        result = call_store(
            self._pool, self.executor.refresh, self.key, self.token, self.ttl_ms,
            timeout=timeout, cancel=cancel,
        )
        if result is None:
            raise LockNotHeldException(self.key)
        if result == 1:
            raise LockOwnershipConflictException(self.key)

    def unlock(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None):
        """Delete the store entry if it still carries our token.

        The release signal is raised on every path, so a running renewal
        loop stops even when the release itself fails.

        Args:
            timeout: Bound on the store round trip in seconds.
            cancel: Setting this event stops waiting for the round trip.

        Raises:
            LockNotHeldException: If the key is gone or owned by someone else.
            LockCancelledException: If ``cancel`` was set.
        """
        try:
            result = call_store(
                self._pool, self.executor.release, self.key, self.token,
                timeout=timeout, cancel=cancel,
            )
            if not result:
                raise LockNotHeldException(self.key)
            logger.debug(f"Released lock '{self.key}'")
        finally:
            self._released.set()

    def auto_refresh(self, interval: Optional[float] = None, timeout: Optional[float] = None):
        """Refresh the lease every ``interval`` seconds until it is unlocked.

        Ticks are fixed: the time a refresh takes does not push back the next
        one, and ticks missed during a slow refresh are skipped.
        A refresh that times out is retried at once instead of waiting for
        the next tick. Returns when ``unlock()`` is called.

        Args:
            interval: Seconds between refreshes
                (default: ``leaselock.constants.DEFAULT_REFRESH_INTERVAL``).
            timeout: Bound on each refresh round trip
                (default: ``leaselock.constants.DEFAULT_ATTEMPT_TIMEOUT``).

        Raises:
            LockNotHeldException: If the lease expired or was deleted.
            LockOwnershipConflictException: If another holder took the key.
            Exception: Any store error raised by a refresh.
        """
        if interval is None:
            interval = leaselock.constants.DEFAULT_REFRESH_INTERVAL
        if timeout is None:
            timeout = leaselock.constants.DEFAULT_ATTEMPT_TIMEOUT
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        next_tick = time.monotonic() + interval
        while not self._released.wait(max(0.0, next_tick - time.monotonic())):
            while not self._released.is_set():
                try:
                    self.refresh(timeout=timeout)
                    break
                except LockDeadlineExceededException:
                    logger.warning(f"Refreshing lock '{self.key}' timed out, retrying")
                except Exception:
                    if self._released.is_set():
                        return
                    raise
            now = time.monotonic()
            next_tick += interval
            if next_tick <= now:
                next_tick += ((now - next_tick) // interval + 1) * interval

    def start_auto_refresh(
        self,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        lock_lost_callback: Optional[Callable] = None,
    ) -> threading.Thread:
        """Run ``auto_refresh`` on a daemon thread.

        Calling it again while the thread is alive returns the running thread.

        Args:
            interval: Seconds between refreshes.
            timeout: Bound on each refresh round trip.
            lock_lost_callback: Called without arguments if the renewal loop
                stops with an error. The error is kept in ``refresh_error``.

        Returns:
            The renewal thread.
        """
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(
            target=self._lock_loop,
            args=(interval, timeout, lock_lost_callback),
            name=f"leaselock-refresh-{self.key}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def _lock_loop(self, interval, timeout, lock_lost_callback):
        """Background thread body that keeps the lease alive."""
        try:
            self.auto_refresh(interval, timeout)
        except Exception as e:
            self.refresh_error = e
            logger.error(f"Lost lock '{self.key}': {e}")
            if lock_lost_callback:
                lock_lost_callback()
