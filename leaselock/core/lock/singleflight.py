# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Per-process deduplication of concurrent acquisitions of the same key.

Concurrent ``lock()`` calls on one coordinator for the same key share a
single acquisition. Every caller receives a ``SharedLock`` handle on the
same lease; the lease is reference counted and released in the store only
when its last handle unlocks.
"""

import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional

import leaselock
from leaselock.client.log import logger
from leaselock.core.lock.client import LockClient
from leaselock.core.lock.lease import Lock
from leaselock.core.lock.retry import RetryPolicy
from leaselock.core.lock.utils import wait_future
from leaselock.util.exceptions import LockCancelledException, LockException, LockNotHeldException


class SharedLock:
    """One caller's reference to a lease shared through a coordinator."""

    def __init__(self, coordinator: "SingleflightCoordinator", lease: Lock):
        self._coordinator = coordinator
        self.lease = lease
        self._released = False
        self._mutex = threading.Lock()

    @property
    def key(self) -> str:
        return self.lease.key

    @property
    def token(self) -> str:
        return self.lease.token

    @property
    def expiration(self) -> float:
        return self.lease.expiration

    @property
    def active(self) -> bool:
        return not self._released and self.lease.active

    def __enter__(self):
        return self

    def __exit__(self, *args, **kwargs):
        self.unlock()

    def __repr__(self):
        return f"SharedLock(key={self.key!r}, released={self._released})"

    def refresh(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None):
        if self._released:
            raise LockNotHeldException(self.key)
        self.lease.refresh(timeout=timeout, cancel=cancel)

    def start_auto_refresh(
        self,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        lock_lost_callback: Optional[Callable] = None,
    ) -> threading.Thread:
        """Start (or join) the renewal thread of the shared lease."""
        return self.lease.start_auto_refresh(interval, timeout, lock_lost_callback)

    def unlock(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None):
        """Drop this handle; the last handle releases the lease in the store.

        Raises:
            LockNotHeldException: If this handle was already unlocked, or the
                store no longer holds the lease when it is finally released.
        """
        with self._mutex:
            if self._released:
                raise LockNotHeldException(self.key)
            self._released = True
        self._coordinator._unref(self.lease, timeout, cancel)


class SingleflightCoordinator:
    """Collapses concurrent acquisitions of a key into one shared lease.

    The first caller for a key (the leader) dispatches ``LockClient.lock``
    on the coordinator's pool. Callers arriving while the dispatch is in
    flight (followers) wait for it to finish and then look again: they join
    the lease if it was acquired, or start their own dispatch if it failed.
    While a lease is active, new callers join it directly.

    Example:
        >>> coordinator = SingleflightCoordinator(client)
        >>> with coordinator.lock("orders", expiration=30) as handle:
        ...     # Critical section shared with concurrent callers of this process
        ...     pass

    Args:
        client: The client that performs the real acquisitions.
        max_workers: Size of the dispatch pool
            (default: ``leaselock.constants.STORE_CALL_WORKERS``).
    """

    def __init__(self, client: LockClient, max_workers: Optional[int] = None):
        self.client = client
        self._mutex = threading.Lock()
        self._calls: Dict[str, Future] = {}
        self._leases: Dict[str, Lock] = {}
        self._refs: Dict[str, int] = defaultdict(int)
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or leaselock.constants.STORE_CALL_WORKERS,
            thread_name_prefix="leaselock-singleflight",
        )

    def close(self):
        self._pool.shutdown(wait=True)

    def holders(self, key: str) -> int:
        """Number of live handles on the lease of ``key``."""
        with self._mutex:
            return self._refs.get(key, 0)

    def lock(
        self,
        key: str,
        expiration: Optional[float] = None,
        retry: Optional[RetryPolicy] = None,
        attempt_timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> SharedLock:
        """Acquire ``key`` or join an acquisition already made by this process.

        Arguments are those of ``LockClient.lock``; only the leader's values
        are used for the dispatch it triggers.

        Raises:
            LockCancelledException: If ``cancel`` was set while waiting.
            Exception: The dispatch error, for the leader only.
        """
        while True:
            with self._mutex:
                lease = self._leases.get(key)
                if lease is not None and not lease.active:
                    self._leases.pop(key, None)
                    self._refs.pop(key, None)
                    lease = None
                if lease is not None:
                    self._refs[key] += 1
                    logger.debug(f"Joined shared lock '{key}' ({self._refs[key]} holders)")
                    return SharedLock(self, lease)
                future = self._calls.get(key)
                leader = future is None
                if leader:
                    future = self._pool.submit(
                        self._dispatch, key, expiration, retry, attempt_timeout, cancel
                    )
                    self._calls[key] = future

            try:
                wait_future(future, cancel=cancel)
            except LockCancelledException:
                if leader:
                    future.add_done_callback(self._abandon)
                raise

            if leader:
                return SharedLock(self, future.result())
            # A follower does not take the leader's result; it looks again.

    def _dispatch(self, key, expiration, retry, attempt_timeout, cancel) -> Lock:
        try:
            lease = self.client.lock(key, expiration, retry, attempt_timeout, cancel)
        except Exception:
            with self._mutex:
                self._calls.pop(key, None)
            raise
        with self._mutex:
            self._calls.pop(key, None)
            self._leases[key] = lease
            self._refs[key] = 1
        return lease

    def _abandon(self, future: Future):
        """Give up the reference of a leader that stopped waiting."""
        if future.cancelled() or future.exception() is not None:
            return
        try:
            self._unref(future.result(), None, None)
        except LockException as e:
            logger.warning(f"Releasing abandoned lock failed: {e}")

    def _unref(self, lease: Lock, timeout: Optional[float], cancel: Optional[threading.Event]):
        key = lease.key
        with self._mutex:
            if self._leases.get(key) is lease:
                refs = self._refs[key] - 1
                if refs > 0:
                    self._refs[key] = refs
                    return
                del self._leases[key]
                self._refs.pop(key, None)
        lease.unlock(timeout=timeout, cancel=cancel)
