# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Entry point for acquiring locks.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import leaselock
from leaselock.client.log import logger
from leaselock.core.lock.base import ScriptExecutor
from leaselock.core.lock.lease import Lock
from leaselock.core.lock.retry import RetryPolicy
from leaselock.core.lock.utils import _new_token, _to_ms, call_store
from leaselock.util.exceptions import (
    LockCancelledException,
    LockDeadlineExceededException,
    LockedException,
    LockRetryExhaustedException,
)


class LockClient:
    """Acquires locks through a ``ScriptExecutor``.

    Example:
        >>> import redis
        >>> client = LockClient(RedisScriptExecutor(redis.Redis()))
        >>> lock = client.lock("orders", expiration=30,
        ...                    retry=RetryPolicy(interval=0.1, max_retries=20))
        >>> try:
        ...     # Critical section
        ...     pass
        ... finally:
        ...     lock.unlock()

    Args:
        executor: The atomic store operations to use.
        max_workers: Size of the pool that runs time-bounded round trips
            (default: ``leaselock.constants.STORE_CALL_WORKERS``).
    """

    def __init__(self, executor: ScriptExecutor, max_workers: Optional[int] = None):
        self.executor = executor
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or leaselock.constants.STORE_CALL_WORKERS,
            thread_name_prefix="leaselock-store",
        )

    def __enter__(self):
        return self

    def __exit__(self, *args, **kwargs):
        self.close()

    def close(self):
        """Shut down the worker pool. Locks created by this client stop working."""
        self._pool.shutdown(wait=True)

    def _new_lock(self, key: str, token: str, expiration: float) -> Lock:
        return Lock(self.executor, key, token, expiration, pool=self._pool)

    def try_lock(self, key: str, expiration: Optional[float] = None) -> Lock:
        """Make a single attempt to acquire ``key``.

        Args:
            key: The key to lock.
            expiration: Lease duration in seconds
                (default: ``leaselock.constants.DEFAULT_LOCK_EXPIRATION``).

        Returns:
            The acquired lock.

        Raises:
            LockedException: If the key is held by someone else.
        """
        if expiration is None:
            expiration = leaselock.constants.DEFAULT_LOCK_EXPIRATION
        token = _new_token()
        if not self.executor.acquire(key, token, _to_ms(expiration)):
            raise LockedException(key)
        logger.debug(f"Acquired lock '{key}'")
        return self._new_lock(key, token, expiration)

    def lock(
        self,
        key: str,
        expiration: Optional[float] = None,
        retry: Optional[RetryPolicy] = None,
        attempt_timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Lock:
        """Acquire ``key``, retrying while it is held by someone else.

        Each attempt is bounded by ``attempt_timeout``. An attempt that times
        out or finds the key held consumes one retry; any other store error
        is raised at once. All attempts of one call use the same token.

        Args:
            key: The key to lock.
            expiration: Lease duration in seconds
                (default: ``leaselock.constants.DEFAULT_LOCK_EXPIRATION``).
            retry: A fresh retry policy for this call. A new default policy is
                built when omitted.
            attempt_timeout: Bound on each attempt in seconds
                (default: ``leaselock.constants.DEFAULT_ATTEMPT_TIMEOUT``).
            cancel: Setting this event aborts the call.

        Returns:
            The acquired lock.

        Raises:
            LockRetryExhaustedException: If the retry policy ran out.
            LockCancelledException: If ``cancel`` was set.
        """
        if expiration is None:
            expiration = leaselock.constants.DEFAULT_LOCK_EXPIRATION
        if retry is None:
            retry = RetryPolicy(
                leaselock.constants.DEFAULT_RETRY_INTERVAL,
                leaselock.constants.DEFAULT_MAX_RETRIES,
            )
        if attempt_timeout is None:
            attempt_timeout = leaselock.constants.DEFAULT_ATTEMPT_TIMEOUT
        ttl_ms = _to_ms(expiration)
        token = _new_token()
        attempts = 0

        while True:
            attempts += 1
            try:
                acquired = call_store(
                    self._pool, self.executor.acquire, key, token, ttl_ms,
                    timeout=attempt_timeout, cancel=cancel,
                )
            except LockDeadlineExceededException:
                logger.debug(f"Attempt {attempts} on lock '{key}' timed out")
                acquired = False

            if acquired:
                logger.debug(f"Acquired lock '{key}' after {attempts} attempts")
                return self._new_lock(key, token, expiration)

            interval, keep_going = retry.next()
            if not keep_going:
                raise LockRetryExhaustedException(key, attempts)
            if cancel is None:
                time.sleep(interval)
            elif cancel.wait(interval):
                raise LockCancelledException()


def create_lock_client(
    lock_type: Optional[str] = None,
    redis_client=None,
    prefix: Optional[str] = None,
) -> LockClient:
    """Factory function to create a lock client based on configuration.

    Args:
        lock_type: "redis" or "memory". Uses ``leaselock.constants.LOCK_TYPE`` if None.
        redis_client: Redis client instance. Built from the ``REDIS_LOCK_*``
            constants when omitted.
        prefix: Key prefix for the Redis executor.

    Returns:
        A ``LockClient`` on the selected store.

    Raises:
        ValueError: If ``lock_type`` is unknown.
    """
    if lock_type is None:
        lock_type = getattr(leaselock.constants, 'LOCK_TYPE', 'redis')

    if lock_type == "redis":
        if redis_client is None:
            import redis
            redis_client = redis.Redis(
                host=getattr(leaselock.constants, 'REDIS_LOCK_HOST', 'localhost'),
                port=getattr(leaselock.constants, 'REDIS_LOCK_PORT', 6379),
                db=getattr(leaselock.constants, 'REDIS_LOCK_DB', 0),
                password=getattr(leaselock.constants, 'REDIS_LOCK_PASSWORD', None),
            )
        from leaselock.core.lock.redis_lock import RedisScriptExecutor
        return LockClient(RedisScriptExecutor(redis_client, prefix=prefix))
    if lock_type == "memory":
        from leaselock.core.lock.memory_lock import MemoryScriptExecutor
        return LockClient(MemoryScriptExecutor())
    raise ValueError(f"Unknown lock type: {lock_type}")
