# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Utility functions for bounding store round trips.
"""

import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from os import getpid
from typing import Callable, Optional

import redis

import leaselock
from leaselock.util.exceptions import LockCancelledException, LockDeadlineExceededException


def _new_token() -> str:
    """Generate a fresh ownership token (node ID, process ID and a random UUID)."""
    return f"{uuid.getnode()}:{getpid()}:{uuid.uuid4().hex}"


def _to_ms(seconds: float) -> int:
    """Convert a lease duration in seconds to the whole milliseconds the store expects."""
    if seconds <= 0:
        raise ValueError(f"expiration must be positive, got {seconds}")
    return max(1, int(seconds * 1000))


def wait_future(
    future: Future,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
):
    """Block until ``future`` is done.

    Args:
        future: The future to wait for.
        timeout: Give up after this many seconds. None waits forever.
        cancel: Give up as soon as this event is set.

    Raises:
        LockCancelledException: If ``cancel`` was set first.
        LockDeadlineExceededException: If ``timeout`` expired first.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    poll = leaselock.constants.CANCEL_POLL_INTERVAL
    while True:
        if cancel is not None and cancel.is_set():
            raise LockCancelledException()
        remaining = None if deadline is None else deadline - time.monotonic()
        if remaining is not None and remaining <= 0:
            raise LockDeadlineExceededException()
        if cancel is not None:
            remaining = poll if remaining is None else min(poll, remaining)
        done, _ = wait([future], timeout=remaining)
        if done:
            return


def call_store(
    pool: Optional[ThreadPoolExecutor],
    func: Callable,
    *args,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
):
    """Run one store round trip, bounded by ``timeout`` and ``cancel``.

    The round trip runs on ``pool`` so the caller can stop waiting for it.
    A call still queued when the caller gives up is cancelled; a call that
    already started is not interrupted and finishes in the background.
    Without a bound (or without a pool) it runs in the calling thread.

    Raises:
        LockDeadlineExceededException: If the bound expired, or the client
            socket timed out.
        LockCancelledException: If ``cancel`` was set before the call returned.
    """
    try:
        if pool is None or (timeout is None and cancel is None):
            return func(*args)
        if cancel is not None and cancel.is_set():
            raise LockCancelledException()
        future = pool.submit(func, *args)
        try:
            wait_future(future, timeout, cancel)
        except (LockDeadlineExceededException, LockCancelledException):
            future.cancel()
            raise
        return future.result()
    except redis.exceptions.TimeoutError as e:
        raise LockDeadlineExceededException() from e
