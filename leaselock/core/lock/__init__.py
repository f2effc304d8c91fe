# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Lock module for leaselock.

Provides leases on keys of a shared store: single-shot and retrying
acquisition, atomic refresh and release, background renewal and per-process
deduplication of concurrent acquisitions. Supports Redis (RedisScriptExecutor)
and an in-process store (MemoryScriptExecutor).
"""

from leaselock.core.lock.base import ScriptExecutor
from leaselock.core.lock.client import LockClient, create_lock_client
from leaselock.core.lock.lease import Lock
from leaselock.core.lock.memory_lock import MemoryScriptExecutor
from leaselock.core.lock.redis_lock import RedisScriptExecutor
from leaselock.core.lock.retry import RetryPolicy
from leaselock.core.lock.singleflight import SharedLock, SingleflightCoordinator

__all__ = [
    "ScriptExecutor",
    "LockClient",
    "create_lock_client",
    "Lock",
    "MemoryScriptExecutor",
    "RedisScriptExecutor",
    "RetryPolicy",
    "SharedLock",
    "SingleflightCoordinator",
]
