# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

__version__ = "0.1.0"

from leaselock import constants
from leaselock.core.lock import (
    Lock,
    LockClient,
    MemoryScriptExecutor,
    RedisScriptExecutor,
    RetryPolicy,
    ScriptExecutor,
    SharedLock,
    SingleflightCoordinator,
    create_lock_client,
)
from leaselock.util.exceptions import (
    LockCancelledException,
    LockDeadlineExceededException,
    LockedException,
    LockException,
    LockNotHeldException,
    LockOwnershipConflictException,
    LockRetryExhaustedException,
)
