# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

LOCK_TYPE = os.getenv("LEASELOCK_TYPE", "redis")

REDIS_LOCK_HOST = os.getenv("LEASELOCK_REDIS_HOST", "localhost")
REDIS_LOCK_PORT = int(os.getenv("LEASELOCK_REDIS_PORT", "6379"))
REDIS_LOCK_DB = int(os.getenv("LEASELOCK_REDIS_DB", "0"))
REDIS_LOCK_PASSWORD = os.getenv("LEASELOCK_REDIS_PASSWORD") or None
LOCK_KEY_PREFIX = os.getenv("LEASELOCK_KEY_PREFIX", "")

# All durations are in seconds.
DEFAULT_LOCK_EXPIRATION = 30
DEFAULT_RETRY_INTERVAL = 0.1
DEFAULT_MAX_RETRIES = 10
DEFAULT_ATTEMPT_TIMEOUT = 1.0
DEFAULT_REFRESH_INTERVAL = 10

STORE_CALL_WORKERS = 8
CANCEL_POLL_INTERVAL = 0.01
