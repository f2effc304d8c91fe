# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Redis-backed atomic lock operations.
"""

from typing import Optional

import leaselock
from leaselock.core.lock.base import ScriptExecutor

# Lua script for atomic acquire - set if free, re-arm if we already own it
ACQUIRE_SCRIPT = """
local current = redis.call("get", KEYS[1])
if current == ARGV[1] then
    redis.call("pexpire", KEYS[1], ARGV[2])
    return 1
elseif current then
    return 0
end
redis.call("set", KEYS[1], ARGV[1], "PX", ARGV[2])
return 1
"""

# Lua script for atomic refresh - nil if missing, 1 if owned by someone else
REFRESH_SCRIPT = """
local current = redis.call("get", KEYS[1])
if not current then
    return nil
end
if current ~= ARGV[1] then
    return 1
end
redis.call("pexpire", KEYS[1], ARGV[2])
return 0
"""

# Lua script for atomic release - only delete if we own the lock
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class RedisScriptExecutor(ScriptExecutor):
    """Runs the lock operations as Lua scripts on a Redis server.

    Scripts are registered once per executor and invoked through
    ``EVALSHA``, falling back to ``EVAL`` when the server flushed its script
    cache.

    Example:
        >>> import redis
        >>> client = redis.Redis(host='localhost', port=6379, db=0)
        >>> executor = RedisScriptExecutor(client)
        >>> executor.acquire("orders", "token-1", 30000)
        True

    Args:
        redis_client: A ``redis.Redis`` instance. It is shared by every lock
            created on top of this executor and must be thread safe.
        prefix: Prefix prepended to every key (default:
            ``leaselock.constants.LOCK_KEY_PREFIX``).
    """

    def __init__(self, redis_client, prefix: Optional[str] = None):
        self.redis_client = redis_client
        self.prefix = leaselock.constants.LOCK_KEY_PREFIX if prefix is None else prefix
        self._acquire_script = None
        self._refresh_script = None
        self._release_script = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _get_acquire_script(self):
        """Get or register the acquire Lua script."""
        if self._acquire_script is None:
            self._acquire_script = self.redis_client.register_script(ACQUIRE_SCRIPT)
        return self._acquire_script

    def _get_refresh_script(self):
        """Get or register the refresh Lua script."""
        if self._refresh_script is None:
            self._refresh_script = self.redis_client.register_script(REFRESH_SCRIPT)
        return self._refresh_script

    def _get_release_script(self):
        """Get or register the release Lua script."""
        if self._release_script is None:
            self._release_script = self.redis_client.register_script(RELEASE_SCRIPT)
        return self._release_script

    def acquire(self, key: str, token: str, ttl_ms: int) -> bool:
        result = self._get_acquire_script()(keys=[self._key(key)], args=[token, ttl_ms])
        return bool(result)

    def refresh(self, key: str, token: str, ttl_ms: int) -> Optional[int]:
        result = self._get_refresh_script()(keys=[self._key(key)], args=[token, ttl_ms])
        if result is None:
            return None
        return int(result)

    def release(self, key: str, token: str) -> int:
        return int(self._get_release_script()(keys=[self._key(key)], args=[token]))
