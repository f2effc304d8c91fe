# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
In-process implementation of the atomic lock operations.
"""

import threading
import time
from typing import Dict, Optional, Tuple

from leaselock.core.lock.base import ScriptExecutor


class MemoryScriptExecutor(ScriptExecutor):
    """Keeps lock entries in a dict guarded by a thread lock.

    Only coordinates threads of the current process. Entries expire after
    their TTL exactly as Redis keys do; expired entries are dropped lazily
    when they are next looked at.

    Example:
        >>> executor = MemoryScriptExecutor()
        >>> executor.acquire("orders", "token-1", 30000)
        True
        >>> executor.acquire("orders", "token-2", 30000)
        False
    """

    def __init__(self):
        self.dict: Dict[str, Tuple[str, float]] = {}
        self._mutex = threading.Lock()

    def _live_token(self, key: str) -> Optional[str]:
        entry = self.dict.get(key)
        if entry is None:
            return None
        token, expires_at = entry
        if expires_at <= time.monotonic():
            del self.dict[key]
            return None
        return token

    def _set(self, key: str, token: str, ttl_ms: int):
        self.dict[key] = (token, time.monotonic() + ttl_ms / 1000.0)

    def acquire(self, key: str, token: str, ttl_ms: int) -> bool:
        with self._mutex:
            current = self._live_token(key)
            if current is not None and current != token:
                return False
            self._set(key, token, ttl_ms)
            return True

    def refresh(self, key: str, token: str, ttl_ms: int) -> Optional[int]:
        with self._mutex:
            current = self._live_token(key)
            if current is None:
                return None
            if current != token:
                return 1
            self._set(key, token, ttl_ms)
            return 0

    def release(self, key: str, token: str) -> int:
        with self._mutex:
            if self._live_token(key) != token:
                return 0
            del self.dict[key]
            return 1

    def get(self, key: str) -> Optional[str]:
        """Returns the live token stored at ``key``, if any."""
        with self._mutex:
            return self._live_token(key)

    def set(self, key: str, token: str, ttl_ms: int):
        """Unconditionally stores ``token`` at ``key``."""
        with self._mutex:
            self._set(key, token, ttl_ms)

    def __len__(self):
        with self._mutex:
            return sum(1 for key in list(self.dict) if self._live_token(key) is not None)
