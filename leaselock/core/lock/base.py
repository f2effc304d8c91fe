# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Abstract base class for the atomic lock operations of a store.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ScriptExecutor(ABC):
    """Abstract base class for the three atomic lock operations.

    Every operation is evaluated atomically by the store: the ownership check
    and the mutation it guards can never be observed apart. Implementations
    let store errors propagate unchanged.
    """

    @abstractmethod
    def acquire(self, key: str, token: str, ttl_ms: int) -> bool:
        """Set ``key`` to ``token`` with a TTL if the key is free.

        A key that already carries ``token`` counts as acquired and has its
        TTL re-armed.

        Args:
            key: The contended key.
            token: The token of the would-be holder.
            ttl_ms: Time to live of the entry in milliseconds.

        Returns:
            True if the caller now holds the key, False if someone else does.
        """
        pass

    @abstractmethod
    def refresh(self, key: str, token: str, ttl_ms: int) -> Optional[int]:
        """Extend the TTL of ``key`` if it still carries ``token``.

        Returns:
            0 if the TTL was extended, 1 on token mismatch and None if the
            key does not exist.
        """
        pass

    @abstractmethod
    def release(self, key: str, token: str) -> int:
        """Delete ``key`` if it still carries ``token``.

        Returns:
            1 if the key was deleted, 0 otherwise.
        """
        pass
