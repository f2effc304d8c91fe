# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Exceptions raised by the lock client and lock handles.

Errors coming from the store itself (``redis.exceptions.RedisError`` and
friends) are never wrapped; they reach the caller unchanged.
"""


class LockException(Exception):
    """Base class for all lock errors."""


class LockedException(LockException):
    """The key is already held by another owner."""

    def __init__(self, key: str = ""):
        message = f"Lock '{key}' is held by another owner." if key else "Lock is held by another owner."
        super().__init__(message)
        self.key = key


class LockNotHeldException(LockException):
    """The caller does not (or no longer) hold the lock."""

    def __init__(self, key: str = ""):
        message = f"Lock '{key}' is not held by this owner." if key else "Lock is not held by this owner."
        super().__init__(message)
        self.key = key


class LockRetryExhaustedException(LockedException, LockNotHeldException):
    """Every attempt allowed by the retry policy found the key held."""

    def __init__(self, key: str = "", attempts: int = 0):
        LockException.__init__(self, f"Could not acquire lock '{key}' after {attempts} attempts.")
        self.key = key
        self.attempts = attempts


class LockOwnershipConflictException(LockException):
    """The key exists but carries another owner's token."""

    def __init__(self, key: str = ""):
        super().__init__(f"Lock '{key}' is now owned by another holder.")
        self.key = key


class LockDeadlineExceededException(LockException):
    """A single store round trip did not finish within its time bound."""


class LockCancelledException(LockException):
    """The caller cancelled the operation."""
