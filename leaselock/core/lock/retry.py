# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Fixed-interval retry policy for lock acquisition.
"""

from typing import Tuple


class RetryPolicy:
    """Counts acquisition retries and hands out the wait between them.

    A policy is a plain counter: give every ``LockClient.lock`` call its own
    instance, or ``reset()`` it explicitly before reusing it.

    Example:
        >>> policy = RetryPolicy(interval=0.1, max_retries=2)
        >>> policy.next()
        (0.1, True)
        >>> policy.next()
        (0.1, True)
        >>> policy.next()
        (0.1, False)

    Args:
        interval: Seconds to wait between two attempts.
        max_retries: How many retries are allowed after the first attempt.
    """

    def __init__(self, interval: float, max_retries: int):
        if interval < 0:
            raise ValueError(f"interval must not be negative, got {interval}")
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")
        self.interval = interval
        self.max_retries = max_retries
        self._count = 0

    @property
    def count(self) -> int:
        """Number of retries consumed so far."""
        return self._count

    def next(self) -> Tuple[float, bool]:
        """Consume one retry.

        Returns:
            The interval to wait and whether another attempt is allowed.
        """
        self._count += 1
        return self.interval, self._count <= self.max_retries

    def reset(self):
        self._count = 0

    def __repr__(self):
        return f"RetryPolicy(interval={self.interval}, max_retries={self.max_retries}, count={self._count})"
