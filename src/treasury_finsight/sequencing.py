# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Last-request-wins matching of responses to requests.

A dashboard may issue overlapping requests (for example the user changes
the horizon before the previous projection arrives). Each request takes a
token from ``RequestSequencer.issue()``; when its result arrives, the caller
passes it to ``accept()``, which only returns True for the most recently
issued token. Older in-flight results are dropped.

The engines themselves are synchronous and provide no cancellation.
"""

import itertools
import threading
from typing import Generic, Optional, TypeVar

from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RequestSequencer(Generic[T]):
    """Issue monotonically increasing tokens and keep the latest result."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._latest = 0
        self._result: Optional[T] = None

    def issue(self) -> int:
        """Return a new token; it supersedes every previously issued one."""
        with self._lock:
            self._latest = next(self._counter)
            return self._latest

    @property
    def latest(self) -> int:
        with self._lock:
            return self._latest

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest

    def accept(self, token: int, result: T) -> bool:
        """
        Store ``result`` if ``token`` is the latest issued token.

        Returns:
            True if the result was kept, False if it was stale and dropped.
        """
        with self._lock:
            if token != self._latest:
                logger.debug(
                    "Dropping stale result for request %d (latest is %d)",
                    token,
                    self._latest,
                )
                return False
            self._result = result
            return True

    @property
    def result(self) -> Optional[T]:
        """Last accepted result, or None if nothing was accepted yet."""
        with self._lock:
            return self._result
