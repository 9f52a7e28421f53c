"""
Request nonce generator.

One generator is owned per API client (per account) and threaded through
every signed request. Nonces are wall-clock milliseconds, bumped by one
whenever the clock has not advanced past the previous value, so the
sequence is strictly increasing even within a millisecond or across a
clock step backwards.
"""

from __future__ import annotations

import threading
from typing import Callable

from zapbroker.core.utils import now_ms


class NonceGenerator:
    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._last = 0
        # threading.Lock: callers may be coroutines on one loop or plain threads
        self._lock = threading.Lock()

    @property
    def last_nonce(self) -> int:
        return self._last

    def next_nonce(self) -> int:
        """Return a nonce strictly greater than every nonce returned before."""
        with self._lock:
            nonce = self._clock()
            if nonce <= self._last:
                nonce = self._last + 1
            self._last = nonce
            return nonce
