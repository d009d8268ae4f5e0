"""Time-ordered listing IDs.

Listing pages are keyset-paginated on ``(listed_at, id)`` and the id column
is VARCHAR, so ids are emitted as fixed-width zero-padded decimals: string order
equals numeric order equals creation order.

Layout (63 bits): 41 bits ms since epoch | 10 bits worker | 12 bits sequence.
"""

import threading
import time

ID_WIDTH = 19  # len(str(2**63 - 1))


class ListingIdGenerator:
    _EPOCH_MS = 1_700_000_000_000
    _WORKER_BITS = 10
    _SEQUENCE_BITS = 12
    _SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, worker_id: int = 0) -> None:
        if not 0 <= worker_id < (1 << self._WORKER_BITS):
            raise ValueError(f"worker_id must be 0-{(1 << self._WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms < self._last_ms:
                # Clock stepped back: keep issuing from the last timestamp.
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._SEQUENCE_MASK
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms

            value = (
                (now_ms - self._EPOCH_MS) << (self._WORKER_BITS + self._SEQUENCE_BITS)
                | self._worker_id << self._SEQUENCE_BITS
                | self._sequence
            )
            return str(value).zfill(ID_WIDTH)


_generator = ListingIdGenerator()


def generate_id() -> str:
    return _generator.next_id()
