"""Snowflake ids for auctions and bids.

Ids are 19-digit, zero-padded decimal strings, so sorting them as text sorts
them by creation. Proxy bids created inside one cascade often share a
millisecond; the sequence bits still order them, which is why standing
auto-bids are ordered by ``(created_at, id)``.

    | 41 bits ms since 2024-01-01 | 10 bits node | 12 bits sequence |
"""

import threading
import time
from collections.abc import Callable

from config.settings import settings

EPOCH_MS = 1_704_067_200_000
NODE_BITS = 10
SEQUENCE_BITS = 12
MAX_NODE_ID = (1 << NODE_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class SnowflakeIdGenerator:
    def __init__(self, machine_id: int = 0, clock: Callable[[], int] = _wall_clock_ms) -> None:
        if not 0 <= machine_id <= MAX_NODE_ID:
            raise ValueError(f"machine_id must be between 0 and {MAX_NODE_ID}")
        self._node = machine_id
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = -1
        self._seq = 0

    def next_id(self) -> str:
        with self._lock:
            # Never step back in time, even when the wall clock does
            now_ms = max(self._clock(), self._last_ms)
            if now_ms == self._last_ms:
                self._seq = (self._seq + 1) & MAX_SEQUENCE
                if self._seq == 0:
                    while now_ms <= self._last_ms:
                        now_ms = self._clock()
            else:
                self._seq = 0
            self._last_ms = now_ms
            value = (now_ms - EPOCH_MS) << (NODE_BITS + SEQUENCE_BITS)
            value |= self._node << SEQUENCE_BITS
            value |= self._seq
        return f"{value:019d}"


_generator = SnowflakeIdGenerator(machine_id=settings.NODE_ID)


def generate_id() -> str:
    return _generator.next_id()
