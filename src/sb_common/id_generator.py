"""Time-ordered business IDs (battle_id, stream event id, bot task id).

IDs sort by creation time, so ``ORDER BY id`` on stream_events matches the
order in which plays were received. Each engine replica must run with its
own ID_MACHINE_ID.

Layout (63 bits used):
  41 bits  milliseconds since _EPOCH_MS
  10 bits  machine id (0-1023)
  12 bits  per-millisecond sequence (0-4095)
"""

import threading
import time

from config.settings import settings

_EPOCH_MS = 1_767_225_600_000  # 2026-01-01T00:00:00Z
_MACHINE_BITS = 10
_SEQUENCE_BITS = 12
_MAX_MACHINE = (1 << _MACHINE_BITS) - 1
_MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1


class SnowflakeIdGenerator:
    def __init__(self, machine_id: int = 0) -> None:
        if not 0 <= machine_id <= _MAX_MACHINE:
            raise ValueError(f"machine_id must be 0-{_MAX_MACHINE}")
        self._machine_id = machine_id
        self._last_ms = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            # Never step back in time, even if the wall clock does.
            now_ms = max(_now_ms(), self._last_ms)
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _MAX_SEQUENCE
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = _now_ms()
            else:
                self._sequence = 0
            self._last_ms = now_ms
            return str(self._pack(now_ms))

    def _pack(self, ms: int) -> int:
        return (
            (ms - _EPOCH_MS) << (_MACHINE_BITS + _SEQUENCE_BITS)
            | self._machine_id << _SEQUENCE_BITS
            | self._sequence
        )


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


_default_generator = SnowflakeIdGenerator(settings.ID_MACHINE_ID)


def generate_id(prefix: str = "") -> str:
    """Next ID with an entity prefix: 'bt_', 'se_', 'bot_'."""
    return f"{prefix}{_default_generator.next_id()}"
