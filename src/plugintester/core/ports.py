"""Port allocation for framework instances started by one harness process."""

from __future__ import annotations

import threading
import time

PORT_BASE = 2000


def default_start_port(now_ms: int | None = None) -> int:
    """Derive a start port from the clock so separate harness processes rarely collide."""

    digits = str(now_ms if now_ms is not None else int(time.time() * 1000))
    return PORT_BASE + int(digits[-6:-2])


class PortAllocator:
    """Hands out increasing ports; one instance is owned by the harness and passed around."""

    def __init__(self, start: int | None = None) -> None:
        self._last = start if start is not None else default_start_port()
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._last += 1
            return self._last


# Used by every tester in the process that is not handed an allocator.
DEFAULT_PORTS = PortAllocator()
