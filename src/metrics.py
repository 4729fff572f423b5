"""Thread-safe counters describing what the metric client has done."""

import threading
import time
from collections import defaultdict


class ClientMetrics:
    def __init__(self):
        self._lock = threading.Lock()
        self._buffered: dict[str, int] = defaultdict(int)
        self._sampled_out = 0
        self._dropped_closed = 0
        self._packets_sent = 0
        self._bytes_sent = 0
        self._send_failures = 0
        self._start_time = time.monotonic()

    def record_buffered(self, kind: str):
        with self._lock:
            self._buffered[kind] += 1

    def record_sampled_out(self):
        with self._lock:
            self._sampled_out += 1

    def record_dropped_closed(self):
        with self._lock:
            self._dropped_closed += 1

    def record_packet(self, size: int):
        """Record one datagram handed to the OS."""
        with self._lock:
            self._packets_sent += 1
            self._bytes_sent += size

    def record_send_failure(self):
        with self._lock:
            self._send_failures += 1

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all counters."""
        with self._lock:
            elapsed = time.monotonic() - self._start_time
            buffered = dict(self._buffered)
            snap = {
                "sampled_out": self._sampled_out,
                "dropped_closed": self._dropped_closed,
                "packets_sent": self._packets_sent,
                "bytes_sent": self._bytes_sent,
                "send_failures": self._send_failures,
            }

        snap["buffered"] = buffered
        snap["total_buffered"] = sum(buffered.values())
        snap["uptime_seconds"] = round(elapsed, 2)
        return snap
