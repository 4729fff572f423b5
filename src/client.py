"""StatsD client — encodes, samples, buffers and ships metric updates over UDP."""

import logging
import math
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum

from src.buffer import MetricBuffer
from src.encoder import MetricKind, build_packet, encode, with_sample_rate
from src.metrics import ClientMetrics
from src.sampler import Sampler
from src.transport import UDPTransport

logger = logging.getLogger(__name__)


class ClientState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


def normalize_sample_rate(rate: float) -> float:
    """Map anything outside (0, 1] to 1, i.e. always send."""
    if math.isnan(rate) or rate <= 0 or rate > 1:
        return 1.0
    return rate


class StatsDClient:
    """Buffered StatsD client safe for use from many request threads.

    In autoflush mode every metric call flushes the whole buffer; otherwise
    updates coalesce per key until flush() runs, either manually or from the
    periodic flush thread when flush_interval is set.
    """

    def __init__(self, host: str, port: int, flush_interval: float = 0.0,
                 flush_workers: int = 4, seed: int | None = None,
                 transport: UDPTransport | None = None):
        self._transport = transport or UDPTransport(host, port)
        self._buffer = MetricBuffer()
        self._sampler = Sampler(seed)
        self._metrics = ClientMetrics()
        self._autoflush = False
        self._flush_interval = flush_interval

        self._state = ClientState.UNOPENED
        self._state_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=flush_workers,
                                            thread_name_prefix="statsd-flush")
        self._stop_event = threading.Event()
        self._timer_thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self):
        """Connect the transport. A failed connect leaves the client usable but degraded."""
        with self._state_lock:
            if self._state is not ClientState.UNOPENED:
                logger.warning("open() ignored: client is %s", self._state.value)
                return
            if not self._transport.open():
                logger.warning("StatsD client running without a collector connection")
            self._state = ClientState.OPEN

            if self._flush_interval > 0:
                self._timer_thread = threading.Thread(target=self._flush_timer, daemon=True)
                self._timer_thread.start()

    def close(self):
        """Flush what is left, wait for in-flight sends and release the socket."""
        with self._state_lock:
            if self._state is ClientState.CLOSED:
                return
            self._state = ClientState.CLOSED

        self._stop_event.set()
        if self._timer_thread is not None:
            self._timer_thread.join(timeout=5)

        self._dispatch(self._buffer.seal())
        self._executor.shutdown(wait=True)
        self._transport.close()
        logger.info("StatsD client closed. Stats: %s", self._metrics.snapshot())

    def set_autoflush(self, autoflush: bool):
        self._autoflush = autoflush

    @property
    def autoflush(self) -> bool:
        return self._autoflush

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def metrics(self) -> ClientMetrics:
        return self._metrics

    @property
    def pending_count(self) -> int:
        return self._buffer.pending_count

    # ------------------------------------------------------------------
    # Metric calls
    # ------------------------------------------------------------------

    def count(self, key: str, delta: int = 1, sample_rate: float = 1.0):
        self._record(MetricKind.COUNT, key, delta, normalize_sample_rate(sample_rate))

    def gauge(self, key: str, value: int = 1):
        self._record(MetricKind.GAUGE, key, value)

    def timing(self, key: str, millis: int, sample_rate: float = 1.0):
        self._record(MetricKind.TIMING, key, millis, normalize_sample_rate(sample_rate))

    def set(self, key: str, value: int = 1):
        self._record(MetricKind.SET, key, value)

    def flush(self) -> Future | None:
        """Drain the buffer and hand the packet to a background worker.

        Returns the Future of the send, or None when there was nothing to send.
        """
        return self._dispatch(self._buffer.drain_all())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, kind: MetricKind, key: str, value: int, rate: float = 1.0):
        if self._state is ClientState.CLOSED:
            self._drop_closed(key)
            return

        fragment = encode(kind, value)
        if rate < 1:
            if not self._sampler.accept(rate):
                self._metrics.record_sampled_out()
                return
            fragment = with_sample_rate(fragment, rate)

        # put() refuses once close() has sealed the buffer
        if not self._buffer.put(key, fragment):
            self._drop_closed(key)
            return
        self._metrics.record_buffered(kind.name.lower())
        if self._autoflush:
            self.flush()

    def _drop_closed(self, key: str):
        logger.warning("Metric %r dropped: client is closed", key)
        self._metrics.record_dropped_closed()

    def _dispatch(self, entries: list[str]) -> Future | None:
        if not entries:
            return None
        try:
            return self._executor.submit(self._send, build_packet(entries))
        except RuntimeError:
            # executor already shut down by close()
            logger.warning("Dropping %d metrics flushed after close", len(entries))
            self._metrics.record_send_failure()
            return None

    def _send(self, packet: str) -> bool:
        data = packet.encode("utf-8")
        if self._transport.send(data):
            self._metrics.record_packet(len(data))
            logger.debug("Sent %d-byte packet", len(data))
            return True
        self._metrics.record_send_failure()
        return False

    def _flush_timer(self):
        """Background thread that flushes every flush_interval seconds."""
        while not self._stop_event.wait(timeout=self._flush_interval):
            self.flush()
