"""UDP transport — best-effort, non-blocking datagram writes to the collector."""

import logging
import socket

logger = logging.getLogger(__name__)


class UDPTransport:
    """Connected UDP socket to a StatsD collector.

    Failures are logged and reported through return values; nothing here
    raises to the caller.
    """

    def __init__(self, host: str, port: int):
        self._host = host
        self._port = port
        self._sock: socket.socket | None = None

    @property
    def address(self) -> tuple[str, int]:
        return self._host, self._port

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> bool:
        """Resolve the collector address and connect a datagram socket to it."""
        if self._sock is not None:
            return True
        try:
            family, socktype, proto, _, sockaddr = socket.getaddrinfo(
                self._host, self._port, type=socket.SOCK_DGRAM,
            )[0]
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            logger.error("Cannot resolve StatsD collector %s:%d: %s", self._host, self._port, exc)
            return False

        try:
            sock.connect(sockaddr)
            sock.setblocking(False)
        except OSError as exc:
            sock.close()
            logger.error("Cannot connect to StatsD collector %s:%d: %s", self._host, self._port, exc)
            return False

        self._sock = sock
        logger.info("UDP transport connected to %s:%d", self._host, self._port)
        return True

    def send(self, data: bytes) -> bool:
        """Write one datagram. Returns True when the OS accepted it."""
        sock = self._sock
        if sock is None:
            logger.warning("Dropping %d-byte packet: transport to %s:%d is not open",
                           len(data), self._host, self._port)
            return False
        try:
            sock.send(data)
            return True
        except OSError as exc:
            logger.warning("Send to %s:%d failed: %s", self._host, self._port, exc)
            return False

    def close(self):
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()
            logger.info("UDP transport to %s:%d closed", self._host, self._port)
