import socket

import pytest

from src.client import StatsDClient


@pytest.fixture
def udp_receiver():
    """Bind a UDP socket on an ephemeral port and yield (socket, port)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    _, port = sock.getsockname()
    yield sock, port
    sock.close()


@pytest.fixture
def statsd_client(udp_receiver):
    """An open, buffered client pointed at the receiver."""
    _, port = udp_receiver
    client = StatsDClient("127.0.0.1", port, seed=1234)
    client.open()
    yield client
    client.close()
