"""StatsD wire encoder — formats metric updates into protocol fragments."""

from enum import Enum

# Separates entries inside a single flushed datagram.
PACKET_DELIMITER = "\n"


class MetricKind(Enum):
    COUNT = "c"
    GAUGE = "g"
    TIMING = "t"
    SET = "s"

    @property
    def tag(self) -> str:
        return self.value


def encode(kind: MetricKind, value: int) -> str:
    """Build the ``<value>|<tag>`` fragment for one update."""
    return f"{int(value)}|{kind.tag}"


def with_sample_rate(fragment: str, rate: float) -> str:
    """Append ``|@<rate>`` when the update was sampled (rate below 1)."""
    if rate < 1:
        return f"{fragment}|@{rate:f}"
    return fragment


def format_entry(key: str, fragment: str) -> str:
    return f"{key}:{fragment}"


def build_packet(entries: list[str]) -> str:
    """Join formatted entries into one datagram payload."""
    return PACKET_DELIMITER.join(entries)
