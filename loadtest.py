"""Load test script — many threads hammering one shared StatsD client."""

import argparse
import logging
import random
import sys
import threading
import time

from src.client import StatsDClient

logger = logging.getLogger(__name__)

KEYS = [
    "api.requests",
    "api.errors",
    "db.query_ms",
    "cache.hits",
    "cache.misses",
    "queue.depth",
    "users.active",
]


def worker(client: StatsDClient, calls: int, sample_rate: float, interval: float):
    """Issue `calls` random metric calls against the shared client."""
    for _ in range(calls):
        key = random.choice(KEYS)
        kind = random.randrange(4)
        if kind == 0:
            client.count(key, 1, sample_rate)
        elif kind == 1:
            client.gauge(key, random.randint(0, 1000))
        elif kind == 2:
            client.timing(key, random.randint(1, 500), sample_rate)
        else:
            client.set(key, random.randint(1, 50))
        if interval > 0:
            time.sleep(interval)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(description="StatsD client load test")
    parser.add_argument("--statsd-host", default="127.0.0.1", help="Collector host")
    parser.add_argument("--statsd-port", type=int, default=8125, help="Collector port")
    parser.add_argument("--calls", type=int, default=10000, help="Total metric calls")
    parser.add_argument("--threads", type=int, default=8, help="Number of worker threads")
    parser.add_argument("--sample-rate", type=float, default=1.0)
    parser.add_argument("--interval", type=float, default=0.0, help="Seconds between calls per thread")
    parser.add_argument("--autoflush", action="store_true", default=False)
    parser.add_argument("--flush-interval", type=float, default=0.1)
    args = parser.parse_args()

    client = StatsDClient(
        args.statsd_host, args.statsd_port,
        flush_interval=0.0 if args.autoflush else args.flush_interval,
    )
    client.set_autoflush(args.autoflush)
    client.open()

    calls_per_thread = args.calls // args.threads
    start = time.monotonic()

    threads = []
    for _ in range(args.threads):
        t = threading.Thread(
            target=worker,
            args=(client, calls_per_thread, args.sample_rate, args.interval),
        )
        threads.append(t)
        t.start()

    for t in threads:
        t.join()

    client.close()
    elapsed = time.monotonic() - start
    total = calls_per_thread * args.threads
    snap = client.metrics.snapshot()

    logger.info("=" * 50)
    logger.info("Load Test Results:")
    logger.info("  Metric calls:  %d", total)
    logger.info("  Elapsed:       %.2fs", elapsed)
    logger.info("  Calls/sec:     %.0f", total / elapsed if elapsed > 0 else 0)
    logger.info("  Sampled out:   %d", snap["sampled_out"])
    logger.info("  Packets sent:  %d", snap["packets_sent"])
    logger.info("  Bytes sent:    %d", snap["bytes_sent"])
    logger.info("  Send failures: %d", snap["send_failures"])
    logger.info("=" * 50)


if __name__ == "__main__":
    main()
