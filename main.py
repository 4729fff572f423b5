"""Entry point for the StatsD HTTP Gateway."""

import logging
import signal
import sys

from src.client import StatsDClient
from src.config import load_config
from src.gateway import create_app, run_gateway


def main(argv=None):
    config = load_config(argv)

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        raise SystemExit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    client = StatsDClient(
        config.statsd_host, config.statsd_port,
        flush_interval=config.flush_interval,
        flush_workers=config.flush_workers,
    )
    client.set_autoflush(config.autoflush)
    client.open()

    app = create_app(config, client)
    logger.info("Starting HTTP server %s:%d", config.http_host, config.http_port)

    try:
        run_gateway(app, config.http_host, config.http_port)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        client.close()


if __name__ == "__main__":
    main()
