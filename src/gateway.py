"""Flask HTTP gateway translating form posts into StatsD client calls."""

import logging
import re

from flask import Flask, jsonify, request
from werkzeug.serving import WSGIRequestHandler

from src.auth import token_required
from src.client import StatsDClient
from src.config import GatewayConfig

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Headers": "X-Requested-With, Origin, Accept, Content-Type, Authentication",
    "Access-Control-Allow-Methods": "GET, POST, HEAD, OPTIONS",
    "Access-Control-Expose-Headers": "X-Sentry-Error, Retry-After",
}

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
MAX_CONTENT_LENGTH = 1 << 20
REQUEST_TIMEOUT_SEC = 1

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_int(raw: str) -> int:
    """Parse a signed 64-bit decimal integer, rejecting whitespace, underscores and overflow."""
    if not _INT_PATTERN.fullmatch(raw):
        raise ValueError(f"invalid integer: {raw!r}")
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"integer out of 64-bit range: {raw!r}")
    return value


def parse_float(raw: str) -> float:
    """Parse a float, rejecting the whitespace and underscores float() tolerates."""
    if raw != raw.strip() or "_" in raw:
        raise ValueError(f"invalid float: {raw!r}")
    return float(raw)


class GatewayRequestHandler(WSGIRequestHandler):
    # socket timeout for reading the request and writing the response
    timeout = REQUEST_TIMEOUT_SEC


def _parse_field(name: str, cast, default, message: str, errors: list[str],
                 required: bool = False):
    """Read one form field. A malformed (or missing required) field records
    message in errors and yields 0."""
    raw = request.form.get(name, "")
    if raw == "":
        if not required:
            return default
        errors.append(message)
        return 0
    try:
        return cast(raw)
    except ValueError:
        errors.append(message)
        return 0


def create_app(config: GatewayConfig, statsd_client: StatsDClient) -> Flask:
    """Flask application factory."""
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH
    app.config["components"] = {
        "config": config,
        "statsd_client": statsd_client,
    }
    require_token = token_required(config.jwt_secret)
    fall_through = config.parse_error_mode == "fallthrough"

    def _dispatch(key: str, errors: list[str], call):
        """Apply the parse-error policy, then invoke the client call."""
        if errors:
            logger.info("Invalid parameters for %s %s: %s", request.method, request.path, errors)
            if fall_through:
                call()
            return jsonify({"status": "invalid", "errors": errors}), 400
        call()
        return jsonify({"status": "accepted", "key": key})

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin", "")
        if origin:
            for header, value in CORS_HEADERS.items():
                response.headers[header] = value
            response.headers["Access-Control-Allow-Origin"] = origin
        return response

    @app.route("/heartbeat", methods=["GET"])
    def heartbeat():
        return "OK"

    @app.route("/count/<key>", methods=["POST"])
    @require_token
    def count(key):
        errors: list[str] = []
        delta = _parse_field("delta", parse_int, 1, "Invalid delta specified", errors)
        sample_rate = _parse_field("sampleRate", parse_float, 1.0, "Invalid sample rate specified", errors)
        return _dispatch(key, errors, lambda: statsd_client.count(key, delta, sample_rate))

    @app.route("/gauge/<key>", methods=["POST"])
    @require_token
    def gauge(key):
        errors: list[str] = []
        value = _parse_field("value", parse_int, 1, "Invalid value specified", errors)
        return _dispatch(key, errors, lambda: statsd_client.gauge(key, value))

    @app.route("/timing/<key>", methods=["POST"])
    @require_token
    def timing(key):
        errors: list[str] = []
        millis = _parse_field("time", parse_int, 0, "Invalid time specified", errors, required=True)
        sample_rate = _parse_field("sampleRate", parse_float, 1.0, "Invalid sample rate specified", errors)
        return _dispatch(key, errors, lambda: statsd_client.timing(key, millis, sample_rate))

    @app.route("/set/<key>", methods=["POST"])
    @require_token
    def set_(key):
        errors: list[str] = []
        value = _parse_field("value", parse_int, 1, "Invalid value specified", errors)
        return _dispatch(key, errors, lambda: statsd_client.set(key, value))

    @app.route("/stats", methods=["GET"])
    @require_token
    def stats():
        snap = statsd_client.metrics.snapshot()
        snap["pending"] = statsd_client.pending_count
        snap["state"] = statsd_client.state.value
        snap["autoflush"] = statsd_client.autoflush
        return jsonify(snap)

    return app


def run_gateway(app: Flask, host: str, port: int):
    """Serve the app with one thread per request and a 1s socket timeout."""
    app.run(host=host, port=port, threaded=True, use_reloader=False,
            request_handler=GatewayRequestHandler)
