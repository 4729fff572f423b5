"""Configuration module — frozen dataclass built from defaults, YAML, env vars and CLI args."""

import argparse
import os
from dataclasses import dataclass, fields

import yaml

PARSE_ERROR_MODES = ("reject", "fallthrough")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class GatewayConfig:
    http_host: str = "127.0.0.1"
    http_port: int = 80
    statsd_host: str = "127.0.0.1"
    statsd_port: int = 8125
    jwt_secret: str = ""
    verbose: bool = False
    autoflush: bool = True
    flush_interval: float = 0.0
    flush_workers: int = 4
    parse_error_mode: str = "reject"

    def __post_init__(self):
        if self.parse_error_mode not in PARSE_ERROR_MODES:
            raise ValueError(
                f"parse_error_mode must be one of {PARSE_ERROR_MODES}, got {self.parse_error_mode!r}"
            )
        if self.flush_workers < 1:
            raise ValueError(f"flush_workers must be at least 1, got {self.flush_workers}")


_CASTS = {
    "http_port": int,
    "statsd_port": int,
    "verbose": _parse_bool,
    "autoflush": _parse_bool,
    "flush_interval": float,
    "flush_workers": int,
}


def _cast(name: str, value):
    return _CASTS.get(name, str)(value)


def load_yaml(path: str) -> dict:
    """Load a flat mapping of config field names from a YAML file.

    A missing file yields an empty mapping.
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(GatewayConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {sorted(unknown)}")
    return {name: _cast(name, value) for name, value in data.items()}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="StatsD HTTP Gateway")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--http-host", type=str, default=None, help="HTTP host")
    parser.add_argument("--http-port", type=int, default=None, help="HTTP port")
    parser.add_argument("--statsd-host", type=str, default=None, help="StatsD host")
    parser.add_argument("--statsd-port", type=int, default=None, help="StatsD port")
    parser.add_argument("--jwt-secret", type=str, default=None, help="Secret to verify JWT")
    parser.add_argument("--verbose", action="store_true", default=False, help="Verbose")
    parser.add_argument("--no-autoflush", action="store_true", default=False,
                        help="Buffer metrics until the next flush")
    parser.add_argument("--flush-interval", type=float, default=None,
                        help="Seconds between periodic flushes (0 disables)")
    parser.add_argument("--flush-workers", type=int, default=None)
    parser.add_argument("--parse-error-mode", choices=PARSE_ERROR_MODES, default=None)
    return parser


def load_config(argv=None) -> GatewayConfig:
    """Build GatewayConfig: defaults, then YAML file, then env vars, then CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    args = _build_parser().parse_args(argv)

    values: dict = {}

    config_path = args.config or os.environ.get("CONFIG_PATH")
    if config_path:
        values.update(load_yaml(config_path))

    for f in fields(GatewayConfig):
        env_value = os.environ.get(f.name.upper())
        if env_value is not None:
            values[f.name] = _cast(f.name, env_value)

    cli_values = {
        "http_host": args.http_host,
        "http_port": args.http_port,
        "statsd_host": args.statsd_host,
        "statsd_port": args.statsd_port,
        "jwt_secret": args.jwt_secret,
        "flush_interval": args.flush_interval,
        "flush_workers": args.flush_workers,
        "parse_error_mode": args.parse_error_mode,
    }
    values.update({name: value for name, value in cli_values.items() if value is not None})
    if args.verbose:
        values["verbose"] = True
    if args.no_autoflush:
        values["autoflush"] = False

    return GatewayConfig(**values)
