"""Tests for the configuration module."""

from dataclasses import fields

import pytest
import yaml

from src.config import GatewayConfig, load_config, load_yaml


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for f in fields(GatewayConfig):
        monkeypatch.delenv(f.name.upper(), raising=False)
    monkeypatch.delenv("CONFIG_PATH", raising=False)


def test_config_defaults():
    cfg = GatewayConfig()
    assert cfg.http_host == "127.0.0.1"
    assert cfg.http_port == 80
    assert cfg.statsd_host == "127.0.0.1"
    assert cfg.statsd_port == 8125
    assert cfg.jwt_secret == ""
    assert cfg.verbose is False
    assert cfg.autoflush is True
    assert cfg.flush_interval == 0.0
    assert cfg.flush_workers == 4
    assert cfg.parse_error_mode == "reject"


def test_load_config_without_sources():
    assert load_config([]) == GatewayConfig()


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("HTTP_HOST", "0.0.0.0")
    monkeypatch.setenv("HTTP_PORT", "8080")
    monkeypatch.setenv("STATSD_HOST", "collector")
    monkeypatch.setenv("STATSD_PORT", "9125")
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("VERBOSE", "true")
    monkeypatch.setenv("AUTOFLUSH", "false")
    monkeypatch.setenv("FLUSH_INTERVAL", "2.5")
    monkeypatch.setenv("FLUSH_WORKERS", "2")
    monkeypatch.setenv("PARSE_ERROR_MODE", "fallthrough")

    cfg = load_config([])
    assert cfg.http_host == "0.0.0.0"
    assert cfg.http_port == 8080
    assert cfg.statsd_host == "collector"
    assert cfg.statsd_port == 9125
    assert cfg.jwt_secret == "s3cret"
    assert cfg.verbose is True
    assert cfg.autoflush is False
    assert cfg.flush_interval == 2.5
    assert cfg.flush_workers == 2
    assert cfg.parse_error_mode == "fallthrough"


def test_config_cli_args():
    cfg = load_config([
        "--http-port", "8000", "--statsd-host", "10.0.0.5", "--verbose",
        "--no-autoflush", "--flush-interval", "1.0", "--parse-error-mode", "fallthrough",
    ])
    assert cfg.http_port == 8000
    assert cfg.statsd_host == "10.0.0.5"
    assert cfg.verbose is True
    assert cfg.autoflush is False
    assert cfg.flush_interval == 1.0
    assert cfg.parse_error_mode == "fallthrough"


def test_cli_overrides_env(monkeypatch):
    monkeypatch.setenv("STATSD_PORT", "9000")
    cfg = load_config(["--statsd-port", "9001"])
    assert cfg.statsd_port == 9001


def test_yaml_file(tmp_path):
    path = tmp_path / "gateway.yaml"
    path.write_text(yaml.dump({"statsd_host": "metrics.internal", "statsd_port": 8126, "autoflush": False}))

    cfg = load_config(["--config", str(path)])
    assert cfg.statsd_host == "metrics.internal"
    assert cfg.statsd_port == 8126
    assert cfg.autoflush is False
    assert cfg.http_port == 80


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "gateway.yaml"
    path.write_text(yaml.dump({"statsd_port": 8126}))
    monkeypatch.setenv("CONFIG_PATH", str(path))
    monkeypatch.setenv("STATSD_PORT", "8127")

    assert load_config([]).statsd_port == 8127


def test_missing_yaml_uses_defaults():
    assert load_yaml("/nonexistent/path/gateway.yaml") == {}


def test_unknown_yaml_key_rejected(tmp_path):
    path = tmp_path / "gateway.yaml"
    path.write_text(yaml.dump({"statsd_hots": "typo"}))
    with pytest.raises(ValueError):
        load_yaml(str(path))


def test_invalid_parse_error_mode():
    with pytest.raises(ValueError):
        GatewayConfig(parse_error_mode="ignore")


def test_invalid_flush_workers():
    with pytest.raises(ValueError):
        GatewayConfig(flush_workers=0)


def test_config_frozen():
    cfg = GatewayConfig()
    with pytest.raises(AttributeError):
        cfg.statsd_port = 1234
