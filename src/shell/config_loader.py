"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, UpstreamSource, ClientConfig) are defined in
src/core/config.py to avoid information leakage between layers.
"""

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from src.core.config import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_SOURCES,
    ClientConfig,
    Config,
    UpstreamSource,
)
from src.core.earthquake import TimeFilter
from src.core.normalizer import BMKG_BASE_URL, RecordShape


logger = logging.getLogger(__name__)


def _resolve_value(value: Any) -> Any:
    """Resolve a value that may be a ${ENV_VAR} placeholder.

    Unset variables leave the placeholder in place (validate_config warns
    about it).

    Args:
        value: Value to resolve

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_source(data: dict[str, Any], default_timeout: float) -> UpstreamSource:
    """Parse an upstream source from config data."""
    return UpstreamSource(
        name=data["name"],
        path=data["path"],
        shape=RecordShape(data["shape"]),
        timeout_seconds=float(data.get("timeout_seconds", default_timeout)),
        enabled=bool(data.get("enabled", True)),
    )


def _parse_client(data: dict[str, Any]) -> ClientConfig:
    """Parse client settings from config data."""
    defaults = ClientConfig()
    webhook = _resolve_value(data.get("notification_webhook_url"))

    return ClientConfig(
        api_base_url=_resolve_value(data.get("api_base_url", defaults.api_base_url)),
        poll_interval_seconds=int(
            data.get("poll_interval_seconds", defaults.poll_interval_seconds)
        ),
        state_path=data.get("state_path", defaults.state_path),
        notification_webhook_url=webhook or None,
        alert_min_magnitude=float(
            data.get("alert_min_magnitude", defaults.alert_min_magnitude)
        ),
        ledger_size=int(data.get("ledger_size", defaults.ledger_size)),
        time_filter=TimeFilter(data.get("time_filter", defaults.time_filter.value)),
        list_limit=int(data.get("list_limit", defaults.list_limit)),
        request_timeout_seconds=float(
            data.get("request_timeout_seconds", defaults.request_timeout_seconds)
        ),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object

    Raises:
        KeyError: If a source is missing its name or path
        ValueError: If an enum value (shape, time filter) is unknown
    """
    defaults = Config()
    default_timeout = float(data.get("fetch_timeout_seconds", DEFAULT_FETCH_TIMEOUT_SECONDS))

    if "sources" in data:
        sources = [_parse_source(s, default_timeout) for s in data["sources"] or []]
    else:
        sources = [
            dataclasses.replace(s, timeout_seconds=default_timeout)
            for s in DEFAULT_SOURCES
        ]

    return Config(
        bmkg_base_url=_resolve_value(data.get("bmkg_base_url", BMKG_BASE_URL)),
        sources=sources,
        ingestion_interval_seconds=int(
            data.get("ingestion_interval_seconds", defaults.ingestion_interval_seconds)
        ),
        store_backend=data.get("store_backend", defaults.store_backend),
        sqlite_path=_resolve_value(data.get("sqlite_path", defaults.sqlite_path)),
        firestore_database=data.get("firestore_database"),
        firestore_collection=data.get("firestore_collection", defaults.firestore_collection),
        firestore_fetch_log_collection=data.get(
            "firestore_fetch_log_collection", defaults.firestore_fetch_log_collection
        ),
        stats_timezone=data.get("stats_timezone", defaults.stats_timezone),
        client=_parse_client(data.get("client") or {}),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d sources (%d enabled), %s store",
        len(config.sources),
        len(config.enabled_sources),
        config.store_backend,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        BMKG_BASE_URL: BMKG data host
        FETCH_INTERVAL: Minutes between ingestion cycles (default 5)
        FETCH_TIMEOUT: Per-source request timeout in seconds (default 10)
        STORE_BACKEND: memory, sqlite or firestore
        SQLITE_PATH: Database file for the sqlite backend
        FIRESTORE_DATABASE: Firestore database name
        STATS_TIMEZONE: Timezone defining "today" for stats
        API_BASE_URL: Query API used by the client poller
        NOTIFICATION_WEBHOOK_URL: Webhook receiving client alerts
        CLIENT_STATE_PATH: JSON file with client location and ledger

    Returns:
        Config object from environment
    """
    defaults = Config()
    client_defaults = ClientConfig()

    interval_minutes = int(os.environ.get("FETCH_INTERVAL", "5"))
    timeout = float(os.environ.get("FETCH_TIMEOUT", str(DEFAULT_FETCH_TIMEOUT_SECONDS)))

    client = ClientConfig(
        api_base_url=os.environ.get("API_BASE_URL", client_defaults.api_base_url),
        state_path=os.environ.get("CLIENT_STATE_PATH", client_defaults.state_path),
        notification_webhook_url=os.environ.get("NOTIFICATION_WEBHOOK_URL") or None,
        request_timeout_seconds=timeout,
    )

    return Config(
        bmkg_base_url=os.environ.get("BMKG_BASE_URL", BMKG_BASE_URL),
        sources=[
            dataclasses.replace(s, timeout_seconds=timeout) for s in DEFAULT_SOURCES
        ],
        ingestion_interval_seconds=interval_minutes * 60,
        store_backend=os.environ.get("STORE_BACKEND", defaults.store_backend),
        sqlite_path=os.environ.get("SQLITE_PATH", defaults.sqlite_path),
        firestore_database=os.environ.get("FIRESTORE_DATABASE"),
        stats_timezone=os.environ.get("STATS_TIMEZONE", defaults.stats_timezone),
        client=client,
    )
