"""Tests for the Configuration Loader module.

Tests configuration loading from YAML files and environment variables.
"""

import os
import tempfile
from unittest.mock import patch

import pytest

from src.core.config import Config
from src.core.earthquake import TimeFilter
from src.core.normalizer import BMKG_BASE_URL, RecordShape
from src.shell.config_loader import (
    _parse_client,
    _parse_source,
    _resolve_value,
    load_config,
    load_config_from_dict,
    load_config_from_env,
)


class TestResolveValue:
    """Tests for _resolve_value function."""

    def test_returns_non_string_unchanged(self):
        """Non-string values are returned unchanged."""
        assert _resolve_value(123) == 123
        assert _resolve_value(None) is None

    def test_returns_plain_string_unchanged(self):
        assert _resolve_value("https://example.com") == "https://example.com"

    def test_resolves_env_var_placeholder(self):
        """Resolves ${VAR} placeholders from environment."""
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            assert _resolve_value("${TEST_VAR}") == "test_value"

    def test_returns_placeholder_if_env_var_not_set(self):
        """Returns original placeholder if env var not set."""
        with patch.dict(os.environ, {}, clear=True):
            assert _resolve_value("${UNDEFINED_VAR}") == "${UNDEFINED_VAR}"


class TestParseSource:
    """Tests for _parse_source function."""

    def test_parses_source(self):
        data = {
            "name": "gempaterkini",
            "path": "/DataMKG/TEWS/gempaterkini.json",
            "shape": "recent",
            "timeout_seconds": 4,
        }

        source = _parse_source(data, default_timeout=10.0)

        assert source.name == "gempaterkini"
        assert source.shape == RecordShape.RECENT
        assert source.timeout_seconds == 4.0
        assert source.enabled is True

    def test_uses_default_timeout(self):
        data = {"name": "a", "path": "/a.json", "shape": "latest", "enabled": False}

        source = _parse_source(data, default_timeout=7.5)

        assert source.timeout_seconds == 7.5
        assert source.enabled is False

    def test_unknown_shape(self):
        with pytest.raises(ValueError):
            _parse_source({"name": "a", "path": "/a.json", "shape": "weekly"}, 10.0)

    def test_missing_path(self):
        with pytest.raises(KeyError):
            _parse_source({"name": "a", "shape": "latest"}, 10.0)


class TestParseClient:
    """Tests for _parse_client function."""

    def test_defaults(self):
        client = _parse_client({})
        assert client.notification_webhook_url is None
        assert client.time_filter == TimeFilter.REALTIME

    def test_parses_values(self):
        client = _parse_client({
            "api_base_url": "http://api:8080",
            "poll_interval_seconds": 60,
            "alert_min_magnitude": 5,
            "ledger_size": 20,
            "time_filter": "today",
        })

        assert client.api_base_url == "http://api:8080"
        assert client.poll_interval_seconds == 60
        assert client.alert_min_magnitude == 5.0
        assert client.ledger_size == 20
        assert client.time_filter == TimeFilter.TODAY

    def test_resolves_webhook_placeholder(self):
        with patch.dict(os.environ, {"HOOK": "https://hooks.example.com/x"}):
            client = _parse_client({"notification_webhook_url": "${HOOK}"})

        assert client.notification_webhook_url == "https://hooks.example.com/x"


class TestLoadConfigFromDict:
    """Tests for load_config_from_dict function."""

    def test_loads_minimal_config(self):
        """Empty dict gives the default three BMKG sources."""
        result = load_config_from_dict({})

        assert result.bmkg_base_url == BMKG_BASE_URL
        assert len(result.sources) == 3
        assert result.store_backend == "memory"

    def test_global_timeout_applies_to_default_sources(self):
        result = load_config_from_dict({"fetch_timeout_seconds": 3})
        assert all(s.timeout_seconds == 3.0 for s in result.sources)

    def test_explicit_sources_replace_defaults(self):
        result = load_config_from_dict({
            "sources": [{"name": "autogempa", "path": "/a.json", "shape": "latest"}],
        })

        assert [s.name for s in result.sources] == ["autogempa"]

    def test_loads_full_config(self):
        result = load_config_from_dict({
            "bmkg_base_url": "https://mirror.example.com",
            "ingestion_interval_seconds": 120,
            "store_backend": "sqlite",
            "sqlite_path": "/tmp/quakes.db",
            "stats_timezone": "UTC",
            "client": {"list_limit": 50},
        })

        assert result.bmkg_base_url == "https://mirror.example.com"
        assert result.ingestion_interval_seconds == 120
        assert result.store_backend == "sqlite"
        assert result.sqlite_path == "/tmp/quakes.db"
        assert result.stats_timezone == "UTC"
        assert result.client.list_limit == 50


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_from_yaml_file(self):
        """Loads configuration from YAML file."""
        yaml_content = """
ingestion_interval_seconds: 600
store_backend: sqlite
sources:
  - name: autogempa
    path: /DataMKG/TEWS/autogempa.json
    shape: latest
  - name: gempadirasakan
    path: /DataMKG/TEWS/gempadirasakan.json
    shape: felt
    timeout_seconds: 5
client:
  poll_interval_seconds: 30
"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(yaml_content)
            temp_path = f.name

        try:
            result = load_config(temp_path)

            assert result.ingestion_interval_seconds == 600
            assert result.store_backend == "sqlite"
            assert [s.shape for s in result.sources] == [RecordShape.LATEST, RecordShape.FELT]
            assert result.sources[1].timeout_seconds == 5.0
            assert result.client.poll_interval_seconds == 30
        finally:
            os.unlink(temp_path)

    def test_returns_default_config_when_file_not_found(self):
        """Returns default config when file doesn't exist."""
        result = load_config("/nonexistent/path/config.yaml")

        assert isinstance(result, Config)
        assert result.ingestion_interval_seconds == 300

    def test_returns_default_config_for_empty_file(self, tmp_path):
        """Returns default config when file is empty."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path) == Config()

    def test_uses_config_path_env_var(self, tmp_path):
        """Uses CONFIG_PATH environment variable when path not specified."""
        path = tmp_path / "config.yaml"
        path.write_text("ingestion_interval_seconds: 180\n")

        with patch.dict(os.environ, {"CONFIG_PATH": str(path)}):
            result = load_config()

        assert result.ingestion_interval_seconds == 180


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_defaults_without_env(self):
        with patch.dict(os.environ, {}, clear=True):
            result = load_config_from_env()

        assert result.bmkg_base_url == BMKG_BASE_URL
        assert result.ingestion_interval_seconds == 300
        assert result.client.notification_webhook_url is None

    def test_loads_config_from_env_vars(self):
        """Loads configuration from environment variables."""
        env_vars = {
            "BMKG_BASE_URL": "https://mirror.example.com",
            "FETCH_INTERVAL": "2",
            "FETCH_TIMEOUT": "4",
            "STORE_BACKEND": "sqlite",
            "SQLITE_PATH": "/data/quakes.db",
            "API_BASE_URL": "http://api:8080",
            "NOTIFICATION_WEBHOOK_URL": "https://hooks.example.com/x",
            "CLIENT_STATE_PATH": "/data/client.json",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            result = load_config_from_env()

        assert result.bmkg_base_url == "https://mirror.example.com"
        assert result.ingestion_interval_seconds == 120
        assert all(s.timeout_seconds == 4.0 for s in result.sources)
        assert result.store_backend == "sqlite"
        assert result.sqlite_path == "/data/quakes.db"
        assert result.client.api_base_url == "http://api:8080"
        assert result.client.notification_webhook_url == "https://hooks.example.com/x"
        assert result.client.state_path == "/data/client.json"
        assert result.client.request_timeout_seconds == 4.0
