"""Tests for config.py: defaults, environment overrides, YAML loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from kube_rest_client.config import (
    SERVICE_ACCOUNT_NAMESPACE_PATH,
    SERVICE_ACCOUNT_TOKEN_PATH,
    ClientConfig,
    load_client_config,
)
from kube_rest_client.errors import ConfigError


class TestClientConfigDefaults:
    def test_defaults(self) -> None:
        config = ClientConfig()
        assert config.api_server is None
        assert config.token is None
        assert config.token_path == SERVICE_ACCOUNT_TOKEN_PATH
        assert config.namespace_path == SERVICE_ACCOUNT_NAMESPACE_PATH
        assert str(SERVICE_ACCOUNT_TOKEN_PATH) == "/var/run/secrets/kubernetes.io/serviceaccount/token"

    def test_pool_and_timeout_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = ClientConfig()
        assert config.connect_timeout == 10.0
        assert config.read_timeout == 30.0
        assert config.max_connections == 100
        assert config.max_keepalive_connections == 20

    def test_env_overrides(self) -> None:
        env = {
            "KUBE_CLIENT_CONNECT_TIMEOUT": "2.5",
            "KUBE_CLIENT_READ_TIMEOUT": "60",
            "KUBE_CLIENT_MAX_CONNECTIONS": "10",
            "KUBE_CLIENT_MAX_KEEPALIVE": "5",
        }
        with patch.dict(os.environ, env):
            config = ClientConfig()
        assert config.connect_timeout == 2.5
        assert config.read_timeout == 60.0
        assert config.max_connections == 10
        assert config.max_keepalive_connections == 5

    def test_frozen(self) -> None:
        config = ClientConfig()
        with pytest.raises(AttributeError):
            config.token = "x"  # type: ignore[misc]


class TestValidate:
    def test_valid_config_passes(self) -> None:
        ClientConfig(api_server="https://10.0.0.1:6443").validate()

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"api_server": "10.0.0.1:6443"}, "must start with https://"),
            ({"connect_timeout": 0}, "connect_timeout must be positive"),
            ({"read_timeout": -1}, "read_timeout must be positive"),
            ({"max_connections": 0}, "max_connections must be positive"),
            ({"max_keepalive_connections": -1}, "max_keepalive_connections must not be negative"),
        ],
    )
    def test_invalid_values(self, kwargs: dict[str, object], message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            ClientConfig(**kwargs).validate()  # type: ignore[arg-type]

    def test_all_problems_reported_together(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ClientConfig(connect_timeout=0, read_timeout=0).validate()
        assert "connect_timeout" in str(exc_info.value)
        assert "read_timeout" in str(exc_info.value)


class TestLoadClientConfig:
    def test_no_path_and_no_env_returns_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert load_client_config() == ClientConfig()

    def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text(
            "api_server: https://api.example.com\n"
            "token: abc\n"
            "namespace: payments\n"
            "ca_cert_path: /etc/kube/ca.crt\n"
            "read_timeout: 5\n"
            "max_connections: 8\n"
        )
        config = load_client_config(path)
        assert config.api_server == "https://api.example.com"
        assert config.token == "abc"
        assert config.namespace == "payments"
        assert config.ca_cert_path == Path("/etc/kube/ca.crt")
        assert config.read_timeout == 5.0
        assert config.max_connections == 8

    def test_path_from_env(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("namespace: from-env\n")
        with patch.dict(os.environ, {"KUBE_CLIENT_CONFIG": str(path)}):
            assert load_client_config().namespace == "from-env"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("")
        assert load_client_config(path).api_server is None

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_client_config(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("api_server: [unclosed\n")
        with pytest.raises(ConfigError, match="Cannot read"):
            load_client_config(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_client_config(path)

    def test_unknown_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("contexts: []\nserver: x\n")
        with pytest.raises(ConfigError, match="unknown keys: contexts, server"):
            load_client_config(path)

    def test_bad_numeric_value(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("read_timeout: soon\n")
        with pytest.raises(ConfigError, match="Invalid value for 'read_timeout'"):
            load_client_config(path)

    def test_loaded_config_is_validated(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("api_server: ftp://nope\n")
        with pytest.raises(ConfigError, match="must start with https://"):
            load_client_config(path)
