"""Client configuration, in-cluster credential locations, and environment variable overrides."""

from __future__ import annotations

import os
import ssl
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from kube_rest_client.errors import ConfigError

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")
SERVICE_ACCOUNT_TOKEN_PATH = SERVICE_ACCOUNT_DIR / "token"
SERVICE_ACCOUNT_NAMESPACE_PATH = SERVICE_ACCOUNT_DIR / "namespace"
SERVICE_ACCOUNT_CA_CERT_PATH = SERVICE_ACCOUNT_DIR / "ca.crt"

SERVICE_HOST_ENV = "KUBERNETES_SERVICE_HOST"
SERVICE_PORT_ENV = "KUBERNETES_SERVICE_PORT"
DEFAULT_SERVICE_HOST = "kubernetes.default.svc"
DEFAULT_SERVICE_PORT = "443"
DEFAULT_NAMESPACE = "default"

CONFIG_PATH_ENV = "KUBE_CLIENT_CONFIG"


@dataclass(frozen=True)
class ClientConfig:
    """Explicit client settings. Unset credential fields fall back to in-cluster files."""

    api_server: str | None = None
    token: str | None = None
    namespace: str | None = None
    ca_cert_path: Path | None = None
    token_path: Path = SERVICE_ACCOUNT_TOKEN_PATH
    namespace_path: Path = SERVICE_ACCOUNT_NAMESPACE_PATH
    connect_timeout: float = field(default_factory=lambda: float(os.environ.get("KUBE_CLIENT_CONNECT_TIMEOUT", "10")))
    read_timeout: float = field(default_factory=lambda: float(os.environ.get("KUBE_CLIENT_READ_TIMEOUT", "30")))
    max_connections: int = field(default_factory=lambda: int(os.environ.get("KUBE_CLIENT_MAX_CONNECTIONS", "100")))
    max_keepalive_connections: int = field(
        default_factory=lambda: int(os.environ.get("KUBE_CLIENT_MAX_KEEPALIVE", "20"))
    )

    def validate(self) -> None:
        """Reject settings no request could be made with.

        Raises:
            ConfigError: If a timeout or pool limit is not positive, or the
                explicit API server URL has no http(s) scheme.
        """
        errors: list[str] = []
        if self.api_server is not None and not self.api_server.startswith(("https://", "http://")):
            errors.append(f"api_server {self.api_server!r} must start with https:// or http://")
        if self.connect_timeout <= 0:
            errors.append("connect_timeout must be positive")
        if self.read_timeout <= 0:
            errors.append("read_timeout must be positive")
        if self.max_connections <= 0:
            errors.append("max_connections must be positive")
        if self.max_keepalive_connections < 0:
            errors.append("max_keepalive_connections must not be negative")
        if errors:
            raise ConfigError("; ".join(errors))


@dataclass(frozen=True)
class ConnectionContext:
    """Everything a call needs to reach the API server. Resolved once per client."""

    endpoint: str
    token: str
    namespace: str
    ssl_context: ssl.SSLContext = field(repr=False)


_OPTIONAL_PATH_FIELDS = ("ca_cert_path", "token_path", "namespace_path")
_KNOWN_FIELDS = (
    "api_server",
    "token",
    "namespace",
    "connect_timeout",
    "read_timeout",
    "max_connections",
    "max_keepalive_connections",
    *_OPTIONAL_PATH_FIELDS,
)


def _load_client_config(path: Path) -> ClientConfig:
    """Parse a single-context YAML settings file.

    Args:
        path: Path to the YAML file.

    Returns:
        A validated ClientConfig.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed, or has unknown keys.
    """
    if not path.exists():
        msg = f"Client configuration file not found: {path}. Set {CONFIG_PATH_ENV} to point to your config file."
        raise ConfigError(msg)

    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read client configuration file {path}: {e}", e) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Client configuration file {path} must contain a mapping, got {type(raw).__name__}.")

    unknown = sorted(set(raw) - set(_KNOWN_FIELDS))
    if unknown:
        raise ConfigError(f"Client configuration file {path} has unknown keys: {', '.join(unknown)}.")

    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        try:
            if key in _OPTIONAL_PATH_FIELDS:
                kwargs[key] = Path(str(value))
            elif key in ("connect_timeout", "read_timeout"):
                kwargs[key] = float(value)
            elif key in ("max_connections", "max_keepalive_connections"):
                kwargs[key] = int(value)
            else:
                kwargs[key] = str(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key!r} in {path}: {value!r}", e) from e

    config = ClientConfig(**kwargs)
    config.validate()
    return config


def load_client_config(path: Path | str | None = None) -> ClientConfig:
    """Load client settings from YAML.

    The path defaults to the ``KUBE_CLIENT_CONFIG`` environment variable. When
    neither is set, an all-defaults (in-cluster) configuration is returned.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if not env_path:
            return ClientConfig()
        path = env_path
    return _load_client_config(Path(path))
