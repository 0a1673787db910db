"""API endpoint, bearer token and default namespace resolution."""

from __future__ import annotations

import os
import threading
from pathlib import Path

import structlog

from kube_rest_client.config import (
    DEFAULT_NAMESPACE,
    DEFAULT_SERVICE_HOST,
    DEFAULT_SERVICE_PORT,
    SERVICE_HOST_ENV,
    SERVICE_PORT_ENV,
    ClientConfig,
)
from kube_rest_client.errors import AuthenticationError

log = structlog.get_logger()


class IdentityResolver:
    """Resolves who the client is and where it talks to.

    Explicit configuration wins, then the in-cluster service account files,
    then built-in defaults. Nothing is read at construction; each value is
    resolved on first access and memoized. A failed token read is not
    memoized, so a later call retries once the file appears.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._token: str | None = None
        self._namespace: str | None = None
        self._lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        if self._config.api_server:
            return self._config.api_server.rstrip("/")
        host = os.environ.get(SERVICE_HOST_ENV) or DEFAULT_SERVICE_HOST
        port = os.environ.get(SERVICE_PORT_ENV) or DEFAULT_SERVICE_PORT
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"https://{host}:{port}"

    def token(self) -> str:
        """Return the bearer token.

        Raises:
            AuthenticationError: If no token is configured and the token file
                is missing, unreadable or empty.
        """
        with self._lock:
            if self._token is None:
                self._token = self._config.token or self._read_token(self._config.token_path)
            return self._token

    def namespace(self) -> str:
        """Return the default namespace, falling back to ``default`` when it cannot be read."""
        with self._lock:
            if self._namespace is None:
                self._namespace = self._config.namespace or self._read_namespace(self._config.namespace_path)
            return self._namespace

    @staticmethod
    def _read_token(path: Path) -> str:
        try:
            token = path.read_text().strip()
        except OSError as e:
            log.warning("service_account_token_unreadable", path=str(path), error=str(e))
            raise AuthenticationError(f"Cannot read service account token from {path}", e) from e
        if not token:
            log.warning("service_account_token_empty", path=str(path))
            raise AuthenticationError(f"Service account token file {path} is empty")
        return token

    @staticmethod
    def _read_namespace(path: Path) -> str:
        try:
            namespace = path.read_text().strip()
        except OSError as e:
            log.warning("namespace_file_unreadable_using_default", path=str(path), error=str(e))
            return DEFAULT_NAMESPACE
        return namespace or DEFAULT_NAMESPACE
