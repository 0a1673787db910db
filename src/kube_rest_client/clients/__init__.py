"""Transport layer: identity, trust, request execution and streaming."""

from __future__ import annotations

import ssl

import httpx

from kube_rest_client.config import ClientConfig


def build_http_client(
    config: ClientConfig,
    ssl_context: ssl.SSLContext,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the connection pool shared by every call of one client.

    The TLS context is bound here and cannot be replaced afterwards. A custom
    ``transport`` bypasses the network entirely and is used by tests.
    """
    limits = httpx.Limits(
        max_connections=config.max_connections,
        max_keepalive_connections=config.max_keepalive_connections,
    )
    timeout = httpx.Timeout(config.read_timeout, connect=config.connect_timeout)
    if transport is not None:
        return httpx.AsyncClient(transport=transport, limits=limits, timeout=timeout)
    return httpx.AsyncClient(verify=ssl_context, limits=limits, timeout=timeout)
