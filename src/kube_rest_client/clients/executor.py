"""Single request/response execution with uniform status-to-error mapping."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import httpx
import pydantic_core
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from kube_rest_client.clients import build_http_client
from kube_rest_client.clients.identity import IdentityResolver
from kube_rest_client.clients.query import QuerySpec, with_query
from kube_rest_client.clients.trust import build_ssl_context
from kube_rest_client.config import SERVICE_ACCOUNT_CA_CERT_PATH, ClientConfig, ConnectionContext
from kube_rest_client.errors import ApiError, AuthenticationError, ClientError, NotFoundError
from kube_rest_client.models import Status

log = structlog.get_logger()

UNREADABLE_BODY = "<unable to read error body>"


@dataclass(frozen=True)
class RequestTarget:
    """What a call addresses; used to name the resource in a NotFoundError."""

    resource_type: str
    name: str | None = None
    namespace: str | None = None


@lru_cache(maxsize=256)
def type_adapter(tp: Any) -> TypeAdapter[Any]:
    """Return a cached TypeAdapter for a schema type."""
    return TypeAdapter(tp)


def encode_body(body: Any) -> bytes:
    """Serialize a request body to JSON, dropping unset fields of pydantic models."""
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True).encode()
    return pydantic_core.to_json(body, by_alias=True)


def decode_status(body: str) -> Status | None:
    """Decode a Kubernetes Status object from an error body, or None if it is not one."""
    try:
        status = Status.model_validate_json(body)
    except ValidationError:
        return None
    if "kind" not in status.model_fields_set or status.kind != "Status":
        return None
    return status


def raise_for_status(status_code: int, body: str, target: RequestTarget | None) -> None:
    """Map a non-2xx status to the error taxonomy. 2xx returns normally."""
    if 200 <= status_code < 300:
        return
    if status_code == 404:
        if target is None:
            raise NotFoundError("Resource", "unknown")
        raise NotFoundError(target.resource_type, target.name or "unknown", target.namespace)
    if status_code in (401, 403):
        raise AuthenticationError(f"Unauthorized: {status_code}")
    raise ApiError(status_code, body, decode_status(body))


async def read_error_body(response: httpx.Response) -> str:
    """Best-effort read of an error body; never raises."""
    try:
        await response.aread()
        return response.text
    except Exception:
        return UNREADABLE_BODY


class RequestExecutor:
    """Owns the connection context and connection pool of one client.

    The context (endpoint, token, namespace, TLS trust) and the httpx pool
    are created on first use and kept until ``aclose``.
    """

    def __init__(self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        config.validate()
        self._config = config
        self._transport = transport
        self._identity = IdentityResolver(config)
        self._context: ConnectionContext | None = None
        self._http: httpx.AsyncClient | None = None
        self._open_responses: set[httpx.Response] = set()
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def context(self) -> ConnectionContext:
        """Resolve the connection context once; later calls return the cached value."""
        with self._lock:
            if self._context is None:
                ca_path = self._config.ca_cert_path or SERVICE_ACCOUNT_CA_CERT_PATH
                self._context = ConnectionContext(
                    endpoint=self._identity.endpoint,
                    token=self._identity.token(),
                    namespace=self._identity.namespace(),
                    ssl_context=build_ssl_context(ca_path),
                )
                log.info("connection_context_resolved", endpoint=self._context.endpoint)
            return self._context

    def default_namespace(self) -> str:
        return self._identity.namespace()

    def _get_http(self, context: ConnectionContext) -> httpx.AsyncClient:
        with self._lock:
            if self._http is None:
                self._http = build_http_client(self._config, context.ssl_context, self._transport)
            return self._http

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientError("Client is closed")

    def _build_request(
        self,
        method: str,
        path: str,
        query: QuerySpec | None,
        body: Any = None,
        *,
        accept: str = "application/json",
        streaming: bool = False,
    ) -> tuple[httpx.AsyncClient, httpx.Request]:
        context = self.context()
        http = self._get_http(context)
        headers = {
            "Authorization": f"Bearer {context.token}",
            "Content-Type": "application/json",
            "Accept": accept,
        }
        timeout: httpx.Timeout | None = None
        if streaming:
            timeout = httpx.Timeout(self._config.read_timeout, connect=self._config.connect_timeout, read=None)
        request = http.build_request(
            method,
            context.endpoint + with_query(path, query),
            headers=headers,
            content=encode_body(body) if body is not None else None,
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        return http, request

    async def execute(
        self,
        method: str,
        path: str,
        *,
        query: QuerySpec | None = None,
        body: Any = None,
        decode: Any = None,
        target: RequestTarget | None = None,
    ) -> Any:
        """Issue one request and decode a 2xx body into ``decode``.

        Raises:
            NotFoundError: On 404.
            AuthenticationError: On 401/403, or when no token can be resolved.
            ApiError: On any other non-2xx status.
            ClientError: On any transport, serialization or decoding failure.
        """
        self._ensure_open()
        try:
            http, request = self._build_request(method, path, query, body)
            log.debug("kube_request", method=method, path=path)
            response = await http.send(request, stream=True)
            try:
                if not 200 <= response.status_code < 300:
                    raise_for_status(response.status_code, await read_error_body(response), target)
                content = await response.aread()
            finally:
                await response.aclose()
            if decode is None:
                return None
            return type_adapter(decode).validate_json(content)
        except ClientError:
            raise
        except Exception as e:
            log.error("kube_request_failed", method=method, path=path, error=str(e))
            raise ClientError(f"Request failed: {e}", e) from e

    async def open_stream(
        self,
        path: str,
        query: QuerySpec | None,
        *,
        accept: str,
        target: RequestTarget | None = None,
    ) -> httpx.Response:
        """Send a GET whose body is consumed incrementally.

        Returns the response once a 2xx status is received. Any other status
        is mapped like ``execute`` after the connection is released.
        """
        self._ensure_open()
        try:
            http, request = self._build_request("GET", path, query, accept=accept, streaming=True)
            log.debug("kube_stream_open", path=path)
            response = await http.send(request, stream=True)
            if not 200 <= response.status_code < 300:
                try:
                    body = await read_error_body(response)
                finally:
                    await response.aclose()
                raise_for_status(response.status_code, body, target)
        except ClientError:
            raise
        except Exception as e:
            log.error("kube_stream_open_failed", path=path, error=str(e))
            raise ClientError(f"Stream request failed: {e}", e) from e

        self._open_responses.add(response)
        return response

    async def release_stream(self, response: httpx.Response) -> None:
        self._open_responses.discard(response)
        await response.aclose()

    async def aclose(self) -> None:
        """Close open streams and the connection pool. Later calls raise ClientError."""
        if self._closed:
            return
        self._closed = True
        for response in list(self._open_responses):
            await self.release_stream(response)
        if self._http is not None:
            await self._http.aclose()
        log.debug("client_closed")
