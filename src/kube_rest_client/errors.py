"""Error taxonomy shared by the request executor and the stream readers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kube_rest_client.models import Status


class ClientError(Exception):
    """Base error for every failure raised by the client.

    Raised directly for transport and serialization failures, with the
    underlying exception kept in ``cause``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class AuthenticationError(ClientError):
    """Missing credentials, or the API server answered 401/403."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Authentication failed: {message}", cause)


class NotFoundError(ClientError):
    """The API server answered 404 for a known resource."""

    def __init__(self, resource_type: str, name: str, namespace: str | None = None) -> None:
        self.resource_type = resource_type
        self.name = name
        self.namespace = namespace
        msg = f"Resource not found: {resource_type}/{name}"
        if namespace:
            msg += f" in namespace {namespace}"
        super().__init__(msg)


class ApiError(ClientError):
    """Any other non-2xx response."""

    def __init__(self, status_code: int, raw_body: str, status: Status | None = None) -> None:
        self.status_code = status_code
        self.raw_body = raw_body
        self.status = status
        super().__init__(f"Kubernetes API error (status: {status_code}): {raw_body}")


class ConfigError(ClientError):
    """Invalid explicit configuration or call arguments, detected before any request."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Configuration error: {message}", cause)
