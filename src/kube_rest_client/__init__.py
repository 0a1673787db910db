"""Async Kubernetes REST client with resource watches and pod log streaming."""

from kube_rest_client.client import KubernetesClient
from kube_rest_client.clients.query import QuerySpec
from kube_rest_client.clients.streams import LogStream, StreamState, WatchStream
from kube_rest_client.config import ClientConfig, ConnectionContext, load_client_config
from kube_rest_client.errors import ApiError, AuthenticationError, ClientError, ConfigError, NotFoundError
from kube_rest_client.models import (
    ListMeta,
    ObjectMeta,
    ResourceEnvelope,
    ResourceList,
    Status,
    WatchEvent,
    WatchEventType,
    encode_watch_event,
)
from kube_rest_client.resources import DEPLOYMENTS, PODS, RESOURCE_QUOTAS, SERVICES, ApiResource

__all__ = [
    "DEPLOYMENTS",
    "PODS",
    "RESOURCE_QUOTAS",
    "SERVICES",
    "ApiError",
    "ApiResource",
    "AuthenticationError",
    "ClientConfig",
    "ClientError",
    "ConfigError",
    "ConnectionContext",
    "KubernetesClient",
    "ListMeta",
    "LogStream",
    "NotFoundError",
    "ObjectMeta",
    "QuerySpec",
    "ResourceEnvelope",
    "ResourceList",
    "Status",
    "StreamState",
    "WatchEvent",
    "WatchEventType",
    "WatchStream",
    "encode_watch_event",
    "load_client_config",
]
