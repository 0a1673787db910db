"""Typed Kubernetes API client: CRUD, listing, watches and pod logs."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from kube_rest_client.clients.executor import RequestExecutor, RequestTarget
from kube_rest_client.clients.query import QuerySpec
from kube_rest_client.clients.streams import LogStream, WatchStream
from kube_rest_client.config import ClientConfig
from kube_rest_client.errors import ConfigError
from kube_rest_client.models import ResourceEnvelope, ResourceList, Status
from kube_rest_client.resources import DEPLOYMENTS, PODS, RESOURCE_QUOTAS, SERVICES, ApiResource
from kube_rest_client.validation import (
    validate_name,
    validate_namespace,
    validate_non_negative,
    validate_propagation_policy,
)

log = structlog.get_logger()

DEFAULT_GRACE_PERIOD_SECONDS = 30


def _metadata_field(body: Any, key: str) -> str | None:
    if isinstance(body, BaseModel):
        metadata = getattr(body, "metadata", None)
        if isinstance(metadata, dict):
            return metadata.get(key)
        return getattr(metadata, key, None) if metadata is not None else None
    if isinstance(body, dict):
        return (body.get("metadata") or {}).get(key)
    return None


class KubernetesClient:
    """Client for one API server.

    Credentials, namespace and TLS trust are resolved on the first call, not
    at construction. All calls share one connection pool and may run
    concurrently from different tasks. Use as an async context manager, or
    call ``aclose`` when done.

    Every operation accepts a ``model``: the schema type responses are
    decoded into. It defaults to ``ResourceEnvelope``.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._executor = RequestExecutor(self._config, transport)

    async def __aenter__(self) -> KubernetesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close open streams and the connection pool."""
        await self._executor.aclose()

    @property
    def closed(self) -> bool:
        return self._executor.closed

    @property
    def default_namespace(self) -> str:
        return self._executor.default_namespace()

    def _resolve_namespace(self, namespace: str | None) -> str:
        resolved = namespace or self.default_namespace
        validate_namespace(resolved)
        return resolved

    # --- Generic operations ---

    async def get_resource(
        self,
        resource: ApiResource,
        name: str,
        namespace: str | None = None,
        *,
        model: Any = ResourceEnvelope,
    ) -> Any:
        validate_name(name)
        ns = self._resolve_namespace(namespace)
        log.debug("get_resource", kind=resource.kind, name=name, namespace=ns)
        return await self._executor.execute(
            "GET",
            resource.path(ns, name),
            decode=model,
            target=RequestTarget(resource.kind, name, ns),
        )

    async def list_resources(
        self,
        resource: ApiResource,
        namespace: str | None = None,
        *,
        all_namespaces: bool = False,
        label_selector: str | None = None,
        field_selector: str | None = None,
        limit: int | None = None,
        continue_token: str | None = None,
        model: Any = ResourceEnvelope,
    ) -> ResourceList[Any]:
        """List resources in one namespace, or across all namespaces.

        Pass ``limit`` and the previous page's ``metadata.continue_`` as
        ``continue_token`` to page through large collections.
        """
        validate_non_negative("limit", limit)
        ns = None if all_namespaces else self._resolve_namespace(namespace)
        log.debug("list_resources", kind=resource.kind, namespace=ns, label_selector=label_selector)
        query = QuerySpec(
            label_selector=label_selector,
            field_selector=field_selector,
            limit=limit,
            continue_token=continue_token,
        )
        return await self._executor.execute(
            "GET",
            resource.path(ns),
            query=query,
            decode=ResourceList[model],
            target=RequestTarget(resource.kind, None, ns),
        )

    async def create_resource(
        self,
        resource: ApiResource,
        body: Any,
        namespace: str | None = None,
        *,
        model: Any = None,
    ) -> Any:
        ns = self._resolve_namespace(namespace)
        log.info("create_resource", kind=resource.kind, name=_metadata_field(body, "name"), namespace=ns)
        return await self._executor.execute(
            "POST",
            resource.path(ns),
            body=body,
            decode=model or self._model_for(body),
            target=RequestTarget(resource.kind, _metadata_field(body, "name"), ns),
        )

    async def update_resource(
        self,
        resource: ApiResource,
        body: Any,
        namespace: str | None = None,
        *,
        model: Any = None,
    ) -> Any:
        """Replace a resource; its name is taken from ``metadata.name``."""
        name = _metadata_field(body, "name")
        if not name:
            raise ConfigError(f"{resource.kind} name is required")
        validate_name(name)
        ns = self._resolve_namespace(namespace)
        log.info("update_resource", kind=resource.kind, name=name, namespace=ns)
        return await self._executor.execute(
            "PUT",
            resource.path(ns, name),
            body=body,
            decode=model or self._model_for(body),
            target=RequestTarget(resource.kind, name, ns),
        )

    async def delete_resource(
        self,
        resource: ApiResource,
        name: str,
        namespace: str | None = None,
        *,
        grace_period_seconds: int | None = DEFAULT_GRACE_PERIOD_SECONDS,
        propagation_policy: str | None = None,
    ) -> Status:
        validate_name(name)
        validate_non_negative("gracePeriodSeconds", grace_period_seconds)
        validate_propagation_policy(propagation_policy)
        ns = self._resolve_namespace(namespace)
        log.info(
            "delete_resource",
            kind=resource.kind,
            name=name,
            namespace=ns,
            grace_period_seconds=grace_period_seconds,
        )
        query = QuerySpec(grace_period_seconds=grace_period_seconds, propagation_policy=propagation_policy)
        return await self._executor.execute(
            "DELETE",
            resource.path(ns, name),
            query=query,
            decode=Status,
            target=RequestTarget(resource.kind, name, ns),
        )

    def watch_resources(
        self,
        resource: ApiResource,
        namespace: str | None = None,
        *,
        all_namespaces: bool = False,
        label_selector: str | None = None,
        resource_version: str | None = None,
        timeout_seconds: int | None = None,
        model: Any = ResourceEnvelope,
    ) -> WatchStream:
        """Open a watch. The request is sent when iteration starts.

        The stream ends normally when the server closes it; reconnecting from
        ``stream.last_resource_version`` is left to the caller.
        """
        validate_non_negative("timeoutSeconds", timeout_seconds)
        ns = None if all_namespaces else self._resolve_namespace(namespace)
        log.debug("watch_resources", kind=resource.kind, namespace=ns, label_selector=label_selector)
        query = QuerySpec(
            watch=True,
            label_selector=label_selector,
            resource_version=resource_version,
            timeout_seconds=timeout_seconds,
        )
        return WatchStream(
            self._executor,
            resource.path(ns),
            query,
            model,
            target=RequestTarget(resource.kind, None, ns),
        )

    def pod_logs(
        self,
        name: str,
        namespace: str | None = None,
        *,
        container: str | None = None,
        follow: bool = False,
        previous: bool = False,
        since_seconds: int | None = None,
        tail_lines: int | None = None,
        timestamps: bool = False,
    ) -> LogStream:
        """Stream a pod's log lines.

        With ``follow`` the stream stays open until the consumer closes it or
        the connection drops.
        """
        validate_name(name)
        validate_non_negative("sinceSeconds", since_seconds)
        validate_non_negative("tailLines", tail_lines)
        ns = self._resolve_namespace(namespace)
        log.debug("pod_logs", name=name, namespace=ns, container=container, follow=follow)
        query = QuerySpec(
            container=container,
            follow=follow,
            previous=previous,
            since_seconds=since_seconds,
            tail_lines=tail_lines,
            timestamps=timestamps,
        )
        return LogStream(
            self._executor,
            PODS.path(ns, name, "log"),
            query,
            target=RequestTarget(PODS.kind, name, ns),
        )

    @staticmethod
    def _model_for(body: Any) -> Any:
        return type(body) if isinstance(body, BaseModel) else ResourceEnvelope

    # --- Pods ---

    async def get_pod(self, name: str, namespace: str | None = None, *, model: Any = ResourceEnvelope) -> Any:
        return await self.get_resource(PODS, name, namespace, model=model)

    async def list_pods(
        self, namespace: str | None = None, label_selector: str | None = None, *, model: Any = ResourceEnvelope
    ) -> ResourceList[Any]:
        return await self.list_resources(PODS, namespace, label_selector=label_selector, model=model)

    async def list_all_pods(self, label_selector: str | None = None, *, model: Any = ResourceEnvelope) -> ResourceList[Any]:
        return await self.list_resources(PODS, all_namespaces=True, label_selector=label_selector, model=model)

    async def create_pod(self, pod: Any, namespace: str | None = None) -> Any:
        return await self.create_resource(PODS, pod, namespace)

    async def update_pod(self, pod: Any, namespace: str | None = None) -> Any:
        return await self.update_resource(PODS, pod, namespace)

    async def delete_pod(
        self,
        name: str,
        namespace: str | None = None,
        grace_period_seconds: int = DEFAULT_GRACE_PERIOD_SECONDS,
        propagation_policy: str | None = None,
    ) -> Status:
        return await self.delete_resource(
            PODS, name, namespace, grace_period_seconds=grace_period_seconds, propagation_policy=propagation_policy
        )

    def watch_pods(
        self,
        namespace: str | None = None,
        label_selector: str | None = None,
        resource_version: str | None = None,
        *,
        model: Any = ResourceEnvelope,
    ) -> WatchStream:
        return self.watch_resources(
            PODS, namespace, label_selector=label_selector, resource_version=resource_version, model=model
        )

    def watch_all_pods(
        self, label_selector: str | None = None, resource_version: str | None = None, *, model: Any = ResourceEnvelope
    ) -> WatchStream:
        return self.watch_resources(
            PODS, all_namespaces=True, label_selector=label_selector, resource_version=resource_version, model=model
        )

    # --- Services ---

    async def get_service(self, name: str, namespace: str | None = None, *, model: Any = ResourceEnvelope) -> Any:
        return await self.get_resource(SERVICES, name, namespace, model=model)

    async def list_services(
        self, namespace: str | None = None, label_selector: str | None = None, *, model: Any = ResourceEnvelope
    ) -> ResourceList[Any]:
        return await self.list_resources(SERVICES, namespace, label_selector=label_selector, model=model)

    async def create_service(self, service: Any, namespace: str | None = None) -> Any:
        return await self.create_resource(SERVICES, service, namespace)

    async def update_service(self, service: Any, namespace: str | None = None) -> Any:
        return await self.update_resource(SERVICES, service, namespace)

    async def delete_service(
        self,
        name: str,
        namespace: str | None = None,
        grace_period_seconds: int = DEFAULT_GRACE_PERIOD_SECONDS,
        propagation_policy: str | None = None,
    ) -> Status:
        return await self.delete_resource(
            SERVICES, name, namespace, grace_period_seconds=grace_period_seconds, propagation_policy=propagation_policy
        )

    def watch_services(
        self,
        namespace: str | None = None,
        label_selector: str | None = None,
        resource_version: str | None = None,
        *,
        model: Any = ResourceEnvelope,
    ) -> WatchStream:
        return self.watch_resources(
            SERVICES, namespace, label_selector=label_selector, resource_version=resource_version, model=model
        )

    # --- Deployments ---

    async def get_deployment(self, name: str, namespace: str | None = None, *, model: Any = ResourceEnvelope) -> Any:
        return await self.get_resource(DEPLOYMENTS, name, namespace, model=model)

    async def list_deployments(
        self, namespace: str | None = None, label_selector: str | None = None, *, model: Any = ResourceEnvelope
    ) -> ResourceList[Any]:
        return await self.list_resources(DEPLOYMENTS, namespace, label_selector=label_selector, model=model)

    async def create_deployment(self, deployment: Any, namespace: str | None = None) -> Any:
        return await self.create_resource(DEPLOYMENTS, deployment, namespace)

    async def update_deployment(self, deployment: Any, namespace: str | None = None) -> Any:
        return await self.update_resource(DEPLOYMENTS, deployment, namespace)

    async def delete_deployment(
        self,
        name: str,
        namespace: str | None = None,
        grace_period_seconds: int = DEFAULT_GRACE_PERIOD_SECONDS,
        propagation_policy: str | None = None,
    ) -> Status:
        return await self.delete_resource(
            DEPLOYMENTS,
            name,
            namespace,
            grace_period_seconds=grace_period_seconds,
            propagation_policy=propagation_policy,
        )

    async def scale_deployment(self, name: str, replicas: int, namespace: str | None = None) -> ResourceEnvelope:
        """Set ``spec.replicas`` by reading the deployment and writing it back."""
        validate_non_negative("replicas", replicas)
        log.info("scale_deployment", name=name, replicas=replicas, namespace=namespace)
        deployment: ResourceEnvelope = await self.get_deployment(name, namespace)
        spec = dict(deployment.spec or {})
        spec["replicas"] = replicas
        return await self.update_deployment(deployment.model_copy(update={"spec": spec}), namespace)

    def watch_deployments(
        self,
        namespace: str | None = None,
        label_selector: str | None = None,
        resource_version: str | None = None,
        *,
        model: Any = ResourceEnvelope,
    ) -> WatchStream:
        return self.watch_resources(
            DEPLOYMENTS, namespace, label_selector=label_selector, resource_version=resource_version, model=model
        )

    # --- ResourceQuotas ---

    async def get_resource_quota(self, name: str, namespace: str | None = None, *, model: Any = ResourceEnvelope) -> Any:
        return await self.get_resource(RESOURCE_QUOTAS, name, namespace, model=model)

    async def list_resource_quotas(
        self, namespace: str | None = None, label_selector: str | None = None, *, model: Any = ResourceEnvelope
    ) -> ResourceList[Any]:
        return await self.list_resources(RESOURCE_QUOTAS, namespace, label_selector=label_selector, model=model)

    async def create_resource_quota(self, resource_quota: Any, namespace: str | None = None) -> Any:
        return await self.create_resource(RESOURCE_QUOTAS, resource_quota, namespace)

    async def update_resource_quota(self, resource_quota: Any, namespace: str | None = None) -> Any:
        return await self.update_resource(RESOURCE_QUOTAS, resource_quota, namespace)

    async def delete_resource_quota(
        self,
        name: str,
        namespace: str | None = None,
        grace_period_seconds: int = DEFAULT_GRACE_PERIOD_SECONDS,
        propagation_policy: str | None = None,
    ) -> Status:
        return await self.delete_resource(
            RESOURCE_QUOTAS,
            name,
            namespace,
            grace_period_seconds=grace_period_seconds,
            propagation_policy=propagation_policy,
        )

    def watch_resource_quotas(
        self,
        namespace: str | None = None,
        label_selector: str | None = None,
        resource_version: str | None = None,
        *,
        model: Any = ResourceEnvelope,
    ) -> WatchStream:
        return self.watch_resources(
            RESOURCE_QUOTAS, namespace, label_selector=label_selector, resource_version=resource_version, model=model
        )
