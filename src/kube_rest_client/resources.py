"""API resource descriptors and the collection path templates."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote


@dataclass(frozen=True)
class ApiResource:
    """Where a resource type lives on the API server.

    Core resources (empty ``group``) live under ``/api/{version}``; every
    other group lives under ``/apis/{group}/{version}``.
    """

    kind: str
    plural: str
    version: str = "v1"
    group: str = ""
    namespaced: bool = True

    @property
    def api_prefix(self) -> str:
        if self.group:
            return f"/apis/{self.group}/{self.version}"
        return f"/api/{self.version}"

    def path(self, namespace: str | None = None, name: str | None = None, subresource: str | None = None) -> str:
        """Build the resource path.

        Args:
            namespace: Namespace segment. None drops ``/namespaces/{ns}``, which
                addresses the resource across all namespaces.
            name: Resource name. None addresses the collection.
            subresource: Subresource such as ``log`` or ``scale``; requires ``name``.
        """
        parts = [self.api_prefix]
        if self.namespaced and namespace is not None:
            parts.append(f"namespaces/{quote(namespace, safe='')}")
        parts.append(self.plural)
        if name is not None:
            parts.append(quote(name, safe=""))
            if subresource:
                parts.append(subresource)
        return "/".join(parts)


PODS = ApiResource(kind="Pod", plural="pods")
SERVICES = ApiResource(kind="Service", plural="services")
RESOURCE_QUOTAS = ApiResource(kind="ResourceQuota", plural="resourcequotas")
DEPLOYMENTS = ApiResource(kind="Deployment", plural="deployments", group="apps")

BUILTIN_RESOURCES = {r.plural: r for r in (PODS, SERVICES, RESOURCE_QUOTAS, DEPLOYMENTS)}
_SHORT_NAMES = {"po": "pods", "svc": "services", "quota": "resourcequotas", "deploy": "deployments"}


def lookup_resource(name: str) -> ApiResource:
    """Find a built-in resource by plural, kind, or short name.

    Raises:
        KeyError: If no built-in resource matches.
    """
    key = name.lower()
    if key in _SHORT_NAMES:
        return BUILTIN_RESOURCES[_SHORT_NAMES[key]]
    for resource in BUILTIN_RESOURCES.values():
        if key in (resource.plural, resource.kind.lower()):
            return resource
    raise KeyError(name)
