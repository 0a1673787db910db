"""Pydantic v2 wire models: resource envelope, lists, watch events and Status."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class KubeModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python, unknown fields kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# --- Metadata ---


class ObjectMeta(KubeModel):
    """Metadata every persisted resource carries."""

    name: str | None = None
    namespace: str | None = None
    uid: str | None = None
    resource_version: str | None = None
    generation: int | None = None
    creation_timestamp: str | None = None
    deletion_timestamp: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    generate_name: str | None = None
    finalizers: list[str] | None = None


class ListMeta(KubeModel):
    resource_version: str | None = None
    continue_: str | None = Field(default=None, alias="continue")
    remaining_item_count: int | None = None


# --- Resources ---


class ResourceEnvelope(KubeModel):
    """The common wrapper around any resource schema.

    ``spec`` and ``status`` are kept as opaque structured values; callers that
    need typed access pass their own model to the client instead.
    """

    api_version: str | None = None
    kind: str | None = None
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: Any = None
    status: Any = None


class ResourceList(KubeModel, Generic[T]):
    api_version: str | None = None
    kind: str | None = None
    metadata: ListMeta = Field(default_factory=ListMeta)
    items: list[T] = Field(default_factory=list)


# --- Status ---


class StatusCause(KubeModel):
    reason: str | None = None
    message: str | None = None
    field: str | None = None


class StatusDetails(KubeModel):
    name: str | None = None
    group: str | None = None
    kind: str | None = None
    uid: str | None = None
    causes: list[StatusCause] | None = None
    retry_after_seconds: int | None = None


class Status(KubeModel):
    """Operation result returned by deletions and carried by ERROR watch events."""

    api_version: str | None = "v1"
    kind: str | None = "Status"
    status: str | None = None
    message: str | None = None
    reason: str | None = None
    code: int | None = None
    details: StatusDetails | None = None


# --- Watch ---


class WatchEventType(StrEnum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    ERROR = "ERROR"
    BOOKMARK = "BOOKMARK"


class WatchEvent(BaseModel, Generic[T]):
    """One line of a watch stream."""

    type: WatchEventType
    object: T


def encode_watch_event(event: WatchEvent[Any]) -> str:
    """Render an event as a single watch-stream line (without the trailing newline)."""
    return event.model_dump_json(by_alias=True)
