"""Long-lived streaming reads: resource watches and pod log follows."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, AsyncIterator
from enum import StrEnum
from typing import Any, Generic, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from kube_rest_client.clients.executor import RequestExecutor, RequestTarget, type_adapter
from kube_rest_client.clients.query import QuerySpec
from kube_rest_client.errors import ClientError
from kube_rest_client.models import ResourceEnvelope, Status, WatchEvent, WatchEventType

log = structlog.get_logger()

ItemT = TypeVar("ItemT")


async def iter_newline_delimited(response: httpx.Response) -> AsyncIterator[str]:
    """Yield the lines of a streamed body, splitting on ``\\n`` only.

    One trailing ``\\r`` is dropped from each line. Other control or Unicode
    line-break characters (form feed, NEL, U+2028) stay inside the line. A
    final segment without a terminator is yielded when the body ends.
    """
    buffer = b""
    async for chunk in response.aiter_bytes():
        buffer += chunk
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            yield _decode_utf8(line)
    if buffer:
        yield _decode_utf8(buffer)


def _decode_utf8(line: bytes) -> str:
    return line.removesuffix(b"\r").decode("utf-8", errors="replace")


class StreamState(StrEnum):
    CONNECTING = "connecting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class LineStream(ABC, Generic[ItemT]):
    """Base class for async iterators over the lines of one streaming GET.

    The request is sent when iteration starts. Items are yielded one at a
    time in the order the server sent them. Leaving an ``async with`` block,
    calling ``aclose``, or cancelling the consuming task closes the
    response; no items are produced after that.
    """

    accept = "application/json"
    kind = "stream"
    failure_message = "Stream failed"

    def __init__(
        self,
        executor: RequestExecutor,
        path: str,
        query: QuerySpec,
        target: RequestTarget | None = None,
    ) -> None:
        self._executor = executor
        self._path = path
        self._query = query
        self._target = target
        self._iterator: AsyncGenerator[ItemT, None] | None = None
        self.state = StreamState.CONNECTING
        self.items_emitted = 0

    @abstractmethod
    def _decode_line(self, line: str) -> ItemT | None:
        """Turn one line into an item, or None to skip it."""

    def __aiter__(self) -> LineStream[ItemT]:
        return self

    async def __anext__(self) -> ItemT:
        if self._iterator is None:
            self._iterator = self._iterate()
        return await self._iterator.__anext__()

    async def __aenter__(self) -> LineStream[ItemT]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop the stream and release its connection."""
        if self._iterator is not None:
            await self._iterator.aclose()
        elif self.state is StreamState.CONNECTING:
            self.state = StreamState.CANCELLED

    async def _iterate(self) -> AsyncGenerator[ItemT, None]:
        if self.state is not StreamState.CONNECTING:
            return
        try:
            response = await self._executor.open_stream(
                self._path, self._query, accept=self.accept, target=self._target
            )
        except asyncio.CancelledError:
            self.state = StreamState.CANCELLED
            raise
        except ClientError:
            self.state = StreamState.FAILED
            raise

        self.state = StreamState.STREAMING
        log.debug("stream_opened", stream=self.kind, path=self._path)
        try:
            async for line in iter_newline_delimited(response):
                item = self._decode_line(line)
                if item is None:
                    continue
                self.items_emitted += 1
                yield item
        except (GeneratorExit, asyncio.CancelledError):
            self.state = StreamState.CANCELLED
            log.debug("stream_cancelled", stream=self.kind, path=self._path, items=self.items_emitted)
            raise
        except Exception as e:
            self.state = StreamState.FAILED
            log.error("stream_failed", stream=self.kind, path=self._path, error=str(e))
            raise ClientError(f"{self.failure_message}: {e}", e) from e
        else:
            self.state = StreamState.COMPLETED
            log.debug("stream_completed", stream=self.kind, path=self._path, items=self.items_emitted)
        finally:
            await self._executor.release_stream(response)


class WatchStream(LineStream[WatchEvent[Any]]):
    """Decodes a newline-delimited JSON watch body into WatchEvents.

    A line that does not parse is logged and skipped; it never ends the
    watch. ERROR events carry a Status object and BOOKMARK events a
    ResourceEnvelope, whatever ``model`` is. The end of the body is a
    normal completion; re-watching from ``last_resource_version`` is up to
    the caller.
    """

    kind = "watch"
    failure_message = "Watch failed"

    def __init__(
        self,
        executor: RequestExecutor,
        path: str,
        query: QuerySpec,
        model: Any,
        target: RequestTarget | None = None,
    ) -> None:
        super().__init__(executor, path, query, target)
        self._event_adapter = type_adapter(WatchEvent[model])
        self._special_adapters = {
            WatchEventType.ERROR: type_adapter(WatchEvent[Status]),
            WatchEventType.BOOKMARK: type_adapter(WatchEvent[ResourceEnvelope]),
        }
        self.last_resource_version: str | None = None

    def _decode_line(self, line: str) -> WatchEvent[Any] | None:
        if not line.strip():
            return None
        try:
            raw = json.loads(line)
            event_type = raw.get("type") if isinstance(raw, dict) else None
            adapter = self._event_adapter
            if isinstance(event_type, str):
                adapter = self._special_adapters.get(event_type, adapter)
            event = adapter.validate_python(raw)
        except (ValueError, ValidationError) as e:
            log.warning("watch_event_unparseable", path=self._path, line=line[:200], error=str(e))
            return None
        self._track_resource_version(event)
        return event

    def _track_resource_version(self, event: WatchEvent[Any]) -> None:
        if event.type is WatchEventType.ERROR:
            return
        obj = event.object
        metadata = obj.get("metadata") if isinstance(obj, dict) else getattr(obj, "metadata", None)
        if isinstance(metadata, dict):
            version = metadata.get("resourceVersion")
        else:
            version = getattr(metadata, "resource_version", None)
        if version:
            self.last_resource_version = version


class LogStream(LineStream[str]):
    """Yields pod log lines verbatim, blank lines included.

    With ``follow`` set the body never ends on its own; the stream then only
    stops when the consumer closes it or the connection drops.
    """

    accept = "text/plain"
    kind = "logs"
    failure_message = "Failed to get logs"

    def _decode_line(self, line: str) -> str | None:
        return line
