"""Query string composition shared by every operation."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any
from urllib.parse import quote


def _param(wire: str, *, flag: bool = False) -> Any:
    return field(default=None, metadata={"wire": wire, "flag": flag})


@dataclass(frozen=True)
class QuerySpec:
    """Optional query parameters in their canonical emission order.

    Flags (watch, follow, previous, timestamps) are only emitted when true;
    every other parameter is emitted when not None.
    """

    watch: bool | None = _param("watch", flag=True)
    label_selector: str | None = _param("labelSelector")
    field_selector: str | None = _param("fieldSelector")
    resource_version: str | None = _param("resourceVersion")
    timeout_seconds: int | None = _param("timeoutSeconds")
    limit: int | None = _param("limit")
    continue_token: str | None = _param("continue")
    grace_period_seconds: int | None = _param("gracePeriodSeconds")
    propagation_policy: str | None = _param("propagationPolicy")
    container: str | None = _param("container")
    follow: bool | None = _param("follow", flag=True)
    previous: bool | None = _param("previous", flag=True)
    since_seconds: int | None = _param("sinceSeconds")
    tail_lines: int | None = _param("tailLines")
    timestamps: bool | None = _param("timestamps", flag=True)

    def params(self) -> list[tuple[str, str]]:
        """Return (wire name, unencoded value) pairs in emission order."""
        result: list[tuple[str, str]] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.metadata["flag"]:
                if value:
                    result.append((f.metadata["wire"], "true"))
                continue
            result.append((f.metadata["wire"], _render(value)))
        return result

    def compose(self) -> str:
        """Return the query string without the leading ``?``; values are percent-encoded individually."""
        return "&".join(f"{name}={quote(value, safe='')}" for name, value in self.params())


def _render(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def with_query(path: str, query: QuerySpec | None) -> str:
    """Append a composed query to a path, omitting ``?`` when there is nothing to add."""
    if query is None:
        return path
    composed = query.compose()
    return f"{path}?{composed}" if composed else path
