"""Argument validation applied before a request is issued."""

from __future__ import annotations

import re

from kube_rest_client.errors import ConfigError

# RFC 1123 label: lowercase alphanumeric and hyphens, 1-63 chars, starts/ends with alphanumeric
_NAMESPACE_RE = re.compile(r"^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$")

# RFC 1123 subdomain: dot-separated labels, up to 253 chars
_NAME_RE = re.compile(r"^[a-z0-9]([a-z0-9\-.]{0,251}[a-z0-9])?$")

_VALID_PROPAGATION_POLICIES = {"Foreground", "Background", "Orphan"}


def validate_namespace(namespace: str | None) -> None:
    """Validate a namespace name against RFC 1123."""
    if namespace is None:
        return
    if not _NAMESPACE_RE.match(namespace):
        msg = f"Invalid namespace: {namespace!r}. Must be a valid RFC 1123 label."
        raise ConfigError(msg)


def validate_name(name: str) -> None:
    """Validate a resource name against RFC 1123 subdomain rules."""
    if not name or not _NAME_RE.match(name):
        msg = f"Invalid resource name: {name!r}. Must be a valid RFC 1123 subdomain."
        raise ConfigError(msg)


def validate_propagation_policy(policy: str | None) -> None:
    if policy is None:
        return
    if policy not in _VALID_PROPAGATION_POLICIES:
        valid = ", ".join(sorted(_VALID_PROPAGATION_POLICIES))
        msg = f"Invalid propagation policy: {policy!r}. Must be one of: {valid}"
        raise ConfigError(msg)


def validate_non_negative(field_name: str, value: int | None) -> None:
    """Validate an optional integer query parameter such as tailLines or gracePeriodSeconds."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"Invalid {field_name}: {value!r}. Must be a non-negative integer."
        raise ConfigError(msg)
