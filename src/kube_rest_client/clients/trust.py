"""TLS trust policy: a cluster CA certificate, or the platform default trust store."""

from __future__ import annotations

import ssl
from pathlib import Path

import structlog

log = structlog.get_logger()


def build_ssl_context(ca_cert_path: Path | None) -> ssl.SSLContext:
    """Build the TLS context used for every connection of one client.

    When ``ca_cert_path`` names a readable PEM certificate, the returned
    context trusts exactly that CA. A missing, unreadable or invalid file is
    logged and the platform default trust store is used instead; this
    function never raises for a bad CA file.
    """
    if ca_cert_path is None:
        log.debug("ca_cert_not_configured")
        return ssl.create_default_context()

    if not ca_cert_path.is_file():
        log.warning("ca_cert_not_found", path=str(ca_cert_path))
        return ssl.create_default_context()

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    try:
        context.load_verify_locations(cafile=str(ca_cert_path))
    except (OSError, ssl.SSLError, ValueError) as e:
        log.warning("ca_cert_invalid_using_default_trust", path=str(ca_cert_path), error=str(e))
        return ssl.create_default_context()

    log.debug("ca_cert_loaded", path=str(ca_cert_path))
    return context
