"""Tests for IdentityResolver: precedence, in-cluster files, lazy memoized resolution."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from structlog.testing import capture_logs

from kube_rest_client.clients.identity import IdentityResolver
from kube_rest_client.config import ClientConfig
from kube_rest_client.errors import AuthenticationError


def _sa_config(tmp_path: Path, **overrides: Any) -> ClientConfig:
    return ClientConfig(
        token_path=tmp_path / "token",
        namespace_path=tmp_path / "namespace",
        **overrides,
    )


class TestEndpoint:
    def test_explicit_api_server_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
        resolver = IdentityResolver(_sa_config(tmp_path, api_server="https://api.example.com:6443/"))
        assert resolver.endpoint == "https://api.example.com:6443"

    def test_in_cluster_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
        monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "6443")
        assert IdentityResolver(_sa_config(tmp_path)).endpoint == "https://10.0.0.1:6443"

    def test_ipv6_host_is_bracketed(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "fd00::1")
        monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "443")
        assert IdentityResolver(_sa_config(tmp_path)).endpoint == "https://[fd00::1]:443"

    def test_default_service_address(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
        assert IdentityResolver(_sa_config(tmp_path)).endpoint == "https://kubernetes.default.svc:443"


class TestToken:
    def test_explicit_token_skips_file(self, tmp_path: Path) -> None:
        resolver = IdentityResolver(_sa_config(tmp_path, token="explicit"))
        assert resolver.token() == "explicit"

    def test_reads_and_strips_token_file(self, tmp_path: Path) -> None:
        (tmp_path / "token").write_text("sa-token\n")
        assert IdentityResolver(_sa_config(tmp_path)).token() == "sa-token"

    def test_construction_reads_nothing(self, tmp_path: Path) -> None:
        resolver = IdentityResolver(_sa_config(tmp_path))
        (tmp_path / "token").write_text("written-later")
        assert resolver.token() == "written-later"

    def test_token_is_memoized(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("first")
        resolver = IdentityResolver(_sa_config(tmp_path))
        assert resolver.token() == "first"
        token_file.write_text("rotated")
        assert resolver.token() == "first"

    def test_missing_token_raises(self, tmp_path: Path) -> None:
        resolver = IdentityResolver(_sa_config(tmp_path))
        with capture_logs() as logs:
            with pytest.raises(AuthenticationError, match="Cannot read service account token"):
                resolver.token()
        assert logs[0]["event"] == "service_account_token_unreadable"

    def test_empty_token_raises(self, tmp_path: Path) -> None:
        (tmp_path / "token").write_text("  \n")
        with pytest.raises(AuthenticationError, match="is empty"):
            IdentityResolver(_sa_config(tmp_path)).token()

    def test_failed_read_is_retried(self, tmp_path: Path) -> None:
        resolver = IdentityResolver(_sa_config(tmp_path))
        with pytest.raises(AuthenticationError):
            resolver.token()
        (tmp_path / "token").write_text("mounted")
        assert resolver.token() == "mounted"


class TestNamespace:
    def test_explicit_namespace(self, tmp_path: Path) -> None:
        assert IdentityResolver(_sa_config(tmp_path, namespace="team-b")).namespace() == "team-b"

    def test_reads_namespace_file(self, tmp_path: Path) -> None:
        (tmp_path / "namespace").write_text("payments\n")
        assert IdentityResolver(_sa_config(tmp_path)).namespace() == "payments"

    def test_missing_file_falls_back_with_warning(self, tmp_path: Path) -> None:
        with capture_logs() as logs:
            namespace = IdentityResolver(_sa_config(tmp_path)).namespace()
        assert namespace == "default"
        assert logs[0]["event"] == "namespace_file_unreadable_using_default"
        assert logs[0]["log_level"] == "warning"

    def test_empty_file_falls_back(self, tmp_path: Path) -> None:
        (tmp_path / "namespace").write_text("")
        assert IdentityResolver(_sa_config(tmp_path)).namespace() == "default"
