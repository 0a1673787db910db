"""Shared test fixtures: a fake API server behind httpx.MockTransport."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path

import httpx
import pytest
import structlog

from kube_rest_client.client import KubernetesClient
from kube_rest_client.clients.executor import RequestExecutor
from kube_rest_client.config import ClientConfig


class FakeApiServer:
    """Records every request and answers with ``handler`` (200 ``{}`` by default)."""

    def __init__(self) -> None:
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200, json={})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    return ClientConfig(
        api_server="https://k8s.test",
        token="test-token",
        namespace="team-a",
        ca_cert_path=tmp_path / "missing-ca.crt",
    )


@pytest.fixture
def server() -> FakeApiServer:
    return FakeApiServer()


@pytest.fixture
async def kube(client_config: ClientConfig, server: FakeApiServer) -> AsyncIterator[KubernetesClient]:
    client = KubernetesClient(client_config, transport=httpx.MockTransport(server))
    yield client
    await client.aclose()


@pytest.fixture
async def executor(client_config: ClientConfig, server: FakeApiServer) -> AsyncIterator[RequestExecutor]:
    ex = RequestExecutor(client_config, httpx.MockTransport(server))
    yield ex
    await ex.aclose()
