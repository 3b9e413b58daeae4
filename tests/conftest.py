"""Pytest configuration for eks-authmap tests.

Fixtures:
    - authmap_config: AuthMapConfig with test defaults
    - mock_k8s_client: Mocked kubernetes client module
    - mock_k8s_api: Mocked CoreV1Api
    - gateway_mocked: ConfigMapGateway with mocked client and API
    - fake_core_api: In-memory CoreV1Api holding ConfigMaps
    - gateway: ConfigMapGateway backed by fake_core_api
    - seeded_gateway: Factory storing ConfigMap data before a test runs
    - config_map_factory: V1ConfigMap builder for API responses
"""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog
from kubernetes import client as k8s_client

from eks_authmap.config import AuthMapConfig
from eks_authmap.gateway import ConfigMapGateway


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration a test (or the CLI) applied."""
    yield
    structlog.reset_defaults()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def authmap_config() -> AuthMapConfig:
    """Create AuthMapConfig with test defaults."""
    return AuthMapConfig(labels={"managed-by": "eks-authmap-test"})


# =============================================================================
# Mock Fixtures
# =============================================================================


class MockApiException(Exception):
    """Mock Kubernetes API Exception."""

    def __init__(self, status: int = 500, reason: str = "Error") -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"{status}: {reason}")


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create mocked kubernetes client module.

    Returns:
        MagicMock configured as kubernetes client.
    """
    mock_client = MagicMock()
    mock_client.V1ConfigMap = MagicMock()
    mock_client.V1ObjectMeta = MagicMock()
    mock_client.rest = MagicMock()
    mock_client.rest.ApiException = MockApiException
    return mock_client


@pytest.fixture
def mock_k8s_api() -> MagicMock:
    """Create mocked CoreV1Api."""
    return MagicMock()


@pytest.fixture
def gateway_mocked(
    authmap_config: AuthMapConfig,
    mock_k8s_client: MagicMock,
    mock_k8s_api: MagicMock,
) -> ConfigMapGateway:
    """Create ConfigMapGateway with mocked K8s API."""
    gateway = ConfigMapGateway(authmap_config)
    gateway._client = mock_k8s_client
    gateway._api = mock_k8s_api
    return gateway


def make_config_map(
    data: dict[str, str] | None,
    *,
    name: str = "aws-auth",
    namespace: str = "kube-system",
    uid: str = "3f1c2b9e-0000-4000-8000-000000000001",
    resource_version: str = "1",
    annotations: dict[str, str] | None = None,
    finalizers: list[str] | None = None,
    owner_references: list[k8s_client.V1OwnerReference] | None = None,
) -> k8s_client.V1ConfigMap:
    """Build a V1ConfigMap as returned by the API server."""
    return k8s_client.V1ConfigMap(
        metadata=k8s_client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            uid=uid,
            resource_version=resource_version,
            annotations=annotations,
            finalizers=finalizers,
            owner_references=owner_references,
        ),
        data=data,
    )


# =============================================================================
# In-memory API server
# =============================================================================


class FakeCoreV1Api:
    """CoreV1Api stand-in keeping ConfigMaps in a dict.

    Stored objects are copied on the way in and out, so callers never share
    state with the "server". Replaces are rejected with 409 when the body's
    resourceVersion is stale.

    Attributes:
        config_maps: Stored objects keyed by (namespace, name).
        calls: Names of the write methods invoked, in order.
    """

    def __init__(self) -> None:
        self.config_maps: dict[tuple[str, str], k8s_client.V1ConfigMap] = {}
        self.calls: list[str] = []
        self._versions = itertools.count(1000)

    @staticmethod
    def _copy(config_map: k8s_client.V1ConfigMap) -> k8s_client.V1ConfigMap:
        metadata = config_map.metadata
        return k8s_client.V1ConfigMap(
            metadata=k8s_client.V1ObjectMeta(
                name=metadata.name,
                namespace=metadata.namespace,
                uid=metadata.uid,
                resource_version=metadata.resource_version,
                labels=dict(metadata.labels) if metadata.labels else None,
                annotations=dict(metadata.annotations) if metadata.annotations else None,
                finalizers=list(metadata.finalizers) if metadata.finalizers else None,
                owner_references=(
                    list(metadata.owner_references) if metadata.owner_references else None
                ),
            ),
            data=dict(config_map.data) if config_map.data is not None else None,
        )

    def seed(self, data: dict[str, str] | None, **kwargs: Any) -> None:
        """Store a ConfigMap directly, bypassing the write methods."""
        config_map = make_config_map(data, **kwargs)
        metadata = config_map.metadata
        self.config_maps[(metadata.namespace, metadata.name)] = config_map

    def read_namespaced_config_map(self, name: str, namespace: str) -> k8s_client.V1ConfigMap:
        stored = self.config_maps.get((namespace, name))
        if stored is None:
            raise k8s_client.ApiException(status=404, reason="Not Found")
        return self._copy(stored)

    def create_namespaced_config_map(
        self, namespace: str, body: k8s_client.V1ConfigMap
    ) -> k8s_client.V1ConfigMap:
        self.calls.append("create")
        key = (namespace, body.metadata.name)
        if key in self.config_maps:
            raise k8s_client.ApiException(status=409, reason="AlreadyExists")
        stored = self._copy(body)
        stored.metadata.namespace = namespace
        stored.metadata.uid = str(uuid.uuid4())
        stored.metadata.resource_version = str(next(self._versions))
        self.config_maps[key] = stored
        return self._copy(stored)

    def replace_namespaced_config_map(
        self, name: str, namespace: str, body: k8s_client.V1ConfigMap
    ) -> k8s_client.V1ConfigMap:
        self.calls.append("replace")
        current = self.config_maps.get((namespace, name))
        if current is None:
            raise k8s_client.ApiException(status=404, reason="Not Found")
        if body.metadata.resource_version != current.metadata.resource_version:
            raise k8s_client.ApiException(status=409, reason="Conflict")
        stored = self._copy(body)
        stored.metadata.uid = current.metadata.uid
        stored.metadata.resource_version = str(next(self._versions))
        self.config_maps[(namespace, name)] = stored
        return self._copy(stored)

    def list_namespaced_config_map(self, namespace: str, limit: int | None = None) -> Any:
        items = [cm for (ns, _), cm in self.config_maps.items() if ns == namespace]
        return k8s_client.V1ConfigMapList(items=items[:limit] if limit else items)

    def stored_data(self, name: str = "aws-auth", namespace: str = "kube-system") -> Any:
        """Return the data of a stored ConfigMap (None if it has none)."""
        return self.config_maps[(namespace, name)].data


@pytest.fixture
def fake_core_api() -> FakeCoreV1Api:
    """Create an empty in-memory CoreV1Api."""
    return FakeCoreV1Api()


@pytest.fixture
def gateway(fake_core_api: FakeCoreV1Api) -> ConfigMapGateway:
    """Create ConfigMapGateway backed by the in-memory API."""
    gateway = ConfigMapGateway(AuthMapConfig())
    gateway._client = k8s_client
    gateway._api = fake_core_api
    return gateway


@pytest.fixture
def seeded_gateway(
    gateway: ConfigMapGateway,
    fake_core_api: FakeCoreV1Api,
) -> Callable[[dict[str, str] | None], ConfigMapGateway]:
    """Return a factory that stores aws-auth data and hands back the gateway."""

    def _seed(data: dict[str, str] | None) -> ConfigMapGateway:
        fake_core_api.seed(data)
        return gateway

    return _seed


@pytest.fixture
def config_map_factory() -> Callable[..., k8s_client.V1ConfigMap]:
    """Return the V1ConfigMap builder used for API responses."""
    return make_config_map
