"""Kubernetes API access for the auth ConfigMap.

ConfigMapGateway reads the ConfigMap and writes it back. Whether a save
creates or replaces is decided solely by the resource's UID: a resource that
was never created has no UID. Saves are not retried and concurrent
modifications are not merged; a replace carries the resourceVersion it was
read at, so the API server may reject a stale write with 409 Conflict, which
surfaces as MappingPersistenceError.

Example:
    >>> from eks_authmap.config import AuthMapConfig
    >>> from eks_authmap.gateway import ConfigMapGateway
    >>> gateway = ConfigMapGateway(AuthMapConfig(kubeconfig_path="~/.kube/config"))
    >>> gateway.startup()
    >>> resource = gateway.fetch()
    >>> resource = gateway.save(resource)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from eks_authmap.config import AuthMapConfig
from eks_authmap.errors import MappingAccessDeniedError, MappingPersistenceError
from eks_authmap.resource import AuthConfigMapResource
from eks_authmap.tracing import authmap_span, get_tracer

logger = structlog.get_logger(__name__)


class HealthState(Enum):
    """Health states reported by ``ConfigMapGateway.health_check``."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthStatus:
    """Result of a gateway health check.

    Attributes:
        state: The health state.
        message: Human-readable detail.
        details: Additional diagnostic information.
    """

    state: HealthState
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


def describe_api_error(exc: Exception) -> str:
    """Summarize a Kubernetes API exception without its body or headers.

    Args:
        exc: Exception from the kubernetes client (ApiException expected).

    Returns:
        Message safe for logging.
    """
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None)

    if status is not None and reason is not None:
        return f"{reason} (HTTP {status})"
    if reason is not None:
        return str(reason)
    return str(exc) or type(exc).__name__


class ConfigMapGateway:
    """Reads and writes the auth ConfigMap through CoreV1Api.

    Attributes:
        config: Connection configuration.
    """

    def __init__(self, config: AuthMapConfig | None = None) -> None:
        """Initialize the gateway.

        Args:
            config: Connection configuration. Uses defaults if None.
        """
        self.config = config or AuthMapConfig()
        self._client: Any = None
        self._api: Any = None
        self._tracer = get_tracer()

    # =========================================================================
    # Lifecycle Methods
    # =========================================================================

    def startup(self) -> None:
        """Initialize the Kubernetes client.

        Attempts to load configuration in this order:
        1. Explicit kubeconfig path from config
        2. In-cluster configuration
        3. Default kubeconfig (~/.kube/config)

        Raises:
            MappingPersistenceError: If the client cannot be configured.
        """
        try:
            from kubernetes import client
            from kubernetes import config as k8s_config

            if self.config.kubeconfig_path:
                k8s_config.load_kube_config(
                    config_file=self.config.kubeconfig_path,
                    context=self.config.context,
                )
                logger.info(
                    "kubeconfig_loaded",
                    kubeconfig_path=self.config.kubeconfig_path,
                    context=self.config.context,
                )
            else:
                try:
                    k8s_config.load_incluster_config()
                    logger.info("incluster_config_loaded")
                except k8s_config.ConfigException:
                    k8s_config.load_kube_config(context=self.config.context)
                    logger.info("default_kubeconfig_loaded", context=self.config.context)

            self._client = client
            self._api = client.CoreV1Api()

        except Exception as e:
            logger.exception("kubernetes_client_init_failed")
            raise MappingPersistenceError(
                "connect",
                name=self.config.name,
                namespace=self.config.namespace,
                reason=str(e),
            ) from e

    def shutdown(self) -> None:
        """Drop the API client."""
        self._client = None
        self._api = None

    def health_check(self) -> HealthStatus:
        """Check that the ConfigMap namespace is reachable.

        Returns:
            HealthStatus indicating current health state.
        """
        if self._api is None:
            return HealthStatus(
                state=HealthState.UNHEALTHY,
                message="Gateway not initialized - call startup() first",
            )

        try:
            self._api.list_namespaced_config_map(namespace=self.config.namespace, limit=1)
        except Exception as e:
            return HealthStatus(
                state=HealthState.UNHEALTHY,
                message=f"K8s API check failed: {describe_api_error(e)}",
            )
        return HealthStatus(
            state=HealthState.HEALTHY,
            message=f"Connected to K8s API, namespace: {self.config.namespace}",
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def fetch(self) -> AuthConfigMapResource:
        """Read the auth ConfigMap.

        A ConfigMap that does not exist is not an error: an empty, uncreated
        resource is returned instead.

        Returns:
            The fetched resource.

        Raises:
            MappingAccessDeniedError: If reading the ConfigMap is forbidden.
            MappingPersistenceError: If the read fails for any other reason.
        """
        self._ensure_initialized()
        name, namespace = self.config.name, self.config.namespace

        with authmap_span(self._tracer, "fetch", name=name, namespace=namespace) as span:
            try:
                config_map = self._api.read_namespaced_config_map(
                    name=name,
                    namespace=namespace,
                )
            except self._client.rest.ApiException as e:
                if e.status == 404:
                    logger.debug("auth_configmap_absent", name=name, namespace=namespace)
                    span.set_attribute("authmap.found", False)
                    return AuthConfigMapResource(
                        name=name,
                        namespace=namespace,
                        labels=dict(self.config.labels),
                    )
                raise self._api_error("read", e) from e
            except Exception as e:
                raise self._transport_error("read", e) from e

            span.set_attribute("authmap.found", True)

        resource = AuthConfigMapResource.from_k8s(config_map)
        logger.debug(
            "auth_configmap_fetched",
            name=name,
            namespace=namespace,
            uid=resource.uid,
            resource_version=resource.resource_version,
            data=resource.data,
        )
        return resource

    def save(self, resource: AuthConfigMapResource) -> AuthConfigMapResource:
        """Persist ``resource``, creating the ConfigMap if it has no UID.

        Args:
            resource: Resource to persist.

        Returns:
            The resource as stored by the API server, carrying the UID and
            resourceVersion it assigned.

        Raises:
            MappingAccessDeniedError: If writing the ConfigMap is forbidden.
            MappingPersistenceError: If the write fails for any other reason,
                including a stale resourceVersion.
        """
        self._ensure_initialized()
        operation = "replace" if resource.exists else "create"
        body = resource.to_k8s(self._client)

        with authmap_span(
            self._tracer,
            "save",
            name=resource.name,
            namespace=resource.namespace,
            extra_attributes={"authmap.action": operation},
        ):
            try:
                if resource.exists:
                    stored = self._api.replace_namespaced_config_map(
                        name=resource.name,
                        namespace=resource.namespace,
                        body=body,
                    )
                else:
                    stored = self._api.create_namespaced_config_map(
                        namespace=resource.namespace,
                        body=body,
                    )
            except self._client.rest.ApiException as e:
                raise self._api_error(operation, e, resource=resource) from e
            except Exception as e:
                raise self._transport_error(operation, e, resource=resource) from e

        saved = AuthConfigMapResource.from_k8s(stored)
        logger.info(
            "auth_configmap_created" if operation == "create" else "auth_configmap_updated",
            name=saved.name,
            namespace=saved.namespace,
            uid=saved.uid,
            resource_version=saved.resource_version,
        )
        return saved

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _ensure_initialized(self) -> None:
        """Ensure the gateway is initialized.

        Raises:
            MappingPersistenceError: If startup() has not been called.
        """
        if self._api is None:
            raise MappingPersistenceError(
                "connect",
                name=self.config.name,
                namespace=self.config.namespace,
                reason="Gateway not initialized - call startup() first",
            )

    def _api_error(
        self,
        operation: str,
        exc: Any,
        *,
        resource: AuthConfigMapResource | None = None,
    ) -> MappingPersistenceError:
        name = resource.name if resource else self.config.name
        namespace = resource.namespace if resource else self.config.namespace
        status = getattr(exc, "status", None)
        reason = describe_api_error(exc)
        logger.error(
            "auth_configmap_api_error",
            operation=operation,
            name=name,
            namespace=namespace,
            status=status,
            reason=reason,
        )
        error_cls = MappingAccessDeniedError if status == 403 else MappingPersistenceError
        return error_cls(operation, name=name, namespace=namespace, reason=reason, status=status)

    def _transport_error(
        self,
        operation: str,
        exc: Exception,
        *,
        resource: AuthConfigMapResource | None = None,
    ) -> MappingPersistenceError:
        name = resource.name if resource else self.config.name
        namespace = resource.namespace if resource else self.config.namespace
        logger.error(
            "auth_configmap_transport_error",
            operation=operation,
            name=name,
            namespace=namespace,
            error_type=type(exc).__name__,
        )
        return MappingPersistenceError(
            operation, name=name, namespace=namespace, reason=describe_api_error(exc)
        )


__all__ = [
    "ConfigMapGateway",
    "HealthState",
    "HealthStatus",
    "describe_api_error",
]
