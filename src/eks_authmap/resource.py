"""The aws-auth ConfigMap as an immutable value.

An AuthConfigMapResource is produced by fetching the ConfigMap, replaced by a
new value on every mutation, and consumed by save. Its ``uid`` is the
creation marker: an empty UID means the ConfigMap does not exist yet and
saving it must create it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from eks_authmap.config import OBJECT_NAME, OBJECT_NAMESPACE


class AuthConfigMapResource(BaseModel):
    """Snapshot of the auth ConfigMap object as held between fetch and save.

    Attributes:
        name: ConfigMap name.
        namespace: ConfigMap namespace.
        uid: Server-assigned UID; empty until the ConfigMap is created.
        resource_version: Server resourceVersion the data was read at.
        labels: Object labels.
        annotations: Object annotations.
        finalizers: Object finalizers.
        owner_references: Owner references (``V1OwnerReference`` objects,
            passed back unchanged).
        data: Raw ConfigMap data (key to YAML text).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default=OBJECT_NAME)
    namespace: str = Field(default=OBJECT_NAMESPACE)
    uid: str = Field(default="", description="Creation marker")
    resource_version: str | None = Field(default=None)
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    finalizers: tuple[str, ...] = Field(default=())
    owner_references: tuple[Any, ...] = Field(default=())
    data: dict[str, str] = Field(default_factory=dict)

    @property
    def exists(self) -> bool:
        """Return True if the ConfigMap has been created on the cluster."""
        return bool(self.uid)

    def with_data(self, updates: Mapping[str, str]) -> AuthConfigMapResource:
        """Return a copy with ``updates`` merged into the data keys."""
        return self.model_copy(update={"data": {**self.data, **updates}})

    @classmethod
    def from_k8s(cls, config_map: Any) -> AuthConfigMapResource:
        """Build a resource from a ``kubernetes.client.V1ConfigMap``."""
        metadata = config_map.metadata
        return cls(
            name=metadata.name,
            namespace=metadata.namespace,
            uid=metadata.uid or "",
            resource_version=metadata.resource_version,
            labels=dict(metadata.labels or {}),
            annotations=dict(metadata.annotations or {}),
            finalizers=tuple(metadata.finalizers or ()),
            owner_references=tuple(metadata.owner_references or ()),
            data=dict(config_map.data or {}),
        )

    def to_k8s(self, client: Any) -> Any:
        """Build a ``V1ConfigMap`` body for create or replace.

        Metadata read from the server is carried back so that a replace does
        not drop annotations, finalizers or owner references.

        Args:
            client: The ``kubernetes.client`` module.

        Returns:
            V1ConfigMap instance.
        """
        metadata = client.V1ObjectMeta(
            name=self.name,
            namespace=self.namespace,
            labels=self.labels or None,
            annotations=self.annotations or None,
            finalizers=list(self.finalizers) or None,
            owner_references=list(self.owner_references) or None,
        )
        if self.exists:
            metadata.uid = self.uid
            metadata.resource_version = self.resource_version
        return client.V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=metadata,
            data=dict(self.data),
        )


__all__ = ["AuthConfigMapResource"]
