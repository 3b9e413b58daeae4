"""Configuration for connecting to the aws-auth ConfigMap.

Example:
    >>> from eks_authmap.config import AuthMapConfig
    >>> config = AuthMapConfig()
    >>> (config.namespace, config.name)
    ('kube-system', 'aws-auth')

    >>> # External kubeconfig
    >>> config = AuthMapConfig(
    ...     kubeconfig_path="~/.kube/config",
    ...     context="my-cluster",
    ... )
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Kubernetes resource name of the auth ConfigMap.
OBJECT_NAME = "aws-auth"

# Namespace the auth ConfigMap lives in.
OBJECT_NAMESPACE = "kube-system"

_K8S_NAME_PATTERN = r"^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$"


class AuthMapConfig(BaseModel):
    """Location of the auth ConfigMap and how to reach the cluster.

    Attributes:
        name: ConfigMap name (default: "aws-auth").
        namespace: ConfigMap namespace (default: "kube-system").
        kubeconfig_path: Path to kubeconfig file. None uses in-cluster config,
            falling back to the default kubeconfig.
        context: Kubeconfig context to use. None uses current context.
        labels: Labels applied when the ConfigMap is created.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        json_schema_extra={
            "examples": [
                {"namespace": "kube-system", "name": "aws-auth"},
                {"kubeconfig_path": "~/.kube/config", "context": "prod-cluster"},
            ]
        },
    )

    name: str = Field(
        default=OBJECT_NAME,
        min_length=1,
        max_length=253,
        pattern=_K8S_NAME_PATTERN,
        description="Name of the auth ConfigMap",
    )

    namespace: str = Field(
        default=OBJECT_NAMESPACE,
        min_length=1,
        max_length=63,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$",
        description="Namespace of the auth ConfigMap",
    )

    kubeconfig_path: str | None = Field(
        default=None,
        description="Path to kubeconfig file. None uses in-cluster config.",
        examples=["~/.kube/config"],
    )

    context: str | None = Field(
        default=None,
        description="Kubeconfig context to use. None uses current context.",
    )

    labels: dict[str, str] = Field(
        default_factory=dict,
        description="Labels applied when the ConfigMap is created",
    )

    @field_validator("kubeconfig_path")
    @classmethod
    def expand_kubeconfig_path(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if v is None:
            return None
        return str(Path(v).expanduser())

    @field_validator("labels")
    @classmethod
    def validate_labels(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate K8s label lengths.

        Raises:
            ValueError: If a label key or value is too long.
        """
        for key, value in v.items():
            if len(key) > 253:
                msg = f"Label key too long: {key}"
                raise ValueError(msg)
            if len(value) > 63:
                msg = f"Label value too long for key {key}: {value}"
                raise ValueError(msg)
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AuthMapConfig:
        """Build a config from environment variables.

        Reads AUTHMAP_NAME, AUTHMAP_NAMESPACE, AUTHMAP_CONTEXT and KUBECONFIG.
        Unset or empty variables keep their defaults.

        Args:
            environ: Environment to read. Defaults to ``os.environ``.

        Returns:
            The resulting configuration.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name, var in (
            ("name", "AUTHMAP_NAME"),
            ("namespace", "AUTHMAP_NAMESPACE"),
            ("context", "AUTHMAP_CONTEXT"),
            ("kubeconfig_path", "KUBECONFIG"),
        ):
            value = env.get(var, "").strip()
            if field_name == "kubeconfig_path":
                # KUBECONFIG may hold a path list; only the first file is used.
                value = value.split(os.pathsep)[0]
            if value:
                values[field_name] = value
        return cls(**values)


__all__ = ["AuthMapConfig", "OBJECT_NAME", "OBJECT_NAMESPACE"]
