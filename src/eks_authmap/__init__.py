"""eks-authmap: manage the EKS aws-auth ConfigMap.

The aws-auth ConfigMap maps IAM roles and users to Kubernetes usernames and
RBAC groups, and lists AWS accounts whose principals are mapped
automatically.

Example:
    >>> from eks_authmap import AuthConfigMap, AuthMapConfig, ConfigMapGateway
    >>> gateway = ConfigMapGateway(AuthMapConfig())
    >>> gateway.startup()
    >>> store = AuthConfigMap.from_cluster(gateway)
    >>> store.add_account("123456789012")
    >>> store.save()
"""

from __future__ import annotations

from typing import Any

__version__ = "0.1.0"
__all__ = [
    "AuthConfigMap",
    "AuthMapConfig",
    "ConfigMapGateway",
    "MapIdentity",
    "MappingSnapshot",
    "new_identity",
    "parse_arn",
]

_EXPORTS = {
    "AuthConfigMap": "eks_authmap.store",
    "AuthMapConfig": "eks_authmap.config",
    "ConfigMapGateway": "eks_authmap.gateway",
    "MapIdentity": "eks_authmap.identity",
    "MappingSnapshot": "eks_authmap.snapshot",
    "new_identity": "eks_authmap.identity",
    "parse_arn": "eks_authmap.arn",
}


# Lazy imports keep `import eks_authmap` free of the kubernetes client
def __getattr__(name: str) -> Any:
    """Lazy import of public components."""
    if name in _EXPORTS:
        from importlib import import_module

        return getattr(import_module(_EXPORTS[name]), name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
