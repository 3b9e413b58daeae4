"""Node group lifecycle hooks for the auth ConfigMap.

When a node group is created its instance role must be mapped so that nodes
can join the cluster; when it is deleted the mapping is removed again. Each
hook is a single fetch, mutate, save sequence with no isolation beyond that
ordering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from eks_authmap.errors import IdentityValidationError
from eks_authmap.identity import ROLE_NODEGROUP_GROUPS, ROLE_NODEGROUP_USERNAME
from eks_authmap.store import AuthConfigMap

if TYPE_CHECKING:
    from eks_authmap.gateway import ConfigMapGateway

logger = structlog.get_logger(__name__)


def add_nodegroup(
    gateway: ConfigMapGateway,
    instance_role_arn: str,
    *,
    nodegroup_name: str = "",
) -> AuthConfigMap:
    """Map a node group's instance role into the auth ConfigMap.

    Args:
        gateway: Initialized gateway.
        instance_role_arn: Instance role ARN of the node group.
        nodegroup_name: Node group name, used for logging.

    Returns:
        The saved store.

    Raises:
        IdentityValidationError: If the ARN is malformed or not a role/user.
        MappingPersistenceError: If the ConfigMap cannot be read or written.
    """
    store = AuthConfigMap.from_cluster(gateway)
    store.add_identity(instance_role_arn, ROLE_NODEGROUP_USERNAME, ROLE_NODEGROUP_GROUPS)
    store.save()
    logger.debug("nodegroup_mapping_saved", nodegroup=nodegroup_name, arn=instance_role_arn)
    return store


def remove_nodegroup(
    gateway: ConfigMapGateway,
    instance_role_arn: str,
    *,
    nodegroup_name: str = "",
) -> AuthConfigMap:
    """Remove the first mapping of a node group's instance role.

    Args:
        gateway: Initialized gateway.
        instance_role_arn: Instance role ARN of the node group.
        nodegroup_name: Node group name, used for logging.

    Returns:
        The saved store.

    Raises:
        IdentityValidationError: If ``instance_role_arn`` is empty.
        IdentityNotFoundError: If the role is not mapped.
        MappingPersistenceError: If the ConfigMap cannot be read or written.
    """
    if not instance_role_arn:
        msg = f"Node group {nodegroup_name!r} instance role ARN is not set"
        raise IdentityValidationError(msg)

    store = AuthConfigMap.from_cluster(gateway)
    store.remove_identity(instance_role_arn, remove_all=False)
    store.save()
    logger.debug("nodegroup_mapping_removed", nodegroup=nodegroup_name, arn=instance_role_arn)
    return store


__all__ = ["add_nodegroup", "remove_nodegroup"]
