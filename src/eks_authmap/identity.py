"""Identity mapping records stored in the aws-auth ConfigMap.

Each record maps an IAM role or user ARN to a Kubernetes username and a set
of RBAC groups. On disk a record is keyed by ``rolearn`` or ``userarn``
depending on the ARN's resource type:

    - rolearn: arn:aws:iam::123456789012:role/nodes
      username: system:node:{{EC2PrivateDNSName}}
      groups:
        - system:bootstrappers
        - system:nodes

Example:
    >>> from eks_authmap.identity import new_identity, ROLE_NODEGROUP_GROUPS
    >>> identity = new_identity(
    ...     "arn:aws:iam::123456789012:role/nodes",
    ...     username="system:node:{{EC2PrivateDNSName}}",
    ...     groups=ROLE_NODEGROUP_GROUPS,
    ... )
    >>> identity.to_mapping()["rolearn"]
    'arn:aws:iam::123456789012:role/nodes'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eks_authmap.arn import ARN, IdentityKind, classify_string, parse_arn, require_kind

# Admin group, automatically granted to the IAM role that created the cluster.
GROUP_MASTERS = "system:masters"

# Default username for a nodegroup instance role mapping.
ROLE_NODEGROUP_USERNAME = "system:node:{{EC2PrivateDNSName}}"

# Groups required for nodegroup instance roles to join the cluster.
ROLE_NODEGROUP_GROUPS: tuple[str, ...] = ("system:bootstrappers", "system:nodes")

ROLE_ARN_KEY = "rolearn"
USER_ARN_KEY = "userarn"


class MapIdentity(BaseModel):
    """A single IAM principal to Kubernetes identity mapping.

    Records are compared for lookup purposes by ARN only: two records with
    the same ARN but different groups are the same mapping as far as
    removal is concerned. The model itself does not check that the ARN
    classifies; use ``new_identity`` to build a validated record.

    Attributes:
        arn: IAM role or user ARN, exactly as stored.
        username: Kubernetes username the principal authenticates as.
        groups: Kubernetes RBAC groups granted to the principal.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    arn: str = Field(..., description="IAM role or user ARN")
    username: str = Field(default="", description="Kubernetes username")
    groups: tuple[str, ...] = Field(default=(), description="Kubernetes RBAC groups")

    @property
    def kind(self) -> IdentityKind:
        """Return the classification of this record's ARN."""
        return classify_string(self.arn)

    def principal(self) -> ARN:
        """Return the parsed ARN.

        Raises:
            ARNParseError: If the stored ARN is malformed.
        """
        return parse_arn(self.arn)

    def matches(self, arn: ARN | str) -> bool:
        """Return True if this record maps ``arn``."""
        return self.arn == str(arn)

    @classmethod
    def from_mapping(cls, entry: Any) -> MapIdentity:
        """Decode one stored mapRoles/mapUsers entry.

        The ARN is read from ``rolearn`` first, then ``userarn``, regardless
        of which list the entry came from.

        Args:
            entry: Decoded YAML entry.

        Returns:
            The decoded record.

        Raises:
            ValueError: If the entry is not a mapping, has no ARN key, or
                has fields of the wrong type.
        """
        if not isinstance(entry, Mapping):
            msg = f"expected a mapping, got {type(entry).__name__}"
            raise ValueError(msg)

        arn = entry.get(ROLE_ARN_KEY)
        if arn is None:
            arn = entry.get(USER_ARN_KEY)
        if arn is None:
            msg = "missing arn"
            raise ValueError(msg)

        fields: dict[str, Any] = {"arn": arn}
        if entry.get("username") is not None:
            fields["username"] = entry["username"]
        if entry.get("groups") is not None:
            fields["groups"] = entry["groups"]

        try:
            return cls.model_validate(fields)
        except ValidationError as e:
            msg = f"invalid entry for {arn!r}: {e.errors()[0]['msg']}"
            raise ValueError(msg) from e

    def to_mapping(self) -> dict[str, Any]:
        """Encode this record in the stored aws-auth format.

        Returns:
            Dictionary keyed by rolearn or userarn.

        Raises:
            ARNParseError: If the ARN is malformed.
            ARNClassificationError: If the ARN is neither a role nor a user.
        """
        kind = require_kind(self.principal())
        key = ROLE_ARN_KEY if kind is IdentityKind.ROLE else USER_ARN_KEY
        return {key: self.arn, "username": self.username, "groups": list(self.groups)}


def new_identity(
    arn: ARN | str,
    username: str,
    groups: Iterable[str] = (),
) -> MapIdentity:
    """Build a validated identity mapping.

    Args:
        arn: IAM role or user ARN.
        username: Kubernetes username.
        groups: Kubernetes RBAC groups.

    Returns:
        The new record.

    Raises:
        ARNParseError: If the ARN has fewer than six segments.
        ARNClassificationError: If the ARN is neither a role nor a user.
    """
    principal = arn if isinstance(arn, ARN) else parse_arn(arn)
    require_kind(principal)
    return MapIdentity(arn=str(principal), username=username, groups=tuple(groups))


__all__ = [
    "GROUP_MASTERS",
    "MapIdentity",
    "ROLE_ARN_KEY",
    "ROLE_NODEGROUP_GROUPS",
    "ROLE_NODEGROUP_USERNAME",
    "USER_ARN_KEY",
    "new_identity",
]
