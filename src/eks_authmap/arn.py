"""Parsing and classification of IAM principal ARNs.

An ARN is split into at most six colon-separated parts:

    arn:partition:service:region:account-id:resource

where the trailing resource part may take any of these forms:

    resource-type/resource
    resource-type/resource/qualifier
    resource-type/resource:qualifier
    resource-type:resource
    resource-type:resource:qualifier

Only ARNs whose resource type is exactly ``role`` or ``user`` can be mapped
into the aws-auth ConfigMap.

Example:
    >>> from eks_authmap.arn import parse_arn, classify, IdentityKind
    >>> arn = parse_arn("arn:aws:iam::123456789012:role/nodes")
    >>> arn.account_id
    '123456789012'
    >>> classify(arn) is IdentityKind.ROLE
    True
    >>> str(arn)
    'arn:aws:iam::123456789012:role/nodes'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from eks_authmap.errors import ARNClassificationError, ARNParseError

ARN_SEGMENTS = 6

_RESOURCE_TYPE_DELIMITER = re.compile(r"[/:]")


class IdentityKind(Enum):
    """Classification of a principal ARN."""

    ROLE = "role"
    USER = "user"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ARN:
    """Structured view of an ARN string.

    Attributes:
        prefix: Leading segment, normally "arn".
        partition: AWS partition (e.g. "aws", "aws-cn").
        service: Service namespace (e.g. "iam").
        region: Region, empty for global services such as IAM.
        account_id: Owning account ID.
        resource: Everything after the fifth colon, unmodified.
    """

    prefix: str
    partition: str
    service: str
    region: str
    account_id: str
    resource: str

    @property
    def resource_type(self) -> str:
        """Return the resource type: the resource up to the first '/' or ':'."""
        return _RESOURCE_TYPE_DELIMITER.split(self.resource, maxsplit=1)[0]

    @property
    def resource_name(self) -> str:
        """Return the resource with its type prefix removed."""
        parts = _RESOURCE_TYPE_DELIMITER.split(self.resource, maxsplit=1)
        return parts[1] if len(parts) > 1 else ""

    @property
    def kind(self) -> IdentityKind:
        return classify(self)

    def is_role(self) -> bool:
        return self.kind is IdentityKind.ROLE

    def is_user(self) -> bool:
        return self.kind is IdentityKind.USER

    def __str__(self) -> str:
        return ":".join(
            (
                self.prefix,
                self.partition,
                self.service,
                self.region,
                self.account_id,
                self.resource,
            )
        )


def parse_arn(raw: str) -> ARN:
    """Parse an ARN string into its segments.

    No segment is validated beyond the segment count, so the result
    always formats back to exactly ``raw``.

    Args:
        raw: ARN string to parse.

    Returns:
        Parsed ARN.

    Raises:
        ARNParseError: If ``raw`` has fewer than six colon-separated segments.
    """
    portions = raw.split(":", ARN_SEGMENTS - 1)
    if len(portions) < ARN_SEGMENTS:
        raise ARNParseError(raw)
    return ARN(*portions)


def format_arn(arn: ARN) -> str:
    """Return the canonical string form of ``arn``."""
    return str(arn)


def classify(arn: ARN) -> IdentityKind:
    """Classify an ARN as an IAM role, an IAM user, or neither.

    Args:
        arn: Parsed ARN.

    Returns:
        IdentityKind.ROLE, IdentityKind.USER or IdentityKind.UNKNOWN.
    """
    resource_type = arn.resource_type
    if resource_type == IdentityKind.ROLE.value:
        return IdentityKind.ROLE
    if resource_type == IdentityKind.USER.value:
        return IdentityKind.USER
    return IdentityKind.UNKNOWN


def require_kind(arn: ARN) -> IdentityKind:
    """Classify an ARN, rejecting anything that is not a role or user.

    Args:
        arn: Parsed ARN.

    Returns:
        IdentityKind.ROLE or IdentityKind.USER.

    Raises:
        ARNClassificationError: If the resource type is neither "role" nor "user".
    """
    kind = classify(arn)
    if kind is IdentityKind.UNKNOWN:
        raise ARNClassificationError(str(arn), resource_type=arn.resource_type)
    return kind


def classify_string(raw: str) -> IdentityKind:
    """Parse and classify ``raw``, returning UNKNOWN when it does not parse."""
    try:
        return classify(parse_arn(raw))
    except ARNParseError:
        return IdentityKind.UNKNOWN


__all__ = [
    "ARN",
    "ARN_SEGMENTS",
    "IdentityKind",
    "classify",
    "classify_string",
    "format_arn",
    "parse_arn",
    "require_kind",
]
