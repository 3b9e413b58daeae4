"""Collaborator-facing access to the aws-auth mapping store.

AuthConfigMap binds one fetched ConfigMap to the gateway that will save it.
It is meant for a single logical operation: fetch, apply mutations, save,
discard. Mutations never edit the held resource in place; each one decodes
the stored text, applies a pure snapshot operation and swaps in a new
resource value carrying the re-encoded keys.

Identity operations only touch mapRoles/mapUsers and account operations
only touch mapAccounts, so a corrupt key does not block unrelated edits.

Example:
    >>> store = AuthConfigMap.from_cluster(gateway)
    >>> store.add_identity(
    ...     "arn:aws:iam::123456789012:role/admins",
    ...     username="admin",
    ...     groups=[GROUP_MASTERS],
    ... )
    >>> store.save()
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from eks_authmap.codec import (
    decode_accounts,
    decode_identities,
    decode_snapshot,
    encode_accounts,
    encode_identities,
)
from eks_authmap.identity import MapIdentity, new_identity
from eks_authmap.resource import AuthConfigMapResource
from eks_authmap.snapshot import ROLES_KEY, USERS_KEY, MappingSnapshot

if TYPE_CHECKING:
    from eks_authmap.arn import ARN
    from eks_authmap.gateway import ConfigMapGateway

logger = structlog.get_logger(__name__)


class AuthConfigMap:
    """The auth ConfigMap held in memory between fetch and save.

    Attributes:
        resource: The current (unsaved or last saved) resource value.
    """

    def __init__(
        self,
        gateway: ConfigMapGateway,
        resource: AuthConfigMapResource | None = None,
    ) -> None:
        """Bind a resource to the gateway that persists it.

        Args:
            gateway: Initialized gateway.
            resource: Previously fetched resource. None starts from an empty,
                uncreated ConfigMap.
        """
        self._gateway = gateway
        if resource is None:
            config = gateway.config
            resource = AuthConfigMapResource(
                name=config.name,
                namespace=config.namespace,
                labels=dict(config.labels),
            )
        self.resource = resource

    @classmethod
    def from_cluster(cls, gateway: ConfigMapGateway) -> AuthConfigMap:
        """Fetch the auth ConfigMap.

        A missing ConfigMap yields an empty store that will be created on save.

        Raises:
            MappingPersistenceError: If the ConfigMap cannot be read.
        """
        return cls(gateway, gateway.fetch())

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> MappingSnapshot:
        """Decode all three data keys.

        Raises:
            MappingDecodeError: If any key is malformed.
        """
        return decode_snapshot(self.resource.data)

    def identities(self) -> tuple[MapIdentity, ...]:
        """Return all identity mappings, roles followed by users.

        Raises:
            MappingDecodeError: If mapRoles or mapUsers is malformed.
        """
        return self._identity_snapshot().identities()

    def get(self, arn: ARN | str) -> tuple[MapIdentity, ...]:
        """Return every mapping for ``arn``.

        aws-iam-authenticator only honours the last entry for a duplicated
        ARN; all entries are returned here.
        """
        return self._identity_snapshot().get(arn)

    def find(self, arn: ARN | str) -> tuple[MapIdentity, ...]:
        """Return every mapping for ``arn``.

        Raises:
            IdentityNotFoundError: If ``arn`` is not mapped.
        """
        return self._identity_snapshot().find(arn)

    def accounts(self) -> tuple[str, ...]:
        """Return the mapped account IDs.

        Raises:
            MappingDecodeError: If mapAccounts is malformed.
        """
        return decode_accounts(self.resource.data)

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_identity(
        self,
        arn: ARN | str,
        username: str,
        groups: Iterable[str] = (),
    ) -> MapIdentity:
        """Map an IAM role or user ARN to a Kubernetes username and groups.

        The mapping is appended even if ``arn`` is already mapped. Node group
        instance roles should use ROLE_NODEGROUP_USERNAME and
        ROLE_NODEGROUP_GROUPS.

        Returns:
            The added record.

        Raises:
            ARNParseError: If the ARN is malformed.
            ARNClassificationError: If the ARN is neither a role nor a user.
            MappingDecodeError: If the stored identities are malformed.
        """
        record = new_identity(arn, username, groups)
        snapshot = self._identity_snapshot().add_identity(record)
        logger.info("identity_added", arn=record.arn, username=username)
        self._set_identities(snapshot)
        return record

    def remove_identity(self, arn: ARN | str, *, remove_all: bool = False) -> int:
        """Remove the mapping(s) for ``arn``.

        Args:
            arn: ARN to remove.
            remove_all: If False, remove the first mapping found and fail
                if there is none. If True, remove every mapping and succeed
                even if there is none.

        Returns:
            Number of mappings removed.

        Raises:
            IdentityNotFoundError: If ``remove_all`` is False and ``arn`` is
                not mapped.
            MappingDecodeError: If the stored identities are malformed.
        """
        current = self._identity_snapshot()
        snapshot = current.remove_identity(arn, remove_all=remove_all)

        removed = current.get(arn)
        if not remove_all:
            removed = removed[:1]
        for record in removed:
            logger.info(
                "identity_removed",
                arn=record.arn,
                username=record.username,
                groups=list(record.groups),
            )

        self._set_identities(snapshot)
        return len(removed)

    def add_account(self, account: str) -> None:
        """Add an account to mapAccounts, keeping the list unique and sorted.

        Raises:
            MappingDecodeError: If mapAccounts is malformed.
        """
        snapshot = MappingSnapshot(accounts=self.accounts()).add_account(account)
        logger.info("account_added", account=account)
        self.resource = self.resource.with_data(encode_accounts(snapshot.accounts))

    def remove_account(self, account: str) -> None:
        """Remove an account from mapAccounts.

        Raises:
            AccountNotFoundError: If ``account`` is not mapped.
            MappingDecodeError: If mapAccounts is malformed.
        """
        snapshot = MappingSnapshot(accounts=self.accounts()).remove_account(account)
        logger.info("account_removed", account=account)
        self.resource = self.resource.with_data(encode_accounts(snapshot.accounts))

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self) -> AuthConfigMapResource:
        """Create or update the ConfigMap on the cluster.

        Returns:
            The stored resource, which replaces the held one.

        Raises:
            MappingPersistenceError: If the write fails.
        """
        self.resource = self._gateway.save(self.resource)
        return self.resource

    def _identity_snapshot(self) -> MappingSnapshot:
        data = self.resource.data
        roles = decode_identities(data, ROLES_KEY)
        users = decode_identities(data, USERS_KEY)
        return MappingSnapshot(records=(*roles, *users))

    def _set_identities(self, snapshot: MappingSnapshot) -> None:
        self.resource = self.resource.with_data(encode_identities(snapshot.records))


__all__ = ["AuthConfigMap"]
