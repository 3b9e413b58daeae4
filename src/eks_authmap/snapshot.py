"""Immutable in-memory view of the aws-auth mapping data.

A MappingSnapshot holds the decoded identity list (roles followed by users)
and the account allow-list. Every mutation returns a new snapshot; the
identity list is re-classified and re-split into roles and users on every
identity write, so the role/user split is never trusted from prior storage.

Example:
    >>> from eks_authmap.identity import new_identity
    >>> snapshot = MappingSnapshot()
    >>> snapshot = snapshot.add_identity(
    ...     new_identity("arn:aws:iam::123:user/alice", "alice", ["devs"])
    ... )
    >>> snapshot = snapshot.add_account("300").add_account("100")
    >>> snapshot.accounts
    ('100', '300')
    >>> [r.username for r in snapshot.user_records]
    ['alice']
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from eks_authmap.arn import ARN, IdentityKind, classify_string
from eks_authmap.errors import AccountNotFoundError, IdentityNotFoundError, MappingEncodeError
from eks_authmap.identity import MapIdentity

ROLES_KEY = "mapRoles"
USERS_KEY = "mapUsers"
ACCOUNTS_KEY = "mapAccounts"


def split_identities(
    records: Iterable[MapIdentity],
) -> tuple[tuple[MapIdentity, ...], tuple[MapIdentity, ...]]:
    """Split identity records into roles and users by classifying each ARN.

    Args:
        records: Identity records in any order.

    Returns:
        Tuple of (roles, users), each in input order.

    Raises:
        MappingEncodeError: If a record's ARN is neither a role nor a user.
    """
    roles: list[MapIdentity] = []
    users: list[MapIdentity] = []
    for record in records:
        kind = classify_string(record.arn)
        if kind is IdentityKind.ROLE:
            roles.append(record)
        elif kind is IdentityKind.USER:
            users.append(record)
        else:
            raise MappingEncodeError(
                f"{ROLES_KEY}/{USERS_KEY}",
                arn=record.arn,
                reason="identity is neither an IAM role nor an IAM user",
            )
    return tuple(roles), tuple(users)


class MappingSnapshot(BaseModel):
    """Decoded contents of the aws-auth ConfigMap.

    Attributes:
        records: Identity mappings, roles first then users.
        accounts: Account IDs from mapAccounts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    records: tuple[MapIdentity, ...] = Field(default=(), description="Identity mappings")
    accounts: tuple[str, ...] = Field(default=(), description="Mapped AWS account IDs")

    @property
    def role_records(self) -> tuple[MapIdentity, ...]:
        return tuple(r for r in self.records if r.kind is IdentityKind.ROLE)

    @property
    def user_records(self) -> tuple[MapIdentity, ...]:
        return tuple(r for r in self.records if r.kind is IdentityKind.USER)

    def identities(self) -> tuple[MapIdentity, ...]:
        """Return all identity mappings, roles followed by users."""
        return self.records

    def get(self, arn: ARN | str) -> tuple[MapIdentity, ...]:
        """Return every mapping for ``arn``, in stored order.

        The stored format tolerates duplicates, and aws-iam-authenticator
        only honours the last entry for a given ARN. This method returns all
        of them and leaves the choice to the caller.
        """
        return tuple(r for r in self.records if r.matches(arn))

    def find(self, arn: ARN | str) -> tuple[MapIdentity, ...]:
        """Return every mapping for ``arn``, failing if there is none.

        Raises:
            IdentityNotFoundError: If no mapping exists for ``arn``.
        """
        matches = self.get(arn)
        if not matches:
            raise IdentityNotFoundError(str(arn))
        return matches

    def add_identity(self, record: MapIdentity) -> MappingSnapshot:
        """Return a snapshot with ``record`` appended.

        Repeated calls for the same ARN are additive; nothing is deduplicated.

        Raises:
            MappingEncodeError: If any record no longer classifies.
        """
        return self._with_records((*self.records, record))

    def remove_identity(self, arn: ARN | str, *, remove_all: bool = False) -> MappingSnapshot:
        """Return a snapshot without the mapping(s) for ``arn``.

        Args:
            arn: ARN to remove.
            remove_all: If False, remove only the first match and fail when
                there is none. If True, remove every match and succeed even
                when nothing matched.

        Returns:
            The updated snapshot.

        Raises:
            IdentityNotFoundError: If ``remove_all`` is False and ``arn`` is
                not mapped.
            MappingEncodeError: If any remaining record no longer classifies.
        """
        if remove_all:
            return self._with_records(r for r in self.records if not r.matches(arn))

        for index, record in enumerate(self.records):
            if record.matches(arn):
                return self._with_records(
                    (*self.records[:index], *self.records[index + 1 :])
                )
        raise IdentityNotFoundError(str(arn))

    def add_account(self, account: str) -> MappingSnapshot:
        """Return a snapshot with ``account`` added.

        The resulting account list is always deduplicated and sorted.
        """
        accounts = tuple(sorted({*self.accounts, account}))
        return self.model_copy(update={"accounts": accounts})

    def remove_account(self, account: str) -> MappingSnapshot:
        """Return a snapshot without ``account``, keeping the others in order.

        Raises:
            AccountNotFoundError: If ``account`` is not in mapAccounts.
        """
        if account not in self.accounts:
            raise AccountNotFoundError(account)
        accounts = tuple(a for a in self.accounts if a != account)
        return self.model_copy(update={"accounts": accounts})

    def _with_records(self, records: Iterable[MapIdentity]) -> MappingSnapshot:
        roles, users = split_identities(records)
        return self.model_copy(update={"records": (*roles, *users)})


__all__ = [
    "ACCOUNTS_KEY",
    "MappingSnapshot",
    "ROLES_KEY",
    "USERS_KEY",
    "split_identities",
]
