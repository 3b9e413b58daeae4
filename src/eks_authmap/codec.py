"""YAML encoding of the aws-auth ConfigMap data keys.

The ConfigMap stores three independent YAML documents:

    mapRoles:    sequence of {rolearn, username, groups}
    mapUsers:    sequence of {userarn, username, groups}
    mapAccounts: sequence of account ID strings

A missing or empty key decodes to an empty sequence.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import yaml

from eks_authmap.errors import IdentityValidationError, MappingDecodeError, MappingEncodeError
from eks_authmap.identity import MapIdentity
from eks_authmap.snapshot import (
    ACCOUNTS_KEY,
    ROLES_KEY,
    USERS_KEY,
    MappingSnapshot,
    split_identities,
)


def _load_sequence(data: Mapping[str, str], key: str) -> list[Any]:
    text = data.get(key)
    if not text or not text.strip():
        return []

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MappingDecodeError(key, reason=str(e)) from e

    if loaded is None:
        return []
    if not isinstance(loaded, list):
        raise MappingDecodeError(
            key, reason=f"expected a sequence, got {type(loaded).__name__}"
        )
    return loaded


def decode_identities(data: Mapping[str, str], key: str) -> tuple[MapIdentity, ...]:
    """Decode one identity key (mapRoles or mapUsers).

    Args:
        data: ConfigMap data.
        key: Data key to decode.

    Returns:
        Decoded records in stored order.

    Raises:
        MappingDecodeError: If the key holds invalid YAML or an entry of the
            wrong shape.
    """
    records: list[MapIdentity] = []
    for index, entry in enumerate(_load_sequence(data, key)):
        try:
            records.append(MapIdentity.from_mapping(entry))
        except ValueError as e:
            raise MappingDecodeError(key, reason=f"entry {index}: {e}") from e
    return tuple(records)


def decode_accounts(data: Mapping[str, str]) -> tuple[str, ...]:
    """Decode mapAccounts.

    Every entry must be a YAML string. Unquoted account IDs are rejected
    because YAML resolves them to integers, and a leading-zero ID such as
    000000000123 would load as an octal number.

    Raises:
        MappingDecodeError: If the key holds invalid YAML or a non-string entry.
    """
    accounts: list[str] = []
    for index, entry in enumerate(_load_sequence(data, ACCOUNTS_KEY)):
        if not isinstance(entry, str):
            raise MappingDecodeError(
                ACCOUNTS_KEY,
                reason=f"entry {index}: expected a string, got {type(entry).__name__}",
            )
        accounts.append(entry)
    return tuple(accounts)


def decode_snapshot(data: Mapping[str, str] | None) -> MappingSnapshot:
    """Decode ConfigMap data into a MappingSnapshot.

    Roles and users are decoded independently and concatenated, roles first.

    Args:
        data: ConfigMap data, or None for a ConfigMap without data.

    Returns:
        The decoded snapshot.

    Raises:
        MappingDecodeError: If any key fails to decode.
    """
    data = data or {}
    roles = decode_identities(data, ROLES_KEY)
    users = decode_identities(data, USERS_KEY)
    return MappingSnapshot(records=(*roles, *users), accounts=decode_accounts(data))


def _dump(key: str, value: list[Any]) -> str:
    try:
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=False)
    except yaml.YAMLError as e:
        raise MappingEncodeError(key, reason=str(e)) from e


def _dump_identities(key: str, records: Iterable[MapIdentity]) -> str:
    entries: list[dict[str, Any]] = []
    for record in records:
        try:
            entries.append(record.to_mapping())
        except IdentityValidationError as e:
            raise MappingEncodeError(key, arn=record.arn, reason=e.message) from e
    return _dump(key, entries)


def encode_identities(records: Iterable[MapIdentity]) -> dict[str, str]:
    """Classify, split and encode identity records.

    Args:
        records: Identity records in any order.

    Returns:
        Data entries for mapRoles and mapUsers.

    Raises:
        MappingEncodeError: If a record is neither a role nor a user.
    """
    roles, users = split_identities(records)
    return {
        ROLES_KEY: _dump_identities(ROLES_KEY, roles),
        USERS_KEY: _dump_identities(USERS_KEY, users),
    }


def encode_accounts(accounts: Iterable[str]) -> dict[str, str]:
    """Encode the account list as the mapAccounts data entry."""
    return {ACCOUNTS_KEY: _dump(ACCOUNTS_KEY, list(accounts))}


def encode_snapshot(snapshot: MappingSnapshot) -> dict[str, str]:
    """Encode all three data keys of ``snapshot``."""
    return {**encode_identities(snapshot.records), **encode_accounts(snapshot.accounts)}


__all__ = [
    "decode_accounts",
    "decode_identities",
    "decode_snapshot",
    "encode_accounts",
    "encode_identities",
    "encode_snapshot",
]
