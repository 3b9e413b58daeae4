"""Unit tests for MappingSnapshot operations."""

from __future__ import annotations

import pytest

from eks_authmap.errors import AccountNotFoundError, IdentityNotFoundError, MappingEncodeError
from eks_authmap.identity import MapIdentity, new_identity
from eks_authmap.snapshot import MappingSnapshot, split_identities

ROLE_ARN = "arn:aws:iam::123456789012:role/nodes"
ADMIN_ARN = "arn:aws:iam::123456789012:role/admins"
USER_ARN = "arn:aws:iam::123456789012:user/alice"
GROUP_ARN = "arn:aws:iam::123456789012:group/devs"


@pytest.fixture
def nodes() -> MapIdentity:
    return new_identity(ROLE_ARN, "nodes", ["system:nodes"])


@pytest.fixture
def alice() -> MapIdentity:
    return new_identity(USER_ARN, "alice", ["devs"])


class TestSplitIdentities:
    """Tests for split_identities."""

    def test_splits_in_input_order(self, nodes: MapIdentity, alice: MapIdentity) -> None:
        admins = new_identity(ADMIN_ARN, "admin")

        roles, users = split_identities([alice, nodes, admins])

        assert roles == (nodes, admins)
        assert users == (alice,)

    def test_unknown_record_fails(self, nodes: MapIdentity) -> None:
        """Test that a record that is neither role nor user cannot be split."""
        with pytest.raises(MappingEncodeError) as exc_info:
            split_identities([nodes, MapIdentity(arn=GROUP_ARN)])

        assert exc_info.value.arn == GROUP_ARN


class TestIdentityOperations:
    """Tests for add/remove/get of identity mappings."""

    def test_empty_snapshot(self) -> None:
        snapshot = MappingSnapshot()

        assert snapshot.identities() == ()
        assert snapshot.accounts == ()

    def test_add_orders_roles_before_users(
        self, nodes: MapIdentity, alice: MapIdentity
    ) -> None:
        """Test that identities are re-split into roles then users."""
        snapshot = MappingSnapshot().add_identity(alice).add_identity(nodes)

        assert snapshot.identities() == (nodes, alice)
        assert snapshot.role_records == (nodes,)
        assert snapshot.user_records == (alice,)

    def test_add_is_additive(self, nodes: MapIdentity) -> None:
        """Test that adding the same ARN twice keeps both records."""
        other = new_identity(ROLE_ARN, "other", ["x"])

        snapshot = MappingSnapshot().add_identity(nodes).add_identity(other)

        assert snapshot.get(ROLE_ARN) == (nodes, other)

    def test_add_returns_new_snapshot(self, nodes: MapIdentity) -> None:
        original = MappingSnapshot()

        updated = original.add_identity(nodes)

        assert original.identities() == ()
        assert updated.identities() == (nodes,)

    def test_get_unknown_arn_is_empty(self, nodes: MapIdentity) -> None:
        snapshot = MappingSnapshot().add_identity(nodes)

        assert snapshot.get(USER_ARN) == ()

    def test_find_unknown_arn_fails(self, nodes: MapIdentity) -> None:
        snapshot = MappingSnapshot().add_identity(nodes)

        with pytest.raises(IdentityNotFoundError) as exc_info:
            snapshot.find(USER_ARN)

        assert exc_info.value.arn == USER_ARN

    def test_remove_first_match_only(self, nodes: MapIdentity) -> None:
        """Test that remove without remove_all drops only the first match."""
        second = new_identity(ROLE_ARN, "second")
        snapshot = MappingSnapshot().add_identity(nodes).add_identity(second)

        updated = snapshot.remove_identity(ROLE_ARN)

        assert updated.get(ROLE_ARN) == (second,)

    def test_remove_missing_fails(self, nodes: MapIdentity) -> None:
        snapshot = MappingSnapshot().add_identity(nodes)

        with pytest.raises(IdentityNotFoundError):
            snapshot.remove_identity(USER_ARN)

    def test_remove_all_drops_every_match(
        self, nodes: MapIdentity, alice: MapIdentity
    ) -> None:
        second = new_identity(ROLE_ARN, "second")
        snapshot = MappingSnapshot().add_identity(nodes).add_identity(alice).add_identity(second)

        updated = snapshot.remove_identity(ROLE_ARN, remove_all=True)

        assert updated.identities() == (alice,)

    def test_remove_all_without_match_succeeds(self, nodes: MapIdentity) -> None:
        """Test that remove_all never fails when nothing matches."""
        snapshot = MappingSnapshot().add_identity(nodes)

        updated = snapshot.remove_identity(USER_ARN, remove_all=True)

        assert updated.identities() == (nodes,)

    def test_add_fails_when_stored_record_unclassifiable(self, nodes: MapIdentity) -> None:
        """Test that a stored non role/user record blocks identity writes."""
        snapshot = MappingSnapshot(records=(MapIdentity(arn=GROUP_ARN),))

        with pytest.raises(MappingEncodeError):
            snapshot.add_identity(nodes)


class TestAccountOperations:
    """Tests for add_account / remove_account."""

    def test_accounts_sorted_and_unique(self) -> None:
        """Test that the account list is deduplicated and sorted on add."""
        snapshot = MappingSnapshot()
        for account in ("300", "100", "200", "100"):
            snapshot = snapshot.add_account(account)

        assert snapshot.accounts == ("100", "200", "300")

    def test_add_account_normalizes_existing_list(self) -> None:
        snapshot = MappingSnapshot(accounts=("3", "1", "3"))

        assert snapshot.add_account("2").accounts == ("1", "2", "3")

    def test_remove_account_keeps_order(self) -> None:
        snapshot = MappingSnapshot(accounts=("3", "1", "2"))

        assert snapshot.remove_account("1").accounts == ("3", "2")

    def test_remove_missing_account_fails(self) -> None:
        snapshot = MappingSnapshot(accounts=("100",))

        with pytest.raises(AccountNotFoundError) as exc_info:
            snapshot.remove_account("999")

        assert exc_info.value.account == "999"

    def test_account_changes_leave_identities(self, nodes: MapIdentity) -> None:
        snapshot = MappingSnapshot().add_identity(nodes).add_account("100")

        assert snapshot.identities() == (nodes,)


class TestRoundTrips:
    """Mutations followed by their inverse restore the snapshot."""

    @pytest.fixture
    def populated(self, nodes: MapIdentity, alice: MapIdentity) -> MappingSnapshot:
        return (
            MappingSnapshot()
            .add_identity(nodes)
            .add_identity(alice)
            .add_account("222")
            .add_account("000")
        )

    def test_add_then_remove_account(self, populated: MappingSnapshot) -> None:
        assert populated.add_account("111").remove_account("111") == populated

    def test_add_then_remove_identity(self, populated: MappingSnapshot) -> None:
        record = new_identity(ADMIN_ARN, "admin", ["system:masters"])

        restored = populated.add_identity(record).remove_identity(ADMIN_ARN)

        assert restored.identities() == populated.identities()

    def test_every_write_keeps_roles_and_users_apart(self, populated: MappingSnapshot) -> None:
        """Test that roles precede users after each kind of identity write."""
        snapshots = [
            populated.add_identity(new_identity(USER_ARN, "again")),
            populated.add_identity(new_identity(ADMIN_ARN, "admin")),
            populated.remove_identity(ROLE_ARN),
            populated.remove_identity(USER_ARN, remove_all=True),
        ]

        for snapshot in snapshots:
            roles, users = split_identities(snapshot.identities())
            assert snapshot.identities() == (*roles, *users)
            assert all(r.principal().is_role() for r in roles)
            assert all(u.principal().is_user() for u in users)
