"""Account allow-list commands.

Example:
    $ authmap add-account 123456789012
    $ authmap remove-account 123456789012
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from eks_authmap.cli.utils import connect, handle_store_errors, success
from eks_authmap.store import AuthConfigMap

if TYPE_CHECKING:
    from eks_authmap.config import AuthMapConfig


@click.command(
    name="add-account",
    help="Add an AWS account to mapAccounts.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("account", type=str)
@click.pass_obj
def add_account_command(config: AuthMapConfig, account: str) -> None:
    """Add an account and save the ConfigMap."""
    with handle_store_errors():
        store = AuthConfigMap.from_cluster(connect(config))
        store.add_account(account)
        store.save()
    success(f"Added account {account}")


@click.command(
    name="remove-account",
    help="Remove an AWS account from mapAccounts.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("account", type=str)
@click.pass_obj
def remove_account_command(config: AuthMapConfig, account: str) -> None:
    """Remove an account and save the ConfigMap."""
    with handle_store_errors():
        store = AuthConfigMap.from_cluster(connect(config))
        store.remove_account(account)
        store.save()
    success(f"Removed account {account}")


__all__: list[str] = ["add_account_command", "remove_account_command"]
