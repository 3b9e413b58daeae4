"""Identity mapping commands.

Example:
    $ authmap get
    $ authmap get --arn arn:aws:iam::123456789012:role/nodes --output yaml
    $ authmap create --arn arn:aws:iam::123456789012:role/admins \\
        --username admin --group system:masters
    $ authmap delete --arn arn:aws:iam::123456789012:role/admins --all
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click
import yaml

from eks_authmap.cli.utils import connect, handle_store_errors, success
from eks_authmap.store import AuthConfigMap

if TYPE_CHECKING:
    from eks_authmap.config import AuthMapConfig


@click.command(
    name="get",
    help="List IAM identity mappings.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--arn",
    type=str,
    default=None,
    help="Only show mappings for this ARN (fails if there are none).",
    metavar="ARN",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format.",
)
@click.pass_obj
def get_command(config: AuthMapConfig, arn: str | None, output: str) -> None:
    """List identity mappings, optionally filtered by ARN."""
    with handle_store_errors():
        store = AuthConfigMap.from_cluster(connect(config))
        identities = store.find(arn) if arn else store.identities()

    entries = [identity.model_dump(mode="json") for identity in identities]
    if output.lower() == "yaml":
        click.echo(yaml.safe_dump(entries, default_flow_style=False, sort_keys=False), nl=False)
    else:
        click.echo(json.dumps(entries, indent=2))


@click.command(
    name="create",
    help="Map an IAM role or user to a Kubernetes username and groups.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--arn", type=str, required=True, help="IAM role or user ARN.", metavar="ARN")
@click.option("--username", type=str, default="", help="Kubernetes username.")
@click.option(
    "--group",
    "groups",
    type=str,
    multiple=True,
    help="Kubernetes group (repeatable).",
    metavar="GROUP",
)
@click.pass_obj
def create_command(
    config: AuthMapConfig,
    arn: str,
    username: str,
    groups: tuple[str, ...],
) -> None:
    """Add an identity mapping and save the ConfigMap."""
    with handle_store_errors():
        store = AuthConfigMap.from_cluster(connect(config))
        store.add_identity(arn, username, groups)
        store.save()
    success(f"Added identity mapping for {arn}")


@click.command(
    name="delete",
    help="Remove the mapping for an IAM role or user.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--arn", type=str, required=True, help="IAM role or user ARN.", metavar="ARN")
@click.option(
    "--all",
    "remove_all",
    is_flag=True,
    default=False,
    help="Remove every mapping for the ARN instead of only the first.",
)
@click.pass_obj
def delete_command(config: AuthMapConfig, arn: str, remove_all: bool) -> None:
    """Remove identity mapping(s) and save the ConfigMap."""
    with handle_store_errors():
        store = AuthConfigMap.from_cluster(connect(config))
        removed = store.remove_identity(arn, remove_all=remove_all)
        store.save()
    success(f"Removed {removed} identity mapping(s) for {arn}")


__all__: list[str] = ["create_command", "delete_command", "get_command"]
