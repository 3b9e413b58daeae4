"""Command-line interface for the aws-auth mapping store.

Command Groups:
    authmap get: List identity mappings
    authmap create: Add an identity mapping
    authmap delete: Remove identity mapping(s)
    authmap add-account / remove-account: Edit mapAccounts

Example:
    $ authmap --help
    $ authmap --kubeconfig ~/.kube/config get --output yaml
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click
from pydantic import ValidationError

from eks_authmap.cli.account import add_account_command, remove_account_command
from eks_authmap.cli.identity import create_command, delete_command, get_command
from eks_authmap.cli.utils import ExitCode, error_exit
from eks_authmap.config import AuthMapConfig
from eks_authmap.logging import LOG_LEVELS, configure_logging


def _get_version() -> str:
    """Get the eks-authmap package version.

    Returns:
        Version string from package metadata, or 'unknown' if not installed.
    """
    try:
        return get_version("eks-authmap")
    except PackageNotFoundError:
        return "unknown"


@click.group(
    name="authmap",
    help="Manage the EKS aws-auth ConfigMap mapping IAM principals to Kubernetes identities.",
    epilog="Use 'authmap <command> --help' for command-specific help.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=_get_version(), prog_name="authmap", message="%(prog)s %(version)s")
@click.option(
    "--kubeconfig",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path),
    default=None,
    help="Path to kubeconfig file (default: in-cluster, then ~/.kube/config).",
    metavar="PATH",
)
@click.option("--context", type=str, default=None, help="Kubeconfig context to use.")
@click.option("--namespace", "-n", type=str, default=None, help="ConfigMap namespace.")
@click.option("--name", type=str, default=None, help="ConfigMap name.")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Minimum log level written to stderr.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    kubeconfig: Path | None,
    context: str | None,
    namespace: str | None,
    name: str | None,
    log_level: str,
) -> None:
    """Build the configuration shared by all subcommands.

    Options given on the command line override AUTHMAP_* / KUBECONFIG
    environment variables.
    """
    configure_logging(log_level=log_level)

    overrides = {
        "kubeconfig_path": str(kubeconfig) if kubeconfig else None,
        "context": context,
        "namespace": namespace,
        "name": name,
    }
    try:
        base = AuthMapConfig.from_env()
        ctx.obj = AuthMapConfig(
            **{
                **base.model_dump(),
                **{k: v for k, v in overrides.items() if v is not None},
            }
        )
    except ValidationError as e:
        error_exit(f"Invalid configuration: {e}", exit_code=ExitCode.USAGE_ERROR)


cli.add_command(get_command)
cli.add_command(create_command)
cli.add_command(delete_command)
cli.add_command(add_account_command)
cli.add_command(remove_account_command)


def main() -> None:
    """Console script entry point."""
    cli()


__all__: list[str] = ["cli", "main"]
