"""Click CLI for k3s-deploy.

Commands:
- install: Install k3s on a server via SSH and save its kubeconfig
"""

import asyncio
import logging
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from k3s_deploy import __version__
from k3s_deploy.config import (
    DEFAULT_LOCAL_PATH,
    DEFAULT_SSH_KEY,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_USER,
    K3S_VERSION,
    InstallOptions,
)
from k3s_deploy.deploy import K3sInstaller
from k3s_deploy.utils.errors import K3sDeployError
from k3s_deploy.utils.logger import setup_logging

console = Console()
logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--debug",
    envvar="K3S_DEPLOY_DEBUG",
    is_flag=True,
    help="Enable debug logging",
)
@click.pass_context
def cli(ctx, debug: bool):
    """k3s-deploy - Install k3s on a remote node over SSH."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    setup_logging(level="DEBUG" if debug else "INFO")


@cli.command()
@click.option("--ip", required=True, help="Public IP of node")
@click.option("--user", default=DEFAULT_SSH_USER, show_default=True, help="Username for SSH login")
@click.option(
    "--ssh-key",
    default=DEFAULT_SSH_KEY,
    show_default=True,
    help="The ssh key to use for remote login",
)
@click.option(
    "--ssh-port",
    type=int,
    default=DEFAULT_SSH_PORT,
    show_default=True,
    help="The port on which to connect for ssh",
)
@click.option("--skip-install", is_flag=True, help="Skip the k3s installer")
@click.option(
    "--local-path",
    default=DEFAULT_LOCAL_PATH,
    show_default=True,
    help="Local path to save the kubeconfig file",
)
@click.option(
    "--k3s-extra-args",
    default="",
    help="Optional extra arguments to pass to k3s installer, wrapped in quotes "
    "(e.g. --k3s-extra-args '--no-deploy servicelb')",
)
@click.option(
    "--merge",
    is_flag=True,
    help="Merge the config with existing kubeconfig if it already exists. "
    "Provide --local-path with --merge if a kubeconfig already exists in some other directory",
)
@click.option(
    "--k3s-version",
    default=K3S_VERSION,
    show_default=True,
    help="Optional version to install, pinned at a default",
)
@click.option("--known-hosts", help="known_hosts file used to verify the node's host key")
@click.option(
    "--insecure-skip-host-key-check",
    is_flag=True,
    help="Accept any SSH host key (INSECURE: vulnerable to man-in-the-middle)",
)
@click.pass_context
def install(
    ctx,
    ip: str,
    user: str,
    ssh_key: str,
    ssh_port: int,
    skip_install: bool,
    local_path: str,
    k3s_extra_args: str,
    merge: bool,
    k3s_version: str,
    known_hosts: Optional[str],
    insecure_skip_host_key_check: bool,
):
    """Install k3s on a server via SSH."""
    try:
        options = InstallOptions(
            ip=ip,
            user=user,
            ssh_key=ssh_key,
            ssh_port=ssh_port,
            skip_install=skip_install,
            local_path=local_path,
            k3s_extra_args=k3s_extra_args,
            merge=merge,
            k3s_version=k3s_version,
            known_hosts=known_hosts,
            insecure_skip_host_key_check=insecure_skip_host_key_check,
        )
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise click.BadParameter(errors)

    console.print(f"Public IP: {options.host}")
    console.print(f"ssh -i {options.ssh_key} {options.user}@{options.host}", highlight=False)

    if options.insecure_skip_host_key_check:
        console.print("[yellow]Warning: SSH host key verification is disabled[/]")

    installer = K3sInstaller()
    try:
        result = run_async(installer.install(options))
    except K3sDeployError as e:
        console.print(f"[red]Error ({e.stage}): {escape(str(e))}[/]")
        ctx.exit(1)

    console.print(f"Saving file to: {result.kubeconfig_path}", highlight=False)

    headline = "k3s installed" if result.installed else "Kubeconfig retrieved"
    merged = " (merged)" if result.merged else ""

    console.print()
    console.print(
        Panel(
            f"""[bold green]{headline}[/]

[bold]Node:[/] {options.host}
[bold]Kubeconfig:[/] {result.kubeconfig_path}{merged}

[bold]Test your cluster with:[/]
export KUBECONFIG={result.kubeconfig_path}
kubectl get node -o wide""",
            title="Install Summary",
        )
    )


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
