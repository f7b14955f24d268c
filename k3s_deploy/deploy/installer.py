"""k3s installation via SSH.

Runs one install against one node, strictly in order:

    resolving_auth -> connecting -> [installing] -> retrieving
        -> transforming -> [merging] -> persisting -> done

Any stage may fail instead; the error is tagged with the stage and
re-raised. Nothing is retried and nothing done on the node is rolled back.
The SSH agent connection and the SSH session are released on every path.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import click

from k3s_deploy.config import InstallOptions
from k3s_deploy.deploy.k3s import GET_CONFIG_COMMAND, make_install_command
from k3s_deploy.kubeconfig import MergeTool, merge_configs, rewrite_loopback, write_config
from k3s_deploy.ssh.auth import CredentialResolver
from k3s_deploy.ssh.connection import CommandResult, RemoteSession
from k3s_deploy.utils.errors import DeploymentError, K3sDeployError

logger = logging.getLogger(__name__)


class InstallStage(str, Enum):
    """Stages of an install run."""

    RESOLVING_AUTH = "resolving_auth"
    CONNECTING = "connecting"
    INSTALLING = "installing"
    RETRIEVING = "retrieving"
    TRANSFORMING = "transforming"
    MERGING = "merging"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class InstallResult:
    """Result of an install run."""

    kubeconfig_path: str
    installed: bool = False
    merged: bool = False
    stages: List[InstallStage] = field(default_factory=list)


class K3sInstaller:
    """Installs k3s on a node and saves its kubeconfig locally.

    Args:
        resolver: Credential resolver (default: key, agent, then passphrase)
        session_factory: Builds the SSH session; called with host, port,
            user, auth and the host key options
        merge_tool: Kubeconfig merge collaborator (default: kubectl)
    """

    def __init__(
        self,
        resolver: Optional[CredentialResolver] = None,
        session_factory: Callable[..., RemoteSession] = RemoteSession,
        merge_tool: Optional[MergeTool] = None,
    ):
        self.resolver = resolver or CredentialResolver()
        self.session_factory = session_factory
        self.merge_tool = merge_tool
        self.stage: Optional[InstallStage] = None
        self.stages: List[InstallStage] = []

    def _enter(self, stage: InstallStage) -> None:
        logger.debug(f"Install stage: {stage.value}")
        self.stage = stage
        self.stages.append(stage)

    async def install(self, options: InstallOptions) -> InstallResult:
        """Install k3s (unless skipped) and write the kubeconfig.

        Raises:
            K3sDeployError: Any failure, with .stage set to where it happened
        """
        self.stage = None
        self.stages = []

        try:
            return await self._install(options)
        except K3sDeployError as e:
            if e.stage is None:
                e.stage = self.stage.value
            self._enter(InstallStage.FAILED)
            raise
        except click.Abort:
            # Ctrl-C / EOF at the passphrase prompt; click reports it itself
            self._enter(InstallStage.FAILED)
            raise
        except Exception as e:
            failed = self.stage
            self._enter(InstallStage.FAILED)
            raise DeploymentError(str(e) or type(e).__name__, stage=failed.value) from e

    async def _install(self, options: InstallOptions) -> InstallResult:
        result = InstallResult(kubeconfig_path=options.local_path, stages=self.stages)

        self._enter(InstallStage.RESOLVING_AUTH)
        auth = await self.resolver.resolve(options.ssh_key)

        async with auth:
            self._enter(InstallStage.CONNECTING)
            session = self.session_factory(
                options.host,
                options.ssh_port,
                options.user,
                auth,
                verify_host_key=not options.insecure_skip_host_key_check,
                known_hosts=options.known_hosts,
            )

            async with session:
                if not options.skip_install:
                    self._enter(InstallStage.INSTALLING)
                    await self._run_installer(session, options)
                    result.installed = True

                self._enter(InstallStage.RETRIEVING)
                logger.info(f"ssh: {GET_CONFIG_COMMAND}")
                res = await session.run(GET_CONFIG_COMMAND)
                logger.debug(f"Result: {_text(res.stdout)} {_text(res.stderr)}")
                if res.stderr:
                    logger.info(f"Result: {_text(res.stderr)}")

                self._enter(InstallStage.TRANSFORMING)
                kubeconfig = rewrite_loopback(res.stdout, options.host)

                if options.merge:
                    if os.path.exists(options.local_path):
                        self._enter(InstallStage.MERGING)
                        kubeconfig = merge_configs(
                            options.local_path, kubeconfig, self.merge_tool
                        )
                        result.merged = True
                    else:
                        logger.warning(
                            f"No kubeconfig at {options.local_path} to merge with, "
                            "writing a new one"
                        )

                self._enter(InstallStage.PERSISTING)
                result.kubeconfig_path = write_config(options.local_path, kubeconfig)

        self._enter(InstallStage.DONE)
        return result

    async def _run_installer(self, session: RemoteSession, options: InstallOptions) -> CommandResult:
        command = make_install_command(
            options.host, options.k3s_extra_args, options.k3s_version
        )
        logger.info(f"ssh: {command}")

        res = await session.run(command)
        logger.info(f"Result: {_text(res.stdout)} {_text(res.stderr)}")
        if res.exit_status:
            logger.warning(f"Installer exited with status {res.exit_status}")
        return res


def _text(data: bytes) -> str:
    return data.decode(errors="replace").strip()
