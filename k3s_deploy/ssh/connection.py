"""SSH connection and command execution."""

import logging
from dataclasses import dataclass
from typing import Optional

import asyncssh

from k3s_deploy.ssh.auth import ResolvedAuth
from k3s_deploy.utils.errors import RemoteCommandError, SSHConnectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Result of SSH command execution.

    The exit status is recorded for diagnostics only; callers decide
    whether the captured output is usable.
    """

    stdout: bytes
    stderr: bytes
    exit_status: Optional[int] = None


class RemoteSession:
    """One authenticated SSH connection to a single host.

    Host keys are verified against known_hosts unless verify_host_key is
    False, which accepts any host key.

    Usage:
        async with RemoteSession(host, port, user, auth) as session:
            result = await session.run("uname -a")
            print(result.stdout.decode())
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        auth: ResolvedAuth,
        verify_host_key: bool = True,
        known_hosts: Optional[str] = None,
    ):
        """Initialize SSH connection parameters.

        Args:
            host: SSH hostname or IP
            port: SSH port
            user: SSH username
            auth: Resolved client keys
            verify_host_key: Check the host key against known_hosts
            known_hosts: known_hosts file (default: ~/.ssh/known_hosts)
        """
        self.host = host
        self.port = port
        self.user = user
        self.verify_host_key = verify_host_key
        self.known_hosts = known_hosts
        self._auth = auth
        self._conn: Optional[asyncssh.SSHClientConnection] = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def __aenter__(self) -> "RemoteSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """Establish SSH connection."""
        options = {
            "port": self.port,
            "username": self.user,
            "client_keys": self._auth.client_keys,
            # Keys are already resolved; don't let asyncssh consult the agent again
            "agent_path": None,
        }
        if not self.verify_host_key:
            logger.warning(f"Host key verification disabled for {self.address}")
            options["known_hosts"] = None
        elif self.known_hosts:
            options["known_hosts"] = self.known_hosts

        try:
            self._conn = await asyncssh.connect(self.host, **options)
            logger.info(f"SSH connected to {self.user}@{self.address}")
        except (OSError, asyncssh.Error) as e:
            raise SSHConnectionError(
                f"Unable to connect to {self.address} over ssh: {e}",
                host=self.host,
                port=self.port,
            )

    async def close(self) -> None:
        """Close SSH connection."""
        if self._conn:
            conn, self._conn = self._conn, None
            conn.close()
            await conn.wait_closed()
            logger.debug(f"SSH connection to {self.address} closed")

    async def run(self, command: str) -> CommandResult:
        """Execute a command over SSH and wait for it to exit.

        Args:
            command: Shell command to execute

        Returns:
            CommandResult with the complete stdout and stderr
        """
        if not self._conn:
            raise SSHConnectionError("Not connected", host=self.host, port=self.port)

        try:
            # encoding=None keeps stdout/stderr as bytes
            result = await self._conn.run(command, check=False, encoding=None)
        except (OSError, asyncssh.Error) as e:
            raise RemoteCommandError(
                f"Error received processing command: {e}",
                command=command,
            )

        return CommandResult(
            stdout=result.stdout or b"",
            stderr=result.stderr or b"",
            exit_status=result.exit_status,
        )
