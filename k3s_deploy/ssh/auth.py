"""SSH credential resolution.

Turns a private key path into client keys for asyncssh by trying, in order:

1. The private key file itself (unencrypted keys)
2. A running SSH agent holding the same key (encrypted keys only)
3. An interactive passphrase prompt (encrypted keys only)

Usage:
    resolver = CredentialResolver()
    async with await resolver.resolve("/home/me/.ssh/id_rsa") as auth:
        async with RemoteSession(host, port, user, auth) as session:
            ...
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

import asyncssh
import click
from asyncssh.asn1 import ObjectIdentifier, der_decode

from k3s_deploy.utils.errors import (
    AgentUnavailable,
    KeyParseError,
    KeyReadError,
    NoMatchingAgentKey,
    PassphraseDecryptError,
)

logger = logging.getLogger(__name__)

# asyncssh raises KeyImportError with this text for any encrypted key
# imported without a passphrase (OpenSSH, PEM and PKCS#8 PEM formats).
# Encrypted PKCS#8 DER keys are recognised by their ASN.1 structure.
ENCRYPTED_KEY_MESSAGE = "passphrase must be specified"

AgentConnector = Callable[[], Awaitable[Any]]
PassphrasePrompt = Callable[[str], str]


class AuthSource(str, Enum):
    """Where the client keys came from."""

    KEY = "key"
    AGENT = "agent"
    PASSPHRASE = "passphrase"


@dataclass
class ResolvedAuth:
    """Client keys ready to be handed to asyncssh.connect.

    When the keys came from the SSH agent, the agent connection must stay
    open until the SSH session is closed, so it is owned here and released
    by close().
    """

    source: AuthSource
    client_keys: List[Any]
    agent: Optional[Any] = field(default=None, repr=False)

    async def __aenter__(self) -> "ResolvedAuth":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Release the agent connection, if any."""
        if self.agent is not None:
            agent, self.agent = self.agent, None
            await _close_agent(agent)


async def connect_default_agent() -> Any:
    """Connect to the agent named by SSH_AUTH_SOCK."""
    agent_path = os.environ.get("SSH_AUTH_SOCK", "")
    if not agent_path:
        raise AgentUnavailable("SSH_AUTH_SOCK is not set")

    agent = await asyncssh.connect_agent(agent_path)
    if agent is None:
        raise AgentUnavailable(f"Unable to connect to SSH agent at {agent_path}")
    return agent


def prompt_passphrase(key_path: str) -> str:
    """Ask for the key passphrase on the terminal with echo disabled."""
    return click.prompt(
        f"Enter passphrase for '{key_path}'",
        prompt_suffix=": ",
        hide_input=True,
        default="",
        show_default=False,
    )


async def _close_agent(agent: Any) -> None:
    agent.close()
    await agent.wait_closed()


def _is_encrypted_key_error(exc: Exception, key_data: bytes) -> bool:
    return ENCRYPTED_KEY_MESSAGE in str(exc).lower() or _is_encrypted_pkcs8_der(key_data)


def _is_encrypted_pkcs8_der(key_data: bytes) -> bool:
    """Check for a DER EncryptedPrivateKeyInfo (RFC 5208).

    asyncssh reports these as invalid rather than encrypted, so match the
    structure instead: SEQUENCE { SEQUENCE { OID, params }, OCTET STRING }.
    """
    try:
        value = der_decode(key_data)
    except ValueError:
        return False

    return (
        isinstance(value, tuple)
        and len(value) == 2
        and isinstance(value[0], tuple)
        and len(value[0]) >= 1
        and isinstance(value[0][0], ObjectIdentifier)
        and isinstance(value[1], bytes)
    )


class CredentialResolver:
    """Resolves a private key path into SSH client keys.

    Args:
        agent_connector: Async callable returning a connected agent client
            (default: the agent at SSH_AUTH_SOCK)
        prompt: Callable taking the key path and returning the passphrase
            (default: hidden terminal prompt)
    """

    def __init__(
        self,
        agent_connector: Optional[AgentConnector] = None,
        prompt: Optional[PassphrasePrompt] = None,
    ):
        self._agent_connector = agent_connector or connect_default_agent
        self._prompt = prompt or prompt_passphrase

    async def resolve(self, key_path: str) -> ResolvedAuth:
        """Resolve client keys for the private key at key_path.

        Raises:
            KeyReadError: The key file cannot be read
            KeyParseError: The key is invalid (not just encrypted)
            PassphraseDecryptError: The passphrase did not decrypt the key
        """
        key_data = self._read_key(key_path)

        auth = self._load_key(key_path, key_data)
        if auth is not None:
            return auth

        try:
            return await self._use_agent(key_path)
        except (AgentUnavailable, NoMatchingAgentKey) as e:
            logger.debug(f"SSH agent not usable for {key_path}: {e}")

        return self._ask_passphrase(key_path, key_data)

    def _read_key(self, key_path: str) -> bytes:
        try:
            with open(key_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise KeyReadError(
                f"Unable to read SSH key {key_path}: {e}",
                path=key_path,
            )

    def _load_key(self, key_path: str, key_data: bytes) -> Optional[ResolvedAuth]:
        """Import an unencrypted key, or return None if it is encrypted."""
        try:
            key = asyncssh.import_private_key(key_data)
        except (asyncssh.KeyImportError, ValueError) as e:
            if _is_encrypted_key_error(e, key_data):
                logger.debug(f"SSH key {key_path} is encrypted")
                return None
            raise KeyParseError(
                f"Unable to parse SSH key {key_path}: {e}",
                path=key_path,
            )

        logger.debug(f"Loaded unencrypted SSH key {key_path}")
        return ResolvedAuth(source=AuthSource.KEY, client_keys=[key])

    async def _use_agent(self, key_path: str) -> ResolvedAuth:
        """Use the agent if it holds the public half of key_path."""
        try:
            agent = await self._agent_connector()
        except (OSError, asyncssh.Error) as e:
            raise AgentUnavailable(f"Unable to connect to SSH agent: {e}")

        try:
            keys = await agent.get_keys()
            if not keys:
                raise AgentUnavailable("SSH agent holds no keys")

            public_blob = self._read_public_blob(key_path + ".pub")

            if not any(key.public_data == public_blob for key in keys):
                raise NoMatchingAgentKey(
                    f"SSH agent holds no key matching {key_path}.pub",
                    path=key_path,
                )
        except (OSError, asyncssh.Error) as e:
            await _close_agent(agent)
            raise AgentUnavailable(f"SSH agent request failed: {e}")
        except BaseException:
            await _close_agent(agent)
            raise

        logger.info(f"Using SSH agent key for {key_path}")
        return ResolvedAuth(source=AuthSource.AGENT, client_keys=list(keys), agent=agent)

    def _read_public_blob(self, public_key_path: str) -> bytes:
        try:
            with open(public_key_path, "rb") as f:
                public_key = asyncssh.import_public_key(f.read())
        except OSError as e:
            raise NoMatchingAgentKey(
                f"Unable to read public key {public_key_path}: {e}",
                path=public_key_path,
            )
        except (asyncssh.KeyImportError, ValueError) as e:
            raise NoMatchingAgentKey(
                f"Unable to parse public key {public_key_path}: {e}",
                path=public_key_path,
            )
        return public_key.public_data

    def _ask_passphrase(self, key_path: str, key_data: bytes) -> ResolvedAuth:
        passphrase = self._prompt(key_path)

        try:
            key = asyncssh.import_private_key(key_data, passphrase)
        except (asyncssh.KeyImportError, ValueError) as e:
            raise PassphraseDecryptError(
                f"Unable to decrypt SSH key {key_path}: {e}",
                path=key_path,
            )

        logger.debug(f"Decrypted SSH key {key_path} with passphrase")
        return ResolvedAuth(source=AuthSource.PASSPHRASE, client_keys=[key])
