"""Error hierarchy for k3s-deploy.

Every error carries the context of the operation that raised it (key path,
host/port, remote command, kubeconfig path). The installer tags errors with
the stage they were raised in.
"""

from typing import Optional


class K3sDeployError(Exception):
    """Base exception for all k3s-deploy errors."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class CredentialError(K3sDeployError):
    """Base exception for SSH credential resolution errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class KeyReadError(CredentialError):
    """Raised when the private key file cannot be read."""

    pass


class KeyParseError(CredentialError):
    """Raised when the private key cannot be parsed for a reason other than encryption."""

    pass


class AgentUnavailable(CredentialError):
    """Raised when no SSH agent can be reached or it holds no keys.

    Only used inside credential resolution to fall through to the
    passphrase prompt.
    """

    pass


class NoMatchingAgentKey(CredentialError):
    """Raised when the agent holds no key matching the local public key.

    Only used inside credential resolution to fall through to the
    passphrase prompt.
    """

    pass


class PassphraseDecryptError(CredentialError):
    """Raised when the private key cannot be decrypted with the given passphrase."""

    pass


class SSHConnectionError(K3sDeployError):
    """Raised when SSH connection fails."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ):
        super().__init__(message)
        self.host = host
        self.port = port


class RemoteCommandError(K3sDeployError):
    """Raised when a remote command cannot be executed."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class KubeconfigError(K3sDeployError):
    """Base exception for local kubeconfig handling errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class TempFileError(KubeconfigError):
    """Raised when the temporary kubeconfig used for merging cannot be written."""

    pass


class ExternalMergeError(KubeconfigError):
    """Raised when the external merge tool fails."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        stderr: str = "",
    ):
        super().__init__(message, path)
        self.stderr = stderr


class PersistError(KubeconfigError):
    """Raised when the kubeconfig cannot be written to its destination."""

    pass


class DeploymentError(K3sDeployError):
    """Raised when the install flow fails for an unexpected reason."""

    pass
