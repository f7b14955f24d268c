"""Utility modules for k3s-deploy."""

from .errors import (
    K3sDeployError,
    CredentialError,
    KeyReadError,
    KeyParseError,
    AgentUnavailable,
    NoMatchingAgentKey,
    PassphraseDecryptError,
    SSHConnectionError,
    RemoteCommandError,
    KubeconfigError,
    TempFileError,
    ExternalMergeError,
    PersistError,
    DeploymentError,
)
from .logger import setup_logging

__all__ = [
    "K3sDeployError",
    "CredentialError",
    "KeyReadError",
    "KeyParseError",
    "AgentUnavailable",
    "NoMatchingAgentKey",
    "PassphraseDecryptError",
    "SSHConnectionError",
    "RemoteCommandError",
    "KubeconfigError",
    "TempFileError",
    "ExternalMergeError",
    "PersistError",
    "DeploymentError",
    "setup_logging",
]
