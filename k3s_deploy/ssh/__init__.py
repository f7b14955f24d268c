"""SSH credential resolution and command execution."""

from .auth import AuthSource, CredentialResolver, ResolvedAuth
from .connection import CommandResult, RemoteSession

__all__ = [
    "AuthSource",
    "CredentialResolver",
    "ResolvedAuth",
    "CommandResult",
    "RemoteSession",
]
