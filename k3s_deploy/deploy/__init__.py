"""k3s installation and kubeconfig retrieval over SSH."""

from .installer import K3sInstaller, InstallResult, InstallStage
from .k3s import GET_CONFIG_COMMAND, K3S_INSTALL_URL, make_install_command

__all__ = [
    "K3sInstaller",
    "InstallResult",
    "InstallStage",
    "GET_CONFIG_COMMAND",
    "K3S_INSTALL_URL",
    "make_install_command",
]
