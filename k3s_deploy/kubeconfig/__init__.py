"""Local kubeconfig handling: rewrite, merge and persist."""

from .merge import KubectlMergeTool, MergeTool, merge_configs
from .store import write_config
from .transform import rewrite_loopback

__all__ = [
    "KubectlMergeTool",
    "MergeTool",
    "merge_configs",
    "write_config",
    "rewrite_loopback",
]
