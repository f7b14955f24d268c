"""Merging a new kubeconfig into an existing one.

The merge itself is delegated to ``kubectl config view --merge --flatten``,
which reads every file listed in KUBECONFIG. The new kubeconfig is written
to a temporary file so that kubectl can see it next to the existing one.
"""

import logging
import os
import subprocess
import tempfile
from typing import List, Optional, Protocol

from k3s_deploy.utils.errors import ExternalMergeError, TempFileError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "k3s-temp-"

KUBECTL_MERGE_ARGS = ["config", "view", "--merge", "--flatten"]


class MergeTool(Protocol):
    """Merges kubeconfig files into one flattened document."""

    def merge_documents(self, sources: List[str]) -> bytes:
        ...


class KubectlMergeTool:
    """MergeTool backed by kubectl.

    Args:
        kubectl: kubectl executable name or path
    """

    def __init__(self, kubectl: str = "kubectl"):
        self.kubectl = kubectl

    def merge_documents(self, sources: List[str]) -> bytes:
        env = dict(os.environ)
        env["KUBECONFIG"] = ":".join(sources)

        logger.debug(f"Running {self.kubectl} with KUBECONFIG={env['KUBECONFIG']}")
        try:
            proc = subprocess.run(
                [self.kubectl, *KUBECTL_MERGE_ARGS],
                env=env,
                capture_output=True,
            )
        except OSError as e:
            raise ExternalMergeError(f"Could not merge kubeconfigs: {e}")

        if proc.returncode != 0:
            stderr = proc.stderr.decode(errors="replace").strip()
            raise ExternalMergeError(
                f"Could not merge kubeconfigs: {self.kubectl} exited with "
                f"status {proc.returncode}: {stderr}",
                stderr=stderr,
            )

        return proc.stdout


def _write_temp_config(data: bytes) -> str:
    """Write data to a new 0600 temporary file and return its path."""
    try:
        fd, path = tempfile.mkstemp(prefix=TEMP_PREFIX)
    except OSError as e:
        raise TempFileError(
            f"Could not generate a temporary file to store the kubeconfig: {e}"
        )

    try:
        with os.fdopen(fd, "wb") as f:
            os.fchmod(f.fileno(), 0o600)
            f.write(data)
    except OSError as e:
        os.unlink(path)
        raise TempFileError(
            f"Could not write temporary kubeconfig {path}: {e}",
            path=path,
        )

    return path


def merge_configs(
    existing_path: str,
    new_doc: bytes,
    tool: Optional[MergeTool] = None,
) -> bytes:
    """Merge new_doc into the kubeconfig at existing_path.

    The existing file is listed first and the new document second. The
    temporary file holding new_doc is removed before returning, whether
    the merge succeeded or not.

    Args:
        existing_path: Path of the local kubeconfig
        new_doc: Kubeconfig retrieved from the node
        tool: Merge collaborator (default: kubectl)

    Returns:
        The merged, flattened kubeconfig
    """
    tool = tool or KubectlMergeTool()
    temp_path = _write_temp_config(new_doc)

    logger.info(f"Merging with existing kubeconfig at {existing_path}")
    try:
        return tool.merge_documents([existing_path, temp_path])
    finally:
        try:
            os.remove(temp_path)
        except OSError as e:
            logger.warning(f"Could not remove temporary kubeconfig {temp_path}: {e}")
