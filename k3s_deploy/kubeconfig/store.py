"""Writing kubeconfig files to disk."""

import logging
import os
import tempfile

from k3s_deploy.utils.errors import PersistError

logger = logging.getLogger(__name__)

KUBECONFIG_MODE = 0o600


def write_config(path: str, data: bytes) -> str:
    """Replace the file at path with data, readable by the owner only.

    The data is written to a sibling temporary file and moved into place,
    so the destination holds either its previous content or all of data.
    A symlinked destination is followed; its target is replaced and the
    link is kept.

    Returns:
        The absolute path written
    """
    abs_path = os.path.abspath(path)
    target = os.path.realpath(abs_path)
    directory = os.path.dirname(target)

    try:
        fd, temp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(target)}.", dir=directory
        )
    except OSError as e:
        raise PersistError(f"Could not write kubeconfig {abs_path}: {e}", path=abs_path)

    try:
        with os.fdopen(fd, "wb") as f:
            os.fchmod(f.fileno(), KUBECONFIG_MODE)
            f.write(data)
        os.replace(temp_path, target)
    except OSError as e:
        try:
            os.unlink(temp_path)
        except OSError:
            logger.warning(f"Could not remove {temp_path}")
        raise PersistError(f"Could not write kubeconfig {abs_path}: {e}", path=abs_path)

    logger.debug(f"Wrote {len(data)} bytes to {abs_path}")
    return abs_path
