"""Kubeconfig rewriting."""

import re

LOOPBACK_PATTERN = re.compile(rb"localhost|127\.0\.0\.1")


def rewrite_loopback(doc: bytes, external_address: str) -> bytes:
    """Point a kubeconfig retrieved from the node at its external address.

    Every occurrence of ``localhost`` and ``127.0.0.1`` is replaced; all
    other bytes are left untouched.
    """
    replacement = external_address.encode()
    return LOOPBACK_PATTERN.sub(lambda _: replacement, doc)
