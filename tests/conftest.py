"""Shared SSH key fixtures."""

import asyncssh
import pytest

from fakes import PASSPHRASE


@pytest.fixture(scope="session")
def ssh_key():
    return asyncssh.generate_private_key("ecdsa-sha2-nistp256")


@pytest.fixture(scope="session")
def other_key():
    return asyncssh.generate_private_key("ecdsa-sha2-nistp256")


@pytest.fixture
def plain_key_path(tmp_path, ssh_key):
    path = tmp_path / "id_ecdsa"
    path.write_bytes(ssh_key.export_private_key())
    (tmp_path / "id_ecdsa.pub").write_bytes(ssh_key.export_public_key())
    return str(path)


@pytest.fixture(params=["openssh", "pkcs1-pem", "pkcs8-pem", "pkcs8-der"])
def encrypted_key_path(request, tmp_path, ssh_key):
    path = tmp_path / "id_encrypted"
    path.write_bytes(ssh_key.export_private_key(request.param, passphrase=PASSPHRASE))
    (tmp_path / "id_encrypted.pub").write_bytes(ssh_key.export_public_key())
    return str(path)
