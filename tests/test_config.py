"""Tests for install options."""

import os

import pytest
from pydantic import ValidationError

from k3s_deploy.config import K3S_VERSION, InstallOptions


class TestInstallOptions:
    """Tests for InstallOptions."""

    def test_defaults(self, tmp_path, monkeypatch):
        """Should fill in the CLI defaults."""
        monkeypatch.chdir(tmp_path)
        options = InstallOptions(ip="203.0.113.5")

        assert options.host == "203.0.113.5"
        assert options.user == "root"
        assert options.ssh_port == 22
        assert options.ssh_key == os.path.expanduser("~/.ssh/id_rsa")
        assert options.local_path == str(tmp_path / "kubeconfig")
        assert options.k3s_version == K3S_VERSION
        assert not options.skip_install
        assert not options.merge
        assert not options.insecure_skip_host_key_check

    def test_ipv6(self):
        """Should accept IPv6 addresses."""
        assert InstallOptions(ip="2001:db8::1").host == "2001:db8::1"

    def test_invalid_ip(self):
        """Should reject hostnames and garbage."""
        with pytest.raises(ValidationError):
            InstallOptions(ip="not-an-ip")

    def test_invalid_port(self):
        """Should reject out-of-range ports."""
        with pytest.raises(ValidationError, match="ssh_port"):
            InstallOptions(ip="203.0.113.5", ssh_port=70000)

    def test_strips_extra_args(self):
        """Should trim surrounding whitespace from extra args."""
        options = InstallOptions(ip="203.0.113.5", k3s_extra_args="  --disable traefik ")
        assert options.k3s_extra_args == "--disable traefik"

    def test_expands_home(self):
        """Should expand ~ in key and known_hosts paths."""
        options = InstallOptions(
            ip="203.0.113.5", ssh_key="~/.ssh/id_ed25519", known_hosts="~/.ssh/known_hosts"
        )
        assert not options.ssh_key.startswith("~")
        assert not options.known_hosts.startswith("~")

    def test_empty_user(self):
        """Should reject an empty username."""
        with pytest.raises(ValidationError):
            InstallOptions(ip="203.0.113.5", user="")
