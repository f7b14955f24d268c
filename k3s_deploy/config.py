"""Install options and defaults."""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, field_validator

# Pinned k3s release installed unless --k3s-version is given
K3S_VERSION = "v1.19.4+k3s1"

DEFAULT_SSH_USER = "root"
DEFAULT_SSH_KEY = "~/.ssh/id_rsa"
DEFAULT_SSH_PORT = 22
DEFAULT_LOCAL_PATH = "kubeconfig"


class InstallOptions(BaseModel):
    """Options for installing k3s on a single node."""

    # Defaults go through the validators too (~ expansion, abspath)
    model_config = ConfigDict(validate_default=True)

    ip: IPvAnyAddress = Field(..., description="Public IP of node")
    user: str = Field(DEFAULT_SSH_USER, description="Username for SSH login")
    ssh_key: str = Field(DEFAULT_SSH_KEY, description="SSH private key path")
    ssh_port: int = Field(DEFAULT_SSH_PORT, description="SSH port")
    skip_install: bool = Field(False, description="Only fetch the kubeconfig")
    local_path: str = Field(DEFAULT_LOCAL_PATH, description="Where to save the kubeconfig")
    k3s_extra_args: str = Field("", description="Extra arguments for the k3s server")
    merge: bool = Field(False, description="Merge into an existing kubeconfig")
    k3s_version: str = Field(K3S_VERSION, description="k3s version to install")
    known_hosts: Optional[str] = Field(None, description="known_hosts file")
    insecure_skip_host_key_check: bool = Field(
        False, description="Accept any SSH host key"
    )

    @field_validator("ssh_key")
    @classmethod
    def expand_ssh_key(cls, v: str) -> str:
        return os.path.expanduser(v)

    @field_validator("local_path")
    @classmethod
    def absolute_local_path(cls, v: str) -> str:
        return os.path.abspath(os.path.expanduser(v))

    @field_validator("known_hosts")
    @classmethod
    def expand_known_hosts(cls, v: Optional[str]) -> Optional[str]:
        return os.path.expanduser(v) if v else v

    @field_validator("ssh_port")
    @classmethod
    def validate_ssh_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("ssh_port must be between 1 and 65535")
        return v

    @field_validator("k3s_extra_args")
    @classmethod
    def strip_extra_args(cls, v: str) -> str:
        return v.strip()

    @field_validator("user")
    @classmethod
    def validate_user(cls, v: str) -> str:
        if not v:
            raise ValueError("user must not be empty")
        return v

    @property
    def host(self) -> str:
        return str(self.ip)
