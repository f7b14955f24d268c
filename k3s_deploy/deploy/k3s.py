"""Remote commands for installing k3s and fetching its kubeconfig."""

K3S_INSTALL_URL = "https://get.k3s.io"

# Written by the k3s server on first start, readable by root only
K3S_KUBECONFIG_PATH = "/etc/rancher/k3s/k3s.yaml"

GET_CONFIG_COMMAND = f"sudo cat {K3S_KUBECONFIG_PATH}"


def make_install_command(ip: str, extra_args: str, version: str) -> str:
    """Build the k3s installer command line.

    The node IP is added as a TLS SAN so the API server certificate is
    valid for the address written into the kubeconfig.
    """
    return (
        f"curl -sLS {K3S_INSTALL_URL} | "
        f"INSTALL_K3S_EXEC='server --tls-san {ip} {extra_args.strip()}' "
        f"INSTALL_K3S_VERSION='{version}' sh -"
    )
