"""k3s-deploy - Install k3s on a remote node over SSH and fetch its kubeconfig."""

__version__ = "0.1.0"
