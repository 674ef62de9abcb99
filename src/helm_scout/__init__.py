"""helm-scout: find outdated Helm releases and container images."""

__version__ = "0.3.0"
