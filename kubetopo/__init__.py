"""kubetopo: Kubernetes topology to D2 diagrams."""

__version__ = "0.3.0"
