"""Rule-based health analyzers for Kubernetes objects held in an in-memory cluster."""

__version__ = "0.1.0"