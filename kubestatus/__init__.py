"""kubestatus: one-shot status reports for a namespace of cluster resources."""

__version__ = "0.1.0"
