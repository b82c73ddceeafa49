"""kubestatus command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``kubestatus`` script).
"""

from kubestatus.cli.main import cli

__all__ = ["cli"]
