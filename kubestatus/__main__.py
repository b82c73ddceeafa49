"""Entry point for `python -m kubestatus`.

Usage:
    python -m kubestatus -n myproject
    python -m kubestatus --all-namespaces -v
"""

from __future__ import annotations

from kubestatus.cli import cli

cli()
