"""Text rendering of project status."""

from kubestatus.describe.status import ProjectStatusDescriber

__all__ = ["ProjectStatusDescriber"]
