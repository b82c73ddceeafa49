"""Errors raised while listing cluster resources."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kubestatus.models.resources import ResourceKind


class ResourceListError(Exception):
    """Raised by a lister when a resource kind cannot be listed."""

    def __init__(self, kind: ResourceKind, message: str = "") -> None:
        super().__init__(message or f"unable to list {kind.plural}")
        self.kind = kind


class ForbiddenError(ResourceListError):
    """Access to the resource kind was denied for the caller."""

    def __init__(self, kind: ResourceKind, message: str = "") -> None:
        super().__init__(kind, message or f"{kind.plural} is forbidden")


class NotFoundError(ResourceListError):
    """The API for the resource kind does not exist on this cluster."""

    def __init__(self, kind: ResourceKind, message: str = "") -> None:
        super().__init__(kind, message or f"the server could not find the requested resource ({kind.plural})")


class ResourceLoadError(Exception):
    """Raised when one or more loaders failed with a non-tolerated error.

    ``errors`` holds exactly the genuine failures, in loader order.
    """

    def __init__(self, errors: Sequence[BaseException]) -> None:
        self.errors: list[BaseException] = list(errors)
        if len(self.errors) == 1:
            message = str(self.errors[0])
        else:
            message = "[" + ", ".join(str(e) for e in self.errors) + "]"
        super().__init__(message)
