"""Domain exceptions raised by the service layer.

Routers translate these into HTTP responses; services never import FastAPI.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    """The requested record does not exist (or is not visible to the caller)."""


class PermissionDeniedError(PermissionError):
    """The caller is authenticated but not allowed to perform the action."""


class ConflictError(ValueError):
    """The request conflicts with the current state of a record."""


class InvalidTransitionError(ConflictError):
    """An application status change not allowed by the workflow."""

    def __init__(self, current: str, target: str, allowed: list[str]) -> None:
        self.current = current
        self.target = target
        self.allowed = allowed
        super().__init__(
            f"Invalid transition: {current} -> {target}. Valid transitions: {allowed}"
        )
