"""Error taxonomy shared by the reconciliation engine and its adapters."""

from __future__ import annotations


class RolesyncError(RuntimeError):
    """Base class for reconciliation errors."""


class UpstreamError(RolesyncError):
    """Raised when the holdings API fails, times out, or returns an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RolesyncError):
    """Raised when a community, grant, member, or collection no longer exists."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class ActuationError(RolesyncError):
    """Raised when adding or removing a grant fails on the access-control platform."""


class InvalidCriterionError(ValueError):
    """Raised when a criterion is constructed with a missing or invalid payload."""
