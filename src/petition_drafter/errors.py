from __future__ import annotations

from typing import Optional


class DrafterError(RuntimeError):
    pass


class TransportError(DrafterError):
    """A call to the drafting backend did not fully succeed."""

    def __init__(self, operation: str, *, status: Optional[int] = None, detail: Optional[str] = None) -> None:
        self.operation = operation
        self.status = status
        self.detail = detail
        message = detail or f"{operation} failed"
        if status is not None:
            message = f"{message} (status={status})"
        super().__init__(message)


class ResponseFormatError(TransportError):
    pass


class ValidationFailure(DrafterError):
    """A client-side precondition was not met; no request was sent."""
