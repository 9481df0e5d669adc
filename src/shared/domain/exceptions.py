"""Domain error taxonomy shared by every module.

Services raise these (or a module-specific subclass); the API layer maps
each kind to one HTTP status in ``modules.core.exceptions``.  ``context``
only ever carries entity identifiers and human-readable quantities.
"""

from __future__ import annotations

from typing import Any, Dict


class DomainError(Exception):
    """Base class for business-rule violations."""

    code = "domain_error"
    retryable = False

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.message, **self.context}


class NotFound(DomainError):
    """A referenced order, product or stock record does not exist."""

    code = "not_found"


class InsufficientStock(DomainError):
    """A line item asks for more than a single stock record can allocate."""

    code = "insufficient_stock"


class InvalidStateTransition(DomainError):
    """The order lifecycle does not allow the requested transition."""

    code = "invalid_state_transition"


class ConflictError(DomainError):
    """A concurrent write won the race; the whole operation may be retried."""

    code = "conflict"
    retryable = True
