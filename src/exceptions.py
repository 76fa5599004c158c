"""Exceptions raised by the coffee marketplace.

Every error carries the HTTP status code the API answers with and a
``details`` dict for logs and error responses.
"""

from typing import Any, Dict, Optional


class MarketplaceError(Exception):
    """Base exception for marketplace errors."""

    # Generic, caller-facing summary used in error responses
    title = "Internal server error"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ValidationError(MarketplaceError):
    """Raised when an entity invariant or an input value is violated."""

    title = "Invalid request"

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=400, details=details)
        self.field = field


class NotFoundError(MarketplaceError):
    """Raised when a referenced coffee does not exist."""

    title = "Resource not found"

    def __init__(self, coffee_id: str, store: Optional[str] = None):
        message = f"Coffee '{coffee_id}' not found"
        if store:
            message += f" in {store} store"
        super().__init__(
            message=message,
            status_code=404,
            details={"coffee_id": coffee_id, "store": store},
        )
        self.coffee_id = coffee_id


class InsufficientStockError(MarketplaceError):
    """Raised when a stock adjustment would leave negative stock."""

    title = "Insufficient stock"

    def __init__(self, coffee_id: str, stock: int, delta: int):
        message = (
            f"Cannot adjust stock of coffee '{coffee_id}' by {delta}: "
            f"only {stock} in stock"
        )
        super().__init__(
            message=message,
            status_code=409,
            details={"coffee_id": coffee_id, "stock": stock, "delta": delta},
        )


class UnsupportedOperationError(MarketplaceError):
    """Raised when a write is attempted against a store that does not own it."""

    title = "Operation not supported"

    def __init__(self, operation: str, store: str):
        message = f"Operation '{operation}' is not supported by the {store} store"
        super().__init__(
            message=message,
            status_code=501,
            details={"operation": operation, "store": store},
        )


class RecommendationError(MarketplaceError):
    """Raised when recommendation resolution fails.

    Wraps the underlying error. The status code follows the wrapped error
    when it is itself a marketplace error (e.g. 404 for a missing coffee).
    """

    title = "Failed to get recommendations"

    def __init__(self, operation: str, subject_id: str, error: Exception):
        message = f"Failed to {operation} for '{subject_id}': {error}"
        status_code = (
            error.status_code if isinstance(error, MarketplaceError) else 500
        )
        super().__init__(
            message=message,
            status_code=status_code,
            details={
                "operation": operation,
                "subject_id": subject_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
        self.title = f"Failed to {operation}"
        self.error = error
