"""Domain-specific exceptions"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    status_code: int = 400
    default_error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"detail": self.message, "error_code": self.error_code}
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(DomainException):
    """Referenced customer, debt record, product, supplier or sale does not exist"""

    status_code = 404
    default_error_code = "NOT_FOUND"


class InvalidAmountError(DomainException):
    """Amount is non-positive, exceeds what is owed, or does not cover a total"""

    status_code = 422
    default_error_code = "INVALID_AMOUNT"


class DebtLimitExceededError(DomainException):
    """Recording the debt would push the customer past their debt limit"""

    status_code = 422
    default_error_code = "DEBT_LIMIT_EXCEEDED"


class InsufficientStockError(DomainException):
    """Requested quantity is larger than the product stock"""

    status_code = 409
    default_error_code = "INSUFFICIENT_STOCK"


class InvalidCartError(DomainException):
    """Cart contents cannot be checked out"""

    status_code = 422
    default_error_code = "INVALID_CART"


class ConflictError(DomainException):
    """Operation conflicts with existing records"""

    status_code = 409
    default_error_code = "CONFLICT"


class ValidationError(DomainException):
    """Request parameters are inconsistent"""

    status_code = 422
    default_error_code = "VALIDATION_ERROR"


class AuthenticationError(DomainException):
    """Wrong PIN, or a missing or expired session token"""

    status_code = 401
    default_error_code = "NOT_AUTHENTICATED"
