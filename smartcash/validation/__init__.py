"""Entry-form validation package."""

from smartcash.validation.validator import (
    TransactionValidationError,
    TransactionValidator,
    ValidationIssue,
    ValidationResult,
    parse_amount,
)

__all__ = [
    "TransactionValidationError",
    "TransactionValidator",
    "ValidationIssue",
    "ValidationResult",
    "parse_amount",
]
