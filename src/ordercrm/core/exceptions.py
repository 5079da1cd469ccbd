"""
Custom exceptions for ordercrm.

Provides a hierarchy of exceptions that map to HTTP status codes
and include structured error information.
"""

from typing import Any


class OrderCRMException(Exception):
    """
    Base exception for all ordercrm errors.

    All custom exceptions should inherit from this class.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# HTTP 400 - Bad Request Errors
# =============================================================================


class BadRequestError(OrderCRMException):
    """Invalid request parameters or payload."""

    status_code = 400


class ValidationError(BadRequestError):
    """Request validation failed."""

    def __init__(
        self,
        message: str = "Validation error",
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"errors": errors or []},
        )


class InvalidFieldTypeError(BadRequestError):
    """Invalid field type specified."""

    def __init__(self, field_type: str) -> None:
        super().__init__(
            message=f"Invalid field type: {field_type}",
            code="INVALID_FIELD_TYPE",
            details={"field_type": field_type},
        )


class InvalidFieldValueError(BadRequestError):
    """Invalid value for field type."""

    def __init__(self, field_name: str, expected_type: str, received_value: Any) -> None:
        super().__init__(
            message=f"Invalid value for field '{field_name}'. Expected {expected_type}.",
            code="INVALID_FIELD_VALUE",
            details={
                "field_name": field_name,
                "expected_type": expected_type,
                "received_value": str(received_value)[:100],
            },
        )


class RequiredFieldsError(BadRequestError):
    """One or more required fields are missing."""

    def __init__(self, field_labels: list[str]) -> None:
        super().__init__(
            message=f"Missing required fields: {', '.join(field_labels)}",
            code="REQUIRED_FIELDS",
            details={"fields": field_labels},
        )


# =============================================================================
# HTTP 403 - Authorization Errors
# =============================================================================


class AuthorizationError(OrderCRMException):
    """Authorization failed - user lacks permission."""

    status_code = 403

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        resource: str | None = None,
        action: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="FORBIDDEN",
            details={"resource": resource, "action": action},
        )


class PermissionDeniedError(AuthorizationError):
    """User is not permitted to perform this action."""

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
    ) -> None:
        super().__init__(message=message)


# =============================================================================
# HTTP 404 - Not Found Errors
# =============================================================================


class NotFoundError(OrderCRMException):
    """Requested resource not found."""

    status_code = 404

    def __init__(
        self,
        resource: str,
        identifier: str | int | None = None,
    ) -> None:
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with ID '{identifier}' not found"

        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class UserNotFoundError(NotFoundError):
    """User not found."""

    def __init__(self, user_id: int | None = None) -> None:
        super().__init__(resource="User", identifier=user_id)


class FieldNotFoundError(NotFoundError):
    """Field definition not found."""

    def __init__(self, field_id: int | None = None) -> None:
        super().__init__(resource="Field", identifier=field_id)


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: int | None = None) -> None:
        super().__init__(resource="Order", identifier=order_id)


# =============================================================================
# HTTP 409 - Conflict Errors
# =============================================================================


class ConflictError(OrderCRMException):
    """Resource conflict."""

    status_code = 409

    def __init__(
        self,
        message: str,
        resource: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="CONFLICT",
            details={"resource": resource},
        )


class DuplicateError(ConflictError):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: str) -> None:
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            resource=resource,
        )
        self.details["field"] = field
        self.details["value"] = value


# =============================================================================
# HTTP 422 - Formula Errors
# =============================================================================


class UnprocessableEntityError(OrderCRMException):
    """Request cannot be processed."""

    status_code = 422


class FormulaError(UnprocessableEntityError):
    """Formula parsing or evaluation error."""

    default_code = "FORMULA_ERROR"

    def __init__(self, formula: str, error: str, **details: Any) -> None:
        super().__init__(
            message=f"Formula error: {error}",
            code=self.default_code,
            details={"formula": formula, "error": error, **details},
        )


class UnresolvedReferenceError(FormulaError):
    """Formula references an unknown field or holds a malformed token."""

    default_code = "UNRESOLVED_REFERENCE"

    def __init__(self, formula: str, names: list[str], error: str | None = None) -> None:
        super().__init__(
            formula,
            error or f"Unknown fields: {', '.join(names)}",
            names=names,
        )


class UnbalancedParenthesesError(FormulaError):
    """Opening and closing parentheses do not match."""

    default_code = "UNBALANCED_PARENTHESES"

    def __init__(self, formula: str) -> None:
        super().__init__(formula, "Parentheses do not match")


class MisplacedOperatorError(FormulaError):
    """Operator at either end of the formula or next to another operator."""

    default_code = "MISPLACED_OPERATOR"

    def __init__(self, formula: str, position: int) -> None:
        super().__init__(formula, f"Operator out of place at position {position}", position=position)


class InvalidResultError(FormulaError):
    """Formula evaluated to an undefined or infinite value."""

    default_code = "INVALID_RESULT"

    def __init__(self, formula: str) -> None:
        super().__init__(formula, "Result is not a finite number")


# =============================================================================
# HTTP 500 - Internal Server Errors
# =============================================================================


class InternalError(OrderCRMException):
    """Internal server error."""

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="INTERNAL_ERROR",
        )
        self.original_error = original_error


class RowUpdateFailedError(InternalError):
    """A single order could not be rewritten during renumbering."""

    def __init__(self, order_id: int, original_error: Exception | None = None) -> None:
        super().__init__(
            message=f"Failed to update order {order_id}",
            original_error=original_error,
        )
        self.code = "ROW_UPDATE_FAILED"
        self.details["order_id"] = order_id
