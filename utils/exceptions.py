"""
Custom exception hierarchy for the validation engine.
"""
from typing import Any, Dict, List, Optional


class ValidationEngineError(Exception):
    """Base exception for all validation engine errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details
        }


# Value errors
class ValidationError(ValidationEngineError):
    """
    Raised when a value fails validation.

    Validation functions raise it (or any subclass) to reject a value.
    Once the engine decides the error must propagate, `path` and
    `properties` describe where it happened and which validation
    function raised it.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = 'GRAPHQL_VALIDATION_FAILED',
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.path: Optional[List[str]] = None
        self.properties: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.path is not None:
            data['path'] = list(self.path)
        if self.properties is not None:
            data['properties'] = self.properties
        return data


class RequiredViolation(ValidationError):
    """Raised when null is found where the type requires a value."""

    def __init__(self, message: str = 'received null where non-null is required', **kwargs):
        super().__init__(message, **kwargs)


class ValidationFailure(ValidationError):
    """Raised when a validation function does not produce a value."""

    def __init__(self, message: str = 'validation returned undefined', **kwargs):
        super().__init__(message, **kwargs)


class CoercionFailure(ValidationError):
    """Raised when a leaf value cannot be serialized by its type."""
    pass


# Engine errors
class EngineFault(ValidationEngineError):
    """Raised on internal invariant violations, e.g. an unsupported type."""
    pass


class BindingError(ValidationEngineError):
    """Raised when a validation function cannot be bound where requested."""
    pass


# Configuration Exceptions
class ConfigurationError(ValidationEngineError):
    """Raised when configuration is invalid."""
    pass
