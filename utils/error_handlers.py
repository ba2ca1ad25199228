"""
Error handling utilities.
"""
import logging
from typing import Any, Dict, Optional
from .logging_config import get_logger
from .exceptions import ValidationEngineError, ValidationError


logger = get_logger(__name__)


def describe_error(error: BaseException) -> Dict[str, Any]:
    """
    Build a serializable description of any exception.

    Engine exceptions describe themselves; anything else raised by a
    validation function is reduced to its type and message.
    """
    if isinstance(error, ValidationEngineError):
        return error.to_dict()
    data = {
        'error_type': error.__class__.__name__,
        'error_code': error.__class__.__name__,
        'message': str(error),
        'details': {}
    }
    for attribute in ('path', 'properties'):
        value = getattr(error, attribute, None)
        if value is not None:
            data[attribute] = value
    return data


class ErrorContext:
    """
    Context manager that logs the outcome of a validated operation.

    Validation errors are expected outcomes and are logged as warnings,
    anything else is logged with its traceback. Exceptions are re-raised
    unless `raise_on_error` is False.
    """

    def __init__(
        self,
        operation_name: str,
        raise_on_error: bool = True,
        log: Optional[logging.Logger] = None
    ):
        self.operation_name = operation_name
        self.raise_on_error = raise_on_error
        self.logger = log or logger

    def __enter__(self):
        self.logger.debug(f"Starting operation: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.debug(f"Completed operation: {self.operation_name}")
            return False

        if isinstance(exc_val, ValidationError) or getattr(exc_val, 'path', None) is not None:
            self.logger.warning(
                f"Validation aborted operation {self.operation_name}: {exc_val}",
                extra={'error_details': describe_error(exc_val)}
            )
        else:
            self.logger.error(
                f"Error in operation {self.operation_name}: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )

        # Suppress exception if raise_on_error is False
        return not self.raise_on_error
