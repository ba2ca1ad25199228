"""
Utility modules for the validation engine.
"""
from .logging_config import get_logger, LoggerFactory, LogContext, StructuredFormatter
from .exceptions import *
from .error_handlers import (
    describe_error,
    ErrorContext
)

__all__ = [
    'get_logger',
    'LoggerFactory',
    'LogContext',
    'StructuredFormatter',
    'describe_error',
    'ErrorContext',
    'ValidationEngineError',
    'ValidationError',
    'RequiredViolation',
    'ValidationFailure',
    'CoercionFailure',
    'EngineFault',
    'BindingError',
    'ConfigurationError',
]
