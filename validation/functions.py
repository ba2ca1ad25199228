"""
Validation functions and generic combinators.

A validation function is called as
`validation(value, type, container, context, *ambient)` and returns the
(possibly transformed) value, or raises to reject it.
"""
from typing import Any, Callable, Dict, List, Optional
from utils.logging_config import get_logger
from utils.exceptions import BindingError
from .types import UNDEFINED, Entry, list_item_type

logger = get_logger(__name__)


class ValidationFunction:
    """
    Callable wrapper carrying diagnostic metadata.

    `properties` describes where the function came from (directive name
    and its arguments). When bound on top of an existing function,
    `previous` refers to it and runs first.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        properties: Optional[Dict[str, Any]] = None,
        previous: Optional['ValidationFunction'] = None
    ):
        if not callable(func):
            raise BindingError(
                f"Validation must be callable, got {type(func)}",
                details={'actual_type': str(type(func))}
            )
        self.func = func
        self.properties = properties
        self.previous = previous

    def __call__(self, value: Any, type_, container, context, *ambient) -> Any:
        if self.previous is not None:
            value = self.previous(value, type_, container, context, *ambient)
        return self.func(value, type_, container, context, *ambient)

    @property
    def name(self) -> str:
        if self.properties and 'directive' in self.properties:
            return self.properties['directive']
        return getattr(self.func, '__name__', self.func.__class__.__name__)

    def chain(self) -> List[Dict[str, Any]]:
        """Properties of every function in the chain, oldest first."""
        entries: List[Dict[str, Any]] = []
        if self.previous is not None:
            entries.extend(self.previous.chain())
        if isinstance(self.func, ValidationFunction):
            entries.extend(self.func.chain())
        elif self.properties is not None:
            entries.append(self.properties)
        return entries

    def describe(self) -> Dict[str, Any]:
        """Diagnostic metadata attached to propagated errors."""
        description = dict(self.properties or {})
        chain = self.chain()
        if len(chain) > 1:
            description['chain'] = chain
        return description

    def __repr__(self) -> str:
        return f"<ValidationFunction {self.name}>"


def as_validation_function(validation: Callable[..., Any]) -> ValidationFunction:
    if isinstance(validation, ValidationFunction):
        return validation
    return ValidationFunction(validation)


def compose(previous: Optional[ValidationFunction], validation: Callable[..., Any]) -> ValidationFunction:
    """`validation(previous(value, ...), ...)`, keeping both functions' metadata."""
    validation = as_validation_function(validation)
    if previous is None:
        return validation
    return ValidationFunction(validation, properties=validation.properties, previous=previous)


def chain(*validations: Callable[..., Any]) -> ValidationFunction:
    """Compose validations left to right."""
    if not validations:
        raise BindingError("chain() requires at least one validation")
    composed = None
    for validation in validations:
        composed = compose(composed, validation)
    return composed


def value_validator(func: Callable[[Any], Any]) -> ValidationFunction:
    """Adapt a one-argument callable to the validation function signature."""
    def validate(value, *rest):
        return func(value)

    validate.__name__ = getattr(func, '__name__', 'value_validator')
    return ValidationFunction(validate)


def with_properties(validation: Callable[..., Any], directive: str, **args) -> ValidationFunction:
    """Attach diagnostic metadata unless the function already has some."""
    validation = as_validation_function(validation)
    if validation.properties is None:
        validation.properties = {'directive': directive, 'args': args}
    return validation


def validate_list_or_value(validation: Optional[Callable[..., Any]]) -> Optional[ValidationFunction]:
    """
    Apply `validation` to a value or to every item of a list value.

    Nested lists are walked recursively, each level receiving its item
    type. The list is only rebuilt when an item changed.
    """
    if validation is None:
        return None
    validation = as_validation_function(validation)

    def validate(value, type_, *rest):
        if isinstance(value, (list, tuple)):
            item_type = list_item_type(type_)
            items = [validate(item, item_type, *rest) for item in value]
            if all(new is old for new, old in zip(items, value)):
                return value
            return type(value)(items)
        return validation(value, type_, *rest)

    validate.__name__ = validation.name
    return ValidationFunction(validate, properties=validation.properties)


def skip_default(validation: Callable[..., Any], entry: Entry) -> ValidationFunction:
    """
    Do not run `validation` for absent values or values equal to the
    entry's declared default.
    """
    validation = as_validation_function(validation)
    default = entry.default_value

    def validate(value, *rest):
        if value is UNDEFINED:
            return value
        if entry.has_default and _equals(value, default):
            logger.debug(f"Skipping {validation.name} for default value of {entry.name}")
            return value
        return validation(value, *rest)

    validate.__name__ = validation.name
    return ValidationFunction(validate, properties=validation.properties)


def _equals(value: Any, default: Any) -> bool:
    try:
        return bool(value == default)
    except (TypeError, ValueError):
        return False
