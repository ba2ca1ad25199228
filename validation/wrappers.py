"""
Entry-point wrappers.

Argument validation wraps an operation's handler so declared arguments
are validated once per invocation before the handler runs. Result
validation wraps the handler so its result is validated (or a validation
runs before it). Both wrap a given operation at most once; later calls
only chain the new validation in the registry.
"""
import functools
import inspect
from dataclasses import replace
from typing import Any, Callable, Optional, Union
from utils.logging_config import get_logger
from utils.exceptions import ValidationFailure
from .types import UNDEFINED, Argument
from .functions import as_validation_function
from .registry import Policy
from .engine import ValueValidator
from .operations import ObjectType, Operation, ResolveInfo

logger = get_logger(__name__)


def wrap_argument_validation(
    operation: Operation,
    argument: Argument,
    validation: Optional[Callable[..., Any]],
    validator: ValueValidator,
    policy: Union[Policy, str, None] = None,
    each_item: bool = False
) -> None:
    """
    Bind `validation` to `argument` and make sure `operation` validates
    its arguments before calling its handler.

    The handler receives a copy of the arguments and a fresh
    `ResolveInfo` whose `validation_errors` holds the recovered errors,
    or None when there were none. A propagated failure raises before the
    handler is called.
    """
    registry = validator.registry

    if each_item:
        registry.bind_items(operation, argument, validation, policy)
    else:
        registry.bind(operation, argument, validation, policy)

    if not registry.mark_wrapped(operation):
        return

    handler = operation.handler

    @functools.wraps(handler)
    def validate_arguments_then_call(source, args, context, info: ResolveInfo):
        validated, errors = validator.validate_arguments(
            args, operation.arguments, context, (info, source, args)
        )
        if errors:
            logger.debug(f"{operation.name}: {len(errors)} argument(s) failed validation")
        return handler(source, validated, context, replace(info, validation_errors=errors))

    operation.handler = validate_arguments_then_call
    logger.debug(f"Wrapped {operation.name} for argument validation")


def wrap_result_validation(
    operation: Operation,
    validation: Callable[..., Any],
    owner: ObjectType,
    validator: ValueValidator,
    validate_first: bool = False
) -> None:
    """
    Validate the result of `operation`.

    By default the handler runs first and its (awaited) result is passed
    through the validation, which must return a value; `UNDEFINED`
    raises `ValidationFailure`. With `validate_first` the validation runs
    with an absent value before the handler, so that it can prepare
    state the handler inspects.
    """
    registry = validator.registry
    if not registry.bind_result(operation, as_validation_function(validation)):
        return

    handler = operation.handler

    if validate_first:
        @functools.wraps(handler)
        def validate_then_call(source, args, context, info: ResolveInfo):
            current = registry.result_validation_for(operation)
            current(UNDEFINED, operation.type, owner, context, info, source, args)
            return handler(source, args, context, info)

        operation.handler = validate_then_call
    else:
        @functools.wraps(handler)
        async def call_then_validate(source, args, context, info: ResolveInfo):
            value = handler(source, args, context, info)
            if inspect.isawaitable(value):
                value = await value
            current = registry.result_validation_for(operation)
            validated = current(value, operation.type, owner, context, info, source, args)
            if validated is UNDEFINED:
                raise ValidationFailure()
            return validated

        operation.handler = call_then_validate

    logger.debug(f"Wrapped {owner.name}.{operation.name} for result validation")
