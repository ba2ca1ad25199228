"""
Operations and the object types that own them.
"""
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
from .types import Argument, GraphType, describe_type
from .collector import ValidatedInputError

Handler = Callable[[Any, Dict[str, Any], Any, 'ResolveInfo'], Any]


@dataclass
class ResolveInfo:
    """Per-invocation data handed to handlers and validation functions."""

    operation: str
    owner: Optional[str] = None
    validation_errors: Optional[List[ValidatedInputError]] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


def default_handler(source: Any, args: Dict[str, Any], context: Any, info: ResolveInfo) -> Any:
    """Read the operation's name from `source`, calling it if callable."""
    if isinstance(source, Mapping):
        value = source.get(info.operation)
    else:
        value = getattr(source, info.operation, None)
    if callable(value):
        return value(args, context, info)
    return value


class Operation:
    """
    A field of an object type: declared arguments, a result type and the
    handler producing the result.
    """

    def __init__(
        self,
        name: str,
        type_: GraphType,
        arguments: Iterable[Argument] = (),
        handler: Optional[Handler] = None,
        description: Optional[str] = None
    ):
        self.name = name
        self.type = type_
        self.arguments: 'OrderedDict[str, Argument]' = OrderedDict(
            (argument.name, argument) for argument in arguments
        )
        self.handler = handler or default_handler
        self.description = description

    def argument(self, name: str) -> Argument:
        return self.arguments[name]

    def resolve(self, source: Any, args: Dict[str, Any], context: Any, info: ResolveInfo) -> Any:
        return self.handler(source, args, context, info)

    def __repr__(self) -> str:
        args = ', '.join(
            f"{name}: {describe_type(argument.type)}" for name, argument in self.arguments.items()
        )
        return f"<Operation {self.name}({args}): {describe_type(self.type)}>"


class ObjectType:
    """Named group of operations."""

    def __init__(self, name: str, operations: Iterable[Operation], description: Optional[str] = None):
        self.name = name
        self.operations: 'OrderedDict[str, Operation]' = OrderedDict(
            (operation.name, operation) for operation in operations
        )
        self.description = description

    def operation(self, name: str) -> Operation:
        return self.operations[name]

    def __repr__(self) -> str:
        return f"<ObjectType {self.name}>"
