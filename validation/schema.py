"""
Schema: composites, object types and their validation bindings.
"""
import asyncio
import copy
import inspect
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, Optional, Union
from utils.logging_config import get_logger
from utils.exceptions import BindingError
from utils.error_handlers import ErrorContext
from .types import UNDEFINED, Argument, CompositeType, InputField, walk_composites
from .registry import BindingRegistry, Policy, DEFAULT_POLICY
from .engine import ValueValidator
from .operations import ObjectType, Operation, ResolveInfo
from .wrappers import wrap_argument_validation, wrap_result_validation

logger = get_logger(__name__)


class Schema:
    """
    Container tying types to a binding registry and a validator.

    Bindings are declared during a setup pass (`bind_*` methods), then
    `apply()` wraps the operations whose arguments need validation only
    through nested composites. `execute()` runs an operation the way a
    host would: defaults filled in, handler awaited when needed.
    """

    def __init__(
        self,
        object_types: Iterable[ObjectType] = (),
        composites: Iterable[CompositeType] = (),
        registry: Optional[BindingRegistry] = None,
        default_policy: Union[Policy, str] = DEFAULT_POLICY
    ):
        self.registry = registry if registry is not None else BindingRegistry()
        self.validator = ValueValidator(self.registry, default_policy)
        self.object_types: 'OrderedDict[str, ObjectType]' = OrderedDict(
            (object_type.name, object_type) for object_type in object_types
        )

        argument_types = [
            argument.type
            for object_type in self.object_types.values()
            for operation in object_type.operations.values()
            for argument in operation.arguments.values()
        ]
        self.composites: Dict[str, CompositeType] = walk_composites(list(composites) + argument_types)
        self._applied = False
        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def from_config(
        cls,
        config,
        object_types: Iterable[ObjectType] = (),
        composites: Iterable[CompositeType] = ()
    ) -> 'Schema':
        """Build a schema using `engine.default_policy` from `config`."""
        return cls(
            object_types,
            composites,
            default_policy=config.get('engine.default_policy', DEFAULT_POLICY.value)
        )

    # Lookups

    def object_type(self, name: Union[str, ObjectType]) -> ObjectType:
        if isinstance(name, ObjectType):
            return name
        if name not in self.object_types:
            raise BindingError(
                f"Unknown object type: {name}",
                details={'available_types': list(self.object_types.keys())}
            )
        return self.object_types[name]

    def operation(self, owner: Union[str, ObjectType], name: Union[str, Operation]) -> Operation:
        if isinstance(name, Operation):
            return name
        object_type = self.object_type(owner)
        if name not in object_type.operations:
            raise BindingError(
                f"Unknown operation: {object_type.name}.{name}",
                details={'available_operations': list(object_type.operations.keys())}
            )
        return object_type.operations[name]

    def composite(self, name: Union[str, CompositeType]) -> CompositeType:
        if isinstance(name, CompositeType):
            return name
        if name not in self.composites:
            raise BindingError(
                f"Unknown composite type: {name}",
                details={'available_types': list(self.composites.keys())}
            )
        return self.composites[name]

    # Bindings

    def bind_argument(
        self,
        owner: Union[str, ObjectType],
        operation: Union[str, Operation],
        argument: Union[str, Argument],
        validation: Callable[..., Any],
        policy: Union[Policy, str, None] = None,
        each_item: bool = False
    ) -> None:
        """Validate an argument of an operation before its handler runs."""
        operation = self.operation(owner, operation)
        if not isinstance(argument, Argument):
            argument = _lookup(operation.arguments, argument, f"{operation.name} argument")
        wrap_argument_validation(operation, argument, validation, self.validator, policy, each_item)

    def bind_input_field(
        self,
        composite: Union[str, CompositeType],
        field: Union[str, InputField],
        validation: Callable[..., Any],
        policy: Union[Policy, str, None] = None,
        each_item: bool = False
    ) -> None:
        """Validate a field of a composite wherever the composite is used."""
        composite = self.composite(composite)
        if not isinstance(field, InputField):
            field = _lookup(composite.fields, field, f"{composite.name} field")
        if each_item:
            self.registry.bind_items(composite, field, validation, policy)
        else:
            self.registry.bind(composite, field, validation, policy)
        self._reapply()

    def bind_input_object(
        self,
        composite: Union[str, CompositeType],
        validation: Callable[..., Any],
        policy: Union[Policy, str, None] = None
    ) -> None:
        """Validate every field of a composite."""
        self.registry.bind_composite(self.composite(composite), validation, policy)
        self._reapply()

    def bind_result(
        self,
        owner: Union[str, ObjectType],
        operation: Union[str, Operation],
        validation: Callable[..., Any],
        validate_first: bool = False
    ) -> None:
        """Validate the result of an operation."""
        object_type = self.object_type(owner)
        wrap_result_validation(
            self.operation(object_type, operation), validation, object_type, self.validator, validate_first
        )

    def bind_object(
        self,
        owner: Union[str, ObjectType],
        validation: Callable[..., Any],
        validate_first: bool = False
    ) -> None:
        """Validate the result of every operation of an object type."""
        object_type = self.object_type(owner)
        for operation in object_type.operations.values():
            wrap_result_validation(operation, validation, object_type, self.validator, validate_first)

    def apply(self) -> 'Schema':
        """
        Memoize the requirement of every composite and wrap operations
        whose arguments reference a composite requiring validation.
        """
        propagator = self.validator.propagator
        propagator.mark_all(self.composites.values())

        wrapped = 0
        for object_type in self.object_types.values():
            for operation in object_type.operations.values():
                for argument in operation.arguments.values():
                    if propagator.requires_validation(argument.type):
                        wrap_argument_validation(
                            operation,
                            argument,
                            None,
                            self.validator,
                            self.registry.policy_for(argument)
                        )
                        wrapped += 1

        self._applied = True
        self.logger.info(
            f"Applied validation to schema: {len(self.composites)} composites, "
            f"{wrapped} arguments through nested composites"
        )
        return self

    def _reapply(self) -> None:
        # Bindings added after apply() may reach arguments that were not wrapped
        if self._applied:
            self.apply()

    # Execution

    def execute(
        self,
        owner: Union[str, ObjectType],
        operation: Union[str, Operation],
        args: Optional[Dict[str, Any]] = None,
        context: Any = None,
        source: Any = None,
        info: Optional[ResolveInfo] = None
    ) -> Any:
        """Run an operation synchronously, driving coroutine handlers to completion."""
        object_type, operation = self._resolve(owner, operation)
        with ErrorContext(f"{object_type.name}.{operation.name}", log=self.logger):
            result = self._invoke(object_type, operation, args, context, source, info)
            if inspect.isawaitable(result):
                result = asyncio.run(_await(result))
        return result

    async def execute_async(
        self,
        owner: Union[str, ObjectType],
        operation: Union[str, Operation],
        args: Optional[Dict[str, Any]] = None,
        context: Any = None,
        source: Any = None,
        info: Optional[ResolveInfo] = None
    ) -> Any:
        """Run an operation inside a running event loop."""
        object_type, operation = self._resolve(owner, operation)
        with ErrorContext(f"{object_type.name}.{operation.name}", log=self.logger):
            result = self._invoke(object_type, operation, args, context, source, info)
            if inspect.isawaitable(result):
                result = await result
        return result

    def _resolve(self, owner, operation):
        object_type = self.object_type(owner)
        return object_type, self.operation(object_type, operation)

    @staticmethod
    def _invoke(object_type, operation, args, context, source, info) -> Any:
        args = _with_defaults(operation, args or {})
        info = info or ResolveInfo(operation=operation.name, owner=object_type.name)
        return operation.resolve(source, args, context, info)


async def _await(awaitable):
    return await awaitable


def _with_defaults(operation: Operation, args: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of `args` with missing arguments set to a copy of their default."""
    filled = dict(args)
    for name, argument in operation.arguments.items():
        if name not in filled and argument.default_value is not UNDEFINED:
            filled[name] = copy.deepcopy(argument.default_value)
    return filled


def _lookup(entries: Dict[str, Any], name: str, kind: str) -> Any:
    if name not in entries:
        raise BindingError(
            f"Unknown {kind}: {name}",
            details={'available': list(entries.keys())}
        )
    return entries[name]
