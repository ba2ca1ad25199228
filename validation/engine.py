"""
Recursive value validator.

Walks a value along its type, runs the bound validation functions and
rebuilds containers only along the branches that changed. Failures are
recorded in an `ErrorCollector` and, depending on the entry's policy and
required-ness, either replaced by `None` or re-raised.
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from utils.logging_config import get_logger
from utils.exceptions import (
    CoercionFailure,
    EngineFault,
    RequiredViolation,
    ValidationFailure,
)
from .types import (
    UNDEFINED,
    CompositeType,
    EnumType,
    GraphType,
    ListType,
    ScalarType,
    describe_type,
    is_required,
    unwrap_required,
)
from .functions import ValidationFunction
from .registry import BindingRegistry, Policy, DEFAULT_POLICY
from .requirements import RequirementPropagator
from .collector import ErrorCollector, ValidatedInputError

logger = get_logger(__name__)


def _check_required(value: Any, type_: GraphType) -> Any:
    if value is None and is_required(type_):
        raise RequiredViolation()
    return value


class ValueValidator:
    """
    Type-directed validator.

    Args:
        registry: bindings to apply; a fresh registry when omitted
        default_policy: policy of root entries that carry none
        propagator: requirement memo, built on `registry` when omitted
    """

    def __init__(
        self,
        registry: Optional[BindingRegistry] = None,
        default_policy: Union[Policy, str] = DEFAULT_POLICY,
        propagator: Optional[RequirementPropagator] = None
    ):
        self.registry = registry if registry is not None else BindingRegistry()
        self.propagator = propagator or RequirementPropagator(self.registry)
        self.default_policy = Policy.parse(default_policy)

    @classmethod
    def from_config(cls, config, registry: Optional[BindingRegistry] = None) -> 'ValueValidator':
        """Build a validator from a `Config`-like object."""
        return cls(
            registry,
            default_policy=config.get('engine.default_policy', DEFAULT_POLICY.value)
        )

    # Entry points

    def validate(
        self,
        value: Any,
        type_: GraphType,
        validation: Optional[ValidationFunction] = None,
        policy: Union[Policy, str, None] = None,
        name: str = 'value',
        container: Any = None,
        context: Any = None,
        ambient: Sequence[Any] = ()
    ) -> Tuple[Any, Optional[List[ValidatedInputError]]]:
        """
        Validate a standalone value.

        Returns the validated value and the recorded errors (None when
        empty). Raises when a failure must propagate past the root.
        """
        collector = ErrorCollector()
        value = self.validate_entry(
            value,
            type_,
            validation,
            [name],
            collector,
            container,
            context,
            Policy.parse(policy) or self.default_policy,
            tuple(ambient)
        )
        return value, collector.as_result()

    def validate_arguments(
        self,
        args: Mapping,
        arguments: Mapping,
        context: Any = None,
        ambient: Sequence[Any] = ()
    ) -> Tuple[Dict[str, Any], Optional[List[ValidatedInputError]]]:
        """
        Validate every declared argument of an operation.

        `args` is never mutated; the returned mapping is a copy sharing
        every value that did not change.
        """
        collector = ErrorCollector()
        validated = dict(args)
        ambient = tuple(ambient)

        for name, argument in arguments.items():
            original = validated.get(name, UNDEFINED)
            binding = self.registry.binding_for(argument)
            value = self.validate_entry(
                original,
                argument.type,
                binding.validation if binding else None,
                [name],
                collector,
                argument,
                context,
                (binding.policy if binding else None) or self.default_policy,
                ambient,
                binding.item_validation if binding else None
            )
            if value is not original:
                if value is UNDEFINED:
                    validated.pop(name, None)
                else:
                    validated[name] = value

        return validated, collector.as_result()

    # Recursion

    def validate_entry(
        self,
        value: Any,
        type_: GraphType,
        validation: Optional[ValidationFunction],
        path: List[str],
        collector: ErrorCollector,
        container: Any,
        context: Any,
        policy: Optional[Policy],
        ambient: Tuple[Any, ...] = (),
        item_validation: Optional[ValidationFunction] = None
    ) -> Any:
        """
        Validate one entry, replacing failed values with None when the
        entry is optional and its policy allows recovery.
        """
        try:
            return self._validate_throwing(
                value, type_, validation, path, collector,
                container, context, policy, ambient, item_validation
            )
        except EngineFault:
            raise
        except Exception as error:
            collector.register(error, path)
            if policy is None:
                # Decided by the nearest ancestor with a policy
                raise

            is_throw_policy = policy is Policy.THROW
            if collector.must_propagate(error) or is_required(type_) or is_throw_policy:
                collector.annotate(error, path, validation)
                if is_throw_policy:
                    collector.mark_propagating(error)
                raise

            logger.debug(f"Recovered validation error at {'.'.join(path)}: {error}")
            return None

    def _validate_throwing(
        self,
        original_value: Any,
        original_type: GraphType,
        validation: Optional[ValidationFunction],
        path: List[str],
        collector: ErrorCollector,
        container: Any,
        context: Any,
        policy: Optional[Policy],
        ambient: Tuple[Any, ...],
        item_validation: Optional[ValidationFunction]
    ) -> Any:
        value = original_value

        if validation is not None:
            value = validation(value, original_type, container, context, *ambient)
            if value is UNDEFINED and original_value is not UNDEFINED:
                raise ValidationFailure()

        value = _check_required(value, original_type)
        type_ = unwrap_required(original_type)

        if value is None or value is UNDEFINED:
            return value

        if isinstance(type_, CompositeType):
            validated = self._validate_composite(value, type_, path, collector, context, ambient)
            return _check_required(validated, original_type)

        if isinstance(type_, ListType):
            validated = self._validate_list(
                value, type_.of_type, path, collector, container,
                context, policy, ambient, item_validation
            )
            return _check_required(validated, original_type)

        if isinstance(type_, (ScalarType, EnumType)):
            self._serialize(value, type_)
            return _check_required(value, original_type)

        raise EngineFault(
            f"unsupported type {describe_type(type_)}",
            details={'path': list(path), 'type': type_.__class__.__name__}
        )

    def _validate_composite(
        self,
        obj: Any,
        type_: CompositeType,
        path: List[str],
        collector: ErrorCollector,
        context: Any,
        ambient: Tuple[Any, ...]
    ) -> Any:
        if not isinstance(obj, Mapping):
            raise CoercionFailure(
                f"Expected an object for {type_.name}, got {type(obj).__name__}",
                details={'type': type_.name}
            )

        if not (self.propagator.requires_validation(type_) or self.propagator.contains_required(type_)):
            return obj

        result = obj
        for name, field in type_.fields.items():
            binding = self.registry.binding_for(field)
            original = obj.get(name, UNDEFINED)
            validated = self.validate_entry(
                original,
                field.type,
                binding.validation if binding else None,
                path + [name],
                collector,
                type_,
                context,
                binding.policy if binding else None,
                ambient,
                binding.item_validation if binding else None
            )
            if validated is not original:
                if result is obj:
                    result = dict(obj)
                if validated is UNDEFINED:
                    result.pop(name, None)
                else:
                    result[name] = validated

        return result

    def _validate_list(
        self,
        items: Any,
        item_type: GraphType,
        path: List[str],
        collector: ErrorCollector,
        container: Any,
        context: Any,
        policy: Optional[Policy],
        ambient: Tuple[Any, ...],
        item_validation: Optional[ValidationFunction]
    ) -> Any:
        if not isinstance(items, (list, tuple)):
            raise CoercionFailure(
                f"Expected a list for {describe_type(ListType(item_type))}, got {type(items).__name__}"
            )

        must_validate = (
            item_validation is not None
            or self.registry.is_marked(container)
            or self.propagator.requires_validation(item_type)
            or self.propagator.contains_required(item_type)
        )
        if not must_validate:
            return items

        result = items
        for index, item in enumerate(items):
            validated = self.validate_entry(
                item,
                item_type,
                item_validation,
                path + [str(index)],
                collector,
                container,
                context,
                policy,
                ambient
            )
            if validated is not item:
                if result is items:
                    result = list(items)
                result[index] = validated

        if result is not items and isinstance(items, tuple):
            result = tuple(result)
        return result

    @staticmethod
    def _serialize(value: Any, type_: Union[ScalarType, EnumType]) -> None:
        try:
            serialized = type_.serialize(value)
        except (ValueError, TypeError) as exc:
            raise CoercionFailure(
                f"{type_.name} cannot represent value: {value!r}",
                details={'type': type_.name, 'reason': str(exc)}
            ) from exc
        if serialized is UNDEFINED:
            raise CoercionFailure(
                f"{type_.name}.serialize() returned undefined for value: {value!r}",
                details={'type': type_.name}
            )

