"""
Schema-directed value validation engine.
"""
from .types import (
    UNDEFINED,
    GraphType,
    NamedType,
    ScalarType,
    EnumType,
    ListType,
    RequiredType,
    CompositeType,
    Entry,
    InputField,
    Argument,
    is_required,
    unwrap_required,
    final_type,
    list_item_type,
    contains_required_deep,
    describe_type,
    walk_composites
)
from .scalars import (
    ScalarRegistry,
    register_scalar,
    Int,
    Float,
    String,
    Boolean,
    ID
)
from .functions import (
    ValidationFunction,
    as_validation_function,
    compose,
    chain,
    value_validator,
    with_properties,
    validate_list_or_value,
    skip_default
)
from .registry import (
    Policy,
    DEFAULT_POLICY,
    Binding,
    BindingRegistry
)
from .requirements import RequirementPropagator
from .collector import (
    ValidatedInputError,
    ErrorCollector
)
from .engine import ValueValidator
from .operations import (
    ResolveInfo,
    Operation,
    ObjectType,
    default_handler
)
from .wrappers import (
    wrap_argument_validation,
    wrap_result_validation
)
from .schema import Schema

__all__ = [
    'UNDEFINED',
    'GraphType',
    'NamedType',
    'ScalarType',
    'EnumType',
    'ListType',
    'RequiredType',
    'CompositeType',
    'Entry',
    'InputField',
    'Argument',
    'is_required',
    'unwrap_required',
    'final_type',
    'list_item_type',
    'contains_required_deep',
    'describe_type',
    'walk_composites',
    'ScalarRegistry',
    'register_scalar',
    'Int',
    'Float',
    'String',
    'Boolean',
    'ID',
    'ValidationFunction',
    'as_validation_function',
    'compose',
    'chain',
    'value_validator',
    'with_properties',
    'validate_list_or_value',
    'skip_default',
    'Policy',
    'DEFAULT_POLICY',
    'Binding',
    'BindingRegistry',
    'RequirementPropagator',
    'ValidatedInputError',
    'ErrorCollector',
    'ValueValidator',
    'ResolveInfo',
    'Operation',
    'ObjectType',
    'default_handler',
    'wrap_argument_validation',
    'wrap_result_validation',
    'Schema',
]
