"""
Type model describing the shape of validated values.

The model is a closed set of descriptors: `ScalarType` and `EnumType`
(leaves), `ListType`, `RequiredType` (modifiers) and `CompositeType`
(named aggregate of `InputField` entries). Operations declare `Argument`
entries. Descriptors are built once per schema and shared; they compare
and hash by identity so they can key side tables.
"""
import enum
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, Optional, Set, Union


class _Undefined:
    """Marker for an absent value, distinct from `None` (null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNDEFINED'

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


class GraphType:
    """Base class of every type descriptor."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {describe_type(self)}>"

    def __str__(self) -> str:
        return describe_type(self)


class NamedType(GraphType):
    """A type with a name: leaves and composites."""

    __slots__ = ('name', 'description')

    def __init__(self, name: str, description: Optional[str] = None):
        self.name = name
        self.description = description


class ScalarType(NamedType):
    """
    Leaf type with a coercion check.

    `serialize(value)` returns the serialized value, `UNDEFINED` when the
    value cannot be represented, or raises `ValueError`/`TypeError`.
    """

    __slots__ = ('serialize',)

    def __init__(
        self,
        name: str,
        serialize: Callable[[Any], Any],
        description: Optional[str] = None
    ):
        super().__init__(name, description)
        self.serialize = serialize


class EnumType(NamedType):
    """Leaf type accepting a fixed set of values."""

    __slots__ = ('values',)

    def __init__(
        self,
        name: str,
        values: Union[Iterable[Any], 'enum.EnumMeta'],
        description: Optional[str] = None
    ):
        super().__init__(name, description)
        if isinstance(values, enum.EnumMeta):
            values = [member.value for member in values]
        self.values = tuple(values)

    def serialize(self, value: Any) -> Any:
        if isinstance(value, enum.Enum):
            value = value.value
        if value in self.values:
            return value
        return UNDEFINED


class ListType(GraphType):
    """List-of modifier."""

    __slots__ = ('of_type',)

    def __init__(self, of_type: GraphType):
        if not isinstance(of_type, GraphType):
            raise TypeError(f"ListType expects a type descriptor, got {type(of_type)}")
        self.of_type = of_type


class RequiredType(GraphType):
    """Required (non-null) modifier."""

    __slots__ = ('of_type',)

    def __init__(self, of_type: GraphType):
        if not isinstance(of_type, GraphType):
            raise TypeError(f"RequiredType expects a type descriptor, got {type(of_type)}")
        if isinstance(of_type, RequiredType):
            raise TypeError("RequiredType cannot wrap another RequiredType")
        self.of_type = of_type


class Entry:
    """
    A schema location: a field of a composite or an argument of an operation.

    Entries compare by identity; bindings are attached to them through
    the binding registry.
    """

    __slots__ = ('name', 'type', 'default_value', 'description')

    def __init__(
        self,
        name: str,
        type_: GraphType,
        default_value: Any = UNDEFINED,
        description: Optional[str] = None
    ):
        self.name = name
        self.type = type_
        self.default_value = default_value
        self.description = description

    @property
    def has_default(self) -> bool:
        return self.default_value is not UNDEFINED

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}: {describe_type(self.type)}>"


class InputField(Entry):
    """Field of a composite type."""

    __slots__ = ()


class Argument(Entry):
    """Argument of an operation."""

    __slots__ = ()


class CompositeType(NamedType):
    """Named aggregate of ordered fields."""

    __slots__ = ('_fields', '_thunk')

    def __init__(
        self,
        name: str,
        fields: Union[Iterable[InputField], Callable[[], Iterable[InputField]]],
        description: Optional[str] = None
    ):
        super().__init__(name, description)
        # A callable defers field construction, for self-referencing types
        self._thunk = fields if callable(fields) else None
        self._fields = None if self._thunk else _index_fields(fields)

    @property
    def fields(self) -> 'OrderedDict[str, InputField]':
        if self._fields is None:
            self._fields = _index_fields(self._thunk())
            self._thunk = None
        return self._fields

    def field(self, name: str) -> InputField:
        return self.fields[name]


def _index_fields(fields: Iterable[InputField]) -> 'OrderedDict[str, InputField]':
    indexed = OrderedDict()
    for field in fields:
        if field.name in indexed:
            raise ValueError(f"Duplicate field name: {field.name}")
        indexed[field.name] = field
    return indexed


def is_required(type_: GraphType) -> bool:
    return isinstance(type_, RequiredType)


def unwrap_required(type_: GraphType) -> GraphType:
    """Strip a single Required modifier, if present."""
    if isinstance(type_, RequiredType):
        return type_.of_type
    return type_


def final_type(type_: GraphType) -> NamedType:
    """Strip all Required/List modifiers to find the innermost named type."""
    while isinstance(type_, (RequiredType, ListType)):
        type_ = type_.of_type
    return type_


def list_item_type(type_: GraphType) -> GraphType:
    """Item type of a (possibly required) list, or the type itself."""
    type_ = unwrap_required(type_)
    if isinstance(type_, ListType):
        return type_.of_type
    return type_


def contains_required_deep(type_: GraphType, _seen: Optional[Set[int]] = None) -> bool:
    """True if a Required modifier appears anywhere inside `type_`."""
    if isinstance(type_, RequiredType):
        return True
    if isinstance(type_, ListType):
        return contains_required_deep(type_.of_type, _seen)
    if isinstance(type_, CompositeType):
        seen = _seen if _seen is not None else set()
        if id(type_) in seen:
            return False
        seen.add(id(type_))
        return any(
            contains_required_deep(field.type, seen)
            for field in type_.fields.values()
        )
    return False


def describe_type(type_: GraphType) -> str:
    """Render a type with `[T]` / `T!` notation."""
    if isinstance(type_, RequiredType):
        return f"{describe_type(type_.of_type)}!"
    if isinstance(type_, ListType):
        return f"[{describe_type(type_.of_type)}]"
    if isinstance(type_, NamedType):
        return type_.name
    return type_.__class__.__name__


def walk_composites(types: Iterable[GraphType]) -> Dict[str, CompositeType]:
    """Collect every composite reachable from `types`, keyed by name."""
    found: Dict[str, CompositeType] = OrderedDict()
    pending = list(types)
    while pending:
        current = final_type(pending.pop())
        if not isinstance(current, CompositeType) or current.name in found:
            continue
        found[current.name] = current
        pending.extend(field.type for field in current.fields.values())
    return found
