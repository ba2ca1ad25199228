"""Tests for the type model and scalars."""
import copy
import enum
import pytest
import numpy as np
from validation import (
    UNDEFINED, CompositeType, InputField, Argument, ListType, RequiredType, EnumType,
    ScalarRegistry, register_scalar, Int, Float, String, Boolean, ID,
    final_type, list_item_type, unwrap_required, contains_required_deep,
    describe_type, walk_composites
)
from utils.exceptions import ConfigurationError


class TestUndefined:
    """Tests for the absent-value marker."""

    def test_singleton_survives_copies(self):
        """Copies keep the marker's identity."""
        assert copy.copy(UNDEFINED) is UNDEFINED
        assert copy.deepcopy({'a': UNDEFINED})['a'] is UNDEFINED

    def test_distinct_from_null(self):
        """The marker is falsy but not None."""
        assert not UNDEFINED
        assert UNDEFINED is not None
        assert repr(UNDEFINED) == 'UNDEFINED'


class TestModifiers:
    """Tests for list and required modifiers."""

    def test_describe(self):
        """Types render in [T]! notation."""
        type_ = RequiredType(ListType(RequiredType(Int)))
        assert describe_type(type_) == '[Int!]!'
        assert str(ListType(String)) == '[String]'

    def test_double_required_rejected(self):
        """A required type cannot wrap another required type."""
        with pytest.raises(TypeError):
            RequiredType(RequiredType(Int))

    def test_unwrapping(self):
        """Helpers strip modifiers."""
        type_ = RequiredType(ListType(RequiredType(Int)))
        assert final_type(type_) is Int
        assert isinstance(unwrap_required(type_), ListType)
        assert describe_type(list_item_type(type_)) == 'Int!'
        assert list_item_type(Int) is Int


class TestCompositeType:
    """Tests for composite types."""

    def test_fields_are_ordered(self):
        """Fields keep declaration order."""
        composite = CompositeType('Point', [InputField('x', Int), InputField('y', Int)])
        assert list(composite.fields) == ['x', 'y']
        assert composite.field('y').name == 'y'

    def test_duplicate_fields_rejected(self):
        """Field names are unique."""
        with pytest.raises(ValueError):
            CompositeType('Bad', [InputField('x', Int), InputField('x', Int)])

    def test_self_reference_through_thunk(self):
        """A thunk allows recursive composites."""
        node = CompositeType('Node', lambda: [
            InputField('value', Int),
            InputField('next', node)
        ])
        assert node.field('next').type is node
        assert contains_required_deep(node) is False

    def test_contains_required_deep(self):
        """Required modifiers are found through nesting."""
        inner = CompositeType('Inner', [InputField('id', RequiredType(ID))])
        outer = CompositeType('Outer', [InputField('items', ListType(inner))])
        assert contains_required_deep(outer)
        assert contains_required_deep(ListType(RequiredType(Int)))
        assert not contains_required_deep(ListType(Int))

    def test_walk_composites(self):
        """Every reachable composite is collected once."""
        leaf = CompositeType('Leaf', [InputField('v', Int)])
        node = CompositeType('Tree', lambda: [
            InputField('leaf', leaf),
            InputField('children', ListType(node))
        ])
        found = walk_composites([RequiredType(node)])
        assert set(found) == {'Tree', 'Leaf'}

    def test_entries_hash_by_identity(self):
        """Entries with equal names are distinct keys."""
        a = Argument('x', Int)
        b = Argument('x', Int)
        assert len({a: 1, b: 2}) == 2

    def test_default_value(self):
        """Entries know whether they declare a default."""
        assert Argument('x', Int, 0).has_default
        assert Argument('x', Int, None).has_default
        assert not Argument('x', Int).has_default


class TestScalars:
    """Tests for the built-in leaf types."""

    def test_int_range(self):
        """Int accepts 32-bit values only."""
        assert Int.serialize(2 ** 31 - 1) == 2 ** 31 - 1
        assert Int.serialize(np.int64(7)) == 7
        assert Int.serialize(3.0) == 3
        with pytest.raises(ValueError):
            Int.serialize(2 ** 31)

    def test_int_rejects_other_values(self):
        """Non-integral values cannot be represented."""
        assert Int.serialize(1.5) is UNDEFINED
        assert Int.serialize(True) is UNDEFINED
        assert Int.serialize('1') is UNDEFINED

    def test_float(self):
        """Float accepts finite numbers."""
        assert Float.serialize(np.float32(0.5)) == 0.5
        assert Float.serialize(float('nan')) is UNDEFINED
        assert Float.serialize('1.0') is UNDEFINED

    def test_string_boolean_id(self):
        """String, Boolean and ID coercions."""
        assert String.serialize(np.str_('a')) == 'a'
        assert String.serialize(True) == 'true'
        assert String.serialize(None) is UNDEFINED
        assert Boolean.serialize(np.bool_(True)) is True
        assert Boolean.serialize('yes') is UNDEFINED
        assert ID.serialize(42) == '42'
        assert ID.serialize(1.5) is UNDEFINED

    def test_registry(self):
        """Built-ins are registered by name and custom scalars can be added."""
        assert ScalarRegistry.get('Int') is Int
        assert {'Int', 'Float', 'String', 'Boolean', 'ID'} <= set(ScalarRegistry.list_available())

        @register_scalar('Even')
        def Even(value):
            return value if isinstance(value, int) and value % 2 == 0 else UNDEFINED

        assert ScalarRegistry.get('Even') is Even
        assert Even.serialize(3) is UNDEFINED

    def test_unknown_scalar(self):
        """Unknown names raise a configuration error."""
        with pytest.raises(ConfigurationError):
            ScalarRegistry.get('Nope')


class TestEnumType:
    """Tests for enum leaf types."""

    def test_values_and_members(self):
        """Enums accept their values and Python enum members."""
        class Color(enum.Enum):
            RED = 'RED'
            BLUE = 'BLUE'

        color = EnumType('Color', Color)
        assert color.serialize('RED') == 'RED'
        assert color.serialize(Color.BLUE) == 'BLUE'
        assert color.serialize('GREEN') is UNDEFINED
