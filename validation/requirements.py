"""
Requirement propagation.

A composite requires validation when any of its fields has a bound
validation or a type that requires validation, directly or through
nested composites and lists. The answer is memoized per composite in the
binding registry so values needing no validation are never walked.
"""
from typing import Dict, Iterable, Set
from utils.logging_config import get_logger
from .types import (
    GraphType,
    CompositeType,
    InputField,
    ListType,
    RequiredType,
    final_type,
    contains_required_deep,
)
from .registry import BindingRegistry

logger = get_logger(__name__)


class RequirementPropagator:
    """Lazily computes which composites need to be walked."""

    def __init__(self, registry: BindingRegistry):
        self.registry = registry
        self._contains_required: Dict[CompositeType, bool] = {}

    def requires_validation(self, type_: GraphType) -> bool:
        """True if values of `type_` may need validation below the root."""
        return self._requires(type_, set())

    def contains_required(self, type_: GraphType) -> bool:
        """Memoized `contains_required_deep`."""
        current = type_
        while isinstance(current, (RequiredType, ListType)):
            if isinstance(current, RequiredType):
                return True
            current = current.of_type
        if not isinstance(current, CompositeType):
            return False
        cached = self._contains_required.get(current)
        if cached is None:
            cached = self._contains_required.setdefault(current, contains_required_deep(current))
        return cached

    def mark_all(self, composites: Iterable[CompositeType]) -> None:
        """Eagerly memoize the requirement of every given composite."""
        for composite in composites:
            self.requires_validation(composite)

    def _requires(self, type_: GraphType, visiting: Set[int]) -> bool:
        named = final_type(type_)
        if not isinstance(named, CompositeType):
            return False

        cached = self.registry.cached_requirement(named)
        if cached is not None:
            return cached

        if id(named) in visiting:
            # Cycle: the answer is decided by the other fields
            return False
        visiting.add(id(named))
        result = any(self._field_requires(field, visiting) for field in named.fields.values())
        visiting.discard(id(named))

        # A negative answer reached inside a cycle is provisional
        if result or not visiting:
            result = self.registry.remember(named, result)
            logger.debug(f"{named.name} requires validation: {result}")
        return result

    def _field_requires(self, field: InputField, visiting: Set[int]) -> bool:
        if self.registry.has_validation(field):
            return True
        return self._requires(field.type, visiting)
