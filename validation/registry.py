"""
Entry binding registry.

Bindings (validation function and failure policy per entry) and the
"requires validation" marks of containers live in side tables keyed by
object identity, so the shared type descriptors are never mutated.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set, Union
from utils.logging_config import get_logger
from utils.exceptions import BindingError, ConfigurationError
from .types import CompositeType, Entry, ListType, unwrap_required, describe_type
from .functions import ValidationFunction, compose

logger = get_logger(__name__)


class Policy(str, Enum):
    """How a validation failure at or below an entry is handled."""

    RESOLVER = 'RESOLVER'  # substitute null and record the error
    THROW = 'THROW'        # abort the whole operation

    @classmethod
    def parse(cls, value: Union[str, 'Policy', None]) -> Optional['Policy']:
        if value is None or isinstance(value, Policy):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ConfigurationError(
                f"Unknown policy: {value}",
                details={'allowed': [policy.value for policy in cls]}
            )


DEFAULT_POLICY = Policy.RESOLVER


@dataclass
class Binding:
    """Validation attached to a single entry."""

    validation: Optional[ValidationFunction] = None
    policy: Optional[Policy] = None
    item_validation: Optional[ValidationFunction] = None


class BindingRegistry:
    """Side tables of entry bindings and container marks."""

    def __init__(self):
        self._bindings: Dict[Entry, Binding] = {}
        self._marks: Dict[Any, bool] = {}
        self._results: Dict[Any, Binding] = {}
        self._wrapped: Set[Any] = set()
        self.logger = get_logger(self.__class__.__name__)

    # Bindings

    def bind(
        self,
        container: Any,
        entry: Entry,
        validation: Optional[Callable[..., Any]] = None,
        policy: Union[Policy, str, None] = None
    ) -> Binding:
        """
        Mark `container` as requiring validation and attach `validation`
        to `entry`.

        Without `validation` only the policy and the mark are recorded,
        which is how a container is flagged because a nested field needs
        validation. An existing validation runs before the new one.
        """
        self._check_membership(container, entry)
        binding = self._binding(entry)
        self._forget_negative_requirements()
        self.mark(container)
        policy = Policy.parse(policy)
        if policy is not None:
            binding.policy = policy

        if validation is None:
            return binding

        binding.validation = compose(binding.validation, validation)
        self.logger.debug(
            f"Bound {binding.validation.name} to {entry.name} ({binding.policy})"
        )
        return binding

    def bind_items(
        self,
        container: Any,
        entry: Entry,
        validation: Callable[..., Any],
        policy: Union[Policy, str, None] = None
    ) -> Binding:
        """Attach `validation` to every element of a list-typed entry."""
        if not isinstance(unwrap_required(entry.type), ListType):
            raise BindingError(
                f"Item validation requires a list entry, {entry.name} is {describe_type(entry.type)}",
                details={'entry': entry.name, 'type': describe_type(entry.type)}
            )
        binding = self.bind(container, entry, None, policy)
        binding.item_validation = compose(binding.item_validation, validation)
        return binding

    def bind_composite(
        self,
        composite: CompositeType,
        validation: Callable[..., Any],
        policy: Union[Policy, str, None] = None
    ) -> None:
        """Attach `validation` to every field of `composite`."""
        for field in composite.fields.values():
            self.bind(composite, field, validation, policy)

    def bind_result(self, operation: Any, validation: Callable[..., Any]) -> bool:
        """
        Chain `validation` onto the result of `operation`.

        Returns True for the first result validation of the operation,
        which is when its handler has to be wrapped.
        """
        binding = self._results.get(operation)
        first = binding is None
        if first:
            binding = self._results[operation] = Binding()
        binding.validation = compose(binding.validation, validation)
        return first

    def result_validation_for(self, operation: Any) -> Optional[ValidationFunction]:
        binding = self._results.get(operation)
        return binding.validation if binding else None

    def binding_for(self, entry: Entry) -> Optional[Binding]:
        return self._bindings.get(entry)

    def validation_for(self, entry: Entry) -> Optional[ValidationFunction]:
        binding = self._bindings.get(entry)
        return binding.validation if binding else None

    def policy_for(self, entry: Entry) -> Optional[Policy]:
        binding = self._bindings.get(entry)
        return binding.policy if binding else None

    def has_validation(self, entry: Entry) -> bool:
        binding = self._bindings.get(entry)
        return binding is not None and (
            binding.validation is not None or binding.item_validation is not None
        )

    # Container marks

    def mark(self, container: Any, value: bool = True) -> None:
        self._marks[container] = value

    def is_marked(self, container: Any) -> bool:
        return self._marks.get(container, False)

    def cached_requirement(self, container: Any) -> Optional[bool]:
        """Memoized requirement of a container, None when unknown."""
        return self._marks.get(container)

    def remember(self, container: Any, value: bool) -> bool:
        """Store a computed requirement unless one is already known."""
        return self._marks.setdefault(container, value)

    def _forget_negative_requirements(self) -> None:
        # A new binding can make any enclosing composite require validation
        stale = [container for container, required in self._marks.items() if not required]
        for container in stale:
            del self._marks[container]
        if stale:
            self.logger.debug(f"Cleared {len(stale)} memoized requirement(s)")

    # Wrapped operations

    def mark_wrapped(self, operation: Any) -> bool:
        """Record that `operation` validates its arguments; False if it already did."""
        if operation in self._wrapped:
            return False
        self._wrapped.add(operation)
        return True

    def is_wrapped(self, operation: Any) -> bool:
        return operation in self._wrapped

    def _binding(self, entry: Entry) -> Binding:
        binding = self._bindings.get(entry)
        if binding is None:
            binding = self._bindings[entry] = Binding()
        return binding

    @staticmethod
    def _check_membership(container: Any, entry: Entry) -> None:
        if isinstance(container, CompositeType):
            members = container.fields.values()
        elif hasattr(container, 'arguments'):
            members = container.arguments.values()
        else:
            return
        if not any(member is entry for member in members):
            raise BindingError(
                f"{entry.name} is not an entry of {getattr(container, 'name', container)}",
                details={'entry': entry.name}
            )
