"""
Built-in leaf types and the scalar registry.
"""
import math
from typing import Any, Callable, Dict, List
import numpy as np
from utils.logging_config import get_logger
from utils.exceptions import ConfigurationError
from .types import ScalarType, UNDEFINED

logger = get_logger(__name__)

MAX_INT = 2 ** 31 - 1
MIN_INT = -(2 ** 31)


class ScalarRegistry:
    """Name-keyed registry of leaf types."""

    _registry: Dict[str, ScalarType] = {}

    @classmethod
    def register(cls, scalar: ScalarType) -> ScalarType:
        """Register a scalar under its name."""
        cls._registry[scalar.name] = scalar
        logger.debug(f"Registered scalar {scalar.name}")
        return scalar

    @classmethod
    def get(cls, name: str) -> ScalarType:
        """Look up a scalar by name."""
        if name not in cls._registry:
            raise ConfigurationError(
                f"Unknown scalar: {name}",
                details={'available_scalars': list(cls._registry.keys())}
            )
        return cls._registry[name]

    @classmethod
    def list_available(cls) -> List[str]:
        """List all registered scalars."""
        return list(cls._registry.keys())


def register_scalar(name: str, description: str = None):
    """Decorator turning a serialize function into a registered scalar."""
    def decorator(serialize: Callable[[Any], Any]) -> ScalarType:
        return ScalarRegistry.register(ScalarType(name, serialize, description))
    return decorator


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


@register_scalar('Int', 'Signed 32-bit integer')
def Int(value: Any) -> Any:
    if _is_bool(value):
        return UNDEFINED
    if isinstance(value, (int, np.integer)):
        number = int(value)
    elif isinstance(value, (float, np.floating)) and math.isfinite(value) and float(value).is_integer():
        number = int(value)
    else:
        return UNDEFINED
    if number < MIN_INT or number > MAX_INT:
        raise ValueError(f"Int cannot represent non 32-bit signed integer value: {value}")
    return number


@register_scalar('Float', 'Double-precision floating point number')
def Float(value: Any) -> Any:
    if _is_bool(value):
        return UNDEFINED
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        if math.isfinite(number):
            return number
    return UNDEFINED


@register_scalar('String', 'UTF-8 character sequence')
def String(value: Any) -> Any:
    if isinstance(value, (str, np.str_)):
        return str(value)
    if _is_bool(value):
        return 'true' if value else 'false'
    if isinstance(value, (int, float, np.integer, np.floating)):
        return str(value)
    return UNDEFINED


@register_scalar('Boolean', 'true or false')
def Boolean(value: Any) -> Any:
    if _is_bool(value):
        return bool(value)
    if isinstance(value, (int, float, np.integer, np.floating)) and math.isfinite(value):
        return value != 0
    return UNDEFINED


@register_scalar('ID', 'Unique identifier, serialized as a string')
def ID(value: Any) -> Any:
    if isinstance(value, (str, np.str_)):
        return str(value)
    if isinstance(value, (int, np.integer)) and not _is_bool(value):
        return str(int(value))
    return UNDEFINED
