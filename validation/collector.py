"""
Error collection for one validated operation.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence
from utils.logging_config import get_logger
from utils.error_handlers import describe_error
from .functions import ValidationFunction

logger = get_logger(__name__)


@dataclass
class ValidatedInputError:
    """A recorded validation failure."""

    path: List[str]
    message: str
    cause: BaseException = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': list(self.path),
            'message': self.message,
            'error': describe_error(self.cause)
        }


class ErrorCollector:
    """
    Ordered, identity-deduplicated list of validation errors.

    The same exception object caught by several ancestor frames is
    recorded once, with the path of the frame that caught it first.
    Errors that must keep propagating are tracked here as well.
    """

    def __init__(self):
        self._errors: List[ValidatedInputError] = []
        self._registered: Dict[int, BaseException] = {}
        self._propagating: Dict[int, BaseException] = {}

    def register(self, error: BaseException, path: Sequence[str]) -> bool:
        """Record `error` at `path`; False if it was already recorded."""
        if self.is_registered(error):
            return False
        self._registered[id(error)] = error
        self._errors.append(ValidatedInputError(list(path), _message(error), error))
        return True

    def is_registered(self, error: BaseException) -> bool:
        return self._registered.get(id(error)) is error

    def must_propagate(self, error: BaseException) -> bool:
        return self._propagating.get(id(error)) is error

    def mark_propagating(self, error: BaseException) -> None:
        """Flag `error` so every ancestor frame re-raises it."""
        self._propagating[id(error)] = error

    def annotate(
        self,
        error: BaseException,
        path: Sequence[str],
        validation: Optional[ValidationFunction] = None
    ) -> None:
        """
        Attach `path` and the validation's properties to a re-raised error.

        Only the first throwing decision for a given error attaches them.
        """
        if getattr(error, 'path', None) is not None:
            return
        error.path = list(path)
        error.properties = validation.describe() if validation is not None else None
        logger.debug(f"Propagating {error.__class__.__name__} at {'.'.join(path)}: {error}")

    @property
    def errors(self) -> List[ValidatedInputError]:
        return list(self._errors)

    def as_result(self) -> Optional[List[ValidatedInputError]]:
        """Errors list, or None when nothing was recorded."""
        return list(self._errors) if self._errors else None

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[ValidatedInputError]:
        return iter(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)


def _message(error: BaseException) -> str:
    message = getattr(error, 'message', None)
    if isinstance(message, str):
        return message
    return str(error)
