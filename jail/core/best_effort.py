"""Explicit wrapper for cleanup steps whose failure is deliberately ignored."""
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Tuple, Type, TypeVar

from jail.core.errors import JailError
from jail.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class BestEffort(Generic[T]):
    """Outcome of a best-effort call.

    Attributes:
        description: What was attempted (for logs)
        value: Return value when the call succeeded
        error: Exception raised by the call, if any
    """

    description: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def best_effort(
    description: str,
    func: Callable[..., T],
    *args,
    exceptions: Tuple[Type[BaseException], ...] = (JailError, OSError),
    **kwargs,
) -> BestEffort[T]:
    """Run ``func`` and capture failures instead of raising them.

    Example:
        best_effort("stop container", engine.stop, container_name)
    """
    try:
        return BestEffort(description, value=func(*args, **kwargs))
    except exceptions as e:
        logger.debug(f"Ignoring failure to {description}: {e}")
        return BestEffort(description, error=e)
