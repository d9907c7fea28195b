"""Success/failure results returned by every store operation."""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, ParamSpec, TypeVar

from groupgo.errors import ErrorCode, GroupGoError

T = TypeVar("T")
P = ParamSpec("P")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: GroupGoError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: GroupGoError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def returns_result(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[Result[T]]]:
    """Run a coroutine and report its outcome as a Result instead of raising.

    GroupGoError subclasses are passed through as-is. Anything else is wrapped
    with ErrorCode.UNKNOWN, keeping the original message for display.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        try:
            return Result.success(await func(*args, **kwargs))
        except GroupGoError as e:
            logger.info("%s failed: %s (%s)", func.__qualname__, e.message, e.code.value)
            return Result.failure(e)
        except Exception as e:
            logger.exception("%s failed unexpectedly", func.__qualname__)
            return Result.failure(GroupGoError(str(e) or type(e).__name__, code=ErrorCode.UNKNOWN))

    return wrapper
