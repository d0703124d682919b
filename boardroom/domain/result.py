"""Success/failure results returned across the use-case boundary."""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, ParamSpec, TypeVar, Union

from .errors import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)
P = ParamSpec("P")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying the original error."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Union[Ok[T], Err[E]]


def use_case(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[Result[T, Exception]]]:
    """Run an async use case and convert its outcome into a ``Result``.

    Domain errors are returned as-is. Anything else is logged and returned
    as a generic failure that still carries the original exception.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, Exception]:
        try:
            return Ok(await func(*args, **kwargs))
        except DomainError as exc:
            logger.debug("%s failed: %s (%s)", func.__qualname__, exc.message, exc.code)
            return Err(exc)
        except Exception as exc:
            logger.exception("Unexpected error in %s", func.__qualname__)
            return Err(exc)

    return wrapper
