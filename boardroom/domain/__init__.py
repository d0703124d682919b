"""Domain layer: entities, value objects, errors and ports."""

from .errors import (
    DomainError,
    DuplicateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from .result import Err, Ok, Result, use_case

__all__ = [
    "DomainError",
    "DuplicateError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "Err",
    "Ok",
    "Result",
    "use_case",
]
