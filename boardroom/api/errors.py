"""Map use-case errors to HTTP responses."""

import logging
from typing import NoReturn, TypeVar

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..domain.errors import (
    DomainError,
    DuplicateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..domain.result import Err, Result
from ..schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(HTTPException):
    """HTTP error whose body is an ``ErrorResponse``."""

    def __init__(self, status_code: int, response: ErrorResponse):
        super().__init__(status_code=status_code, detail=response.message)
        self.response = response


def _validation_details(error: ValidationError) -> list[ErrorDetail]:
    details = [ErrorDetail(message=error.message, code=code) for code in error.codes]
    details.extend(
        ErrorDetail(field=name, message=text, code="errors.invalidField")
        for name, text in error.field_errors.items()
    )
    return details


def raise_for_error(error: Exception, authentication: bool = False) -> NoReturn:
    """
    Raise the HTTP error matching a use-case failure.

    ``authentication`` selects 401 over 403 for ``UnauthorizedError``
    (login and session checks rather than permission checks).
    """
    if isinstance(error, ValidationError):
        raise ApiError(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            ErrorResponse(
                error="validation_error",
                message=error.message,
                details=_validation_details(error),
            ),
        )

    if isinstance(error, DomainError):
        if isinstance(error, NotFoundError):
            status_code, kind = status.HTTP_404_NOT_FOUND, "not_found"
        elif isinstance(error, DuplicateError):
            status_code, kind = status.HTTP_409_CONFLICT, "conflict"
        elif isinstance(error, UnauthorizedError):
            if authentication:
                status_code, kind = status.HTTP_401_UNAUTHORIZED, "unauthorized"
            else:
                status_code, kind = status.HTTP_403_FORBIDDEN, "forbidden"
        else:
            status_code, kind = status.HTTP_400_BAD_REQUEST, "domain_error"
        raise ApiError(
            status_code,
            ErrorResponse(
                error=kind,
                message=error.message,
                details=[ErrorDetail(message=error.message, code=error.code)],
            ),
        )

    logger.error("Unhandled use-case failure: %r", error)
    raise ApiError(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error="internal_error", message="An unexpected error occurred"),
    )


def ok_or_raise(result: Result[T, Exception], authentication: bool = False) -> T:
    """Return the value of a successful result, raise the mapped HTTP error otherwise."""
    if isinstance(result, Err):
        raise_for_error(result.error, authentication=authentication)
    return result.value


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.response.model_dump())
