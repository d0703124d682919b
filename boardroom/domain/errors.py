"""Domain exceptions.

These exceptions are raised by domain logic and use cases. The use-case
boundary turns them into ``Err`` results; the API layer maps them to HTTP
status codes.
"""


class DomainError(Exception):
    """Base exception for domain rule violations."""

    code = "errors.domain"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(DomainError):
    """Malformed input or a violated precondition.

    ``codes`` lists every violated condition, ``field_errors`` maps input
    field names to human readable messages.
    """

    code = "errors.validation"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        *,
        codes: list[str] | None = None,
        field_errors: dict[str, str] | None = None,
    ):
        codes = list(codes or ([code] if code else []))
        super().__init__(message, code or (codes[0] if codes else None))
        self.codes = codes
        self.field_errors = dict(field_errors or {})

    @classmethod
    def from_problems(
        cls, message: str, problems: list[tuple[str, str, str]]
    ) -> "ValidationError":
        """Build one error from (field, code, field message) triples."""
        return cls(
            message,
            codes=[code for _, code, _ in problems],
            field_errors={name: text for name, _, text in problems},
        )


class NotFoundError(DomainError):
    """Entity does not exist."""

    code = "errors.notFound"

    def __init__(self, entity: str, identifier: object, code: str | None = None):
        super().__init__(f"{entity} with identifier {identifier} not found", code)
        self.entity = entity
        self.identifier = identifier


class DuplicateError(DomainError):
    """Uniqueness violation."""

    code = "errors.duplicate"

    def __init__(self, entity: str, field: str, code: str | None = None):
        super().__init__(f"{entity} with this {field} already exists", code)
        self.entity = entity
        self.field = field


class UnauthorizedError(DomainError):
    """Authentication or authorization failure."""

    code = "errors.unauthorized"

    def __init__(self, message: str = "Unauthorized", code: str | None = None):
        super().__init__(message, code)
