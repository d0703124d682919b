"""User entity, session and user value objects."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from .errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserErrors:
    """User-related error codes, translated at the presentation layer."""

    INVALID_PHONE_NUMBER = "user.errors.invalidPhoneNumber"
    PHONE_NUMBER_TAKEN = "user.errors.phoneNumberTaken"
    FIRST_NAME_REQUIRED = "user.errors.firstNameRequired"
    LAST_NAME_REQUIRED = "user.errors.lastNameRequired"
    NAME_TOO_LONG = "user.errors.nameTooLong"
    PASSWORD_TOO_SHORT = "user.errors.passwordTooShort"
    PASSWORDS_DO_NOT_MATCH = "user.errors.passwordsDoNotMatch"
    INVALID_LANGUAGE = "user.errors.invalidLanguage"
    NOT_FOUND = "user.errors.notFound"


class AuthErrors:
    INVALID_CREDENTIALS = "auth.errors.invalidCredentials"
    SESSION_INVALID = "auth.errors.sessionInvalid"
    SESSION_EXPIRED = "auth.errors.sessionExpired"
    WRONG_PASSWORD = "auth.errors.wrongPassword"


class Language(str, Enum):
    """Preferred interface language."""

    EN = "en"
    RU = "ru"


DEFAULT_LANGUAGE = Language.RU
NAME_MAX_LENGTH = 100

# +<country code><number>, e.g. +79161234567, +14155551234
PHONE_NUMBER_PATTERN = re.compile(r"^\+[1-9][0-9]{1,14}$")


@dataclass(frozen=True)
class PhoneNumber:
    """E.164-like phone number. Equality is by normalized value."""

    value: str

    def __post_init__(self):
        normalized = self.value.strip() if isinstance(self.value, str) else ""
        if not PHONE_NUMBER_PATTERN.fullmatch(normalized):
            raise ValidationError(
                "Invalid phone number format. Must be in format: +<country code><number>",
                UserErrors.INVALID_PHONE_NUMBER,
                field_errors={"phone_number": "Invalid phone number format"},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


def parse_language(value: "str | Language") -> Language:
    try:
        return Language(value)
    except ValueError:
        raise ValidationError(
            f"Unsupported language: {value}",
            UserErrors.INVALID_LANGUAGE,
            field_errors={"language": "Unsupported language"},
        ) from None


def validate_name_parts(
    first_name: str | None,
    last_name: str | None,
    middle_name: str | None = None,
) -> list[tuple[str, str, str]]:
    """Return (field, code, message) triples for invalid name parts."""
    problems = []
    if not first_name or not first_name.strip():
        problems.append(("first_name", UserErrors.FIRST_NAME_REQUIRED, "First name is required"))
    elif len(first_name.strip()) > NAME_MAX_LENGTH:
        problems.append(("first_name", UserErrors.NAME_TOO_LONG, "First name is too long"))
    if not last_name or not last_name.strip():
        problems.append(("last_name", UserErrors.LAST_NAME_REQUIRED, "Last name is required"))
    elif len(last_name.strip()) > NAME_MAX_LENGTH:
        problems.append(("last_name", UserErrors.NAME_TOO_LONG, "Last name is too long"))
    if middle_name and len(middle_name.strip()) > NAME_MAX_LENGTH:
        problems.append(("middle_name", UserErrors.NAME_TOO_LONG, "Middle name is too long"))
    return problems


@dataclass
class User:
    """Registered user. Identity and phone number never change."""

    id: UUID
    first_name: str
    last_name: str
    phone_number: PhoneNumber
    password_hash: str = field(repr=False)
    language: Language = DEFAULT_LANGUAGE
    middle_name: str | None = None
    is_superadmin: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        first_name: str,
        last_name: str,
        phone_number: PhoneNumber,
        password_hash: str,
        middle_name: str | None = None,
        language: Language = DEFAULT_LANGUAGE,
    ) -> "User":
        problems = validate_name_parts(first_name, last_name, middle_name)
        if problems:
            raise ValidationError.from_problems("Invalid user data", problems)
        return cls(
            id=uuid4(),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            middle_name=middle_name.strip() if middle_name and middle_name.strip() else None,
            phone_number=phone_number,
            password_hash=password_hash,
            language=language,
        )

    @property
    def full_name(self) -> str:
        parts = [self.last_name, self.first_name, self.middle_name]
        return " ".join(p for p in parts if p)

    def change_language(self, language: Language) -> None:
        self.language = language

    def change_password(self, password_hash: str) -> None:
        self.password_hash = password_hash


@dataclass
class Session:
    """Server-issued login session."""

    id: str
    user_id: UUID
    expires_at: datetime
    created_at: datetime = field(default_factory=utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or utcnow())
