"""
Authentication use cases: register, login, logout, session validation,
profile updates and password changes.

Login failures never reveal whether the phone number is registered.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from ..domain.errors import DuplicateError, NotFoundError, UnauthorizedError, ValidationError
from ..domain.ports import PasswordHasher, PasswordVerifier, SessionRepository, UserRepository
from ..domain.result import use_case
from ..domain.users import (
    DEFAULT_LANGUAGE,
    AuthErrors,
    Language,
    PhoneNumber,
    Session,
    User,
    UserErrors,
    parse_language,
    utcnow,
    validate_name_parts,
)

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(days=30)
PASSWORD_MIN_LENGTH = 8
INVALID_CREDENTIALS_MESSAGE = "Invalid phone number or password"

Clock = Callable[[], datetime]


def _password_problems(
    password: str, confirm_password: str, field: str = "password"
) -> list[tuple[str, str, str]]:
    problems = []
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        problems.append(
            (
                field,
                UserErrors.PASSWORD_TOO_SHORT,
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            )
        )
    if password != confirm_password:
        problems.append(
            ("confirm_password", UserErrors.PASSWORDS_DO_NOT_MATCH, "Passwords do not match")
        )
    return problems


# =============================================================================
# INPUTS / OUTPUTS
# =============================================================================


@dataclass
class RegisterUserInput:
    first_name: str
    last_name: str
    phone_number: str
    password: str
    confirm_password: str
    middle_name: str | None = None
    language: Language | str = DEFAULT_LANGUAGE


@dataclass
class LoginUserInput:
    phone_number: str
    password: str


@dataclass
class LoginResult:
    user: User
    session: Session


@dataclass
class UpdateUserProfileInput:
    language: Language | str


@dataclass
class ChangePasswordInput:
    current_password: str
    new_password: str
    confirm_password: str


# =============================================================================
# USE CASES
# =============================================================================


class RegisterUserUseCase:
    def __init__(self, users: UserRepository, hasher: PasswordHasher):
        self._users = users
        self._hasher = hasher

    @staticmethod
    def _validate(data: RegisterUserInput) -> PhoneNumber:
        problems = validate_name_parts(data.first_name, data.last_name, data.middle_name)
        problems.extend(_password_problems(data.password, data.confirm_password))

        phone_number = None
        try:
            phone_number = PhoneNumber(data.phone_number)
        except ValidationError as exc:
            problems.append(("phone_number", exc.code, exc.field_errors["phone_number"]))

        if problems:
            raise ValidationError.from_problems("Invalid registration data", problems)
        return phone_number

    @use_case
    async def execute(self, data: RegisterUserInput) -> User:
        """
        Register a new user.

        Flow:
        1. Validate every field, reporting all problems at once
        2. Reject an already registered phone number
        3. Hash the password and persist the user
        """
        phone_number = self._validate(data)
        language = parse_language(data.language)

        if await self._users.exists(phone_number):
            raise DuplicateError("User", "phone number", UserErrors.PHONE_NUMBER_TAKEN)

        password_hash = await self._hasher.hash(data.password)
        user = User.create(
            first_name=data.first_name,
            last_name=data.last_name,
            middle_name=data.middle_name,
            phone_number=phone_number,
            password_hash=password_hash,
            language=language,
        )
        user = await self._users.save(user)

        logger.info("Registered user %s", user.id)
        return user


class LoginUserUseCase:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        verifier: PasswordVerifier,
        clock: Clock = utcnow,
        session_ttl: timedelta = SESSION_TTL,
    ):
        self._users = users
        self._sessions = sessions
        self._verifier = verifier
        self._clock = clock
        self._session_ttl = session_ttl

    @staticmethod
    def _invalid_credentials() -> UnauthorizedError:
        return UnauthorizedError(INVALID_CREDENTIALS_MESSAGE, AuthErrors.INVALID_CREDENTIALS)

    @use_case
    async def execute(self, data: LoginUserInput) -> LoginResult:
        """Check credentials and open a session that expires after the TTL."""
        try:
            phone_number = PhoneNumber(data.phone_number)
        except ValidationError:
            raise self._invalid_credentials() from None

        user = await self._users.find_by_phone_number(phone_number)
        if user is None:
            logger.info("Login failed: unknown phone number")
            raise self._invalid_credentials()

        if not await self._verifier.verify(data.password, user.password_hash):
            logger.info("Login failed for user %s: wrong password", user.id)
            raise self._invalid_credentials()

        session = await self._sessions.create(user.id, self._clock() + self._session_ttl)
        logger.info("User %s logged in", user.id)
        return LoginResult(user=user, session=session)


class LogoutUserUseCase:
    def __init__(self, sessions: SessionRepository):
        self._sessions = sessions

    @use_case
    async def execute(self, session_id: str) -> None:
        # Unknown sessions are ignored
        await self._sessions.delete(session_id)


class ValidateSessionUseCase:
    def __init__(self, users: UserRepository, sessions: SessionRepository, clock: Clock = utcnow):
        self._users = users
        self._sessions = sessions
        self._clock = clock

    @use_case
    async def execute(self, session_id: str) -> User:
        """Resolve a session id to its user, deleting the session if expired."""
        session = await self._sessions.find_by_id(session_id)
        if session is None:
            raise UnauthorizedError("Session not found", AuthErrors.SESSION_INVALID)

        if session.is_expired(self._clock()):
            await self._sessions.delete(session.id)
            raise UnauthorizedError("Session expired", AuthErrors.SESSION_EXPIRED)

        user = await self._users.find_by_id(session.user_id)
        if user is None:
            await self._sessions.delete(session.id)
            raise UnauthorizedError("Session not found", AuthErrors.SESSION_INVALID)
        return user


class UpdateUserProfileUseCase:
    def __init__(self, users: UserRepository):
        self._users = users

    @use_case
    async def execute(self, user_id: UUID, data: UpdateUserProfileInput) -> User:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id, UserErrors.NOT_FOUND)

        user.change_language(parse_language(data.language))
        return await self._users.update(user)


class ChangePasswordUseCase:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        hasher: PasswordHasher,
        verifier: PasswordVerifier,
        clock: Clock = utcnow,
        session_ttl: timedelta = SESSION_TTL,
    ):
        self._users = users
        self._sessions = sessions
        self._hasher = hasher
        self._verifier = verifier
        self._clock = clock
        self._session_ttl = session_ttl

    @use_case
    async def execute(self, user_id: UUID, data: ChangePasswordInput) -> LoginResult:
        """
        Replace the user's password.

        Every existing session of the user is revoked, including the one
        making the request, and a fresh session is opened in its place.
        """
        problems = _password_problems(data.new_password, data.confirm_password, "new_password")
        if problems:
            raise ValidationError.from_problems("Invalid password change", problems)

        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id, UserErrors.NOT_FOUND)

        if not await self._verifier.verify(data.current_password, user.password_hash):
            logger.info("Password change rejected for user %s: wrong password", user.id)
            raise UnauthorizedError("Current password is incorrect", AuthErrors.WRONG_PASSWORD)

        user.change_password(await self._hasher.hash(data.new_password))
        user = await self._users.update(user)
        await self._sessions.delete_all_for_user(user.id)
        session = await self._sessions.create(user.id, self._clock() + self._session_ttl)

        logger.info("User %s changed password; other sessions revoked", user.id)
        return LoginResult(user=user, session=session)
