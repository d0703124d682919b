"""SQLAlchemy user and session repositories."""

import secrets
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, exists, select

from .. import models
from ..domain.ports import SessionRepository, UserRepository
from ..domain.users import PhoneNumber, Session, User, utcnow
from .base import SqlAlchemyRepository, as_utc


def _to_user(row: models.User) -> User:
    return User(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        middle_name=row.middle_name,
        phone_number=PhoneNumber(row.phone_number),
        password_hash=row.password_hash,
        language=row.language,
        is_superadmin=row.is_superadmin,
        created_at=row.created_at,
    )


def _to_session(row: models.Session) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
    )


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):
    async def find_by_id(self, user_id: UUID) -> User | None:
        row = await self._session.get(models.User, user_id)
        return _to_user(row) if row else None

    async def find_by_phone_number(self, phone_number: PhoneNumber) -> User | None:
        result = await self._session.execute(
            select(models.User).where(models.User.phone_number == phone_number.value)
        )
        row = result.scalar_one_or_none()
        return _to_user(row) if row else None

    async def exists(self, phone_number: PhoneNumber) -> bool:
        result = await self._session.execute(
            select(exists().where(models.User.phone_number == phone_number.value))
        )
        return bool(result.scalar())

    async def save(self, user: User) -> User:
        row = models.User(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            middle_name=user.middle_name,
            phone_number=user.phone_number.value,
            password_hash=user.password_hash,
            language=user.language,
            is_superadmin=user.is_superadmin,
            created_at=user.created_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_user(row)

    async def update(self, user: User) -> User:
        row = await self._session.get(models.User, user.id)
        row.language = user.language
        row.first_name = user.first_name
        row.last_name = user.last_name
        row.middle_name = user.middle_name
        row.password_hash = user.password_hash
        await self._session.flush()
        return _to_user(row)

    async def is_superadmin(self, user_id: UUID) -> bool:
        result = await self._session.execute(
            select(models.User.is_superadmin).where(models.User.id == user_id)
        )
        return bool(result.scalar_one_or_none())


class SqlAlchemySessionRepository(SqlAlchemyRepository, SessionRepository):
    async def create(self, user_id: UUID, expires_at: datetime) -> Session:
        row = models.Session(
            id=secrets.token_urlsafe(32),
            user_id=user_id,
            expires_at=expires_at,
            created_at=utcnow(),
        )
        self._session.add(row)
        await self._session.flush()
        return _to_session(row)

    async def find_by_id(self, session_id: str) -> Session | None:
        row = await self._session.get(models.Session, session_id)
        return _to_session(row) if row else None

    async def delete(self, session_id: str) -> None:
        await self._session.execute(delete(models.Session).where(models.Session.id == session_id))

    async def delete_all_for_user(self, user_id: UUID) -> None:
        await self._session.execute(delete(models.Session).where(models.Session.user_id == user_id))
