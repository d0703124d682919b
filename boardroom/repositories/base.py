"""Shared pieces of the SQLAlchemy repositories."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports import TransactionManager


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyRepository:
    """Repository bound to the request's AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session


class SqlAlchemyTransactionManager(SqlAlchemyRepository, TransactionManager):
    """Runs a block inside a SAVEPOINT.

    The request transaction itself is committed by ``get_session``; a failure
    inside ``atomic()`` rolls back only the writes made in the block.
    """

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        async with self._session.begin_nested():
            yield
