"""Security utilities: password hashing and session tokens."""

import asyncio
import logging

from passlib.context import CryptContext

from ..domain.ports import PasswordHasher, PasswordVerifier
from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognizable hash
        logger.warning("Password verification against a malformed hash")
        return False


class BcryptPasswordHasher(PasswordHasher, PasswordVerifier):
    """bcrypt hashing that runs off the event loop."""

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(verify_password, password, password_hash)
