"""Core application utilities."""

from .config import Settings, get_settings
from .database import (
    async_session_factory,
    close_db,
    engine,
    get_session,
    get_session_context,
    init_db,
)
from .dependencies import (
    CurrentUserDep,
    SessionDep,
    get_current_user,
)
from .locale import DEFAULT_LOCALE, LOCALES, localize_path, switch_locale
from .security import BcryptPasswordHasher, hash_password, verify_password

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "engine",
    "async_session_factory",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "get_current_user",
    "CurrentUserDep",
    "SessionDep",
    # Locale
    "DEFAULT_LOCALE",
    "LOCALES",
    "localize_path",
    "switch_locale",
    # Security
    "BcryptPasswordHasher",
    "hash_password",
    "verify_password",
]
