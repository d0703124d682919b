"""Locale-prefixed path helpers.

Every page path carries a two-letter locale prefix, e.g. ``/ru/organizations``.
"""

LOCALES = ("en", "ru")
DEFAULT_LOCALE = "ru"


def is_valid_locale(value: str | None) -> bool:
    return value in LOCALES


def split_locale(path: str) -> tuple[str | None, str]:
    """Split ``/en/foo`` into ``("en", "/foo")``; unprefixed paths give ``(None, path)``."""
    if not path.startswith("/"):
        path = "/" + path
    head, _, rest = path[1:].partition("/")
    if is_valid_locale(head):
        return head, "/" + rest if rest else "/"
    return None, path


def localize_path(path: str, locale: str = DEFAULT_LOCALE) -> str:
    """Prefix ``path`` with ``locale`` unless it already has a locale prefix."""
    current, rest = split_locale(path)
    if current is not None:
        return path if path.startswith("/") else "/" + path
    return _join(locale, rest)


def switch_locale(path: str, locale: str) -> str:
    """Replace the locale prefix of ``path`` with ``locale``."""
    if not is_valid_locale(locale):
        raise ValueError(f"Unsupported locale: {locale}")
    _, rest = split_locale(path)
    return _join(locale, rest)


def _join(locale: str, rest: str) -> str:
    return f"/{locale}" if rest == "/" else f"/{locale}{rest}"
