"""Login redirect for page requests without a valid session."""

import logging
from collections.abc import Awaitable, Callable
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from ..domain.result import Ok
from ..repositories import SqlAlchemySessionRepository, SqlAlchemyUserRepository
from ..services.auth import ValidateSessionUseCase
from .config import get_settings
from .database import get_session_context
from .locale import DEFAULT_LOCALE, localize_path, split_locale

logger = logging.getLogger(__name__)
settings = get_settings()

SessionChecker = Callable[[str], Awaitable[bool]]

# Page paths (without locale prefix) reachable without a session
PUBLIC_PAGES = ("/", "/login", "/register")


async def check_session(session_id: str) -> bool:
    """Validate a session id against the database."""
    async with get_session_context() as db:
        use_case = ValidateSessionUseCase(
            SqlAlchemyUserRepository(db), SqlAlchemySessionRepository(db)
        )
        return isinstance(await use_case.execute(session_id), Ok)


def _is_page_request(request: Request) -> bool:
    if request.method not in ("GET", "HEAD"):
        return False
    return "text/html" in request.headers.get("accept", "")


def _is_public(path: str) -> bool:
    _, rest = split_locale(path)
    rest = rest.rstrip("/") or "/"
    return rest in PUBLIC_PAGES


class LoginRedirectMiddleware(BaseHTTPMiddleware):
    """
    Redirect HTML page requests to ``/{locale}/login?redirect=<path>``
    when the session cookie is missing, unknown or expired.

    API requests are left alone; they get a 401 from ``get_current_user``.
    """

    def __init__(
        self,
        app: ASGIApp,
        session_checker: SessionChecker = check_session,
        cookie_name: str | None = None,
        excluded_prefixes: tuple[str, ...] = (),
    ):
        super().__init__(app)
        self._check = session_checker
        self._cookie_name = cookie_name or settings.session_cookie_name
        self._excluded = (settings.api_prefix, "/health", *excluded_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if (
            path.startswith(self._excluded)
            or not _is_page_request(request)
            or _is_public(path)
        ):
            return await call_next(request)

        session_id = request.cookies.get(self._cookie_name)
        if session_id and await self._check(session_id):
            return await call_next(request)

        locale, _ = split_locale(path)
        login = localize_path("/login", locale or DEFAULT_LOCALE)
        logger.debug("No valid session for %s, redirecting to login", path)
        return RedirectResponse(f"{login}?{urlencode({'redirect': path})}", status_code=307)
