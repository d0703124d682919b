"""Authentication API routes.

Sessions are opaque ids kept server-side and carried in an HttpOnly cookie.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Cookie, Response, status

from ..core.config import get_settings
from ..core.dependencies import LoginDep, LogoutDep, RegisterDep
from ..schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from ..services.auth import LoginUserInput, RegisterUserInput
from .errors import ok_or_raise

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_cookie_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, use_case: RegisterDep):
    """Register a new user account."""
    user = ok_or_raise(
        await use_case.execute(
            RegisterUserInput(
                first_name=data.first_name,
                last_name=data.last_name,
                middle_name=data.middle_name,
                phone_number=data.phone_number,
                password=data.password,
                confirm_password=data.confirm_password,
                language=data.language,
            )
        )
    )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, response: Response, use_case: LoginDep):
    """
    Log in with phone number and password.

    On success a 30-day session is created and its id is set as the
    session cookie.
    """
    result = ok_or_raise(
        await use_case.execute(
            LoginUserInput(phone_number=data.phone_number, password=data.password)
        ),
        authentication=True,
    )
    set_session_cookie(response, result.session.id)
    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        expires_at=result.session.expires_at,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    use_case: LogoutDep,
    session_id: Annotated[str | None, Cookie(alias=settings.session_cookie_name)] = None,
):
    """Delete the current session. Succeeds without a session too."""
    if session_id:
        ok_or_raise(await use_case.execute(session_id))
    response.delete_cookie(key=settings.session_cookie_name, path="/")
    return MessageResponse(message="Logged out")
