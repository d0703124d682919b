"""Current-user API routes."""

from fastapi import APIRouter, Response

from ..core.dependencies import (
    ChangePasswordDep,
    CurrentUserDep,
    OrganizationServiceDep,
    UpdateProfileDep,
)
from ..schemas import (
    ChangePasswordRequest,
    LoginResponse,
    OrganizationResponse,
    UpdateProfileRequest,
    UserResponse,
)
from ..services.auth import ChangePasswordInput, UpdateUserProfileInput
from .auth import set_session_cookie
from .errors import ok_or_raise

router = APIRouter(prefix="/me", tags=["user"])


@router.get("", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep):
    return UserResponse.model_validate(current_user)


@router.patch("", response_model=UserResponse)
async def update_me(
    data: UpdateProfileRequest,
    current_user: CurrentUserDep,
    use_case: UpdateProfileDep,
):
    """Update the current user's preferred language."""
    user = ok_or_raise(
        await use_case.execute(current_user.id, UpdateUserProfileInput(language=data.language))
    )
    return UserResponse.model_validate(user)


@router.get("/organizations", response_model=list[OrganizationResponse])
async def get_my_organizations(current_user: CurrentUserDep, service: OrganizationServiceDep):
    """Organizations the current user is an accepted member of."""
    organizations = ok_or_raise(await service.list_user_organizations(current_user.id))
    return [OrganizationResponse.model_validate(o) for o in organizations]


@router.get("/organizations/admin", response_model=list[OrganizationResponse])
async def get_my_admin_organizations(
    current_user: CurrentUserDep, service: OrganizationServiceDep
):
    """Organizations the current user administers."""
    organizations = ok_or_raise(await service.list_admin_organizations(current_user.id))
    return [OrganizationResponse.model_validate(o) for o in organizations]


@router.post("/password", response_model=LoginResponse)
async def change_password(
    data: ChangePasswordRequest,
    response: Response,
    current_user: CurrentUserDep,
    use_case: ChangePasswordDep,
):
    """
    Change the current user's password.

    All sessions of the user are revoked; the caller gets a fresh session cookie.
    """
    result = ok_or_raise(
        await use_case.execute(
            current_user.id,
            ChangePasswordInput(
                current_password=data.current_password,
                new_password=data.new_password,
                confirm_password=data.confirm_password,
            ),
        )
    )
    set_session_cookie(response, result.session.id)
    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        expires_at=result.session.expires_at,
    )
