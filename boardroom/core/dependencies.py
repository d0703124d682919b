"""FastAPI dependencies: service wiring and the current user."""

import logging
from datetime import timedelta
from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.result import Err
from ..domain.users import User
from ..repositories import (
    SqlAlchemyBoardRepository,
    SqlAlchemyDraftRepository,
    SqlAlchemyJoinParentRequestRepository,
    SqlAlchemyMembershipRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyParticipantRepository,
    SqlAlchemyPollRepository,
    SqlAlchemySessionRepository,
    SqlAlchemyTransactionManager,
    SqlAlchemyUserRepository,
    SqlAlchemyVoteRepository,
    SqlAlchemyWeightHistoryRepository,
)
from ..services import (
    AdminPolicy,
    BoardService,
    ChangePasswordUseCase,
    HierarchyResolver,
    JoinParentRequestService,
    LoginUserUseCase,
    LogoutUserUseCase,
    MembershipService,
    NotificationService,
    OrganizationService,
    PollService,
    RegisterUserUseCase,
    UpdateUserProfileUseCase,
    ValidateSessionUseCase,
    VotingService,
)
from .config import get_settings
from .database import get_session
from .security import BcryptPasswordHasher

logger = logging.getLogger(__name__)
settings = get_settings()

SessionDep = Annotated[AsyncSession, Depends(get_session)]

_hasher = BcryptPasswordHasher()


# =============================================================================
# AUTH USE CASES
# =============================================================================


def get_register_use_case(session: SessionDep) -> RegisterUserUseCase:
    return RegisterUserUseCase(SqlAlchemyUserRepository(session), _hasher)


def get_login_use_case(session: SessionDep) -> LoginUserUseCase:
    return LoginUserUseCase(
        SqlAlchemyUserRepository(session),
        SqlAlchemySessionRepository(session),
        _hasher,
        session_ttl=timedelta(days=settings.session_ttl_days),
    )


def get_logout_use_case(session: SessionDep) -> LogoutUserUseCase:
    return LogoutUserUseCase(SqlAlchemySessionRepository(session))


def get_validate_session_use_case(session: SessionDep) -> ValidateSessionUseCase:
    return ValidateSessionUseCase(
        SqlAlchemyUserRepository(session), SqlAlchemySessionRepository(session)
    )


def get_update_profile_use_case(session: SessionDep) -> UpdateUserProfileUseCase:
    return UpdateUserProfileUseCase(SqlAlchemyUserRepository(session))


def get_change_password_use_case(session: SessionDep) -> ChangePasswordUseCase:
    return ChangePasswordUseCase(
        SqlAlchemyUserRepository(session),
        SqlAlchemySessionRepository(session),
        _hasher,
        _hasher,
        session_ttl=timedelta(days=settings.session_ttl_days),
    )


# =============================================================================
# ORGANIZATION SERVICES
# =============================================================================


def get_admin_policy(session: SessionDep) -> AdminPolicy:
    return AdminPolicy(SqlAlchemyUserRepository(session), SqlAlchemyOrganizationRepository(session))


def get_hierarchy_resolver(session: SessionDep) -> HierarchyResolver:
    return HierarchyResolver(
        SqlAlchemyOrganizationRepository(session), max_depth=settings.hierarchy_max_depth
    )


PolicyDep = Annotated[AdminPolicy, Depends(get_admin_policy)]
HierarchyDep = Annotated[HierarchyResolver, Depends(get_hierarchy_resolver)]


def get_organization_service(
    session: SessionDep, policy: PolicyDep, hierarchy: HierarchyDep
) -> OrganizationService:
    return OrganizationService(
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyMembershipRepository(session),
        SqlAlchemyBoardRepository(session),
        policy,
        hierarchy,
        SqlAlchemyTransactionManager(session),
    )


def get_membership_service(
    session: SessionDep, policy: PolicyDep, hierarchy: HierarchyDep
) -> MembershipService:
    return MembershipService(
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyMembershipRepository(session),
        policy,
        hierarchy,
        SqlAlchemyTransactionManager(session),
    )


def get_notification_service(session: SessionDep, hierarchy: HierarchyDep) -> NotificationService:
    return NotificationService(
        SqlAlchemyNotificationRepository(session),
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyMembershipRepository(session),
        hierarchy,
    )


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


def get_join_parent_service(
    session: SessionDep,
    policy: PolicyDep,
    hierarchy: HierarchyDep,
    notifications: NotificationServiceDep,
) -> JoinParentRequestService:
    return JoinParentRequestService(
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyJoinParentRequestRepository(session),
        policy,
        hierarchy,
        notifications,
        SqlAlchemyTransactionManager(session),
    )


def get_board_service(session: SessionDep, policy: PolicyDep) -> BoardService:
    return BoardService(
        SqlAlchemyBoardRepository(session),
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyMembershipRepository(session),
        policy,
    )


def get_poll_service(session: SessionDep, policy: PolicyDep) -> PollService:
    return PollService(
        SqlAlchemyPollRepository(session),
        SqlAlchemyBoardRepository(session),
        SqlAlchemyParticipantRepository(session),
        SqlAlchemyDraftRepository(session),
        SqlAlchemyVoteRepository(session),
        SqlAlchemyWeightHistoryRepository(session),
        policy,
        SqlAlchemyTransactionManager(session),
    )


def get_voting_service(session: SessionDep) -> VotingService:
    return VotingService(
        SqlAlchemyPollRepository(session),
        SqlAlchemyParticipantRepository(session),
        SqlAlchemyDraftRepository(session),
        SqlAlchemyVoteRepository(session),
        SqlAlchemyTransactionManager(session),
    )


# =============================================================================
# CURRENT USER
# =============================================================================


async def get_current_user(
    session: SessionDep,
    validate: Annotated[ValidateSessionUseCase, Depends(get_validate_session_use_case)],
    session_id: Annotated[str | None, Cookie(alias=settings.session_cookie_name)] = None,
) -> User:
    """Resolve the session cookie to a user, or fail with 401."""
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    result = await validate.execute(session_id)
    if isinstance(result, Err):
        logger.debug("Rejected session: %s", result.error)
        # The request session is rolled back on error; keep the expired session cleanup
        await session.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return result.value


# Type aliases for cleaner dependency injection
CurrentUserDep = Annotated[User, Depends(get_current_user)]
RegisterDep = Annotated[RegisterUserUseCase, Depends(get_register_use_case)]
LoginDep = Annotated[LoginUserUseCase, Depends(get_login_use_case)]
LogoutDep = Annotated[LogoutUserUseCase, Depends(get_logout_use_case)]
UpdateProfileDep = Annotated[UpdateUserProfileUseCase, Depends(get_update_profile_use_case)]
ChangePasswordDep = Annotated[ChangePasswordUseCase, Depends(get_change_password_use_case)]
OrganizationServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]
MembershipServiceDep = Annotated[MembershipService, Depends(get_membership_service)]
JoinParentServiceDep = Annotated[JoinParentRequestService, Depends(get_join_parent_service)]
BoardServiceDep = Annotated[BoardService, Depends(get_board_service)]
PollServiceDep = Annotated[PollService, Depends(get_poll_service)]
VotingServiceDep = Annotated[VotingService, Depends(get_voting_service)]
