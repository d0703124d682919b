"""Application services (use cases)."""

from .access import AdminPolicy
from .auth import (
    ChangePasswordInput,
    ChangePasswordUseCase,
    LoginUserInput,
    LoginUserUseCase,
    LogoutUserUseCase,
    RegisterUserInput,
    RegisterUserUseCase,
    UpdateUserProfileInput,
    UpdateUserProfileUseCase,
    ValidateSessionUseCase,
)
from .boards import BoardService
from .hierarchy import HierarchyResolver
from .join_parent import JoinParentRequestService
from .membership import MembershipService
from .notifications import NotificationService
from .organizations import OrganizationService
from .polls import PollService, VotingService

__all__ = [
    "AdminPolicy",
    "BoardService",
    "ChangePasswordInput",
    "ChangePasswordUseCase",
    "HierarchyResolver",
    "JoinParentRequestService",
    "LoginUserInput",
    "LoginUserUseCase",
    "LogoutUserUseCase",
    "MembershipService",
    "NotificationService",
    "OrganizationService",
    "PollService",
    "RegisterUserInput",
    "RegisterUserUseCase",
    "UpdateUserProfileInput",
    "UpdateUserProfileUseCase",
    "ValidateSessionUseCase",
    "VotingService",
]
