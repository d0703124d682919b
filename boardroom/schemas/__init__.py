"""Pydantic schemas for the Boardroom API."""

from .auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from .base import BoardroomBaseModel, ErrorDetail, ErrorResponse, MessageResponse
from .boards import BoardCreate, BoardMemberAdd, BoardResponse
from .notifications import (
    MarkAllReadResponse,
    NotificationDelete,
    NotificationPageResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from .organizations import (
    HandleRequest,
    HierarchyNodeResponse,
    HierarchyTreeResponse,
    JoinParentCreate,
    JoinParentRequestResponse,
    MembershipResponse,
    OrganizationCreate,
    OrganizationCreatedResponse,
    OrganizationDetailResponse,
    OrganizationListingResponse,
    OrganizationResponse,
    OrganizationSummaryResponse,
    PendingRequestResponse,
)
from .polls import (
    AnswerCreate,
    AnswerResponse,
    AnswerUpdate,
    DraftResponse,
    DraftSubmit,
    ParticipantResponse,
    PollCreate,
    PollResponse,
    PollUpdate,
    QuestionCreate,
    QuestionOrderUpdate,
    QuestionPosition,
    QuestionResponse,
    QuestionUpdate,
    VoteResponse,
    VotingProgressResponse,
    WeightChangeResponse,
    WeightUpdate,
)

__all__ = [
    # Base
    "BoardroomBaseModel",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    # Auth
    "ChangePasswordRequest",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "UpdateProfileRequest",
    "UserResponse",
    # Organizations
    "HandleRequest",
    "HierarchyNodeResponse",
    "HierarchyTreeResponse",
    "JoinParentCreate",
    "JoinParentRequestResponse",
    "MembershipResponse",
    "OrganizationCreate",
    "OrganizationCreatedResponse",
    "OrganizationDetailResponse",
    "OrganizationListingResponse",
    "OrganizationResponse",
    "OrganizationSummaryResponse",
    "PendingRequestResponse",
    # Boards
    "BoardCreate",
    "BoardMemberAdd",
    "BoardResponse",
    # Notifications
    "MarkAllReadResponse",
    "NotificationDelete",
    "NotificationPageResponse",
    "NotificationResponse",
    "UnreadCountResponse",
    # Polls
    "AnswerCreate",
    "AnswerResponse",
    "AnswerUpdate",
    "DraftResponse",
    "DraftSubmit",
    "ParticipantResponse",
    "PollCreate",
    "PollResponse",
    "PollUpdate",
    "QuestionCreate",
    "QuestionOrderUpdate",
    "QuestionPosition",
    "QuestionResponse",
    "QuestionUpdate",
    "VoteResponse",
    "VotingProgressResponse",
    "WeightChangeResponse",
    "WeightUpdate",
]
