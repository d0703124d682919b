"""SQLAlchemy ORM Models for Boardroom."""

from .base import ArchivableMixin, Base, CreatedAtMixin, UUIDMixin
from .models import (
    # Users
    Session,
    User,
    # Organizations
    JoinParentRequest,
    Organization,
    OrganizationAdmin,
    OrganizationMembership,
    # Boards
    Board,
    BoardMember,
    # Polls
    Answer,
    Poll,
    PollParticipant,
    ParticipantWeightHistory,
    Question,
    Vote,
    VoteDraft,
    # Notifications
    Notification,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    "ArchivableMixin",
    # Users
    "Session",
    "User",
    # Organizations
    "JoinParentRequest",
    "Organization",
    "OrganizationAdmin",
    "OrganizationMembership",
    # Boards
    "Board",
    "BoardMember",
    # Polls
    "Answer",
    "Poll",
    "PollParticipant",
    "ParticipantWeightHistory",
    "Question",
    "Vote",
    "VoteDraft",
    # Notifications
    "Notification",
]
