"""SQLAlchemy implementations of the domain ports."""

from .base import SqlAlchemyRepository, SqlAlchemyTransactionManager
from .boards import SqlAlchemyBoardRepository
from .notifications import SqlAlchemyNotificationRepository
from .organizations import (
    SqlAlchemyJoinParentRequestRepository,
    SqlAlchemyMembershipRepository,
    SqlAlchemyOrganizationRepository,
)
from .polls import (
    SqlAlchemyDraftRepository,
    SqlAlchemyParticipantRepository,
    SqlAlchemyPollRepository,
    SqlAlchemyVoteRepository,
    SqlAlchemyWeightHistoryRepository,
)
from .users import SqlAlchemySessionRepository, SqlAlchemyUserRepository

__all__ = [
    "SqlAlchemyRepository",
    "SqlAlchemyTransactionManager",
    "SqlAlchemyBoardRepository",
    "SqlAlchemyNotificationRepository",
    "SqlAlchemyJoinParentRequestRepository",
    "SqlAlchemyMembershipRepository",
    "SqlAlchemyOrganizationRepository",
    "SqlAlchemyDraftRepository",
    "SqlAlchemyParticipantRepository",
    "SqlAlchemyPollRepository",
    "SqlAlchemyVoteRepository",
    "SqlAlchemyWeightHistoryRepository",
    "SqlAlchemySessionRepository",
    "SqlAlchemyUserRepository",
]
