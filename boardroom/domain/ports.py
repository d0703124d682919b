"""
Ports - abstract persistence and capability interfaces.
Implementations: boardroom/repositories/ (SQLAlchemy), boardroom/core/security.py
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from uuid import UUID

from .boards import Board
from .organizations import (
    JoinParentRequest,
    Organization,
    OrganizationMembership,
    PendingRequest,
)
from .notifications import Notification
from .polls import Poll, PollParticipant, Vote, VoteDraft, WeightChange
from .users import PhoneNumber, Session, User


class UserRepository(ABC):
    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> User | None: ...

    @abstractmethod
    async def find_by_phone_number(self, phone_number: PhoneNumber) -> User | None: ...

    @abstractmethod
    async def exists(self, phone_number: PhoneNumber) -> bool: ...

    @abstractmethod
    async def save(self, user: User) -> User: ...

    @abstractmethod
    async def update(self, user: User) -> User: ...

    @abstractmethod
    async def is_superadmin(self, user_id: UUID) -> bool: ...


class SessionRepository(ABC):
    @abstractmethod
    async def create(self, user_id: UUID, expires_at: datetime) -> Session: ...

    @abstractmethod
    async def find_by_id(self, session_id: str) -> Session | None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Delete a session. Deleting an unknown id is not an error."""

    @abstractmethod
    async def delete_all_for_user(self, user_id: UUID) -> None: ...


class OrganizationRepository(ABC):
    @abstractmethod
    async def find_by_id(self, organization_id: UUID) -> Organization | None: ...

    @abstractmethod
    async def find_by_ids(self, organization_ids: Iterable[UUID]) -> list[Organization]: ...

    @abstractmethod
    async def find_by_name(self, name: str) -> Organization | None: ...

    @abstractmethod
    async def save(self, organization: Organization) -> Organization: ...

    @abstractmethod
    async def set_parent(self, organization_id: UUID, parent_id: UUID | None) -> None: ...

    @abstractmethod
    async def find_child_ids(self, parent_ids: Iterable[UUID]) -> list[UUID]:
        """Ids of the direct children of any of ``parent_ids``."""

    @abstractmethod
    async def find_children(self, parent_id: UUID) -> list[Organization]:
        """Non-archived direct children, ordered by name."""

    @abstractmethod
    async def count_members(self, organization_id: UUID) -> int: ...

    @abstractmethod
    async def is_admin(self, user_id: UUID, organization_id: UUID) -> bool: ...

    @abstractmethod
    async def add_admin(self, organization_id: UUID, user_id: UUID) -> None: ...

    @abstractmethod
    async def find_admin_organizations(self, user_id: UUID) -> list[Organization]: ...

    @abstractmethod
    async def find_admin_user_ids(self, organization_id: UUID) -> list[UUID]:
        """Admins of the organization, earliest grant first."""

    @abstractmethod
    async def find_all(self) -> list[Organization]:
        """Non-archived organizations, ordered by name."""


class MembershipRepository(ABC):
    @abstractmethod
    async def find(self, organization_id: UUID, user_id: UUID) -> OrganizationMembership | None: ...

    @abstractmethod
    async def save(self, membership: OrganizationMembership) -> OrganizationMembership:
        """Insert or update the membership row for (organization, user)."""

    @abstractmethod
    async def delete(self, organization_id: UUID, user_id: UUID) -> None: ...

    @abstractmethod
    async def find_member_organization_ids(self, user_id: UUID) -> list[UUID]:
        """Organizations where the user has status ``member``."""

    @abstractmethod
    async def find_pending_for_organizations(
        self, organization_ids: Iterable[UUID]
    ) -> list[PendingRequest]:
        """Pending requests, oldest first by ``created_at``."""

    @abstractmethod
    async def find_member_user_ids(self, organization_ids: Iterable[UUID]) -> list[UUID]:
        """Distinct users with status ``member`` in any of the organizations."""


class JoinParentRequestRepository(ABC):
    @abstractmethod
    async def find_by_id(self, request_id: UUID) -> JoinParentRequest | None: ...

    @abstractmethod
    async def save(self, request: JoinParentRequest) -> JoinParentRequest: ...

    @abstractmethod
    async def delete(self, request_id: UUID) -> None: ...

    @abstractmethod
    async def find_pending_by_child(self, child_org_id: UUID) -> JoinParentRequest | None: ...

    @abstractmethod
    async def find_pending_by_parent(self, parent_org_id: UUID) -> list[JoinParentRequest]:
        """Pending requests targeting this parent, oldest first."""

    @abstractmethod
    async def find_by_child(self, child_org_id: UUID) -> list[JoinParentRequest]:
        """All requests made by this child, newest first."""


class BoardRepository(ABC):
    @abstractmethod
    async def find_by_id(self, board_id: UUID) -> Board | None: ...

    @abstractmethod
    async def save(self, board: Board) -> Board: ...

    @abstractmethod
    async def find_by_organization(self, organization_id: UUID) -> list[Board]: ...

    @abstractmethod
    async def is_member(self, board_id: UUID, user_id: UUID) -> bool: ...

    @abstractmethod
    async def add_member(self, board_id: UUID, user_id: UUID, added_by_id: UUID) -> None: ...

    @abstractmethod
    async def remove_member(
        self, board_id: UUID, user_id: UUID, removed_by_id: UUID, reason: str | None = None
    ) -> None: ...

    @abstractmethod
    async def find_member_ids(self, board_id: UUID) -> list[UUID]: ...


class PollRepository(ABC):
    @abstractmethod
    async def find_by_id(self, poll_id: UUID) -> Poll | None:
        """Load the poll with its questions and answers."""

    @abstractmethod
    async def save(self, poll: Poll) -> Poll:
        """Insert or update the poll together with its questions and answers."""


class ParticipantRepository(ABC):
    @abstractmethod
    async def create_many(self, participants: list[PollParticipant]) -> None: ...

    @abstractmethod
    async def find_by_id(self, participant_id: UUID) -> PollParticipant | None: ...

    @abstractmethod
    async def find_by_poll(self, poll_id: UUID) -> list[PollParticipant]: ...

    @abstractmethod
    async def find_by_user(self, poll_id: UUID, user_id: UUID) -> PollParticipant | None: ...

    @abstractmethod
    async def update(self, participant: PollParticipant) -> None: ...

    @abstractmethod
    async def delete(self, participant_id: UUID) -> None: ...

    @abstractmethod
    async def delete_by_poll(self, poll_id: UUID) -> None: ...


class DraftRepository(ABC):
    @abstractmethod
    async def save(self, draft: VoteDraft) -> VoteDraft: ...

    @abstractmethod
    async def find_user_drafts(self, poll_id: UUID, user_id: UUID) -> list[VoteDraft]: ...

    @abstractmethod
    async def delete_by_answer(
        self, poll_id: UUID, question_id: UUID, answer_id: UUID, user_id: UUID
    ) -> None: ...

    @abstractmethod
    async def delete_by_question(self, poll_id: UUID, question_id: UUID, user_id: UUID) -> None: ...

    @abstractmethod
    async def delete_user_drafts(self, poll_id: UUID, user_id: UUID) -> None: ...

    @abstractmethod
    async def delete_by_poll(self, poll_id: UUID) -> None: ...


class VoteRepository(ABC):
    @abstractmethod
    async def create_many(self, votes: list[Vote]) -> None: ...

    @abstractmethod
    async def has_votes(self, poll_id: UUID) -> bool: ...

    @abstractmethod
    async def has_user_finished(self, poll_id: UUID, user_id: UUID) -> bool: ...


class WeightHistoryRepository(ABC):
    @abstractmethod
    async def create(self, change: WeightChange) -> None: ...

    @abstractmethod
    async def find_by_poll(self, poll_id: UUID) -> list[WeightChange]:
        """Weight changes of the poll, newest first."""


class NotificationRepository(ABC):
    @abstractmethod
    async def save_many(self, notifications: list[Notification]) -> None: ...

    @abstractmethod
    async def find_by_id(self, notification_id: UUID) -> Notification | None: ...

    @abstractmethod
    async def find_by_ids(self, notification_ids: Iterable[UUID]) -> list[Notification]: ...

    @abstractmethod
    async def find_by_user(
        self, user_id: UUID, limit: int, offset: int = 0
    ) -> list[Notification]:
        """A page of the user's notifications, newest first."""

    @abstractmethod
    async def count_by_user(self, user_id: UUID) -> int: ...

    @abstractmethod
    async def count_unread(self, user_id: UUID) -> int: ...

    @abstractmethod
    async def mark_read(self, notification: Notification) -> None: ...

    @abstractmethod
    async def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        """Mark every unread notification of the user; return how many changed."""

    @abstractmethod
    async def delete_many(self, notification_ids: Iterable[UUID]) -> None: ...


class TransactionManager(ABC):
    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """Group writes so they are applied together or not at all."""


class PasswordHasher(ABC):
    @abstractmethod
    async def hash(self, password: str) -> str: ...


class PasswordVerifier(ABC):
    @abstractmethod
    async def verify(self, password: str, password_hash: str) -> bool: ...
