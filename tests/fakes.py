"""
In-memory implementations of the repository ports.

Every repository reads and writes copies, so a use case only changes stored
state through an explicit repository call, just like with a real database.
FakeTransactionManager snapshots the whole store and restores it when the
wrapped block raises.
"""

import copy
from collections.abc import Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from uuid import UUID, uuid4

from boardroom.domain.boards import Board
from boardroom.domain.organizations import (
    JoinParentRequest,
    JoinParentRequestStatus,
    MembershipStatus,
    Organization,
    OrganizationMembership,
    PendingRequest,
)
from boardroom.domain.notifications import Notification, NotificationType
from boardroom.domain.polls import Poll, PollParticipant, Vote, VoteDraft, WeightChange
from boardroom.domain.ports import (
    BoardRepository,
    DraftRepository,
    JoinParentRequestRepository,
    MembershipRepository,
    NotificationRepository,
    OrganizationRepository,
    ParticipantRepository,
    PasswordHasher,
    PasswordVerifier,
    PollRepository,
    SessionRepository,
    TransactionManager,
    UserRepository,
    VoteRepository,
    WeightHistoryRepository,
)
from boardroom.domain.users import PhoneNumber, Session, User, utcnow


class FakeDatabase:
    """Shared state for all fake repositories."""

    def __init__(self):
        self.users: dict[UUID, User] = {}
        self.sessions: dict[str, Session] = {}
        self.organizations: dict[UUID, Organization] = {}
        # (organization_id, user_id) -> granted_at, in grant order
        self.admins: dict[tuple[UUID, UUID], datetime] = {}
        self.memberships: dict[tuple[UUID, UUID], OrganizationMembership] = {}
        self.join_parent_requests: dict[UUID, JoinParentRequest] = {}
        self.boards: dict[UUID, Board] = {}
        self.board_members: dict[tuple[UUID, UUID], datetime] = {}
        self.polls: dict[UUID, Poll] = {}
        self.participants: dict[UUID, PollParticipant] = {}
        self.drafts: dict[tuple[UUID, UUID, UUID, UUID], VoteDraft] = {}
        self.votes: list[Vote] = []
        self.weight_history: list[WeightChange] = []
        self.notifications: dict[UUID, Notification] = {}
        self.writes: list[str] = []

    def snapshot(self) -> dict:
        return copy.deepcopy(self.__dict__)

    def restore(self, state: dict) -> None:
        self.__dict__.update(state)

    # =========================================================================
    # SEEDING HELPERS
    # =========================================================================

    def add_user(
        self,
        phone_number: str = "+79161234567",
        first_name: str = "Ivan",
        last_name: str = "Petrov",
        password_hash: str = "hashed:password123",
        is_superadmin: bool = False,
    ) -> User:
        user = User.create(first_name, last_name, PhoneNumber(phone_number), password_hash)
        user.is_superadmin = is_superadmin
        self.users[user.id] = copy.deepcopy(user)
        return user

    def add_organization(
        self,
        name: str,
        parent_id: UUID | None = None,
        admin_id: UUID | None = None,
        archived: bool = False,
    ) -> Organization:
        organization = Organization.create(name, f"{name} description", admin_id or uuid4(), parent_id)
        if archived:
            organization.archive()
        self.organizations[organization.id] = copy.deepcopy(organization)
        if admin_id is not None:
            self.admins[(organization.id, admin_id)] = utcnow()
        return organization

    def add_membership(
        self,
        organization_id: UUID,
        user_id: UUID,
        status: MembershipStatus = MembershipStatus.MEMBER,
        created_at: datetime | None = None,
    ) -> OrganizationMembership:
        membership = OrganizationMembership(
            organization_id=organization_id,
            user_id=user_id,
            status=status,
            created_at=created_at or utcnow(),
        )
        self.memberships[(organization_id, user_id)] = copy.deepcopy(membership)
        return membership

    def add_board(self, organization_id: UUID, name: str = "Board", is_general: bool = False) -> Board:
        board = Board.create(name, organization_id, is_general=is_general)
        self.boards[board.id] = copy.deepcopy(board)
        return board

    def add_board_member(self, board_id: UUID, user_id: UUID) -> None:
        self.board_members[(board_id, user_id)] = utcnow()

    def add_notification(
        self,
        user_id: UUID,
        type: NotificationType = NotificationType.JOIN_PARENT_REQUEST_RECEIVED,
        created_at: datetime | None = None,
        read: bool = False,
    ) -> Notification:
        notification = Notification.create(user_id, type, {"child_org_name": "Child"})
        notification.created_at = created_at or utcnow()
        if read:
            notification.mark_as_read()
        self.notifications[notification.id] = copy.deepcopy(notification)
        return notification


# =============================================================================
# USERS / SESSIONS
# =============================================================================


class FakeUserRepository(UserRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def find_by_id(self, user_id: UUID) -> User | None:
        return copy.deepcopy(self.db.users.get(user_id))

    async def find_by_phone_number(self, phone_number: PhoneNumber) -> User | None:
        for user in self.db.users.values():
            if user.phone_number == phone_number:
                return copy.deepcopy(user)
        return None

    async def exists(self, phone_number: PhoneNumber) -> bool:
        return any(user.phone_number == phone_number for user in self.db.users.values())

    async def save(self, user: User) -> User:
        self.db.writes.append("users.save")
        self.db.users[user.id] = copy.deepcopy(user)
        return copy.deepcopy(user)

    async def update(self, user: User) -> User:
        self.db.writes.append("users.update")
        self.db.users[user.id] = copy.deepcopy(user)
        return copy.deepcopy(user)

    async def is_superadmin(self, user_id: UUID) -> bool:
        user = self.db.users.get(user_id)
        return bool(user and user.is_superadmin)


class FakeSessionRepository(SessionRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def create(self, user_id: UUID, expires_at: datetime) -> Session:
        self.db.writes.append("sessions.create")
        session = Session(id=uuid4().hex, user_id=user_id, expires_at=expires_at)
        self.db.sessions[session.id] = copy.deepcopy(session)
        return session

    async def find_by_id(self, session_id: str) -> Session | None:
        return copy.deepcopy(self.db.sessions.get(session_id))

    async def delete(self, session_id: str) -> None:
        self.db.sessions.pop(session_id, None)

    async def delete_all_for_user(self, user_id: UUID) -> None:
        for session_id in [s.id for s in self.db.sessions.values() if s.user_id == user_id]:
            del self.db.sessions[session_id]


class FakePasswordHasher(PasswordHasher, PasswordVerifier):
    """Reversible stand-in for bcrypt."""

    async def hash(self, password: str) -> str:
        return f"hashed:{password}"

    async def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed:{password}"


# =============================================================================
# ORGANIZATIONS
# =============================================================================


class FakeOrganizationRepository(OrganizationRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db
        self.fail_on_set_parent = False

    async def find_by_id(self, organization_id: UUID) -> Organization | None:
        return copy.deepcopy(self.db.organizations.get(organization_id))

    async def find_by_ids(self, organization_ids: Iterable[UUID]) -> list[Organization]:
        ids = set(organization_ids)
        found = [o for o in self.db.organizations.values() if o.id in ids]
        return copy.deepcopy(sorted(found, key=lambda o: o.name))

    async def find_by_name(self, name: str) -> Organization | None:
        for organization in self.db.organizations.values():
            if organization.name == name:
                return copy.deepcopy(organization)
        return None

    async def save(self, organization: Organization) -> Organization:
        self.db.writes.append("organizations.save")
        self.db.organizations[organization.id] = copy.deepcopy(organization)
        return copy.deepcopy(organization)

    async def set_parent(self, organization_id: UUID, parent_id: UUID | None) -> None:
        if self.fail_on_set_parent:
            raise RuntimeError("connection lost while updating parent")
        self.db.writes.append("organizations.set_parent")
        self.db.organizations[organization_id].parent_id = parent_id

    async def find_child_ids(self, parent_ids: Iterable[UUID]) -> list[UUID]:
        parents = set(parent_ids)
        return [o.id for o in self.db.organizations.values() if o.parent_id in parents]

    async def find_children(self, parent_id: UUID) -> list[Organization]:
        children = [
            o
            for o in self.db.organizations.values()
            if o.parent_id == parent_id and not o.is_archived
        ]
        return copy.deepcopy(sorted(children, key=lambda o: o.name))

    async def count_members(self, organization_id: UUID) -> int:
        return sum(
            1
            for (org_id, _), m in self.db.memberships.items()
            if org_id == organization_id and m.status == MembershipStatus.MEMBER
        )

    async def is_admin(self, user_id: UUID, organization_id: UUID) -> bool:
        return (organization_id, user_id) in self.db.admins

    async def add_admin(self, organization_id: UUID, user_id: UUID) -> None:
        self.db.writes.append("organizations.add_admin")
        self.db.admins.setdefault((organization_id, user_id), utcnow())

    async def find_admin_organizations(self, user_id: UUID) -> list[Organization]:
        return await self.find_by_ids(org_id for org_id, uid in self.db.admins if uid == user_id)

    async def find_admin_user_ids(self, organization_id: UUID) -> list[UUID]:
        return [uid for org_id, uid in self.db.admins if org_id == organization_id]

    async def find_all(self) -> list[Organization]:
        found = [o for o in self.db.organizations.values() if not o.is_archived]
        return copy.deepcopy(sorted(found, key=lambda o: o.name))


class FakeMembershipRepository(MembershipRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def find(self, organization_id: UUID, user_id: UUID) -> OrganizationMembership | None:
        return copy.deepcopy(self.db.memberships.get((organization_id, user_id)))

    async def save(self, membership: OrganizationMembership) -> OrganizationMembership:
        self.db.writes.append("memberships.save")
        key = (membership.organization_id, membership.user_id)
        self.db.memberships[key] = copy.deepcopy(membership)
        return copy.deepcopy(membership)

    async def delete(self, organization_id: UUID, user_id: UUID) -> None:
        self.db.writes.append("memberships.delete")
        self.db.memberships.pop((organization_id, user_id), None)

    async def find_member_organization_ids(self, user_id: UUID) -> list[UUID]:
        return [
            org_id
            for (org_id, uid), m in self.db.memberships.items()
            if uid == user_id and m.status == MembershipStatus.MEMBER
        ]

    async def find_pending_for_organizations(
        self, organization_ids: Iterable[UUID]
    ) -> list[PendingRequest]:
        ids = set(organization_ids)
        pending = sorted(
            (
                m
                for (org_id, _), m in self.db.memberships.items()
                if org_id in ids and m.status == MembershipStatus.PENDING
            ),
            key=lambda m: m.created_at,
        )
        requests = []
        for membership in pending:
            user = self.db.users[membership.user_id]
            organization = self.db.organizations[membership.organization_id]
            requests.append(
                PendingRequest(
                    organization_id=organization.id,
                    organization_name=organization.name,
                    requester_id=user.id,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    middle_name=user.middle_name,
                    phone_number=str(user.phone_number),
                    requested_at=membership.created_at,
                )
            )
        return requests

    async def find_member_user_ids(self, organization_ids: Iterable[UUID]) -> list[UUID]:
        ids = set(organization_ids)
        user_ids = []
        for (org_id, uid), m in self.db.memberships.items():
            if org_id in ids and m.status == MembershipStatus.MEMBER and uid not in user_ids:
                user_ids.append(uid)
        return user_ids


class FakeJoinParentRequestRepository(JoinParentRequestRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def find_by_id(self, request_id: UUID) -> JoinParentRequest | None:
        return copy.deepcopy(self.db.join_parent_requests.get(request_id))

    async def save(self, request: JoinParentRequest) -> JoinParentRequest:
        self.db.writes.append("join_parent_requests.save")
        self.db.join_parent_requests[request.id] = copy.deepcopy(request)
        return copy.deepcopy(request)

    async def delete(self, request_id: UUID) -> None:
        self.db.writes.append("join_parent_requests.delete")
        self.db.join_parent_requests.pop(request_id, None)

    async def find_pending_by_child(self, child_org_id: UUID) -> JoinParentRequest | None:
        for request in self.db.join_parent_requests.values():
            if request.child_org_id == child_org_id and request.is_pending:
                return copy.deepcopy(request)
        return None

    async def find_pending_by_parent(self, parent_org_id: UUID) -> list[JoinParentRequest]:
        found = [
            r
            for r in self.db.join_parent_requests.values()
            if r.parent_org_id == parent_org_id and r.status == JoinParentRequestStatus.PENDING
        ]
        return copy.deepcopy(sorted(found, key=lambda r: r.created_at))

    async def find_by_child(self, child_org_id: UUID) -> list[JoinParentRequest]:
        found = [r for r in self.db.join_parent_requests.values() if r.child_org_id == child_org_id]
        return copy.deepcopy(sorted(found, key=lambda r: r.created_at, reverse=True))


# =============================================================================
# BOARDS
# =============================================================================


class FakeBoardRepository(BoardRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def find_by_id(self, board_id: UUID) -> Board | None:
        return copy.deepcopy(self.db.boards.get(board_id))

    async def save(self, board: Board) -> Board:
        self.db.writes.append("boards.save")
        self.db.boards[board.id] = copy.deepcopy(board)
        return copy.deepcopy(board)

    async def find_by_organization(self, organization_id: UUID) -> list[Board]:
        boards = [b for b in self.db.boards.values() if b.organization_id == organization_id]
        return copy.deepcopy(sorted(boards, key=lambda b: (not b.is_general, b.created_at)))

    async def is_member(self, board_id: UUID, user_id: UUID) -> bool:
        return (board_id, user_id) in self.db.board_members

    async def add_member(self, board_id: UUID, user_id: UUID, added_by_id: UUID) -> None:
        self.db.writes.append("boards.add_member")
        self.db.board_members[(board_id, user_id)] = utcnow()

    async def remove_member(
        self, board_id: UUID, user_id: UUID, removed_by_id: UUID, reason: str | None = None
    ) -> None:
        self.db.writes.append("boards.remove_member")
        self.db.board_members.pop((board_id, user_id), None)

    async def find_member_ids(self, board_id: UUID) -> list[UUID]:
        members = sorted(
            ((added, uid) for (bid, uid), added in self.db.board_members.items() if bid == board_id),
            key=lambda item: item[0],
        )
        return [uid for _, uid in members]


# =============================================================================
# POLLS
# =============================================================================


class FakePollRepository(PollRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def find_by_id(self, poll_id: UUID) -> Poll | None:
        return copy.deepcopy(self.db.polls.get(poll_id))

    async def save(self, poll: Poll) -> Poll:
        self.db.writes.append("polls.save")
        self.db.polls[poll.id] = copy.deepcopy(poll)
        return copy.deepcopy(poll)


class FakeParticipantRepository(ParticipantRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def create_many(self, participants: list[PollParticipant]) -> None:
        for participant in participants:
            self.db.participants[participant.id] = copy.deepcopy(participant)

    async def find_by_id(self, participant_id: UUID) -> PollParticipant | None:
        return copy.deepcopy(self.db.participants.get(participant_id))

    async def find_by_poll(self, poll_id: UUID) -> list[PollParticipant]:
        return copy.deepcopy([p for p in self.db.participants.values() if p.poll_id == poll_id])

    async def find_by_user(self, poll_id: UUID, user_id: UUID) -> PollParticipant | None:
        for participant in self.db.participants.values():
            if participant.poll_id == poll_id and participant.user_id == user_id:
                return copy.deepcopy(participant)
        return None

    async def update(self, participant: PollParticipant) -> None:
        self.db.participants[participant.id] = copy.deepcopy(participant)

    async def delete(self, participant_id: UUID) -> None:
        self.db.writes.append("participants.delete")
        self.db.participants.pop(participant_id, None)

    async def delete_by_poll(self, poll_id: UUID) -> None:
        for participant_id in [p.id for p in self.db.participants.values() if p.poll_id == poll_id]:
            del self.db.participants[participant_id]


class FakeDraftRepository(DraftRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db
        self._tick = 0

    async def save(self, draft: VoteDraft) -> VoteDraft:
        # Strictly increasing timestamps keep ordering deterministic
        self._tick += 1
        draft = copy.deepcopy(draft)
        draft.updated_at = utcnow() + timedelta(microseconds=self._tick)
        key = (draft.poll_id, draft.question_id, draft.answer_id, draft.user_id)
        self.db.drafts[key] = draft
        return copy.deepcopy(draft)

    async def find_user_drafts(self, poll_id: UUID, user_id: UUID) -> list[VoteDraft]:
        drafts = [
            d for d in self.db.drafts.values() if d.poll_id == poll_id and d.user_id == user_id
        ]
        return copy.deepcopy(sorted(drafts, key=lambda d: d.updated_at))

    def _delete_where(self, predicate) -> None:
        for key in [k for k, d in self.db.drafts.items() if predicate(d)]:
            del self.db.drafts[key]

    async def delete_by_answer(
        self, poll_id: UUID, question_id: UUID, answer_id: UUID, user_id: UUID
    ) -> None:
        self.db.drafts.pop((poll_id, question_id, answer_id, user_id), None)

    async def delete_by_question(self, poll_id: UUID, question_id: UUID, user_id: UUID) -> None:
        self._delete_where(
            lambda d: d.poll_id == poll_id and d.question_id == question_id and d.user_id == user_id
        )

    async def delete_user_drafts(self, poll_id: UUID, user_id: UUID) -> None:
        self._delete_where(lambda d: d.poll_id == poll_id and d.user_id == user_id)

    async def delete_by_poll(self, poll_id: UUID) -> None:
        self._delete_where(lambda d: d.poll_id == poll_id)


class FakeVoteRepository(VoteRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def create_many(self, votes: list[Vote]) -> None:
        self.db.votes.extend(copy.deepcopy(votes))

    async def has_votes(self, poll_id: UUID) -> bool:
        return any(v.poll_id == poll_id for v in self.db.votes)

    async def has_user_finished(self, poll_id: UUID, user_id: UUID) -> bool:
        return any(v.poll_id == poll_id and v.user_id == user_id for v in self.db.votes)


class FakeWeightHistoryRepository(WeightHistoryRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db

    async def create(self, change: WeightChange) -> None:
        self.db.writes.append("weight_history.create")
        self.db.weight_history.append(change)

    async def find_by_poll(self, poll_id: UUID) -> list[WeightChange]:
        found = [c for c in self.db.weight_history if c.poll_id == poll_id]
        # Later inserts win ties on changed_at
        ordered = sorted(enumerate(found), key=lambda item: (item[1].changed_at, item[0]))
        return [change for _, change in reversed(ordered)]


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class FakeNotificationRepository(NotificationRepository):
    def __init__(self, db: FakeDatabase):
        self.db = db
        self.fail_on_save = False

    def _for_user(self, user_id: UUID) -> list[Notification]:
        return [n for n in self.db.notifications.values() if n.user_id == user_id]

    async def save_many(self, notifications: list[Notification]) -> None:
        if self.fail_on_save:
            raise RuntimeError("connection lost while saving notifications")
        self.db.writes.append("notifications.save_many")
        for notification in notifications:
            self.db.notifications[notification.id] = copy.deepcopy(notification)

    async def find_by_id(self, notification_id: UUID) -> Notification | None:
        return copy.deepcopy(self.db.notifications.get(notification_id))

    async def find_by_ids(self, notification_ids: Iterable[UUID]) -> list[Notification]:
        ids = set(notification_ids)
        return copy.deepcopy([n for n in self.db.notifications.values() if n.id in ids])

    async def find_by_user(
        self, user_id: UUID, limit: int, offset: int = 0
    ) -> list[Notification]:
        found = sorted(self._for_user(user_id), key=lambda n: n.created_at, reverse=True)
        return copy.deepcopy(found[offset : offset + limit])

    async def count_by_user(self, user_id: UUID) -> int:
        return len(self._for_user(user_id))

    async def count_unread(self, user_id: UUID) -> int:
        return sum(1 for n in self._for_user(user_id) if not n.is_read)

    async def mark_read(self, notification: Notification) -> None:
        self.db.notifications[notification.id].read_at = notification.read_at

    async def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        unread = [n for n in self._for_user(user_id) if not n.is_read]
        for notification in unread:
            notification.read_at = read_at
        return len(unread)

    async def delete_many(self, notification_ids: Iterable[UUID]) -> None:
        self.db.writes.append("notifications.delete_many")
        for notification_id in notification_ids:
            self.db.notifications.pop(notification_id, None)


class FakeTransactionManager(TransactionManager):
    def __init__(self, db: FakeDatabase):
        self.db = db

    @asynccontextmanager
    async def atomic(self):
        state = self.db.snapshot()
        try:
            yield
        except BaseException:
            self.db.restore(state)
            raise


class FakeAsyncSession:
    """Stand-in for the request AsyncSession; only counts commits and rollbacks."""

    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1
