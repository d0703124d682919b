"""Shared fixtures: an in-memory store and services wired to it."""

import os

# Keep bcrypt fast in tests; must be set before settings are first loaded
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from boardroom.services import (
    AdminPolicy,
    BoardService,
    HierarchyResolver,
    JoinParentRequestService,
    MembershipService,
    NotificationService,
    OrganizationService,
    PollService,
    VotingService,
)
from tests.fakes import (
    FakeBoardRepository,
    FakeDatabase,
    FakeDraftRepository,
    FakeJoinParentRequestRepository,
    FakeMembershipRepository,
    FakeNotificationRepository,
    FakeOrganizationRepository,
    FakeParticipantRepository,
    FakePasswordHasher,
    FakePollRepository,
    FakeSessionRepository,
    FakeTransactionManager,
    FakeUserRepository,
    FakeVoteRepository,
    FakeWeightHistoryRepository,
)


# =============================================================================
# STORE / REPOSITORIES
# =============================================================================


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def users(db) -> FakeUserRepository:
    return FakeUserRepository(db)


@pytest.fixture
def sessions(db) -> FakeSessionRepository:
    return FakeSessionRepository(db)


@pytest.fixture
def organizations(db) -> FakeOrganizationRepository:
    return FakeOrganizationRepository(db)


@pytest.fixture
def memberships(db) -> FakeMembershipRepository:
    return FakeMembershipRepository(db)


@pytest.fixture
def join_parent_requests(db) -> FakeJoinParentRequestRepository:
    return FakeJoinParentRequestRepository(db)


@pytest.fixture
def boards(db) -> FakeBoardRepository:
    return FakeBoardRepository(db)


@pytest.fixture
def notifications(db) -> FakeNotificationRepository:
    return FakeNotificationRepository(db)


@pytest.fixture
def transactions(db) -> FakeTransactionManager:
    return FakeTransactionManager(db)


@pytest.fixture
def hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def policy(users, organizations) -> AdminPolicy:
    return AdminPolicy(users, organizations)


@pytest.fixture
def hierarchy(organizations) -> HierarchyResolver:
    return HierarchyResolver(organizations)


@pytest.fixture
def organization_service(
    organizations, memberships, boards, policy, hierarchy, transactions
) -> OrganizationService:
    return OrganizationService(organizations, memberships, boards, policy, hierarchy, transactions)


@pytest.fixture
def membership_service(organizations, memberships, policy, hierarchy, transactions) -> MembershipService:
    return MembershipService(organizations, memberships, policy, hierarchy, transactions)


@pytest.fixture
def notification_service(notifications, organizations, memberships, hierarchy) -> NotificationService:
    return NotificationService(notifications, organizations, memberships, hierarchy)


@pytest.fixture
def join_parent_service(
    organizations, join_parent_requests, policy, hierarchy, notification_service, transactions
) -> JoinParentRequestService:
    return JoinParentRequestService(
        organizations, join_parent_requests, policy, hierarchy, notification_service, transactions
    )


@pytest.fixture
def board_service(boards, organizations, memberships, policy) -> BoardService:
    return BoardService(boards, organizations, memberships, policy)


@pytest.fixture
def poll_service(db, boards, policy, transactions) -> PollService:
    return PollService(
        FakePollRepository(db),
        boards,
        FakeParticipantRepository(db),
        FakeDraftRepository(db),
        FakeVoteRepository(db),
        FakeWeightHistoryRepository(db),
        policy,
        transactions,
    )


@pytest.fixture
def voting_service(db, transactions) -> VotingService:
    return VotingService(
        FakePollRepository(db),
        FakeParticipantRepository(db),
        FakeDraftRepository(db),
        FakeVoteRepository(db),
        transactions,
    )


# =============================================================================
# SEEDED ACTORS
# =============================================================================


@pytest.fixture
def admin(db):
    return db.add_user(phone_number="+79160000001", first_name="Anna", last_name="Admin")


@pytest.fixture
def member(db):
    return db.add_user(phone_number="+79160000002", first_name="Boris", last_name="Member")
