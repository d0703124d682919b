"""SQLAlchemy ORM Models for Boardroom."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    JSON,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from ..domain.organizations import JoinParentRequestStatus, MembershipStatus
from ..domain.polls import PollState, QuestionType
from ..domain.users import Language
from .base import ArchivableMixin, Base, CreatedAtMixin, UUIDMixin, enum_column


# =============================================================================
# USERS & SESSIONS
# =============================================================================


class User(Base, UUIDMixin, CreatedAtMixin):
    """Registered user."""

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100))
    phone_number: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    language: Mapped[Language] = mapped_column(
        enum_column(Language, "language"), default=Language.RU, nullable=False
    )
    is_superadmin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Session(Base, CreatedAtMixin):
    """Login session keyed by an opaque token."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_sessions_user", "user_id"),
    )


# =============================================================================
# ORGANIZATIONS
# =============================================================================


class Organization(Base, UUIDMixin, CreatedAtMixin, ArchivableMixin):
    """Node in the organization tree."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[UUID | None] = mapped_column(ForeignKey("organizations.id"))
    created_by_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    __table_args__ = (
        CheckConstraint("parent_id IS NULL OR parent_id <> id", name="not_own_parent"),
        Index("idx_organizations_parent", "parent_id"),
    )


class OrganizationAdmin(Base, CreatedAtMixin):
    """Admin grant over one organization."""

    __tablename__ = "organization_admins"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (
        Index("idx_org_admins_user", "user_id"),
    )


class OrganizationMembership(Base, CreatedAtMixin):
    """User membership or pending membership request."""

    __tablename__ = "organization_memberships"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    status: Mapped[MembershipStatus] = mapped_column(
        enum_column(MembershipStatus, "membership_status"),
        default=MembershipStatus.PENDING,
        nullable=False,
    )
    joined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("idx_memberships_user", "user_id"),
        Index("idx_memberships_status_created", "status", "created_at"),
    )


class JoinParentRequest(Base, UUIDMixin, CreatedAtMixin):
    """Request to attach a child organization under a parent."""

    __tablename__ = "join_parent_requests"

    child_org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    parent_org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    requesting_admin_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    handling_admin_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[JoinParentRequestStatus] = mapped_column(
        enum_column(JoinParentRequestStatus, "join_parent_request_status"),
        default=JoinParentRequestStatus.PENDING,
        nullable=False,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    handled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        # One pending request per child
        Index(
            "uq_join_parent_requests_pending_child",
            "child_org_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("idx_join_parent_requests_parent", "parent_org_id", "status"),
    )


# =============================================================================
# BOARDS
# =============================================================================


class Board(Base, UUIDMixin, CreatedAtMixin, ArchivableMixin):
    """Sub-group of an organization."""

    __tablename__ = "boards"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    is_general: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_boards_org", "organization_id"),
    )


class BoardMember(Base, CreatedAtMixin):
    __tablename__ = "board_members"

    board_id: Mapped[UUID] = mapped_column(
        ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    added_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))


# =============================================================================
# POLLS
# =============================================================================


class Poll(Base, UUIDMixin, CreatedAtMixin, ArchivableMixin):
    __tablename__ = "polls"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    board_id: Mapped[UUID] = mapped_column(
        ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_by_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    state: Mapped[PollState] = mapped_column(
        enum_column(PollState, "poll_state"), default=PollState.DRAFT, nullable=False
    )
    weight_criteria: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="dates_ordered"),
        Index("idx_polls_board", "board_id"),
    )


class Question(Base, UUIDMixin, CreatedAtMixin, ArchivableMixin):
    __tablename__ = "questions"

    poll_id: Mapped[UUID] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(String(1000), nullable=False)
    details: Mapped[str | None] = mapped_column(Text)
    page: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    order: Mapped[int] = mapped_column("order", Integer, default=0, nullable=False)
    question_type: Mapped[QuestionType] = mapped_column(
        enum_column(QuestionType, "question_type"), nullable=False
    )

    __table_args__ = (
        Index("idx_questions_poll", "poll_id"),
    )


class Answer(Base, UUIDMixin, CreatedAtMixin, ArchivableMixin):
    __tablename__ = "answers"

    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(String(1000), nullable=False)
    order: Mapped[int] = mapped_column("order", Integer, default=0, nullable=False)

    __table_args__ = (
        Index("idx_answers_question", "question_id"),
    )


class PollParticipant(Base, UUIDMixin):
    """Board member snapshotted into a poll."""

    __tablename__ = "poll_participants"

    poll_id: Mapped[UUID] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    user_weight: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    snapshot_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("poll_id", "user_id"),
        CheckConstraint("user_weight >= 0", name="weight_not_negative"),
    )


class VoteDraft(Base, CreatedAtMixin):
    __tablename__ = "vote_drafts"

    poll_id: Mapped[UUID] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), primary_key=True
    )
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )
    answer_id: Mapped[UUID] = mapped_column(
        ForeignKey("answers.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), primary_key=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Vote(Base, UUIDMixin, CreatedAtMixin):
    """Submitted vote. Rows are only ever inserted."""

    __tablename__ = "votes"

    poll_id: Mapped[UUID] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[UUID] = mapped_column(ForeignKey("questions.id"), nullable=False)
    answer_id: Mapped[UUID] = mapped_column(ForeignKey("answers.id"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    user_weight: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        Index("idx_votes_poll_user", "poll_id", "user_id"),
    )


class ParticipantWeightHistory(Base, UUIDMixin):
    """One change of a participant's voting weight."""

    __tablename__ = "participant_weight_history"

    participant_id: Mapped[UUID] = mapped_column(
        ForeignKey("poll_participants.id", ondelete="CASCADE"), nullable=False
    )
    poll_id: Mapped[UUID] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    old_weight: Mapped[float] = mapped_column(Float, nullable=False)
    new_weight: Mapped[float] = mapped_column(Float, nullable=False)
    changed_by_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_weight_history_poll", "poll_id", "changed_at"),
    )


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class Notification(Base, UUIDMixin, CreatedAtMixin):
    """Inbox entry. Title and body are translation keys."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )
