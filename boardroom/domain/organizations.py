"""Organization tree, membership requests and join-parent requests.

Organizations form a forest: each node stores at most one ``parent_id``.
Nodes never hold references to other nodes; the tree is walked through the
repository by id. Cycles are prevented when a join-parent request is created
and again when it is accepted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from .errors import ValidationError
from .users import utcnow


class OrganizationErrors:
    """Organization-related error codes, translated at the presentation layer."""

    # General
    NOT_FOUND = "organization.errors.notFound"
    ARCHIVED = "organization.errors.archived"
    NAME_EXISTS = "organization.errors.nameExists"
    NAME_EMPTY = "domain.organization.organizationNameEmpty"
    NAME_TOO_LONG = "domain.organization.organizationNameTooLong"
    DESCRIPTION_EMPTY = "domain.organization.organizationDescriptionEmpty"
    DESCRIPTION_TOO_LONG = "domain.organization.organizationDescriptionTooLong"
    ALREADY_ARCHIVED = "domain.organization.organizationAlreadyArchived"
    HIERARCHY_TOO_DEEP = "organization.errors.hierarchyTooDeep"

    # Join/Membership
    ALREADY_MEMBER = "organization.errors.alreadyMember"
    PENDING_REQUEST = "organization.errors.pendingRequest"
    REJECTED_REQUEST = "organization.errors.rejectedRequest"
    HIERARCHY_CONFLICT = "organization.errors.hierarchyConflict"

    # Create
    PARENT_NOT_FOUND = "organization.errors.parentNotFound"
    PARENT_ARCHIVED = "organization.errors.parentArchived"

    # Admin/Authorization
    NOT_ADMIN = "organization.errors.notAdmin"
    REQUEST_NOT_FOUND = "organization.errors.requestNotFound"
    NOT_PENDING = "organization.errors.notPending"

    # Join-parent workflow
    CHILD_NOT_FOUND = "organization.errors.childNotFound"
    CHILD_ARCHIVED = "organization.errors.childArchived"
    SAME_ORGANIZATION = "organization.errors.sameOrganization"
    CANNOT_JOIN_OWN_DESCENDANT = "organization.errors.cannotJoinOwnDescendant"
    PENDING_PARENT_REQUEST = "organization.errors.pendingParentRequest"
    PARENT_REQUEST_NOT_FOUND = "organization.errors.parentRequestNotFound"
    PARENT_REQUEST_NOT_PENDING = "organization.errors.parentRequestNotPending"


class JoinParentRequestErrors:
    MESSAGE_EMPTY = "domain.joinParentRequest.messageEmpty"
    MESSAGE_TOO_LONG = "domain.joinParentRequest.messageTooLong"
    NOT_PENDING = "domain.joinParentRequest.notPending"
    REJECTION_REASON_REQUIRED = "domain.joinParentRequest.rejectionReasonRequired"


NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 5000
JOIN_PARENT_MESSAGE_MAX_LENGTH = 2000


class MembershipStatus(str, Enum):
    PENDING = "pending"
    MEMBER = "member"
    REJECTED = "rejected"


class JoinParentRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RequestAction(str, Enum):
    """Admin decision on a pending request."""

    ACCEPT = "accept"
    REJECT = "reject"


@dataclass
class Organization:
    """A node in the organization tree."""

    id: UUID
    name: str
    description: str
    created_by_id: UUID
    parent_id: UUID | None = None
    created_at: datetime = field(default_factory=utcnow)
    archived_at: datetime | None = None

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        created_by_id: UUID,
        parent_id: UUID | None = None,
    ) -> "Organization":
        problems = []
        if not name or not name.strip():
            problems.append(("name", OrganizationErrors.NAME_EMPTY, "Name is required"))
        elif len(name.strip()) > NAME_MAX_LENGTH:
            problems.append(("name", OrganizationErrors.NAME_TOO_LONG, "Name is too long"))
        if not description or not description.strip():
            problems.append(
                ("description", OrganizationErrors.DESCRIPTION_EMPTY, "Description is required")
            )
        elif len(description.strip()) > DESCRIPTION_MAX_LENGTH:
            problems.append(
                ("description", OrganizationErrors.DESCRIPTION_TOO_LONG, "Description is too long")
            )
        if problems:
            raise ValidationError.from_problems("Invalid organization data", problems)

        return cls(
            id=uuid4(),
            name=name.strip(),
            description=description.strip(),
            created_by_id=created_by_id,
            parent_id=parent_id,
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def archive(self) -> None:
        if self.is_archived:
            raise ValidationError(
                "Organization is already archived", OrganizationErrors.ALREADY_ARCHIVED
            )
        self.archived_at = utcnow()


@dataclass
class OrganizationMembership:
    """A user's membership (or request for one) in an organization.

    pending -> member   (accept)
    pending -> rejected (reject, reason optional)
    """

    organization_id: UUID
    user_id: UUID
    status: MembershipStatus = MembershipStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    joined_at: datetime | None = None
    accepted_by_id: UUID | None = None
    rejected_at: datetime | None = None
    rejected_by_id: UUID | None = None
    rejection_reason: str | None = None

    @classmethod
    def request(cls, organization_id: UUID, user_id: UUID) -> "OrganizationMembership":
        return cls(organization_id=organization_id, user_id=user_id)

    @property
    def is_pending(self) -> bool:
        return self.status == MembershipStatus.PENDING

    def _ensure_pending(self) -> None:
        if not self.is_pending:
            raise ValidationError(
                "Membership request is not pending", OrganizationErrors.NOT_PENDING
            )

    def accept(self, admin_id: UUID, now: datetime | None = None) -> None:
        self._ensure_pending()
        self.status = MembershipStatus.MEMBER
        self.joined_at = now or utcnow()
        self.accepted_by_id = admin_id

    def reject(
        self, admin_id: UUID, reason: str | None = None, now: datetime | None = None
    ) -> None:
        self._ensure_pending()
        self.status = MembershipStatus.REJECTED
        self.rejected_at = now or utcnow()
        self.rejected_by_id = admin_id
        self.rejection_reason = reason.strip() if reason and reason.strip() else None


def validate_join_parent_message(message: str | None) -> list[str]:
    """Return the error codes for an invalid join-parent request message."""
    if not message or not message.strip():
        return [JoinParentRequestErrors.MESSAGE_EMPTY]
    if len(message) > JOIN_PARENT_MESSAGE_MAX_LENGTH:
        return [JoinParentRequestErrors.MESSAGE_TOO_LONG]
    return []


@dataclass
class JoinParentRequest:
    """Request from a child organization to be attached under a parent."""

    id: UUID
    child_org_id: UUID
    parent_org_id: UUID
    requesting_admin_id: UUID
    message: str
    status: JoinParentRequestStatus = JoinParentRequestStatus.PENDING
    handling_admin_id: UUID | None = None
    rejection_reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    handled_at: datetime | None = None

    @classmethod
    def create(
        cls,
        child_org_id: UUID,
        parent_org_id: UUID,
        requesting_admin_id: UUID,
        message: str,
    ) -> "JoinParentRequest":
        codes = validate_join_parent_message(message)
        if codes:
            raise ValidationError(
                "Invalid join-parent request message",
                codes=codes,
                field_errors={"message": "Message is required and limited to 2000 characters"},
            )
        return cls(
            id=uuid4(),
            child_org_id=child_org_id,
            parent_org_id=parent_org_id,
            requesting_admin_id=requesting_admin_id,
            message=message.strip(),
        )

    @property
    def is_pending(self) -> bool:
        return self.status == JoinParentRequestStatus.PENDING

    def _ensure_pending(self) -> None:
        if not self.is_pending:
            raise ValidationError(
                "Join-parent request is not pending", JoinParentRequestErrors.NOT_PENDING
            )

    def accept(self, admin_id: UUID) -> None:
        self._ensure_pending()
        self.status = JoinParentRequestStatus.ACCEPTED
        self.handling_admin_id = admin_id
        self.handled_at = utcnow()

    def reject(self, admin_id: UUID, reason: str | None) -> None:
        self._ensure_pending()
        if not reason or not reason.strip():
            raise ValidationError(
                "A rejection reason is required",
                JoinParentRequestErrors.REJECTION_REASON_REQUIRED,
                field_errors={"rejection_reason": "Rejection reason is required"},
            )
        self.status = JoinParentRequestStatus.REJECTED
        self.handling_admin_id = admin_id
        self.rejection_reason = reason.strip()
        self.handled_at = utcnow()


# Read models


@dataclass
class OrganizationSummary:
    id: UUID
    name: str
    member_count: int = 0


@dataclass
class HierarchyNode:
    id: UUID
    name: str
    member_count: int = 0
    children: list["HierarchyNode"] = field(default_factory=list)


@dataclass
class HierarchyTree:
    """Ancestors ordered [parent, grandparent, ...] plus the full tree."""

    ancestors: list[OrganizationSummary]
    tree: HierarchyNode


@dataclass
class PendingRequest:
    """A pending membership request joined with requester details."""

    organization_id: UUID
    organization_name: str
    requester_id: UUID
    first_name: str
    last_name: str
    phone_number: str
    requested_at: datetime
    middle_name: str | None = None
