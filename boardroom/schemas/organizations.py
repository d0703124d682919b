"""Organization, membership and join-parent schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ..domain.organizations import JoinParentRequestStatus, MembershipStatus, RequestAction
from .base import BoardroomBaseModel


# =============================================================================
# ORGANIZATIONS
# =============================================================================


class OrganizationCreate(BoardroomBaseModel):
    name: str
    description: str
    parent_id: UUID | None = None


class OrganizationResponse(BoardroomBaseModel):
    id: UUID
    name: str
    description: str
    parent_id: UUID | None = None
    created_by_id: UUID
    created_at: datetime
    archived_at: datetime | None = None


class OrganizationDetailResponse(BoardroomBaseModel):
    organization: OrganizationResponse
    member_count: int
    is_admin: bool
    membership_status: MembershipStatus | None = None


class OrganizationListingResponse(BoardroomBaseModel):
    organization: OrganizationResponse
    member_count: int
    first_admin_id: UUID | None = None


class OrganizationCreatedResponse(BoardroomBaseModel):
    organization: OrganizationResponse
    general_board_id: UUID


class OrganizationSummaryResponse(BoardroomBaseModel):
    id: UUID
    name: str
    member_count: int


class HierarchyNodeResponse(BoardroomBaseModel):
    id: UUID
    name: str
    member_count: int
    children: list["HierarchyNodeResponse"] = []


HierarchyNodeResponse.model_rebuild()


class HierarchyTreeResponse(BoardroomBaseModel):
    ancestors: list[OrganizationSummaryResponse]
    tree: HierarchyNodeResponse


# =============================================================================
# MEMBERSHIP REQUESTS
# =============================================================================


class MembershipResponse(BoardroomBaseModel):
    organization_id: UUID
    user_id: UUID
    status: MembershipStatus
    created_at: datetime
    joined_at: datetime | None = None
    rejection_reason: str | None = None


class PendingRequestResponse(BoardroomBaseModel):
    organization_id: UUID
    organization_name: str
    requester_id: UUID
    first_name: str
    last_name: str
    middle_name: str | None = None
    phone_number: str
    requested_at: datetime


class HandleRequest(BoardroomBaseModel):
    """Admin decision on a pending request."""

    action: RequestAction
    rejection_reason: str | None = Field(None, max_length=2000)


# =============================================================================
# JOIN-PARENT REQUESTS
# =============================================================================


class JoinParentCreate(BoardroomBaseModel):
    parent_org_id: UUID
    message: str


class JoinParentRequestResponse(BoardroomBaseModel):
    id: UUID
    child_org_id: UUID
    parent_org_id: UUID
    requesting_admin_id: UUID
    handling_admin_id: UUID | None = None
    message: str
    status: JoinParentRequestStatus
    rejection_reason: str | None = None
    created_at: datetime
    handled_at: datetime | None = None