"""API routes for organizations and membership requests."""

from uuid import UUID

from fastapi import APIRouter, status

from ..core.config import get_settings
from ..core.dependencies import CurrentUserDep, MembershipServiceDep, OrganizationServiceDep
from ..schemas import (
    HandleRequest,
    HierarchyTreeResponse,
    MembershipResponse,
    MessageResponse,
    OrganizationCreate,
    OrganizationCreatedResponse,
    OrganizationDetailResponse,
    OrganizationListingResponse,
    OrganizationResponse,
    PendingRequestResponse,
)
from .errors import ok_or_raise

settings = get_settings()

router = APIRouter(prefix="/organizations", tags=["organizations"])


# =============================================================================
# ORGANIZATIONS
# =============================================================================


@router.post("", response_model=OrganizationCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    current_user: CurrentUserDep,
    service: OrganizationServiceDep,
):
    """Create an organization with its general board. The caller becomes its admin."""
    created = ok_or_raise(
        await service.create_organization(
            name=data.name,
            description=data.description,
            creator_id=current_user.id,
            parent_id=data.parent_id,
            general_board_name=settings.general_board_name,
        )
    )
    return OrganizationCreatedResponse(
        organization=OrganizationResponse.model_validate(created.organization),
        general_board_id=created.general_board.id,
    )


@router.get("", response_model=list[OrganizationListingResponse])
async def list_organizations(current_user: CurrentUserDep, service: OrganizationServiceDep):
    """All active organizations, by name."""
    listings = ok_or_raise(await service.list_organizations())
    return [OrganizationListingResponse.model_validate(listing) for listing in listings]


# Declared before "/{organization_id}" so the literal path wins
@router.get("/pending-requests", response_model=list[PendingRequestResponse])
async def get_pending_requests(current_user: CurrentUserDep, service: MembershipServiceDep):
    """Pending membership requests across all organizations the caller administers."""
    requests = ok_or_raise(await service.get_pending_requests(current_user.id))
    return [PendingRequestResponse.model_validate(r) for r in requests]


@router.get("/{organization_id}", response_model=OrganizationDetailResponse)
async def get_organization(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: OrganizationServiceDep,
):
    details = ok_or_raise(await service.get_organization(organization_id, current_user.id))
    return OrganizationDetailResponse.model_validate(details)


@router.get("/{organization_id}/hierarchy", response_model=HierarchyTreeResponse)
async def get_hierarchy(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: OrganizationServiceDep,
):
    """Ancestors of the organization plus the full tree from its top ancestor."""
    tree = ok_or_raise(await service.get_hierarchy_tree(organization_id))
    return HierarchyTreeResponse.model_validate(tree)


# =============================================================================
# MEMBERSHIP REQUESTS
# =============================================================================


@router.post(
    "/{organization_id}/join",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_organization(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
):
    """Ask to join an organization. The request stays pending until an admin handles it."""
    membership = ok_or_raise(await service.join_organization(organization_id, current_user.id))
    return MembershipResponse.model_validate(membership)


@router.delete("/{organization_id}/join", response_model=MessageResponse)
async def cancel_join_request(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
):
    ok_or_raise(await service.cancel_join_request(organization_id, current_user.id))
    return MessageResponse(message="Join request cancelled")


@router.get("/{organization_id}/pending-requests", response_model=list[PendingRequestResponse])
async def get_organization_pending_requests(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
):
    requests = ok_or_raise(
        await service.get_organization_pending_requests(organization_id, current_user.id)
    )
    return [PendingRequestResponse.model_validate(r) for r in requests]


@router.post(
    "/{organization_id}/pending-requests/{user_id}",
    response_model=MembershipResponse,
)
async def handle_join_request(
    organization_id: UUID,
    user_id: UUID,
    data: HandleRequest,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
):
    """Accept or reject a pending membership request."""
    membership = ok_or_raise(
        await service.handle_join_request(
            organization_id,
            user_id,
            current_user.id,
            data.action,
            data.rejection_reason,
        )
    )
    return MembershipResponse.model_validate(membership)
