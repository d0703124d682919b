"""API routes for join-parent requests between organizations."""

from uuid import UUID

from fastapi import APIRouter, status

from ..core.dependencies import CurrentUserDep, JoinParentServiceDep
from ..schemas import (
    HandleRequest,
    JoinParentCreate,
    JoinParentRequestResponse,
    MessageResponse,
)
from .errors import ok_or_raise

router = APIRouter(tags=["join-parent-requests"])


@router.post(
    "/organizations/{organization_id}/join-parent-requests",
    response_model=JoinParentRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_join_parent(
    organization_id: UUID,
    data: JoinParentCreate,
    current_user: CurrentUserDep,
    service: JoinParentServiceDep,
):
    """Ask for this organization to be attached under another one."""
    request = ok_or_raise(
        await service.request_join_parent(
            child_org_id=organization_id,
            parent_org_id=data.parent_org_id,
            requesting_admin_id=current_user.id,
            message=data.message,
        )
    )
    return JoinParentRequestResponse.model_validate(request)


@router.get(
    "/organizations/{organization_id}/join-parent-requests/incoming",
    response_model=list[JoinParentRequestResponse],
)
async def get_incoming_requests(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: JoinParentServiceDep,
):
    """Pending requests naming this organization as parent, oldest first."""
    requests = ok_or_raise(await service.get_incoming_requests(organization_id, current_user.id))
    return [JoinParentRequestResponse.model_validate(r) for r in requests]


@router.get(
    "/organizations/{organization_id}/join-parent-requests/outgoing",
    response_model=list[JoinParentRequestResponse],
)
async def get_outgoing_requests(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: JoinParentServiceDep,
):
    """All requests made by this organization, newest first."""
    requests = ok_or_raise(await service.get_outgoing_requests(organization_id, current_user.id))
    return [JoinParentRequestResponse.model_validate(r) for r in requests]


@router.post("/join-parent-requests/{request_id}/handle", response_model=JoinParentRequestResponse)
async def handle_join_parent_request(
    request_id: UUID,
    data: HandleRequest,
    current_user: CurrentUserDep,
    service: JoinParentServiceDep,
):
    """Accept or reject a request as an admin of the proposed parent."""
    request = ok_or_raise(
        await service.handle_request(
            request_id, current_user.id, data.action, data.rejection_reason
        )
    )
    return JoinParentRequestResponse.model_validate(request)


@router.delete("/join-parent-requests/{request_id}", response_model=MessageResponse)
async def cancel_join_parent_request(
    request_id: UUID,
    current_user: CurrentUserDep,
    service: JoinParentServiceDep,
):
    ok_or_raise(await service.cancel_request(request_id, current_user.id))
    return MessageResponse(message="Join-parent request cancelled")
