"""
Join-Parent Requests: organization-to-organization attachment workflow.

    none -> pending -> accepted   (child.parent_id := parent)
                    -> rejected   (reason required)
    pending -> (cancelled)        (row deleted)

Rejected and cancelled requests never block a new request for the same
pair. At most one request per child is pending at any time.
"""

import logging
from uuid import UUID

from ..domain.errors import NotFoundError, ValidationError
from ..domain.organizations import (
    JoinParentRequest,
    OrganizationErrors,
    RequestAction,
    validate_join_parent_message,
)
from ..domain.ports import (
    JoinParentRequestRepository,
    OrganizationRepository,
    TransactionManager,
)
from ..domain.result import use_case
from .access import AdminPolicy
from .hierarchy import HierarchyResolver
from .notifications import NotificationService

logger = logging.getLogger(__name__)


class JoinParentRequestService:
    def __init__(
        self,
        organizations: OrganizationRepository,
        requests: JoinParentRequestRepository,
        policy: AdminPolicy,
        hierarchy: HierarchyResolver,
        notifications: NotificationService,
        transactions: TransactionManager,
    ):
        self._organizations = organizations
        self._requests = requests
        self._policy = policy
        self._hierarchy = hierarchy
        self._notifications = notifications
        self._transactions = transactions

    # =========================================================================
    # REQUEST
    # =========================================================================

    @use_case
    async def request_join_parent(
        self,
        child_org_id: UUID,
        parent_org_id: UUID,
        requesting_admin_id: UUID,
        message: str,
    ) -> JoinParentRequest:
        """
        Ask for ``child_org_id`` to be attached under ``parent_org_id``.

        Flow:
        1. Caller must administer the child (or be a superadmin)
        2. Both organizations must exist
        3. Every remaining precondition is checked and all violations are
           reported together in one ValidationError
        """
        await self._policy.ensure_admin(requesting_admin_id, child_org_id)

        child = await self._organizations.find_by_id(child_org_id)
        if child is None:
            raise NotFoundError("Organization", child_org_id, OrganizationErrors.CHILD_NOT_FOUND)
        parent = await self._organizations.find_by_id(parent_org_id)
        if parent is None:
            raise NotFoundError("Organization", parent_org_id, OrganizationErrors.PARENT_NOT_FOUND)

        codes: list[str] = []
        if child.is_archived:
            codes.append(OrganizationErrors.CHILD_ARCHIVED)
        if parent.is_archived:
            codes.append(OrganizationErrors.PARENT_ARCHIVED)
        if child_org_id == parent_org_id:
            codes.append(OrganizationErrors.SAME_ORGANIZATION)
        elif parent_org_id in await self._hierarchy.get_descendant_ids(child_org_id):
            codes.append(OrganizationErrors.CANNOT_JOIN_OWN_DESCENDANT)
        if await self._requests.find_pending_by_child(child_org_id) is not None:
            codes.append(OrganizationErrors.PENDING_PARENT_REQUEST)
        codes.extend(validate_join_parent_message(message))

        if codes:
            raise ValidationError("Cannot request to join this parent organization", codes=codes)

        request = JoinParentRequest.create(
            child_org_id=child_org_id,
            parent_org_id=parent_org_id,
            requesting_admin_id=requesting_admin_id,
            message=message,
        )
        async with self._transactions.atomic():
            await self._requests.save(request)
            await self._notifications.notify_join_parent_request_received(child, parent)

        logger.info(
            "Join-parent request %s: %s -> %s", request.id, child_org_id, parent_org_id
        )
        return request

    # =========================================================================
    # QUERIES
    # =========================================================================

    @use_case
    async def get_incoming_requests(
        self, organization_id: UUID, admin_user_id: UUID
    ) -> list[JoinParentRequest]:
        """Pending requests proposing this organization as parent, oldest first."""
        await self._policy.ensure_admin(admin_user_id, organization_id)
        return await self._requests.find_pending_by_parent(organization_id)

    @use_case
    async def get_outgoing_requests(
        self, organization_id: UUID, admin_user_id: UUID
    ) -> list[JoinParentRequest]:
        """Every request this organization made as a child, newest first."""
        await self._policy.ensure_admin(admin_user_id, organization_id)
        return await self._requests.find_by_child(organization_id)

    # =========================================================================
    # HANDLE / CANCEL
    # =========================================================================

    async def _find_request_or_raise(self, request_id: UUID) -> JoinParentRequest:
        request = await self._requests.find_by_id(request_id)
        if request is None:
            raise NotFoundError(
                "Join-parent request", request_id, OrganizationErrors.PARENT_REQUEST_NOT_FOUND
            )
        return request

    @staticmethod
    def _ensure_pending(request: JoinParentRequest) -> None:
        if not request.is_pending:
            raise ValidationError(
                "Join-parent request is no longer pending",
                OrganizationErrors.PARENT_REQUEST_NOT_PENDING,
            )

    @use_case
    async def handle_request(
        self,
        request_id: UUID,
        admin_user_id: UUID,
        action: RequestAction,
        rejection_reason: str | None = None,
    ) -> JoinParentRequest:
        """
        Accept or reject a pending request as an admin of the parent.

        The caller is authorized before the request status is revealed.
        Accepting re-checks the cycle condition, since the tree may have
        changed since the request was made, then flips the request status,
        moves the child under the parent and notifies the child's members
        in one transaction.
        """
        request = await self._find_request_or_raise(request_id)
        await self._policy.ensure_admin(admin_user_id, request.parent_org_id)
        self._ensure_pending(request)

        if RequestAction(action) == RequestAction.REJECT:
            request.reject(admin_user_id, rejection_reason)
            await self._requests.save(request)
            logger.info("Join-parent request %s rejected by %s", request.id, admin_user_id)
            return request

        descendants = await self._hierarchy.get_descendant_ids(request.child_org_id)
        if request.parent_org_id in descendants or request.parent_org_id == request.child_org_id:
            raise ValidationError(
                "The parent organization is a descendant of the child",
                OrganizationErrors.CANNOT_JOIN_OWN_DESCENDANT,
            )

        request.accept(admin_user_id)
        async with self._transactions.atomic():
            await self._requests.save(request)
            await self._organizations.set_parent(request.child_org_id, request.parent_org_id)
            child = await self._organizations.find_by_id(request.child_org_id)
            parent = await self._organizations.find_by_id(request.parent_org_id)
            await self._notifications.notify_org_joined_parent(child, parent)

        logger.info(
            "Organization %s joined parent %s (request %s)",
            request.child_org_id,
            request.parent_org_id,
            request.id,
        )
        return request

    @use_case
    async def cancel_request(self, request_id: UUID, admin_user_id: UUID) -> None:
        """Withdraw a pending request as an admin of the child."""
        request = await self._find_request_or_raise(request_id)
        await self._policy.ensure_admin(admin_user_id, request.child_org_id)
        self._ensure_pending(request)
        await self._requests.delete(request.id)
        logger.info("Join-parent request %s cancelled by %s", request.id, admin_user_id)
