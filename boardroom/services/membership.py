"""
Membership: user-to-organization join requests.

    pending -> member     (accept)
    pending -> rejected   (reject, reason optional)

A user belongs to at most one organization per hierarchy.
"""

import logging
from uuid import UUID

from ..domain.errors import DuplicateError, NotFoundError, ValidationError
from ..domain.organizations import (
    MembershipStatus,
    OrganizationErrors,
    OrganizationMembership,
    PendingRequest,
    RequestAction,
)
from ..domain.ports import MembershipRepository, OrganizationRepository, TransactionManager
from ..domain.result import use_case
from .access import AdminPolicy
from .hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)

_DUPLICATE_CODES = {
    MembershipStatus.PENDING: OrganizationErrors.PENDING_REQUEST,
    MembershipStatus.MEMBER: OrganizationErrors.ALREADY_MEMBER,
    MembershipStatus.REJECTED: OrganizationErrors.REJECTED_REQUEST,
}


class MembershipService:
    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        policy: AdminPolicy,
        hierarchy: HierarchyResolver,
        transactions: TransactionManager,
    ):
        self._organizations = organizations
        self._memberships = memberships
        self._policy = policy
        self._hierarchy = hierarchy
        self._transactions = transactions

    async def _related_organization_ids(self, organization_id: UUID) -> set[UUID]:
        """Ancestors and descendants of an organization, excluding itself."""
        ancestors = await self._hierarchy.get_ancestor_ids(organization_id)
        descendants = await self._hierarchy.get_descendant_ids(organization_id)
        return set(ancestors) | descendants

    # =========================================================================
    # JOIN
    # =========================================================================

    @use_case
    async def join_organization(self, organization_id: UUID, user_id: UUID) -> OrganizationMembership:
        """Create a pending membership request."""
        organization = await self._organizations.find_by_id(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id, OrganizationErrors.NOT_FOUND)
        if organization.is_archived:
            raise ValidationError("Organization is archived", OrganizationErrors.ARCHIVED)

        existing = await self._memberships.find(organization_id, user_id)
        if existing is not None:
            raise DuplicateError(
                "Membership request", "organization", _DUPLICATE_CODES[existing.status]
            )

        related = await self._related_organization_ids(organization_id)
        member_of = await self._memberships.find_member_organization_ids(user_id)
        if related.intersection(member_of):
            raise ValidationError(
                "You are already a member of an organization in this hierarchy",
                OrganizationErrors.HIERARCHY_CONFLICT,
            )

        membership = OrganizationMembership.request(organization_id, user_id)
        await self._memberships.save(membership)
        logger.info("User %s requested to join organization %s", user_id, organization_id)
        return membership

    @use_case
    async def cancel_join_request(self, organization_id: UUID, user_id: UUID) -> None:
        """Withdraw the user's own pending request."""
        membership = await self._memberships.find(organization_id, user_id)
        if membership is None:
            raise NotFoundError(
                "Membership request", organization_id, OrganizationErrors.REQUEST_NOT_FOUND
            )
        if not membership.is_pending:
            raise ValidationError("Membership request is not pending", OrganizationErrors.NOT_PENDING)
        await self._memberships.delete(organization_id, user_id)
        logger.info("User %s cancelled join request to %s", user_id, organization_id)

    # =========================================================================
    # HANDLE
    # =========================================================================

    @use_case
    async def handle_join_request(
        self,
        organization_id: UUID,
        requester_id: UUID,
        admin_id: UUID,
        action: RequestAction,
        rejection_reason: str | None = None,
    ) -> OrganizationMembership:
        """
        Accept or reject a pending membership request.

        Accepting also drops the user's memberships in other organizations
        of the same hierarchy, in the same transaction.
        """
        await self._policy.ensure_admin(admin_id, organization_id)

        membership = await self._memberships.find(organization_id, requester_id)
        if membership is None:
            raise NotFoundError(
                "Membership request", requester_id, OrganizationErrors.REQUEST_NOT_FOUND
            )
        if not membership.is_pending:
            raise ValidationError("Membership request is not pending", OrganizationErrors.NOT_PENDING)

        if RequestAction(action) == RequestAction.REJECT:
            membership.reject(admin_id, rejection_reason)
            await self._memberships.save(membership)
            logger.info("Join request of %s to %s rejected", requester_id, organization_id)
            return membership

        related = await self._related_organization_ids(organization_id)
        member_of = await self._memberships.find_member_organization_ids(requester_id)

        membership.accept(admin_id)
        async with self._transactions.atomic():
            await self._memberships.save(membership)
            for other_id in related.intersection(member_of):
                await self._memberships.delete(other_id, requester_id)
                logger.info(
                    "Removed user %s from %s after joining %s", requester_id, other_id, organization_id
                )

        logger.info("User %s joined organization %s", requester_id, organization_id)
        return membership

    # =========================================================================
    # QUERIES
    # =========================================================================

    @use_case
    async def get_pending_requests(self, admin_user_id: UUID) -> list[PendingRequest]:
        """Pending requests across every organization the caller administers, oldest first."""
        organizations = await self._organizations.find_admin_organizations(admin_user_id)
        if not organizations:
            return []
        return await self._memberships.find_pending_for_organizations(
            [organization.id for organization in organizations]
        )

    @use_case
    async def get_organization_pending_requests(
        self, organization_id: UUID, admin_user_id: UUID
    ) -> list[PendingRequest]:
        await self._policy.ensure_admin(admin_user_id, organization_id)
        return await self._memberships.find_pending_for_organizations([organization_id])
