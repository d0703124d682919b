"""SQLAlchemy organization, membership and join-parent repositories."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, exists, func, select, update

from .. import models
from ..domain.organizations import (
    JoinParentRequest,
    JoinParentRequestStatus,
    MembershipStatus,
    Organization,
    OrganizationMembership,
    PendingRequest,
)
from ..domain.ports import (
    JoinParentRequestRepository,
    MembershipRepository,
    OrganizationRepository,
)
from ..domain.users import utcnow
from .base import SqlAlchemyRepository, as_utc


def _to_organization(row: models.Organization) -> Organization:
    return Organization(
        id=row.id,
        name=row.name,
        description=row.description,
        created_by_id=row.created_by_id,
        parent_id=row.parent_id,
        created_at=row.created_at,
        archived_at=row.archived_at,
    )


def _to_membership(row: models.OrganizationMembership) -> OrganizationMembership:
    return OrganizationMembership(
        organization_id=row.organization_id,
        user_id=row.user_id,
        status=row.status,
        created_at=as_utc(row.created_at),
        joined_at=row.joined_at,
        accepted_by_id=row.accepted_by_id,
        rejected_at=row.rejected_at,
        rejected_by_id=row.rejected_by_id,
        rejection_reason=row.rejection_reason,
    )


def _to_request(row: models.JoinParentRequest) -> JoinParentRequest:
    return JoinParentRequest(
        id=row.id,
        child_org_id=row.child_org_id,
        parent_org_id=row.parent_org_id,
        requesting_admin_id=row.requesting_admin_id,
        handling_admin_id=row.handling_admin_id,
        message=row.message,
        status=row.status,
        rejection_reason=row.rejection_reason,
        created_at=as_utc(row.created_at),
        handled_at=row.handled_at,
    )


class SqlAlchemyOrganizationRepository(SqlAlchemyRepository, OrganizationRepository):
    async def find_by_id(self, organization_id: UUID) -> Organization | None:
        row = await self._session.get(models.Organization, organization_id)
        return _to_organization(row) if row else None

    async def find_by_ids(self, organization_ids: Iterable[UUID]) -> list[Organization]:
        ids = list(organization_ids)
        if not ids:
            return []
        result = await self._session.execute(
            select(models.Organization)
            .where(models.Organization.id.in_(ids))
            .order_by(models.Organization.name)
        )
        return [_to_organization(row) for row in result.scalars()]

    async def find_by_name(self, name: str) -> Organization | None:
        result = await self._session.execute(
            select(models.Organization).where(models.Organization.name == name)
        )
        row = result.scalar_one_or_none()
        return _to_organization(row) if row else None

    async def save(self, organization: Organization) -> Organization:
        row = await self._session.merge(
            models.Organization(
                id=organization.id,
                name=organization.name,
                description=organization.description,
                created_by_id=organization.created_by_id,
                parent_id=organization.parent_id,
                created_at=organization.created_at,
                archived_at=organization.archived_at,
            )
        )
        await self._session.flush()
        return _to_organization(row)

    async def set_parent(self, organization_id: UUID, parent_id: UUID | None) -> None:
        await self._session.execute(
            update(models.Organization)
            .where(models.Organization.id == organization_id)
            .values(parent_id=parent_id)
        )

    async def find_child_ids(self, parent_ids: Iterable[UUID]) -> list[UUID]:
        ids = list(parent_ids)
        if not ids:
            return []
        result = await self._session.execute(
            select(models.Organization.id).where(models.Organization.parent_id.in_(ids))
        )
        return list(result.scalars())

    async def find_children(self, parent_id: UUID) -> list[Organization]:
        result = await self._session.execute(
            select(models.Organization)
            .where(
                models.Organization.parent_id == parent_id,
                models.Organization.archived_at.is_(None),
            )
            .order_by(models.Organization.name)
        )
        return [_to_organization(row) for row in result.scalars()]

    async def count_members(self, organization_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(models.OrganizationMembership)
            .where(
                models.OrganizationMembership.organization_id == organization_id,
                models.OrganizationMembership.status == MembershipStatus.MEMBER,
            )
        )
        return result.scalar_one()

    async def is_admin(self, user_id: UUID, organization_id: UUID) -> bool:
        result = await self._session.execute(
            select(
                exists().where(
                    models.OrganizationAdmin.organization_id == organization_id,
                    models.OrganizationAdmin.user_id == user_id,
                )
            )
        )
        return bool(result.scalar())

    async def add_admin(self, organization_id: UUID, user_id: UUID) -> None:
        # Re-granting keeps the original grant time
        if await self._session.get(models.OrganizationAdmin, (organization_id, user_id)):
            return
        self._session.add(
            models.OrganizationAdmin(
                organization_id=organization_id, user_id=user_id, created_at=utcnow()
            )
        )
        await self._session.flush()

    async def find_admin_organizations(self, user_id: UUID) -> list[Organization]:
        result = await self._session.execute(
            select(models.Organization)
            .join(
                models.OrganizationAdmin,
                models.OrganizationAdmin.organization_id == models.Organization.id,
            )
            .where(
                models.OrganizationAdmin.user_id == user_id,
                models.Organization.archived_at.is_(None),
            )
            .order_by(models.Organization.name)
        )
        return [_to_organization(row) for row in result.scalars()]

    async def find_admin_user_ids(self, organization_id: UUID) -> list[UUID]:
        result = await self._session.execute(
            select(models.OrganizationAdmin.user_id)
            .where(models.OrganizationAdmin.organization_id == organization_id)
            .order_by(models.OrganizationAdmin.created_at.asc())
        )
        return list(result.scalars())

    async def find_all(self) -> list[Organization]:
        result = await self._session.execute(
            select(models.Organization)
            .where(models.Organization.archived_at.is_(None))
            .order_by(models.Organization.name)
        )
        return [_to_organization(row) for row in result.scalars()]


class SqlAlchemyMembershipRepository(SqlAlchemyRepository, MembershipRepository):
    async def find(self, organization_id: UUID, user_id: UUID) -> OrganizationMembership | None:
        row = await self._session.get(models.OrganizationMembership, (organization_id, user_id))
        return _to_membership(row) if row else None

    async def save(self, membership: OrganizationMembership) -> OrganizationMembership:
        row = await self._session.merge(
            models.OrganizationMembership(
                organization_id=membership.organization_id,
                user_id=membership.user_id,
                status=membership.status,
                created_at=membership.created_at,
                joined_at=membership.joined_at,
                accepted_by_id=membership.accepted_by_id,
                rejected_at=membership.rejected_at,
                rejected_by_id=membership.rejected_by_id,
                rejection_reason=membership.rejection_reason,
            )
        )
        await self._session.flush()
        return _to_membership(row)

    async def delete(self, organization_id: UUID, user_id: UUID) -> None:
        await self._session.execute(
            delete(models.OrganizationMembership).where(
                models.OrganizationMembership.organization_id == organization_id,
                models.OrganizationMembership.user_id == user_id,
            )
        )

    async def find_member_organization_ids(self, user_id: UUID) -> list[UUID]:
        result = await self._session.execute(
            select(models.OrganizationMembership.organization_id).where(
                models.OrganizationMembership.user_id == user_id,
                models.OrganizationMembership.status == MembershipStatus.MEMBER,
            )
        )
        return list(result.scalars())

    async def find_member_user_ids(self, organization_ids: Iterable[UUID]) -> list[UUID]:
        ids = list(organization_ids)
        if not ids:
            return []
        result = await self._session.execute(
            select(models.OrganizationMembership.user_id)
            .where(
                models.OrganizationMembership.organization_id.in_(ids),
                models.OrganizationMembership.status == MembershipStatus.MEMBER,
            )
            .distinct()
        )
        return list(result.scalars())

    async def find_pending_for_organizations(
        self, organization_ids: Iterable[UUID]
    ) -> list[PendingRequest]:
        ids = list(organization_ids)
        if not ids:
            return []
        membership = models.OrganizationMembership
        result = await self._session.execute(
            select(membership, models.Organization.name, models.User)
            .join(models.Organization, models.Organization.id == membership.organization_id)
            .join(models.User, models.User.id == membership.user_id)
            .where(
                membership.organization_id.in_(ids),
                membership.status == MembershipStatus.PENDING,
            )
            .order_by(membership.created_at.asc())
        )
        return [
            PendingRequest(
                organization_id=row.organization_id,
                organization_name=organization_name,
                requester_id=user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                middle_name=user.middle_name,
                phone_number=user.phone_number,
                requested_at=as_utc(row.created_at),
            )
            for row, organization_name, user in result.all()
        ]


class SqlAlchemyJoinParentRequestRepository(SqlAlchemyRepository, JoinParentRequestRepository):
    async def find_by_id(self, request_id: UUID) -> JoinParentRequest | None:
        row = await self._session.get(models.JoinParentRequest, request_id)
        return _to_request(row) if row else None

    async def save(self, request: JoinParentRequest) -> JoinParentRequest:
        row = await self._session.merge(
            models.JoinParentRequest(
                id=request.id,
                child_org_id=request.child_org_id,
                parent_org_id=request.parent_org_id,
                requesting_admin_id=request.requesting_admin_id,
                handling_admin_id=request.handling_admin_id,
                message=request.message,
                status=request.status,
                rejection_reason=request.rejection_reason,
                created_at=request.created_at,
                handled_at=request.handled_at,
            )
        )
        await self._session.flush()
        return _to_request(row)

    async def delete(self, request_id: UUID) -> None:
        await self._session.execute(
            delete(models.JoinParentRequest).where(models.JoinParentRequest.id == request_id)
        )

    async def find_pending_by_child(self, child_org_id: UUID) -> JoinParentRequest | None:
        result = await self._session.execute(
            select(models.JoinParentRequest).where(
                models.JoinParentRequest.child_org_id == child_org_id,
                models.JoinParentRequest.status == JoinParentRequestStatus.PENDING,
            )
        )
        row = result.scalar_one_or_none()
        return _to_request(row) if row else None

    async def find_pending_by_parent(self, parent_org_id: UUID) -> list[JoinParentRequest]:
        result = await self._session.execute(
            select(models.JoinParentRequest)
            .where(
                models.JoinParentRequest.parent_org_id == parent_org_id,
                models.JoinParentRequest.status == JoinParentRequestStatus.PENDING,
            )
            .order_by(models.JoinParentRequest.created_at.asc())
        )
        return [_to_request(row) for row in result.scalars()]

    async def find_by_child(self, child_org_id: UUID) -> list[JoinParentRequest]:
        result = await self._session.execute(
            select(models.JoinParentRequest)
            .where(models.JoinParentRequest.child_org_id == child_org_id)
            .order_by(models.JoinParentRequest.created_at.desc())
        )
        return [_to_request(row) for row in result.scalars()]
