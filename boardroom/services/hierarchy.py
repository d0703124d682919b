"""
Hierarchy Resolver: read-only traversal of the organization tree.

The tree is stored as a single ``parent_id`` column per organization.
Traversal goes level by level so each depth costs one query, and every walk
is capped at ``max_depth`` levels.
"""

import logging
from uuid import UUID

from ..domain.errors import NotFoundError, ValidationError
from ..domain.organizations import (
    HierarchyNode,
    HierarchyTree,
    Organization,
    OrganizationErrors,
    OrganizationSummary,
)
from ..domain.ports import OrganizationRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


class HierarchyResolver:
    """Resolves descendant sets, ancestor chains and hierarchy trees."""

    def __init__(self, organizations: OrganizationRepository, max_depth: int = DEFAULT_MAX_DEPTH):
        self._organizations = organizations
        self._max_depth = max_depth

    async def _get_or_raise(self, organization_id: UUID) -> Organization:
        organization = await self._organizations.find_by_id(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id, OrganizationErrors.NOT_FOUND)
        return organization

    def _too_deep(self, organization_id: UUID) -> ValidationError:
        logger.warning(
            "Hierarchy walk from %s exceeded %d levels", organization_id, self._max_depth
        )
        return ValidationError(
            f"Organization hierarchy is deeper than {self._max_depth} levels",
            OrganizationErrors.HIERARCHY_TOO_DEEP,
        )

    # =========================================================================
    # DESCENDANTS
    # =========================================================================

    async def get_descendant_ids(self, organization_id: UUID) -> set[UUID]:
        """
        Return the ids of every organization below ``organization_id``.

        The organization itself is not included; a leaf yields an empty set.
        Raises NotFoundError if the organization does not exist and
        ValidationError if the subtree is deeper than ``max_depth``.
        """
        await self._get_or_raise(organization_id)

        descendants: set[UUID] = set()
        frontier = [organization_id]
        depth = 0

        while frontier:
            child_ids = [
                child_id
                for child_id in await self._organizations.find_child_ids(frontier)
                if child_id not in descendants and child_id != organization_id
            ]
            if not child_ids:
                break
            depth += 1
            if depth > self._max_depth:
                raise self._too_deep(organization_id)
            descendants.update(child_ids)
            frontier = child_ids

        return descendants

    # =========================================================================
    # ANCESTORS
    # =========================================================================

    async def get_ancestor_ids(self, organization_id: UUID) -> list[UUID]:
        """Return [parent, grandparent, ...] for ``organization_id``."""
        ancestors = await self._get_ancestors(organization_id)
        return [ancestor.id for ancestor in ancestors]

    async def _get_ancestors(self, organization_id: UUID) -> list[Organization]:
        organization = await self._get_or_raise(organization_id)

        ancestors: list[Organization] = []
        seen = {organization.id}
        parent_id = organization.parent_id

        while parent_id is not None:
            if len(ancestors) >= self._max_depth or parent_id in seen:
                raise self._too_deep(organization_id)
            parent = await self._organizations.find_by_id(parent_id)
            if parent is None:
                break
            ancestors.append(parent)
            seen.add(parent.id)
            parent_id = parent.parent_id

        return ancestors

    # =========================================================================
    # TREE
    # =========================================================================

    async def get_hierarchy_tree(self, organization_id: UUID) -> HierarchyTree:
        """
        Build the tree that contains ``organization_id``.

        The tree is rooted at the top-most ancestor. Archived organizations
        are left out of the children lists. Each node carries its member count.
        """
        organization = await self._get_or_raise(organization_id)
        ancestors = await self._get_ancestors(organization_id)
        root = ancestors[-1] if ancestors else organization

        summaries = [
            OrganizationSummary(
                id=ancestor.id,
                name=ancestor.name,
                member_count=await self._organizations.count_members(ancestor.id),
            )
            for ancestor in ancestors
        ]
        tree = await self._build_node(root, depth=0)
        return HierarchyTree(ancestors=summaries, tree=tree)

    async def _build_node(self, organization: Organization, depth: int) -> HierarchyNode:
        if depth > self._max_depth:
            raise self._too_deep(organization.id)

        node = HierarchyNode(
            id=organization.id,
            name=organization.name,
            member_count=await self._organizations.count_members(organization.id),
        )
        for child in await self._organizations.find_children(organization.id):
            node.children.append(await self._build_node(child, depth + 1))
        return node
