"""
Category Store

Per-user forest of named, iconized categories. A category without a
parent is a root; every other category points at a parent owned by the
same user.

DESIGN DECISION: Deleting a category that still has children follows an
explicit policy instead of silently orphaning them:
- reparent: children move up to the deleted category's parent
- cascade: the whole subtree is removed
- reject: the delete fails while children exist
"""

from typing import Literal, Optional
from uuid import UUID

from expense_tracker.config import get_settings
from expense_tracker.models.finance import (
    Category,
    CategoryNode,
    CategoryUpdate,
    UserIdentity,
)
from expense_tracker.services.storage.interface import CATEGORIES
from expense_tracker.stores.base import BaseStore
from expense_tracker.validation import ValidationError


DeletePolicy = Literal["reparent", "cascade", "reject"]


class CategoryStore(BaseStore[Category]):
    collection = CATEGORIES
    entity_type = "category"
    record_type = Category

    def __init__(self, *args, delete_policy: Optional[DeletePolicy] = None, **kwargs):
        super().__init__(*args, **kwargs)
        app_settings = get_settings().app
        self._delete_policy = delete_policy or app_settings.category_delete_policy
        self._default_icon = app_settings.default_category_icon

    @property
    def delete_policy(self) -> str:
        return self._delete_policy

    async def create(
        self,
        user: Optional[UserIdentity],
        name: str,
        icon: Optional[str] = None,
        parent_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        """
        Add a category to the user's forest.

        Raises:
            AuthenticationError: No signed-in user
            ValidationError: Blank name, or a parent that doesn't exist
                             or belongs to someone else
        """
        user = await self._authenticate(user, "create", correlation_id)
        await self._enforce(
            self._validator.validate_category_name(name),
            user.uid,
            correlation_id,
        )

        if parent_id is not None:
            parent = await self._get_owned(user, parent_id)
            if parent is None:
                raise ValidationError.single(
                    "category",
                    "parent_id",
                    f"Parent category {parent_id} does not exist",
                )

        category = await self._insert(
            Category(
                owner_id=user.uid,
                name=name.strip(),
                icon=icon or self._default_icon,
                parent_id=parent_id,
                created_at=self._clock(),
            ),
            correlation_id,
        )
        await self._audit.log_entity_created(
            entity_type=self.entity_type,
            entity_id=category.id,
            owner_id=user.uid,
            label=category.name,
            correlation_id=correlation_id,
        )
        return category

    async def get(self, user: UserIdentity, category_id: str) -> Optional[Category]:
        return await self._get_owned(user, category_id)

    async def get_children(
        self,
        user: UserIdentity,
        parent_id: Optional[str] = None,
    ) -> list[Category]:
        """Direct children of `parent_id`; roots when it is None."""
        return await self._query_owned(user.uid, parent_id=parent_id)

    async def list_all(self, user: UserIdentity) -> list[Category]:
        categories = await self._query_owned(user.uid)
        return sorted(categories, key=lambda c: c.name.casefold())

    async def get_tree(self, user: UserIdentity) -> list[CategoryNode]:
        """
        Expand the user's forest into nested nodes.

        Cyclic parent links in stored data are cut at the first repeat.
        """
        categories = await self._query_owned(user.uid)
        by_parent: dict[Optional[str], list[Category]] = {}
        for category in categories:
            by_parent.setdefault(category.parent_id, []).append(category)

        visited: set[str] = set()

        def expand(category: Category) -> CategoryNode:
            visited.add(category.id)
            children = [
                expand(child)
                for child in sorted(by_parent.get(category.id, []), key=lambda c: c.name.casefold())
                if child.id not in visited
            ]
            return CategoryNode(category=category, children=children)

        roots = sorted(by_parent.get(None, []), key=lambda c: c.name.casefold())
        return [expand(root) for root in roots]

    async def update(
        self,
        user: Optional[UserIdentity],
        category_id: str,
        changes: CategoryUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        """Rename or re-icon a category."""
        user = await self._authenticate(user, "update", correlation_id)
        if changes.is_empty():
            raise ValidationError.single("category", "changes", "Nothing to update")
        return await self._merge(user, category_id, changes.changes(), correlation_id)

    async def delete(
        self,
        user: Optional[UserIdentity],
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[str]:
        """
        Delete a category and apply the child policy.

        Returns:
            Ids of every category removed (empty if it didn't exist)
        """
        user = await self._authenticate(user, "delete", correlation_id)

        document = await self._call(
            "get",
            self._storage.get(self.collection, category_id),
            owner_id=user.uid,
            correlation_id=correlation_id,
        )
        if document is None:
            return []
        target = self._to_record(document)

        children = await self._query_owned(target.owner_id, parent_id=category_id)

        if children and self._delete_policy == "reject":
            raise ValidationError.single(
                "category",
                "children",
                f"Category '{target.name}' still has {len(children)} subcategories",
            )

        if self._delete_policy == "cascade":
            doomed = await self._subtree_ids(target)
        else:
            for child in children:
                await self._merge(
                    user,
                    child.id,
                    {"parent_id": target.parent_id},
                    correlation_id,
                )
            doomed = [category_id]

        removed = []
        for doc_id in doomed:
            if await self._remove(user, doc_id, correlation_id):
                removed.append(doc_id)
        return removed

    async def _subtree_ids(self, root: Category) -> list[str]:
        """Ids of `root` and all its descendants, deepest first."""
        categories = await self._query_owned(root.owner_id)
        by_parent: dict[Optional[str], list[str]] = {}
        for category in categories:
            by_parent.setdefault(category.parent_id, []).append(category.id)

        ordered = []
        visited = set()
        stack = [root.id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            ordered.append(current)
            stack.extend(by_parent.get(current, []))

        return list(reversed(ordered))
