"""Contact Store: people and businesses money moves to or from."""

from typing import Optional
from uuid import UUID

from expense_tracker.models.finance import (
    Contact,
    ContactCreate,
    ContactUpdate,
    UserIdentity,
)
from expense_tracker.services.storage.interface import CONTACTS
from expense_tracker.stores.base import BaseStore
from expense_tracker.validation import ValidationError


def _by_name(contact: Contact):
    return contact.name.casefold()


class ContactStore(BaseStore[Contact]):
    collection = CONTACTS
    entity_type = "contact"
    record_type = Contact

    async def create(
        self,
        user: Optional[UserIdentity],
        data: ContactCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Contact:
        """
        Add a contact.

        Raises:
            AuthenticationError: No signed-in user
            ValidationError: Missing name or category
        """
        user = await self._authenticate(user, "create", correlation_id)
        await self._enforce(
            self._validator.validate_contact(data),
            user.uid,
            correlation_id,
        )

        contact = await self._insert(
            Contact(
                owner_id=user.uid,
                name=data.name,
                category_id=data.category_id,
                phone=data.phone,
                email=data.email,
                address=data.address,
                priority=data.priority,
                created_at=self._clock(),
            ),
            correlation_id,
        )
        await self._audit.log_entity_created(
            entity_type=self.entity_type,
            entity_id=contact.id,
            owner_id=user.uid,
            label=contact.name,
            correlation_id=correlation_id,
        )
        return contact

    async def get(self, user: UserIdentity, contact_id: str) -> Optional[Contact]:
        return await self._get_owned(user, contact_id)

    async def list_by_category(self, user: UserIdentity, category_id: str) -> list[Contact]:
        contacts = await self._query_owned(user.uid, category_id=category_id)
        return sorted(contacts, key=_by_name)

    async def update(
        self,
        user: Optional[UserIdentity],
        contact_id: str,
        changes: ContactUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Contact:
        user = await self._authenticate(user, "update", correlation_id)
        if changes.is_empty():
            raise ValidationError.single("contact", "changes", "Nothing to update")
        return await self._merge(user, contact_id, changes.changes(), correlation_id)

    async def delete(
        self,
        user: Optional[UserIdentity],
        contact_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        user = await self._authenticate(user, "delete", correlation_id)
        return await self._remove(user, contact_id, correlation_id)

    async def list(self, user: UserIdentity) -> list[Contact]:
        """The user's contacts in name order."""
        contacts = await self._query_owned(user.uid)
        return sorted(contacts, key=_by_name)
