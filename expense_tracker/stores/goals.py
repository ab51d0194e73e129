"""
Goal Store

Savings goals and the contribution operation.

DESIGN DECISION: Status is derived from the amounts in exactly one place,
add_contribution(). A plain update writes what it is given and never
re-derives status, so a user can pause a goal or correct an amount
without the store second-guessing them.
"""

from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from pydantic import ValidationError as SchemaError

from expense_tracker.models.finance import (
    Goal,
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    UserIdentity,
)
from expense_tracker.services.storage.interface import GOALS, NotFoundError, Unsubscribe
from expense_tracker.stores.base import BaseStore
from expense_tracker.validation import ValidationError


CENT = Decimal("0.01")


def _created_at(goal: Goal):
    return goal.created_at


class GoalStore(BaseStore[Goal]):
    collection = GOALS
    entity_type = "goal"
    record_type = Goal

    async def create(
        self,
        user: Optional[UserIdentity],
        data: GoalCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """
        Create a goal.

        Raises:
            AuthenticationError: No signed-in user
            ValidationError: Blank title or target amount <= 0
        """
        user = await self._authenticate(user, "create", correlation_id)
        await self._enforce(
            self._validator.validate_goal(data),
            user.uid,
            correlation_id,
        )

        now = self._clock()
        goal = await self._insert(
            Goal(
                owner_id=user.uid,
                title=data.title,
                description=data.description,
                target_amount=data.target_amount,
                current_amount=data.current_amount,
                category=data.category,
                priority=data.priority,
                status=data.status,
                target_date=data.target_date,
                created_at=now,
                updated_at=now,
            ),
            correlation_id,
        )
        await self._audit.log_entity_created(
            entity_type=self.entity_type,
            entity_id=goal.id,
            owner_id=user.uid,
            label=goal.title,
            correlation_id=correlation_id,
        )
        return goal

    async def get(self, user: UserIdentity, goal_id: str) -> Optional[Goal]:
        return await self._get_owned(user, goal_id)

    async def update(
        self,
        user: Optional[UserIdentity],
        goal_id: str,
        changes: GoalUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """Merge the given fields and refresh updated_at. Status is left alone."""
        user = await self._authenticate(user, "update", correlation_id)
        if changes.is_empty():
            raise ValidationError.single("goal", "changes", "Nothing to update")

        fields = changes.changes()
        fields["updated_at"] = self._clock().isoformat()
        return await self._merge(user, goal_id, fields, correlation_id)

    async def delete(
        self,
        user: Optional[UserIdentity],
        goal_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        user = await self._authenticate(user, "delete", correlation_id)
        return await self._remove(user, goal_id, correlation_id)

    async def add_contribution(
        self,
        user: Optional[UserIdentity],
        goal_id: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """
        Add money to a goal.

        The goal becomes COMPLETED once current_amount reaches the target,
        and ACTIVE otherwise.

        Raises:
            AuthenticationError: No signed-in user
            ValidationError: amount <= 0 or finer than a cent
            NotFoundError: Unknown goal
        """
        user = await self._authenticate(user, "contribution", correlation_id)
        amount = Decimal(str(amount))
        await self._enforce(
            self._validator.validate_contribution(amount),
            user.uid,
            correlation_id,
        )

        goal = await self._get_owned(user, goal_id)
        if goal is None:
            raise NotFoundError(f"Goal not found: {goal_id}")

        new_amount = (goal.current_amount + amount).quantize(CENT)
        status = (
            GoalStatus.COMPLETED
            if new_amount >= goal.target_amount
            else GoalStatus.ACTIVE
        )

        # The new state must load back as a Goal before it is written
        try:
            updated = Goal.model_validate({
                **goal.model_dump(),
                "current_amount": new_amount,
                "status": status,
                "updated_at": self._clock(),
            })
        except SchemaError as e:
            raise ValidationError.single("contribution", "amount", str(e)) from e

        document = await self._call(
            "contribution",
            self._storage.update(self.collection, goal_id, {
                "current_amount": str(updated.current_amount),
                "status": updated.status.value,
                "updated_at": updated.updated_at.isoformat(),
            }),
            owner_id=user.uid,
            correlation_id=correlation_id,
        )
        await self._audit.log_goal_contribution(
            goal_id=goal_id,
            owner_id=user.uid,
            amount=str(amount),
            new_amount=str(new_amount),
            status=status.value,
            correlation_id=correlation_id,
        )
        return self._to_record(document)

    async def subscribe(
        self,
        owner_id: str,
        callback: Callable[[list[Goal]], None],
    ) -> Unsubscribe:
        """Push the owner's goals, newest first, on every change."""
        return await self._subscribe_owned(owner_id, callback, _created_at)

    async def list(self, user: UserIdentity) -> list[Goal]:
        """The user's goals, most recently created first."""
        goals = await self._query_owned(user.uid)
        return sorted(goals, key=_created_at, reverse=True)
