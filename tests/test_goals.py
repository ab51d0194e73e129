"""Tests for the goal store and contributions."""

from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.auth import AuthenticationError
from expense_tracker.models.finance import GoalCreate, GoalStatus, GoalUpdate
from expense_tracker.services.storage import NotFoundError
from expense_tracker.validation import ValidationError


def new_goal(title="Vacation", target="100.00", current="0", **extra):
    return GoalCreate(
        title=title,
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        target_date=date(2027, 6, 1),
        **extra,
    )


class TestGoalCreate:

    @pytest.mark.asyncio
    async def test_create(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        assert goal.id
        assert goal.status == GoalStatus.ACTIVE
        assert goal.created_at == goal.updated_at

    @pytest.mark.asyncio
    async def test_requires_user(self, goals):
        with pytest.raises(AuthenticationError):
            await goals.create(None, new_goal())

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, goals, alice):
        with pytest.raises(ValidationError):
            await goals.create(alice, new_goal(title=""))

    @pytest.mark.parametrize("target", ["0", "-5"])
    @pytest.mark.asyncio
    async def test_non_positive_target_rejected(self, goals, alice, target):
        with pytest.raises(ValidationError) as exc_info:
            await goals.create(alice, new_goal(target=target))
        assert exc_info.value.issues[0].field == "target_amount"


class TestContribution:

    @pytest.mark.asyncio
    async def test_partial_contribution_stays_active(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        updated = await goals.add_contribution(alice, goal.id, Decimal("40"))
        assert updated.current_amount == Decimal("40")
        assert updated.status == GoalStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_reaching_target_completes(self, goals, alice):
        goal = await goals.create(alice, new_goal(current="60"))
        updated = await goals.add_contribution(alice, goal.id, Decimal("40"))
        assert updated.current_amount == Decimal("100")
        assert updated.status == GoalStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_overshooting_target_completes(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        updated = await goals.add_contribution(alice, goal.id, Decimal("150"))
        assert updated.status == GoalStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_contribution_reactivates_paused_goal(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        await goals.update(alice, goal.id, GoalUpdate(status=GoalStatus.PAUSED))
        updated = await goals.add_contribution(alice, goal.id, Decimal("10"))
        assert updated.status == GoalStatus.ACTIVE

    @pytest.mark.parametrize("amount", ["0", "-1"])
    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, goals, alice, amount):
        goal = await goals.create(alice, new_goal())
        with pytest.raises(ValidationError):
            await goals.add_contribution(alice, goal.id, Decimal(amount))

    @pytest.mark.asyncio
    async def test_sub_cent_amount_rejected_and_goal_untouched(self, goals, alice):
        goal = await goals.create(alice, new_goal(current="10"))
        with pytest.raises(ValidationError) as exc_info:
            await goals.add_contribution(alice, goal.id, Decimal("0.005"))
        assert exc_info.value.issues[0].field == "amount"

        stored = await goals.get(alice, goal.id)
        assert stored.current_amount == Decimal("10")
        assert stored.updated_at == goal.updated_at
        assert [g.id for g in await goals.list(alice)] == [goal.id]

    @pytest.mark.asyncio
    async def test_trailing_zeros_are_whole_cents(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        updated = await goals.add_contribution(alice, goal.id, Decimal("12.500"))
        assert updated.current_amount == Decimal("12.50")
        assert [g.id for g in await goals.list(alice)] == [goal.id]

    @pytest.mark.asyncio
    async def test_unknown_goal(self, goals, alice):
        with pytest.raises(NotFoundError):
            await goals.add_contribution(alice, "missing", Decimal("10"))

    @pytest.mark.asyncio
    async def test_other_users_goal_is_not_found(self, goals, alice, bob):
        goal = await goals.create(bob, new_goal())
        with pytest.raises(NotFoundError):
            await goals.add_contribution(alice, goal.id, Decimal("10"))


class TestGoalUpdate:

    @pytest.mark.asyncio
    async def test_plain_update_never_completes(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        updated = await goals.update(alice, goal.id, GoalUpdate(current_amount=Decimal("100")))
        assert updated.current_amount == Decimal("100")
        assert updated.status == GoalStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_update_refreshes_updated_at(self, goals, storage, alice):
        goal = await goals.create(alice, new_goal())
        await storage.update("goals", goal.id, {"updated_at": "2026-01-01T00:00:00"})

        updated = await goals.update(alice, goal.id, GoalUpdate(title="Trip"))
        assert updated.title == "Trip"
        assert updated.updated_at == goal.created_at

    @pytest.mark.asyncio
    async def test_list_newest_first(self, goals, storage, alice):
        older = await goals.create(alice, new_goal(title="Older"))
        await storage.update("goals", older.id, {"created_at": "2026-01-01T00:00:00"})
        newer = await goals.create(alice, new_goal(title="Newer"))

        assert [g.id for g in await goals.list(alice)] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_delete(self, goals, alice):
        goal = await goals.create(alice, new_goal())
        assert await goals.delete(alice, goal.id)
        assert await goals.get(alice, goal.id) is None

    @pytest.mark.asyncio
    async def test_subscribe(self, goals, alice):
        snapshots = []
        await goals.subscribe("alice", snapshots.append)
        goal = await goals.create(alice, new_goal())
        await goals.add_contribution(alice, goal.id, Decimal("100"))

        assert snapshots[0] == []
        assert snapshots[-1][0].status == GoalStatus.COMPLETED
