"""
Service layer tests: expense store, member directory and group balances.
"""
from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.schemas.expense import ExpenseCreate
from app.schemas.group import MemberCreate
from app.services.expense_services import create_expense, delete_expense, list_expenses
from app.services.group_services import (
    add_member,
    create_group,
    delete_group,
    get_group_or_404,
    list_groups,
    list_members,
    remove_member,
)
from app.services.settlement_service import compute_group_balances, load_group_snapshot


@pytest.fixture
async def trip(db):
    """A group with three members."""
    group = await create_group(db, "Lisbon trip")
    alice = await add_member(db, group.id, MemberCreate(name="Alice", email="alice@example.com"))
    bob = await add_member(db, group.id, MemberCreate(name="Bob"))
    carol = await add_member(db, group.id, MemberCreate(name="Carol"))
    return group, alice, bob, carol


class TestGroupServices:
    async def test_create_and_list(self, db):
        group = await create_group(db, "  Flat 4B ")

        assert group.id is not None
        assert group.name == "Flat 4B"
        assert [g.id for g in await list_groups(db)] == [group.id]

    async def test_deleted_group_is_hidden(self, db):
        group = await create_group(db, "Old group")
        await delete_group(db, group.id)

        assert await list_groups(db) == []
        with pytest.raises(HTTPException) as exc_info:
            await get_group_or_404(db, group.id)
        assert exc_info.value.status_code == 404

    async def test_members_listed_in_join_order(self, db, trip):
        group, alice, bob, carol = trip
        members = await list_members(db, group.id)

        assert [m.name for m in members] == ["Alice", "Bob", "Carol"]

    async def test_duplicate_member_email(self, db, trip):
        group = trip[0]
        with pytest.raises(HTTPException) as exc_info:
            await add_member(db, group.id, MemberCreate(name="Alice 2", email="alice@example.com"))
        assert exc_info.value.status_code == 409

    async def test_add_member_to_missing_group(self, db):
        with pytest.raises(HTTPException) as exc_info:
            await add_member(db, 999, MemberCreate(name="Ghost"))
        assert exc_info.value.status_code == 404

    async def test_remove_member(self, db, trip):
        group, alice, bob, carol = trip

        assert await remove_member(db, group.id, bob.id) == {"status": "removed"}
        assert [m.name for m in await list_members(db, group.id)] == ["Alice", "Carol"]

        with pytest.raises(HTTPException) as exc_info:
            await remove_member(db, group.id, bob.id)
        assert exc_info.value.status_code == 404

    async def test_remove_unknown_member(self, db, trip):
        with pytest.raises(HTTPException) as exc_info:
            await remove_member(db, trip[0].id, 4242)
        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize("role", ["payer", "participant"])
    async def test_cannot_remove_member_on_live_expense(self, db, trip, role):
        group, alice, bob, carol = trip
        payer, participant = (bob, alice) if role == "payer" else (alice, bob)
        out = await create_expense(db, group.id, ExpenseCreate(
            description="Tickets", amount=Decimal("12"), paid_by=payer.id,
            participant_ids=[participant.id],
        ))

        with pytest.raises(HTTPException) as exc_info:
            await remove_member(db, group.id, bob.id)
        assert exc_info.value.status_code == 409

        await delete_expense(db, group.id, out.id)
        assert await remove_member(db, group.id, bob.id) == {"status": "removed"}


class TestExpenseServices:
    async def test_create_expense(self, db, trip):
        group, alice, bob, carol = trip
        data = ExpenseCreate(
            description="Dinner",
            amount=Decimal("90.00"),
            paid_by=alice.id,
            participant_ids=[alice.id, bob.id, carol.id, bob.id],
        )

        out = await create_expense(db, group.id, data)

        assert out.amount == Decimal("90.00")
        assert out.payer_name == "Alice"
        assert out.participant_ids == sorted([alice.id, bob.id, carol.id])

    async def test_payer_must_be_member(self, db, trip):
        group, alice, bob, carol = trip
        other = await create_group(db, "Other")
        stranger = await add_member(db, other.id, MemberCreate(name="Stranger"))

        data = ExpenseCreate(
            description="Taxi", amount=Decimal("20"), paid_by=stranger.id, participant_ids=[alice.id]
        )
        with pytest.raises(HTTPException) as exc_info:
            await create_expense(db, group.id, data)
        assert exc_info.value.status_code == 400

    async def test_participants_must_be_members(self, db, trip):
        group, alice, bob, carol = trip
        data = ExpenseCreate(
            description="Taxi", amount=Decimal("20"), paid_by=alice.id, participant_ids=[alice.id, 12345]
        )
        with pytest.raises(HTTPException) as exc_info:
            await create_expense(db, group.id, data)
        assert exc_info.value.status_code == 400

    async def test_delete_expense(self, db, trip):
        group, alice, bob, carol = trip
        data = ExpenseCreate(
            description="Museum", amount=Decimal("30"), paid_by=bob.id, participant_ids=[alice.id, bob.id]
        )
        out = await create_expense(db, group.id, data)

        assert await delete_expense(db, group.id, out.id) == {"status": "deleted"}
        assert await list_expenses(db, group.id) == []

        with pytest.raises(HTTPException) as exc_info:
            await delete_expense(db, group.id, out.id)
        assert exc_info.value.status_code == 404

    async def test_delete_expense_in_deleted_group(self, db, trip):
        group, alice, bob, carol = trip
        out = await create_expense(db, group.id, ExpenseCreate(
            description="Bus", amount=Decimal("8"), paid_by=alice.id, participant_ids=[bob.id]
        ))
        await delete_group(db, group.id)

        with pytest.raises(HTTPException) as exc_info:
            await delete_expense(db, group.id, out.id)
        assert exc_info.value.status_code == 404


class TestGroupBalances:
    async def test_snapshot_uses_string_ids(self, db, trip):
        group, alice, bob, carol = trip
        await create_expense(db, group.id, ExpenseCreate(
            description="Groceries", amount=Decimal("45"), paid_by=carol.id,
            participant_ids=[alice.id, carol.id],
        ))

        users, expenses = await load_group_snapshot(db, group.id)

        assert [u.id for u in users] == [str(alice.id), str(bob.id), str(carol.id)]
        assert expenses[0].payer_id == str(carol.id)
        assert set(expenses[0].participant_ids) == {str(alice.id), str(carol.id)}

    async def test_group_settlements(self, db, trip):
        group, alice, bob, carol = trip
        await create_expense(db, group.id, ExpenseCreate(
            description="Hotel", amount=Decimal("30"), paid_by=alice.id,
            participant_ids=[alice.id, bob.id, carol.id],
        ))
        await create_expense(db, group.id, ExpenseCreate(
            description="Boat", amount=Decimal("30"), paid_by=bob.id,
            participant_ids=[alice.id, bob.id, carol.id],
        ))

        out = await compute_group_balances(db, group.id)

        assert {n.name: n.amount for n in out.net} == {
            "Alice": Decimal("10.00"),
            "Bob": Decimal("10.00"),
            "Carol": Decimal("-20.00"),
        }
        assert [(s.from_name, s.to_name, s.amount) for s in out.settlements] == [
            ("Carol", "Alice", Decimal("10.00")),
            ("Carol", "Bob", Decimal("10.00")),
        ]
        assert out.is_settled is False

    async def test_deleted_expenses_are_ignored(self, db, trip):
        group, alice, bob, carol = trip
        out = await create_expense(db, group.id, ExpenseCreate(
            description="Mistake", amount=Decimal("99"), paid_by=alice.id,
            participant_ids=[bob.id],
        ))
        await delete_expense(db, group.id, out.id)

        balances = await compute_group_balances(db, group.id)

        assert balances.settlements == []
        assert balances.is_settled is True
