import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.core.config import settings
from app.core.settlement import compute_net_balances, compute_settlements, is_settled
from app.models.group_member import GroupMember
from app.schemas.settlements import (
    Expense,
    GroupBalanceOut,
    NetBalance,
    SettlementRequest,
    User,
)
from app.services.expense_services import get_active_expenses
from app.services.group_services import get_group_or_404

logger = logging.getLogger(__name__)


def compute_settlements_for_payload(data: SettlementRequest):
    return compute_settlements(
        data.users,
        data.expenses,
        epsilon=settings.SETTLEMENT_EPSILON
    )


async def load_group_snapshot(db: AsyncSession, group_id: int):
    """
    Members and live expenses of a group as engine records.
    Stored integer ids become the engine's string ids.
    """
    await get_group_or_404(db, group_id)

    q = (
        select(GroupMember)
        .where(GroupMember.group_id == group_id, GroupMember.is_deleted == False)
        .order_by(GroupMember.id)
    )
    members = (await db.execute(q)).scalars().all()

    users = [User(id=str(m.id), name=m.name) for m in members]

    expenses = [
        Expense(
            id=str(exp.id),
            description=exp.description,
            amount=exp.amount,
            payer_id=str(exp.paid_by),
            participant_ids=[str(p.member_id) for p in exp.participants],
        )
        for exp in await get_active_expenses(db, group_id)
        if exp.participants
    ]

    return users, expenses


async def compute_group_balances(db: AsyncSession, group_id: int) -> GroupBalanceOut:
    users, expenses = await load_group_snapshot(db, group_id)

    net = compute_net_balances(users, expenses)
    settlements = compute_settlements(users, expenses, epsilon=settings.SETTLEMENT_EPSILON)

    logger.info(
        "Group %s: %d members, %d expenses, %d settlements",
        group_id, len(users), len(expenses), len(settlements)
    )

    return GroupBalanceOut(
        group_id=group_id,
        net=[NetBalance(user_id=u.id, name=u.name, amount=net[u.id]) for u in users],
        settlements=settlements,
        is_settled=is_settled(net, settings.SETTLEMENT_EPSILON),
    )
