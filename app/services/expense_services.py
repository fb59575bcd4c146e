import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import HTTPException
from app.models.expense import Expense, ExpenseParticipant
from app.models.group_member import GroupMember
from app.schemas.expense import ExpenseCreate, ExpenseOut
from app.services.group_services import get_group_or_404

logger = logging.getLogger(__name__)


def _to_out(expense: Expense, payer_name: str | None = None) -> ExpenseOut:
    return ExpenseOut(
        id=expense.id,
        group_id=expense.group_id,
        description=expense.description,
        amount=expense.amount,
        paid_by=expense.paid_by,
        payer_name=payer_name,
        participant_ids=sorted(p.member_id for p in expense.participants),
        transaction_date=expense.transaction_date,
        created_at=expense.created_at,
    )


async def create_expense(db: AsyncSession, group_id: int, data: ExpenseCreate):
    await get_group_or_404(db, group_id)

    # -----------------------------------
    # 1. Payer and participants must belong to the group
    # -----------------------------------
    member_ids = set(data.participant_ids) | {data.paid_by}

    members_q = select(GroupMember.id, GroupMember.name).where(
        GroupMember.group_id == group_id,
        GroupMember.is_deleted == False,
        GroupMember.id.in_(member_ids)
    )
    members_res = await db.execute(members_q)
    names = {row.id: row.name for row in members_res.all()}

    if data.paid_by not in names:
        logger.warning("Rejected expense in group %s: payer %s not a member", group_id, data.paid_by)
        raise HTTPException(400, "Payer is not a member of the group")

    if not set(data.participant_ids) <= set(names):
        logger.warning("Rejected expense in group %s: unknown participants", group_id)
        raise HTTPException(
            400,
            "One or more participants are not members of the group"
        )

    # -----------------------------------
    # 2. Create expense with its participant set
    # -----------------------------------
    expense = Expense(
        group_id=group_id,
        description=data.description.strip(),
        amount=data.amount,
        paid_by=data.paid_by,
        transaction_date=data.transaction_date,
        participants=[
            ExpenseParticipant(member_id=mid) for mid in data.participant_ids
        ],
    )

    db.add(expense)
    await db.commit()
    await db.refresh(expense)

    logger.info(
        "Added expense %s (%s) to group %s, %d participants",
        expense.id, expense.amount, group_id, len(data.participant_ids)
    )
    return _to_out(expense, names[data.paid_by])


async def get_active_expenses(db: AsyncSession, group_id: int):
    q = (
        select(Expense)
        .where(
            Expense.group_id == group_id,
            Expense.is_deleted == False,
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    res = await db.execute(q)
    return res.scalars().all()


async def list_expenses(db: AsyncSession, group_id: int):
    await get_group_or_404(db, group_id)

    expenses = await get_active_expenses(db, group_id)

    names_q = select(GroupMember.id, GroupMember.name).where(GroupMember.group_id == group_id)
    names = {row.id: row.name for row in (await db.execute(names_q)).all()}

    return [_to_out(exp, names.get(exp.paid_by)) for exp in expenses]


async def delete_expense(db: AsyncSession, group_id: int, expense_id: int):
    await get_group_or_404(db, group_id)

    q = select(Expense).where(
        Expense.id == expense_id,
        Expense.group_id == group_id,
        Expense.is_deleted == False
    )
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise HTTPException(404, "Expense not found")

    expense.is_deleted = True
    await db.commit()

    logger.info("Deleted expense %s from group %s", expense_id, group_id)
    return {"status": "deleted"}
