import logging
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy import or_
from app.models.expense import Expense, ExpenseParticipant
from app.models.group import Group
from app.models.group_member import GroupMember
from app.schemas.group import MemberCreate

logger = logging.getLogger(__name__)

async def create_group(db: AsyncSession, name: str):
    group = Group(name=name.strip())
    db.add(group)
    await db.commit()
    await db.refresh(group)

    logger.info("Created group %s (%r)", group.id, group.name)
    return group

async def list_groups(db: AsyncSession):
    q = (
        select(Group)
        .where(Group.is_deleted == False)
        .order_by(Group.id)
    )
    result = await db.execute(q)
    return result.scalars().all()

async def get_group_or_404(db: AsyncSession, group_id: int):
    q = select(Group).where(Group.id == group_id, Group.is_deleted == False)
    res = await db.execute(q)
    group = res.scalar_one_or_none()

    if not group:
        raise HTTPException(404, "Group does not exist")

    return group

async def delete_group(db: AsyncSession, group_id: int):
    group = await get_group_or_404(db, group_id)
    group.is_deleted = True
    await db.commit()

    logger.info("Deleted group %s", group_id)
    return {"status": "deleted"}

async def add_member(db: AsyncSession, group_id: int, data: MemberCreate):
    await get_group_or_404(db, group_id)

    member = GroupMember(group_id=group_id, name=data.name.strip(), email=data.email)
    db.add(member)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(409, "A member with this email already exists in the group")

    await db.refresh(member)
    return member

async def list_members(db: AsyncSession, group_id: int):
    await get_group_or_404(db, group_id)

    q = (
        select(GroupMember)
        .where(GroupMember.group_id == group_id, GroupMember.is_deleted == False)
        .order_by(GroupMember.id)
    )
    result = await db.execute(q)
    return result.scalars().all()

async def remove_member(db: AsyncSession, group_id: int, member_id: int):
    await get_group_or_404(db, group_id)

    q = select(GroupMember).where(
        GroupMember.id == member_id,
        GroupMember.group_id == group_id,
        GroupMember.is_deleted == False
    )
    res = await db.execute(q)
    member = res.scalar_one_or_none()

    if not member:
        raise HTTPException(404, "Member not found")

    # a member still on a live expense would vanish from its balance
    q_used = (
        select(Expense.id)
        .outerjoin(ExpenseParticipant, ExpenseParticipant.expense_id == Expense.id)
        .where(
            Expense.group_id == group_id,
            Expense.is_deleted == False,
            or_(Expense.paid_by == member_id, ExpenseParticipant.member_id == member_id)
        )
        .limit(1)
    )
    if (await db.execute(q_used)).first():
        logger.warning("Refused to remove member %s from group %s: has expenses", member_id, group_id)
        raise HTTPException(409, "Member is part of existing expenses")

    member.is_deleted = True
    await db.commit()

    logger.info("Removed member %s from group %s", member_id, group_id)
    return {"status": "removed"}
