from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.services.group_services import create_group, delete_group, list_groups, add_member, list_members, remove_member
from app.services.settlement_service import compute_group_balances
from app.schemas.group import GroupCreate, GroupOut, MemberCreate, GroupMemberOut
from app.schemas.settlements import GroupBalanceOut

router = APIRouter()

@router.post("/", response_model=GroupOut, status_code=201)
async def create_new_group(data: GroupCreate, db: AsyncSession = Depends(get_db)):
    return await create_group(db, data.name)

@router.get("/", response_model=list[GroupOut])
async def all_groups(db: AsyncSession = Depends(get_db)):
    return await list_groups(db)

@router.delete("/{group_id}")
async def remove_group(group_id: int, db: AsyncSession = Depends(get_db)):
    return await delete_group(db, group_id)

@router.post("/{group_id}/members", response_model=GroupMemberOut, status_code=201)
async def add_group_member(group_id: int, data: MemberCreate, db: AsyncSession = Depends(get_db)):
    return await add_member(db, group_id, data)

@router.get("/{group_id}/members", response_model=list[GroupMemberOut])
async def group_members(group_id: int, db: AsyncSession = Depends(get_db)):
    return await list_members(db, group_id)

@router.delete("/{group_id}/members/{member_id}")
async def remove_group_member(group_id: int, member_id: int, db: AsyncSession = Depends(get_db)):
    return await remove_member(db, group_id, member_id)

@router.get("/{group_id}/settlements", response_model=GroupBalanceOut)
async def group_settlements(group_id: int, db: AsyncSession = Depends(get_db)):
    return await compute_group_balances(db, group_id)
