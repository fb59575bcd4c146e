from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.schemas.expense import ExpenseCreate, ExpenseOut
from app.services.expense_services import create_expense, delete_expense, list_expenses

router = APIRouter()

@router.post("/{group_id}/expenses", response_model=ExpenseOut, status_code=201)
async def add_expense(group_id: int, data: ExpenseCreate, db: AsyncSession = Depends(get_db)):
    return await create_expense(db, group_id, data)

@router.get("/{group_id}/expenses", response_model=list[ExpenseOut])
async def all_expenses(group_id: int, db: AsyncSession = Depends(get_db)):
    return await list_expenses(db, group_id)

@router.delete("/{group_id}/expenses/{expense_id}")
async def del_expense(group_id: int, expense_id: int, db: AsyncSession = Depends(get_db)):
    return await delete_expense(db, group_id, expense_id)
