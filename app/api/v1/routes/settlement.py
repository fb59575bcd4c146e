from fastapi import APIRouter
from app.schemas.settlements import Settlement, SettlementRequest
from app.services.settlement_service import compute_settlements_for_payload

router = APIRouter()


@router.post("/compute", response_model=list[Settlement])
async def compute(data: SettlementRequest):
    return compute_settlements_for_payload(data)
