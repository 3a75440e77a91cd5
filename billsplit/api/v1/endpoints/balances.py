from typing import List
from fastapi import APIRouter, Depends

from billsplit.core.auth import get_current_user
from billsplit.db.mongo import get_db
from billsplit.models.balance import PaymentTotals, UserBalance
from billsplit.models.user import UserResponse
from billsplit.services.balance_service import BalanceService

router = APIRouter()

@router.get("", response_model=List[UserBalance])
async def get_my_balances(
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Net balance with every friend across outstanding bills"""
    return await BalanceService.get_balances(db, current_user.id)

@router.get("/totals", response_model=PaymentTotals)
async def get_my_totals(
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Unpaid, pending and paid totals of the user's own shares"""
    return await BalanceService.get_payment_totals(db, current_user.id)
