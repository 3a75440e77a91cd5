from fastapi import APIRouter
from billsplit.api.v1.endpoints import bills, balances, friends

api_router = APIRouter()

api_router.include_router(bills.router, prefix="/bills", tags=["bills"])
api_router.include_router(balances.router, prefix="/balances", tags=["balances"])
api_router.include_router(friends.router, prefix="/friends", tags=["friends"])
