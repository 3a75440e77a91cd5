import logging
from typing import Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from billsplit.core.config import settings
from billsplit.models.balance import PaymentTotals, UserBalance
from billsplit.models.bill import Bill
from billsplit.models.friend import Friend
from billsplit.repositories.bill_repo import BillRepository
from billsplit.repositories.friend_repo import FriendRepository
from billsplit.services.share_calculator import compute_share, is_completed

logger = logging.getLogger(__name__)


def compute_balances(
    bills: Iterable[Bill],
    friends: Iterable[Friend],
    user_id: Optional[str]
) -> Dict[str, UserBalance]:
    """
    Fold outstanding bills into one balance entry per counterparty.

    Algorithm per bill:
    1. Skip completed bills and bills the user has no stake in
    2. User paid: each other unpaid participant owes the user their share
    3. Someone else paid: the user owes the payer their own share, unless
       the user is already marked paid (pending still counts as owed)
    4. net_balance = owes - owed for every entry

    Counterparties with nothing outstanding get no entry at all.
    """
    if not user_id:
        return {}

    names = {friend.id: friend.name for friend in friends}
    balances: Dict[str, UserBalance] = {}

    for bill in bills:
        if is_completed(bill):
            continue
        if user_id not in bill.split_among:
            continue

        if bill.paid_by == user_id:
            for person_id in bill.split_among:
                if person_id == user_id or bill.is_paid(person_id):
                    continue
                entry = balances.get(person_id)
                if entry is None:
                    entry = balances[person_id] = UserBalance(
                        friend_id=person_id,
                        friend_name=names.get(person_id, settings.UNKNOWN_FRIEND_NAME)
                    )
                entry.owes += compute_share(bill, person_id)
        else:
            entry = balances.get(bill.paid_by)
            if entry is None:
                entry = balances[bill.paid_by] = UserBalance(
                    friend_id=bill.paid_by,
                    friend_name=bill.paid_by_name or settings.UNKNOWN_PAYER_NAME
                )
            if not bill.is_paid(user_id):
                entry.owed += compute_share(bill, user_id)

    for entry in balances.values():
        entry.net_balance = entry.owes - entry.owed

    return balances


def compute_payment_totals(bills: Iterable[Bill], user_id: Optional[str]) -> PaymentTotals:
    """
    Sum the user's own share across every bill they take part in.

    Pending shares are unconfirmed, so they count as both pending and unpaid.
    """
    totals = PaymentTotals()
    if not user_id:
        return totals

    for bill in bills:
        if user_id not in bill.split_among:
            continue
        amount = compute_share(bill, user_id)
        if bill.is_paid(user_id):
            totals.total_paid += amount
        elif bill.is_pending(user_id):
            totals.total_pending += amount
            totals.total_unpaid += amount
        else:
            totals.total_unpaid += amount

    return totals


class BalanceService:
    @staticmethod
    async def get_balances(db: AsyncIOMotorDatabase, user_id: str) -> List[UserBalance]:
        """Current balances between the user and each counterparty, largest first."""
        bills = await BillRepository(db).list_bills_for_user(user_id)
        friends = await FriendRepository(db).list_friends(user_id)

        balances = compute_balances(bills, friends, user_id)
        logger.debug(
            "Computed %d balance entries from %d bills for user %s",
            len(balances), len(bills), user_id
        )
        return sorted(
            balances.values(),
            key=lambda b: abs(b.net_balance),
            reverse=True
        )

    @staticmethod
    async def get_payment_totals(db: AsyncIOMotorDatabase, user_id: str) -> PaymentTotals:
        bills = await BillRepository(db).list_bills_for_user(user_id)
        return compute_payment_totals(bills, user_id)
