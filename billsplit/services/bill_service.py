import logging
from typing import Callable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from billsplit.core.config import settings
from billsplit.core.errors import (
    BillNotFoundError,
    BillValidationError,
    ForbiddenError,
    UnauthenticatedError,
)
from billsplit.models.balance import ParticipantShare
from billsplit.models.bill import Bill, BillItem, SplitType
from billsplit.repositories.bill_repo import BillRepository
from billsplit.repositories.friend_repo import FriendRepository
from billsplit.repositories.user_repo import UserRepository
from billsplit.schemas.bill import BillCreate, BillUpdate
from billsplit.services import status_transitions
from billsplit.services.share_calculator import (
    compute_shares,
    itemized_total,
    itemized_amounts_from_items,
    percentage_of,
    safe_number,
)
from billsplit.services.status_transitions import StatusMaps
from billsplit.utils.bill_validation import validate_bill

logger = logging.getLogger(__name__)

Transition = Callable[[Bill, str, str], StatusMaps]


class BillService:
    @staticmethod
    async def _resolve_payer_name(db: AsyncIOMotorDatabase, paid_by: str, actor_id: str) -> str:
        """Display name for the payer; lookup failures degrade to a placeholder."""
        try:
            user = await UserRepository(db).get_user_by_id(paid_by)
            if user and user.name:
                return user.name
            friend = await FriendRepository(db).get_friend(actor_id, paid_by)
            if friend and friend.name:
                return friend.name
        except PyMongoError:
            logger.warning("Could not look up name for payer %s", paid_by, exc_info=True)
        return settings.UNKNOWN_PAYER_NAME

    @staticmethod
    def build_bill(bill_in: BillCreate, paid_by_name: str) -> Bill:
        """
        Materialize a new bill from validated input.

        - amount is stored as a number whatever form it arrived in
        - custom split: itemized_amounts are derived from items when given,
          absolute tax/tips are turned into percentages of the itemized total
          and the amount becomes items + tax + tips
        - equal split: absolute tax/tips are added to the amount to divide
        - only the payer starts out paid, nobody starts out pending
        """
        split_among = list(bill_in.split_among)
        amount = safe_number(bill_in.amount)
        tax_percentage = safe_number(bill_in.tax_percentage)
        tips_percentage = safe_number(bill_in.tips_percentage)
        items: List[BillItem] = []
        itemized_amounts = {}

        if bill_in.split_type == SplitType.CUSTOM:
            items = [
                BillItem(**item.model_dump(exclude_none=True))
                for item in bill_in.items
            ]
            if items:
                itemized_amounts = itemized_amounts_from_items(items, split_among)
            else:
                itemized_amounts = {
                    participant_id: safe_number(bill_in.itemized_amounts.get(participant_id))
                    for participant_id in split_among
                }

            items_total = sum(itemized_amounts.values())
            if bill_in.tax_amount is not None:
                tax_percentage = percentage_of(bill_in.tax_amount, items_total)
            if bill_in.tips_amount is not None:
                tips_percentage = percentage_of(bill_in.tips_amount, items_total)
            amount = items_total * (1 + (tax_percentage + tips_percentage) / 100)
        else:
            amount += safe_number(bill_in.tax_amount) + safe_number(bill_in.tips_amount)

        return Bill(
            description=bill_in.description,
            amount=amount,
            paid_by=bill_in.paid_by,
            paid_by_name=paid_by_name,
            split_among=split_among,
            split_type=bill_in.split_type,
            items=items,
            itemized_amounts=itemized_amounts,
            tax_percentage=tax_percentage,
            tips_percentage=tips_percentage,
            paid_status={p: p == bill_in.paid_by for p in split_among},
            pending_status={p: False for p in split_among}
        )

    @staticmethod
    async def create_bill(
        db: AsyncIOMotorDatabase,
        bill_in: BillCreate,
        actor_id: Optional[str]
    ) -> Bill:
        if not actor_id:
            raise UnauthenticatedError("User not authenticated")

        validate_bill(bill_in)

        paid_by_name = await BillService._resolve_payer_name(db, bill_in.paid_by, actor_id)
        bill = BillService.build_bill(bill_in, paid_by_name)

        created = await BillRepository(db).insert_bill(bill)
        logger.info(
            "Bill %s created by %s: %s split among %d",
            created.id, actor_id, created.split_type.value, len(created.split_among)
        )
        return created

    @staticmethod
    async def list_bills(db: AsyncIOMotorDatabase, user_id: str) -> List[Bill]:
        return await BillRepository(db).list_bills_for_user(user_id)

    @staticmethod
    async def get_bill(db: AsyncIOMotorDatabase, bill_id: str, user_id: str) -> Bill:
        """Get a bill the user pays for or takes part in."""
        bill = await BillRepository(db).get_bill(bill_id)
        if bill is None or (user_id != bill.paid_by and user_id not in bill.split_among):
            raise BillNotFoundError(bill_id)
        return bill

    @staticmethod
    async def get_shares(
        db: AsyncIOMotorDatabase,
        bill_id: str,
        user_id: str
    ) -> List[ParticipantShare]:
        bill = await BillService.get_bill(db, bill_id, user_id)
        return compute_shares(bill)

    @staticmethod
    async def update_bill(
        db: AsyncIOMotorDatabase,
        bill_id: str,
        bill_in: BillUpdate,
        actor_id: str
    ) -> Bill:
        """
        Patch descriptive fields (payer only).

        A custom split's amount is derived from its items, so it cannot be
        patched directly; changing tax or tips re-derives it instead.
        """
        bill = await BillService.get_bill(db, bill_id, actor_id)
        if bill.paid_by != actor_id:
            raise ForbiddenError("Only the payer can edit this bill")

        fields = bill_in.model_dump(exclude_unset=True, exclude_none=True)
        for key in ("amount", "tax_percentage", "tips_percentage"):
            if key in fields:
                fields[key] = safe_number(fields[key])
                if fields[key] < 0:
                    raise BillValidationError(f"{key} must be non-negative")

        if bill.split_type == SplitType.CUSTOM:
            if "amount" in fields:
                raise BillValidationError(
                    "A custom split's amount is derived from its items"
                )
            if "tax_percentage" in fields or "tips_percentage" in fields:
                tax = fields.get("tax_percentage", safe_number(bill.tax_percentage))
                tips = fields.get("tips_percentage", safe_number(bill.tips_percentage))
                fields["amount"] = itemized_total(bill) * (1 + (tax + tips) / 100)

        if not fields:
            return bill

        updated = await BillRepository(db).update_bill(bill_id, fields)
        if updated is None:
            raise BillNotFoundError(bill_id)
        logger.info("Bill %s updated by %s: %s", bill_id, actor_id, sorted(fields))
        return updated

    @staticmethod
    async def delete_bill(db: AsyncIOMotorDatabase, bill_id: str, actor_id: str) -> None:
        bill = await BillService.get_bill(db, bill_id, actor_id)
        if bill.paid_by != actor_id:
            raise ForbiddenError("Only the payer can delete this bill")

        if not await BillRepository(db).delete_bill(bill_id):
            raise BillNotFoundError(bill_id)
        logger.info("Bill %s deleted by %s", bill_id, actor_id)

    @staticmethod
    async def _apply_transition(
        db: AsyncIOMotorDatabase,
        bill_id: str,
        transition: Transition,
        actor_id: str,
        participant_id: str
    ) -> Bill:
        """
        Read-merge-write of the status maps.

        1. Re-read the latest bill so flags set by other clients are kept
        2. Apply the transition to copies of the full maps
        3. Write both complete maps in one update

        Nothing is returned or changed locally unless the write succeeds.
        """
        repo = BillRepository(db)
        bill = await BillService.get_bill(db, bill_id, actor_id)

        maps = transition(bill, actor_id, participant_id)

        try:
            replaced = await repo.replace_status_maps(
                bill_id, maps.paid_status, maps.pending_status
            )
        except PyMongoError:
            logger.error("Status update for bill %s failed", bill_id, exc_info=True)
            raise
        if not replaced:
            raise BillNotFoundError(bill_id)

        logger.info(
            "Bill %s: %s applied to %s by %s",
            bill_id, transition.__name__, participant_id, actor_id
        )
        return bill.model_copy(update={
            "paid_status": maps.paid_status,
            "pending_status": maps.pending_status
        })

    @staticmethod
    async def mark_paid(db, bill_id: str, actor_id: str, participant_id: str) -> Bill:
        return await BillService._apply_transition(
            db, bill_id, status_transitions.mark_paid, actor_id, participant_id
        )

    @staticmethod
    async def unmark_pending(db, bill_id: str, actor_id: str, participant_id: str) -> Bill:
        return await BillService._apply_transition(
            db, bill_id, status_transitions.unmark_pending, actor_id, participant_id
        )

    @staticmethod
    async def confirm_paid(db, bill_id: str, actor_id: str, participant_id: str) -> Bill:
        return await BillService._apply_transition(
            db, bill_id, status_transitions.confirm_paid, actor_id, participant_id
        )

    @staticmethod
    async def unmark_paid(db, bill_id: str, actor_id: str, participant_id: str) -> Bill:
        return await BillService._apply_transition(
            db, bill_id, status_transitions.unmark_paid, actor_id, participant_id
        )
