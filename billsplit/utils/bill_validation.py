"""Bill validation utilities."""
from typing import List

from billsplit.core.errors import BillValidationError
from billsplit.models.bill import SplitType
from billsplit.schemas.bill import BillCreate, BillItemIn
from billsplit.services.share_calculator import safe_number


def validate_participants(paid_by: str, split_among: List[str]) -> None:
    """
    Validate who takes part in a bill.

    Rules:
    - at least one participant
    - no duplicate participant ids
    - the payer is one of the participants
    """
    if not split_among:
        raise BillValidationError("A bill needs at least one participant")

    if len(set(split_among)) != len(split_among):
        raise BillValidationError("Participants must be unique")

    if paid_by not in split_among:
        raise BillValidationError(f"Payer {paid_by} must be one of the participants")


def validate_items(items: List[BillItemIn], split_among: List[str]) -> None:
    """
    Validate custom split items.

    Rules:
    - amount must be non-negative
    - assigned_to / shared_with may only name participants
    """
    participants = set(split_among)
    for item in items:
        if safe_number(item.amount) < 0:
            raise BillValidationError(
                f"Item '{item.name}' has negative amount: {item.amount}"
            )

        assignees = set(item.shared_with)
        if item.assigned_to and not item.shared_with:
            assignees.add(item.assigned_to)
        unknown = assignees - participants
        if unknown:
            raise BillValidationError(
                f"Item '{item.name}' is assigned to non-participants: {sorted(unknown)}"
            )


def validate_bill(bill_in: BillCreate) -> None:
    """Validate a bill before it is stored."""
    validate_participants(bill_in.paid_by, bill_in.split_among)

    if safe_number(bill_in.amount) < 0:
        raise BillValidationError(f"Bill amount must be non-negative: {bill_in.amount}")

    for field in ("tax_percentage", "tips_percentage", "tax_amount", "tips_amount"):
        if safe_number(getattr(bill_in, field)) < 0:
            raise BillValidationError(f"{field} must be non-negative")

    if bill_in.split_type == SplitType.CUSTOM:
        validate_items(bill_in.items, bill_in.split_among)
        for participant_id, amount in bill_in.itemized_amounts.items():
            if participant_id not in bill_in.split_among:
                raise BillValidationError(
                    f"Itemized amount given for non-participant {participant_id}"
                )
            if safe_number(amount) < 0:
                raise BillValidationError(
                    f"Itemized amount for {participant_id} must be non-negative"
                )
