"""
Per-bill share and completion calculations.

Every function here is pure: given the same bill snapshot it returns the same
result and never raises on malformed amount fields. Non-numeric or missing
amounts count as 0.

Custom split:
1. itemized_total = sum of itemized_amounts
2. tax and tips are percentages of itemized_total (not of bill.amount)
3. each participant pays their item subtotal plus tax and tips in proportion
   to that subtotal
"""

import math
from typing import Any, Dict, Iterable, List

from billsplit.models.balance import ParticipantShare
from billsplit.models.bill import Bill, BillItem, ParticipantStatus, SplitType


def safe_number(value: Any) -> float:
    """
    Parse a monetary value, falling back to 0 for anything non-numeric.

    Text must be a whole number literal: "12.5" parses, while text that only
    starts with a number ("12abc", "1,000") counts as 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def itemized_total(bill: Bill) -> float:
    return sum(safe_number(amount) for amount in bill.itemized_amounts.values())


def compute_share(bill: Bill, participant_id: str) -> float:
    """Amount `participant_id` owes for `bill`, tax and tips included."""
    if bill.split_type == SplitType.EQUAL:
        total_amount = safe_number(bill.amount)
        if total_amount == 0:
            return 0.0
        return total_amount / max(1, len(bill.split_among))

    base = itemized_total(bill)
    tax_amount = base * safe_number(bill.tax_percentage) / 100
    tips_amount = base * safe_number(bill.tips_percentage) / 100
    user_item_amount = safe_number(bill.itemized_amounts.get(participant_id))

    if base == 0:
        return user_item_amount

    return user_item_amount + (user_item_amount / base) * (tax_amount + tips_amount)


def is_completed(bill: Bill) -> bool:
    """A bill is complete once every participant other than the payer is paid."""
    payers = [p for p in bill.split_among if p != bill.paid_by]
    if not payers:
        return True
    return all(bill.is_paid(p) for p in payers)


def participant_status(bill: Bill, participant_id: str) -> ParticipantStatus:
    if bill.is_paid(participant_id):
        return ParticipantStatus.PAID
    if bill.is_pending(participant_id):
        return ParticipantStatus.PENDING
    return ParticipantStatus.UNPAID


def compute_shares(bill: Bill) -> List[ParticipantShare]:
    """Share and status of every participant, in split_among order."""
    return [
        ParticipantShare(
            participant_id=participant_id,
            amount=compute_share(bill, participant_id),
            status=participant_status(bill, participant_id)
        )
        for participant_id in bill.split_among
    ]


def itemized_amounts_from_items(
    items: Iterable[BillItem],
    split_among: List[str]
) -> Dict[str, float]:
    """
    Flatten bill items into per-participant subtotals.

    - shared_with set: divided equally among those ids
    - only assigned_to set: charged wholly to that id
    - neither: divided equally among all participants
    """
    amounts: Dict[str, float] = {participant_id: 0.0 for participant_id in split_among}

    for item in items:
        amount = safe_number(item.amount)
        if item.shared_with:
            owners = list(dict.fromkeys(item.shared_with))
        elif item.assigned_to:
            owners = [item.assigned_to]
        else:
            owners = list(split_among)

        if not owners:
            continue

        per_owner = amount / len(owners)
        for owner in owners:
            amounts[owner] = amounts.get(owner, 0.0) + per_owner

    return amounts


def percentage_of(value: Any, base: Any) -> float:
    """Express an absolute tax or tip amount as a percentage of `base`."""
    base_amount = safe_number(base)
    if base_amount == 0:
        return 0.0
    return round(safe_number(value) / base_amount * 100, 2)
