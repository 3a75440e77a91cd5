"""
Per-participant payment state machine.

    unpaid --mark_paid--> pending --confirm_paid--> paid
    unpaid <-unmark_pending-- pending
    unpaid <-------------unmark_paid------------- paid

- mark_paid: only the participant, for their own id
- unmark_pending: the participant or the payer
- confirm_paid: only the payer
- unmark_paid: only the payer, never for the payer's own flag

Each transition takes the latest bill and returns complete replacement
maps. The input bill is never modified.
"""

from dataclasses import dataclass
from typing import Dict

from billsplit.core.errors import InvalidTransitionError, ForbiddenError
from billsplit.models.bill import Bill, ParticipantStatus
from billsplit.services.share_calculator import participant_status


@dataclass(frozen=True)
class StatusMaps:
    paid_status: Dict[str, bool]
    pending_status: Dict[str, bool]


def _full_maps(bill: Bill) -> StatusMaps:
    """Copy both maps with an explicit entry for every participant."""
    paid = dict(bill.paid_status)
    pending = dict(bill.pending_status)
    for participant_id in bill.split_among:
        paid[participant_id] = bool(paid.get(participant_id, False))
        pending[participant_id] = bool(pending.get(participant_id, False))
    paid[bill.paid_by] = True
    return StatusMaps(paid_status=paid, pending_status=pending)


def _require_state(bill: Bill, participant_id: str, expected: ParticipantStatus) -> None:
    if participant_id not in bill.split_among:
        raise InvalidTransitionError(
            f"{participant_id} is not a participant of bill {bill.id}"
        )
    current = participant_status(bill, participant_id)
    if current != expected:
        raise InvalidTransitionError(
            f"{participant_id} is {current.value}, expected {expected.value}"
        )


def mark_paid(bill: Bill, actor_id: str, participant_id: str) -> StatusMaps:
    """Participant reports their own payment: unpaid -> pending."""
    if actor_id != participant_id:
        raise ForbiddenError("Only the participant can report their own payment")
    _require_state(bill, participant_id, ParticipantStatus.UNPAID)

    maps = _full_maps(bill)
    maps.pending_status[participant_id] = True
    return maps


def unmark_pending(bill: Bill, actor_id: str, participant_id: str) -> StatusMaps:
    """Withdraw or reject a payment report: pending -> unpaid."""
    if actor_id not in (participant_id, bill.paid_by):
        raise ForbiddenError(
            "Only the participant or the payer can withdraw a pending payment"
        )
    _require_state(bill, participant_id, ParticipantStatus.PENDING)

    maps = _full_maps(bill)
    maps.pending_status[participant_id] = False
    return maps


def confirm_paid(bill: Bill, actor_id: str, participant_id: str) -> StatusMaps:
    """Payer confirms a reported payment: pending -> paid."""
    if actor_id != bill.paid_by:
        raise ForbiddenError("Only the payer can confirm a payment")
    _require_state(bill, participant_id, ParticipantStatus.PENDING)

    maps = _full_maps(bill)
    maps.paid_status[participant_id] = True
    maps.pending_status[participant_id] = False
    return maps


def unmark_paid(bill: Bill, actor_id: str, participant_id: str) -> StatusMaps:
    """Payer reverts a confirmed payment: paid -> unpaid."""
    if actor_id != bill.paid_by:
        raise ForbiddenError("Only the payer can unmark a payment")
    if participant_id == bill.paid_by:
        raise InvalidTransitionError("The payer's own share is always settled")
    _require_state(bill, participant_id, ParticipantStatus.PAID)

    maps = _full_maps(bill)
    maps.paid_status[participant_id] = False
    return maps

