"""
Derived views over a bill snapshot. Never persisted; rebuilt on every read.
"""

from pydantic import BaseModel

from billsplit.models.bill import ParticipantStatus


class UserBalance(BaseModel):
    """
    Outstanding amounts between the current user and one friend.

    - owes: what the friend owes the user (bills the user paid)
    - owed: what the user owes the friend (bills the friend paid)
    - net_balance: owes - owed (positive = friend owes user)
    """
    friend_id: str
    friend_name: str
    owes: float = 0.0
    owed: float = 0.0
    net_balance: float = 0.0


class ParticipantShare(BaseModel):
    participant_id: str
    amount: float
    status: ParticipantStatus


class PaymentTotals(BaseModel):
    """The user's own shares across bills, bucketed by settlement state."""
    total_unpaid: float = 0.0
    total_pending: float = 0.0
    total_paid: float = 0.0
