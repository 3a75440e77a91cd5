from typing import Optional, List, Dict, Union
from datetime import datetime
from pydantic import BaseModel, Field

from billsplit.models.bill import Bill, BillItem, SplitType
from billsplit.services.share_calculator import is_completed, safe_number

class BillItemIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    amount: Union[float, str] = 0
    assigned_to: Optional[str] = None
    shared_with: List[str] = []

class BillCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: Union[float, str, None] = 0
    paid_by: str
    split_among: List[str] = Field(..., min_length=1)
    split_type: SplitType = SplitType.EQUAL

    # Custom split
    items: List[BillItemIn] = []
    itemized_amounts: Dict[str, Union[float, str]] = {}
    tax_percentage: Union[float, str, None] = 0
    tips_percentage: Union[float, str, None] = 0

    # Absolute alternatives to the percentages above
    tax_amount: Optional[float] = None
    tips_amount: Optional[float] = None

class BillUpdate(BaseModel):
    """Partial patch of descriptive fields. Status maps have their own commands."""
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Union[float, str, None] = None
    tax_percentage: Union[float, str, None] = None
    tips_percentage: Union[float, str, None] = None

class BillResponse(BaseModel):
    id: str
    description: str
    amount: float
    paid_by: str
    paid_by_name: Optional[str] = None
    split_among: List[str]
    split_type: SplitType
    items: List[BillItem]
    itemized_amounts: Dict[str, float]
    tax_percentage: float
    tips_percentage: float
    paid_status: Dict[str, bool]
    pending_status: Dict[str, bool]
    is_completed: bool
    timestamp: datetime

    @classmethod
    def from_bill(cls, bill: Bill) -> "BillResponse":
        return cls(
            id=str(bill.id),
            description=bill.description,
            amount=safe_number(bill.amount),
            paid_by=bill.paid_by,
            paid_by_name=bill.paid_by_name,
            split_among=bill.split_among,
            split_type=bill.split_type,
            items=bill.items,
            itemized_amounts={
                participant_id: safe_number(amount)
                for participant_id, amount in bill.itemized_amounts.items()
            },
            tax_percentage=safe_number(bill.tax_percentage),
            tips_percentage=safe_number(bill.tips_percentage),
            paid_status={p: bill.is_paid(p) for p in bill.split_among},
            pending_status={p: bill.is_pending(p) for p in bill.split_among},
            is_completed=is_completed(bill),
            timestamp=bill.timestamp
        )
