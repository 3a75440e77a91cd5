from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from enum import Enum

from bson import ObjectId
from pydantic import BaseModel, Field, field_validator, model_validator

from billsplit.models.base import MongoModel, _utcnow

# Monetary fields may arrive as text from older clients; readers coerce them
Amount = Union[float, str, None]


def _loose_amount(value: Any) -> Any:
    """Keep numbers and text, anything else reads as missing."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


def _new_item_id() -> str:
    return str(ObjectId())


class SplitType(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"


class ParticipantStatus(str, Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"


# Embedded documents don't need MongoModel (no separate _id)
class BillItem(BaseModel):
    id: str = Field(default_factory=_new_item_id)
    name: str = ""
    amount: Amount = 0
    assigned_to: Optional[str] = None  # exclusive assignment
    shared_with: List[str] = []        # shared assignment

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value):
        if value is None:
            return _new_item_id()
        return str(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, value):
        return _loose_amount(value)

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _assignee(cls, value):
        return value if isinstance(value, str) and value else None

    @field_validator("shared_with", mode="before")
    @classmethod
    def _sharers(cls, value):
        if not isinstance(value, list):
            return []
        return [p for p in value if isinstance(p, str)]

    @model_validator(mode="after")
    def _single_assignment_mode(self) -> "BillItem":
        if self.shared_with:
            self.assigned_to = None
        return self


class Bill(MongoModel):
    """
    A shared bill.

    Invariants:
    - paid_status[paid_by] is True from creation on
    - every id in split_among has an entry in both status maps
      (a missing entry reads as False)
    - paid wins over pending when both are set

    Stored documents are read leniently: malformed optional fields fall back
    to empty values so share and balance calculations never fail on them.
    """
    description: str = ""
    amount: Amount = 0
    paid_by: str
    paid_by_name: Optional[str] = None
    split_among: List[str] = []
    split_type: SplitType = SplitType.EQUAL

    # Custom split only
    items: List[BillItem] = []
    itemized_amounts: Dict[str, Amount] = {}
    tax_percentage: Amount = 0
    tips_percentage: Amount = 0

    paid_status: Dict[str, bool] = {}
    pending_status: Dict[str, bool] = {}

    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("description", mode="before")
    @classmethod
    def _description_as_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("paid_by_name", mode="before")
    @classmethod
    def _payer_name(cls, value):
        return value if isinstance(value, str) else None

    @field_validator("amount", "tax_percentage", "tips_percentage", mode="before")
    @classmethod
    def _amount(cls, value):
        return _loose_amount(value)

    @field_validator("split_type", mode="before")
    @classmethod
    def _split_type(cls, value):
        # only an explicit "equal" (or nothing at all) is an equal split
        if value is None or value == SplitType.EQUAL or value == SplitType.EQUAL.value:
            return SplitType.EQUAL
        return SplitType.CUSTOM

    @field_validator("split_among", mode="before")
    @classmethod
    def _participants(cls, value):
        if not isinstance(value, list):
            return []
        return [p for p in value if isinstance(p, str)]

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, BillItem))]

    @field_validator("itemized_amounts", mode="before")
    @classmethod
    def _itemized_amounts(cls, value):
        if not isinstance(value, dict):
            return {}
        return {str(k): _loose_amount(v) for k, v in value.items()}

    @field_validator("paid_status", "pending_status", mode="before")
    @classmethod
    def _status_map(cls, value):
        if not isinstance(value, dict):
            return {}
        return {str(k): bool(v) for k, v in value.items()}

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, value):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                pass
        return _utcnow()

    def is_paid(self, participant_id: str) -> bool:
        return bool(self.paid_status.get(participant_id, False))

    def is_pending(self, participant_id: str) -> bool:
        return bool(self.pending_status.get(participant_id, False))
