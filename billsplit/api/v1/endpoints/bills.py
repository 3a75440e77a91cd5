from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from billsplit.core.auth import get_current_user
from billsplit.core.errors import (
    BillError,
    BillNotFoundError,
    ForbiddenError,
    UnauthenticatedError,
)
from billsplit.db.mongo import get_db
from billsplit.models.balance import ParticipantShare
from billsplit.models.user import UserResponse
from billsplit.schemas.bill import BillCreate, BillResponse, BillUpdate
from billsplit.services.bill_service import BillService

router = APIRouter()


def _to_http_exception(exc: BillError) -> HTTPException:
    if isinstance(exc, BillNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bill not found")
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, UnauthenticatedError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    bill_in: BillCreate,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Create a bill. Only the payer starts out paid."""
    try:
        bill = await BillService.create_bill(db, bill_in, current_user.id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)


@router.get("", response_model=List[BillResponse])
async def list_bills(
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """List bills the user paid or takes part in, newest first."""
    bills = await BillService.list_bills(db, current_user.id)
    return [BillResponse.from_bill(bill) for bill in bills]


@router.get("/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    try:
        bill = await BillService.get_bill(db, bill_id, current_user.id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)


@router.get("/{bill_id}/shares", response_model=List[ParticipantShare])
async def get_bill_shares(
    bill_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Per-participant amount and payment status."""
    try:
        return await BillService.get_shares(db, bill_id, current_user.id)
    except BillError as exc:
        raise _to_http_exception(exc)


@router.patch("/{bill_id}", response_model=BillResponse)
async def update_bill(
    bill_id: str,
    bill_in: BillUpdate,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    try:
        bill = await BillService.update_bill(db, bill_id, bill_in, current_user.id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bill(
    bill_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    try:
        await BillService.delete_bill(db, bill_id, current_user.id)
    except BillError as exc:
        raise _to_http_exception(exc)


@router.post("/{bill_id}/participants/{participant_id}/mark-paid", response_model=BillResponse)
async def mark_paid(
    bill_id: str,
    participant_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Participant reports their payment; it stays pending until the payer confirms."""
    try:
        bill = await BillService.mark_paid(db, bill_id, current_user.id, participant_id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)


@router.post("/{bill_id}/participants/{participant_id}/unmark-pending", response_model=BillResponse)
async def unmark_pending(
    bill_id: str,
    participant_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    try:
        bill = await BillService.unmark_pending(db, bill_id, current_user.id, participant_id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)


@router.post("/{bill_id}/participants/{participant_id}/confirm-paid", response_model=BillResponse)
async def confirm_paid(
    bill_id: str,
    participant_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Payer confirms a pending payment."""
    try:
        bill = await BillService.confirm_paid(db, bill_id, current_user.id, participant_id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)


@router.post("/{bill_id}/participants/{participant_id}/unmark-paid", response_model=BillResponse)
async def unmark_paid(
    bill_id: str,
    participant_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    try:
        bill = await BillService.unmark_paid(db, bill_id, current_user.id, participant_id)
    except BillError as exc:
        raise _to_http_exception(exc)
    return BillResponse.from_bill(bill)
