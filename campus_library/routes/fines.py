from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.loan import FineAmountUpdate, ManualFineCreate
from campus_library.services import fine_service
from campus_library.services.auth import get_current_user, require_roles
from campus_library.services.realtime import RealtimeNotifier, get_notifier
from campus_library.utils.constants import STAFF_ROLES

router = APIRouter(prefix="/api/v1/fines", tags=["Fines"])

staff_only = require_roles(*STAFF_ROLES)

@router.get("")
async def get_fines(
    is_paid: Optional[bool] = Query(None, alias="isPaid"),
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    return [fine.to_dict() for fine in fine_service.list_fines(db, is_paid)]

@router.get("/my")
async def get_my_fines(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [fine.to_dict() for fine in fine_service.list_user_fines(db, current_user.user_id)]

@router.post("/manual", status_code=status.HTTP_201_CREATED)
async def create_manual_fine(
    body: ManualFineCreate,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    fine = fine_service.create_manual_fine(
        db, notifier, body.user_id, body.amount, body.reason, book_id=body.book_id
    )
    return fine.to_dict()

@router.post("/{fine_id}/pay")
async def pay_fine(fine_id: int, db: Session = Depends(get_db), _: User = Depends(staff_only)):
    fine = fine_service.mark_fine_as_paid(db, fine_id)
    return {"message": "Fine marked as paid.", "data": fine.to_dict()}

@router.patch("/{fine_id}")
async def update_fine(
    fine_id: int,
    body: FineAmountUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    return fine_service.update_fine_amount(db, fine_id, body.amount).to_dict()
