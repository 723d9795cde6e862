from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.loan import LoanCreate
from campus_library.services import loan_service
from campus_library.services.auth import get_current_user, require_roles
from campus_library.services.realtime import RealtimeNotifier, get_notifier
from campus_library.utils.constants import STAFF_ROLES

router = APIRouter(prefix="/api/v1/loans", tags=["Loans"])

staff_only = require_roles(*STAFF_ROLES)

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_loan(body: LoanCreate, db: Session = Depends(get_db), _: User = Depends(staff_only)):
    """Issue an available copy of a book to a reader."""
    loan = loan_service.create_loan(db, body.book_id, body.user_id)
    return loan.to_dict()

@router.get("")
async def get_loans(
    loan_status: Optional[str] = Query(None, alias="status", pattern="^(ACTIVE|OVERDUE|RETURN_PENDING|RETURNED)$"),
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    return [loan.to_dict() for loan in loan_service.list_all_loans(db, loan_status)]

@router.get("/my")
async def get_my_loans(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Get current user's loans."""
    return [loan.to_dict() for loan in loan_service.list_user_loans(db, current_user.user_id)]

@router.get("/overdue")
async def get_overdue_loans(db: Session = Depends(get_db), _: User = Depends(staff_only)):
    """List loans past their due date, whether or not the sweep has flagged them yet."""
    return [loan.to_dict() for loan in loan_service.list_overdue_loans(db)]

@router.post("/overdue/sweep")
async def sweep_overdue_loans(
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    """Flag past-due loans as OVERDUE and send due-date reminders to borrowers."""
    flagged = loan_service.mark_overdue_loans(db, notifier)
    return {"message": f"{len(flagged)} loan(s) marked overdue.", "data": [loan.to_dict() for loan in flagged]}

@router.post("/{loan_id}/return")
async def initiate_return(
    loan_id: int,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    loan = loan_service.initiate_return(db, notifier, loan_id, current_user.user_id)
    return loan.to_dict()

@router.post("/{loan_id}/confirm")
async def confirm_return(
    loan_id: int,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    loan = loan_service.confirm_return(db, notifier, loan_id)
    return loan.to_dict()

@router.post("/{loan_id}/renewal")
async def request_renewal(
    loan_id: int,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    loan = loan_service.request_renewal(db, notifier, loan_id, current_user.user_id)
    return {"message": "Renewal request sent.", "loan": loan.to_dict()}

@router.post("/{loan_id}/renewal/approve")
async def approve_renewal(
    loan_id: int,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    loan = loan_service.approve_renewal(db, notifier, loan_id)
    return {"message": "Renewal approved.", "loan": loan.to_dict()}

@router.post("/{loan_id}/renewal/reject")
async def reject_renewal(
    loan_id: int,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    loan = loan_service.reject_renewal(db, notifier, loan_id)
    return {"message": "Renewal rejected.", "loan": loan.to_dict()}
