from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.engagement import SuggestionCreate, SuggestionStatusUpdate
from campus_library.services import suggestion_service
from campus_library.services.auth import get_current_user, require_roles
from campus_library.services.realtime import RealtimeNotifier, get_notifier
from campus_library.utils.constants import STAFF_ROLES

router = APIRouter(prefix="/api/v1/suggestions", tags=["Book Suggestions"])

staff_only = require_roles(*STAFF_ROLES)

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_suggestion(
    body: SuggestionCreate,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    suggestion = suggestion_service.create_suggestion(
        db, notifier, current_user, body.title, author=body.author, note=body.note
    )
    return suggestion.to_dict()

@router.get("")
async def get_suggestions(
    suggestion_status: Optional[str] = Query(None, alias="status", pattern="^(PENDING|APPROVED|REJECTED)$"),
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    return [s.to_dict() for s in suggestion_service.list_suggestions(db, suggestion_status)]

@router.get("/my")
async def get_my_suggestions(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [s.to_dict() for s in suggestion_service.list_user_suggestions(db, current_user.user_id)]

@router.patch("/{suggestion_id}/status")
async def update_suggestion_status(
    suggestion_id: int,
    body: SuggestionStatusUpdate,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    suggestion = suggestion_service.update_suggestion_status(db, notifier, suggestion_id, body.status)
    return suggestion.to_dict()
