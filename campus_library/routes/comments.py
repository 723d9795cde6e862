from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.social import CommentCreate
from campus_library.services import comment_service
from campus_library.services.auth import get_current_user
from campus_library.services.realtime import RealtimeNotifier, get_notifier

router = APIRouter(prefix="/api/v1/comments", tags=["Comments"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_comment(
    body: CommentCreate,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    return comment_service.create_comment(
        db, notifier, body.post_id, current_user.user_id, body.content, parent_id=body.parent_id
    )

@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    """Delete a comment and its replies. Allowed for the author and the channel owner."""
    comment_service.delete_comment(db, notifier, comment_id, current_user.user_id)
    return {"message": "Comment deleted successfully."}
