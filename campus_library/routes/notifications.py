from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.services import notification_service
from campus_library.services.auth import get_current_user

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])

@router.get("")
async def get_notifications(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    notifications = notification_service.list_user_notifications(db, current_user.user_id)
    return [n.to_dict() for n in notifications]

@router.patch("/read-all")
async def mark_all_notifications_read(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    count = notification_service.mark_all_as_read(db, current_user.user_id)
    return {"message": "All notifications marked as read.", "count": count}

@router.delete("/read")
async def delete_read_notifications(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    count = notification_service.delete_read_notifications(db, current_user.user_id)
    return {"message": "Read notifications deleted.", "count": count}

@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return notification_service.mark_as_read(db, notification_id, current_user.user_id).to_dict()

@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification_service.delete_notification(db, notification_id, current_user.user_id)
    return {"message": "Notification deleted."}
