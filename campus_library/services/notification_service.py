from typing import List
from sqlalchemy.orm import Session
from campus_library.models.engagement import Notification
from campus_library.models.user import User
from campus_library.services.realtime import RealtimeNotifier, user_room
from campus_library.utils.constants import ROLE_LIBRARIAN
from campus_library.utils.errors import NotFoundError


def create_notification(db: Session, user_id: int, message: str, type: str = 'INFO') -> Notification:
    """Stage a notification in the current transaction."""
    notification = Notification(user_id=user_id, message=message, type=type)
    db.add(notification)
    db.flush()
    return notification


def notify_role(db: Session, role: str, message: str, type: str = 'INFO') -> List[int]:
    """Stage one notification per user holding a role; returns the recipients' ids."""
    user_ids = [u.user_id for u in db.query(User.user_id).filter(User.role == role).all()]
    db.add_all([Notification(user_id=uid, message=message, type=type) for uid in user_ids])
    db.flush()
    return user_ids


def notify_librarians(db: Session, message: str) -> List[int]:
    return notify_role(db, ROLE_LIBRARIAN, message)


def push_refetch(notifier: RealtimeNotifier, user_ids: List[int]):
    notifier.emit_to_many([user_room(uid) for uid in user_ids], 'refetch_notifications')


def push_notification(notifier: RealtimeNotifier, notification: Notification):
    notifier.emit(user_room(notification.user_id), 'new_notification', notification.to_dict())


def list_user_notifications(db: Session, user_id: int) -> List[Notification]:
    return db.query(Notification).filter(
        Notification.user_id == user_id
    ).order_by(Notification.created_at.desc(), Notification.notification_id.desc()).all()


def mark_as_read(db: Session, notification_id: int, user_id: int) -> Notification:
    notification = db.query(Notification).filter(
        Notification.notification_id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        raise NotFoundError("Notification not found.")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return count


def delete_notification(db: Session, notification_id: int, user_id: int):
    # Users may only delete their own notifications
    deleted = db.query(Notification).filter(
        Notification.notification_id == notification_id,
        Notification.user_id == user_id
    ).delete(synchronize_session=False)
    if not deleted:
        raise NotFoundError("Notification not found.")
    db.commit()


def delete_read_notifications(db: Session, user_id: int) -> int:
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(True)
    ).delete(synchronize_session=False)
    db.commit()
    return count
