from typing import List, Optional
from sqlalchemy.orm import Session
from campus_library.database import transaction
from campus_library.models.engagement import BookSuggestion
from campus_library.models.user import User
from campus_library.services import notification_service
from campus_library.services.realtime import RealtimeNotifier
from campus_library.utils.errors import NotFoundError


def create_suggestion(
    db: Session,
    notifier: RealtimeNotifier,
    user: User,
    title: str,
    author: Optional[str] = None,
    note: Optional[str] = None,
) -> BookSuggestion:
    with transaction(db):
        suggestion = BookSuggestion(user_id=user.user_id, title=title, author=author, note=note)
        db.add(suggestion)
        librarian_ids = notification_service.notify_librarians(
            db, f'{user.first_name} suggested a new book: "{title}".'
        )
    db.refresh(suggestion)
    notification_service.push_refetch(notifier, librarian_ids)
    return suggestion


def list_suggestions(db: Session, status: Optional[str] = None) -> List[BookSuggestion]:
    query = db.query(BookSuggestion)
    if status:
        query = query.filter(BookSuggestion.status == status)
    return query.order_by(BookSuggestion.created_at.desc(), BookSuggestion.suggestion_id.desc()).all()


def list_user_suggestions(db: Session, user_id: int) -> List[BookSuggestion]:
    return db.query(BookSuggestion).filter(
        BookSuggestion.user_id == user_id
    ).order_by(BookSuggestion.created_at.desc(), BookSuggestion.suggestion_id.desc()).all()


def update_suggestion_status(db: Session, notifier: RealtimeNotifier, suggestion_id: int, status: str) -> BookSuggestion:
    with transaction(db):
        suggestion = db.query(BookSuggestion).filter(BookSuggestion.suggestion_id == suggestion_id).first()
        if not suggestion:
            raise NotFoundError("Suggestion not found.")
        suggestion.status = status
        notification = notification_service.create_notification(
            db, suggestion.user_id, f'Your suggestion "{suggestion.title}" is now {status}.'
        )
    db.refresh(suggestion)
    notification_service.push_notification(notifier, notification)
    return suggestion
