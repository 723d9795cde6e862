import logging
import math
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from campus_library.database import transaction
from campus_library.models.book import Book
from campus_library.models.loan import Fine, LibrarySettings
from campus_library.models.user import User
from campus_library.services import notification_service
from campus_library.services.realtime import RealtimeNotifier
from campus_library.services.settings_service import interval_days
from campus_library.utils.errors import BadRequestError, NotFoundError
from campus_library.utils.timezone import now_local

logger = logging.getLogger(__name__)


def compute_fine_amount(overdue_days: int, library_settings: LibrarySettings) -> Decimal:
    """Charge one fine_amount_per_day for every started interval of lateness."""
    if overdue_days <= 0:
        return Decimal("0")
    intervals = math.ceil(overdue_days / interval_days(library_settings))
    return Decimal(library_settings.fine_amount_per_day) * intervals


def list_fines(db: Session, is_paid: Optional[bool] = None) -> List[Fine]:
    query = db.query(Fine)
    if is_paid is not None:
        query = query.filter(Fine.is_paid.is_(is_paid))
    return query.order_by(Fine.created_at.desc(), Fine.fine_id.desc()).all()


def list_user_fines(db: Session, user_id: int) -> List[Fine]:
    return db.query(Fine).filter(
        Fine.user_id == user_id
    ).order_by(Fine.created_at.desc(), Fine.fine_id.desc()).all()


def mark_fine_as_paid(db: Session, fine_id: int) -> Fine:
    fine = db.query(Fine).filter(Fine.fine_id == fine_id).first()
    if not fine:
        raise NotFoundError("Fine not found.")
    if fine.is_paid:
        raise BadRequestError("This fine has already been paid.")
    fine.is_paid = True
    fine.paid_at = now_local()
    db.commit()
    db.refresh(fine)
    logger.info(f"Fine {fine_id} marked as paid")
    return fine


def create_manual_fine(
    db: Session,
    notifier: RealtimeNotifier,
    user_id: int,
    amount: Decimal,
    reason: str,
    book_id: Optional[int] = None,
) -> Fine:
    """Issue a fine that is not tied to a loan return (damage, lost item, ...)."""
    if len(reason.strip()) < 10:
        raise BadRequestError("Reason must be at least 10 characters long.")
    if amount <= 0:
        raise BadRequestError("Fine amount must be greater than 0.")

    with transaction(db):
        user = db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise NotFoundError("User not found.")
        book = None
        if book_id is not None:
            book = db.query(Book).filter(Book.book_id == book_id).first()
            if not book:
                raise NotFoundError("Book not found.")

        fine = Fine(user_id=user_id, book_id=book_id, amount=amount, reason=reason.strip())
        db.add(fine)
        subject = f' for "{book.title}"' if book else ""
        notification = notification_service.create_notification(
            db, user_id, f"A fine of {amount} was issued{subject}: {reason.strip()}", type='FINE'
        )

    db.refresh(fine)
    notification_service.push_notification(notifier, notification)
    logger.info(f"Manual fine {fine.fine_id} created for user {user_id}")
    return fine


def update_fine_amount(db: Session, fine_id: int, amount: Decimal) -> Fine:
    if amount <= 0:
        raise BadRequestError("Fine amount must be greater than 0.")
    fine = db.query(Fine).filter(Fine.fine_id == fine_id).first()
    if not fine:
        raise NotFoundError("Fine not found.")
    if fine.is_paid:
        raise BadRequestError("A paid fine cannot be changed.")
    fine.amount = amount
    db.commit()
    db.refresh(fine)
    return fine
