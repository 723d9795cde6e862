"""Loan lifecycle: borrow, two-step return, renewal requests.

Every state change runs inside a single transaction. Copy rows are locked
with SELECT ... FOR UPDATE so two librarians acting on the same title cannot
both read a stale copy status. Real-time pushes happen only after commit.
"""
import logging
from datetime import timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from campus_library.database import transaction
from campus_library.models.book import Book, BookCopy
from campus_library.models.loan import Fine, Loan
from campus_library.models.user import User
from campus_library.services import notification_service
from campus_library.services.book_status import recompute_book_status
from campus_library.services.fine_service import compute_fine_amount
from campus_library.services.realtime import RealtimeNotifier
from campus_library.services.settings_service import get_settings
from campus_library.utils.constants import BORROWING_LIMIT, LOAN_DURATION_DAYS, RENEWAL_DURATION_DAYS
from campus_library.utils.errors import BadRequestError, ForbiddenError, NotFoundError
from campus_library.utils.timezone import local_date, now_local

logger = logging.getLogger(__name__)

HELD_STATUSES = ('ACTIVE', 'OVERDUE')


def _get_loan(db: Session, loan_id: int, lock: bool = False) -> Loan:
    query = db.query(Loan).filter(Loan.loan_id == loan_id)
    if lock:
        query = query.with_for_update()
    loan = query.first()
    if not loan:
        raise NotFoundError("Loan not found.")
    return loan


def create_loan(db: Session, book_id: int, user_id: int) -> Loan:
    with transaction(db):
        user = db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise NotFoundError("User not found.")
        book = db.query(Book).filter(Book.book_id == book_id).first()
        if not book:
            raise NotFoundError("Book with this ID was not found.")

        held = db.query(Loan).filter(
            Loan.user_id == user_id,
            Loan.status.in_(HELD_STATUSES)
        ).all()
        if len(held) >= BORROWING_LIMIT:
            raise BadRequestError(f"You can only borrow up to {BORROWING_LIMIT} books at a time.")

        now = now_local()
        if any(loan.status == 'OVERDUE' or local_date(loan.due_date) < now.date() for loan in held):
            raise BadRequestError("You have an overdue book. Please return it to borrow a new one.")

        book_copy = db.query(BookCopy).filter(
            BookCopy.book_id == book_id,
            BookCopy.status == 'AVAILABLE'
        ).order_by(BookCopy.copy_id).with_for_update().first()
        if not book_copy:
            raise BadRequestError("This book is not available for loan at the moment.")

        book_copy.status = 'BORROWED'
        loan = Loan(
            user_id=user_id,
            book_id=book_id,
            copy_id=book_copy.copy_id,
            borrowed_at=now,
            due_date=now + timedelta(days=LOAN_DURATION_DAYS),
            status='ACTIVE',
        )
        db.add(loan)
        recompute_book_status(db, book_id)

    db.refresh(loan)
    logger.info(f"Loan {loan.loan_id} created: book {book_id} copy {loan.copy_id} -> user {user_id}")
    return loan


def list_user_loans(db: Session, user_id: int) -> List[Loan]:
    return db.query(Loan).filter(
        Loan.user_id == user_id
    ).order_by(Loan.borrowed_at.desc(), Loan.loan_id.desc()).all()


def list_all_loans(db: Session, status: Optional[str] = None) -> List[Loan]:
    query = db.query(Loan)
    if status:
        query = query.filter(Loan.status == status)
    return query.order_by(Loan.borrowed_at.desc(), Loan.loan_id.desc()).all()


def list_overdue_loans(db: Session) -> List[Loan]:
    """Loans flagged OVERDUE plus ACTIVE ones already past due. Read-only."""
    today = now_local().date()
    held = db.query(Loan).filter(
        Loan.status.in_(HELD_STATUSES)
    ).order_by(Loan.due_date.asc(), Loan.loan_id.asc()).all()
    return [loan for loan in held if loan.status == 'OVERDUE' or local_date(loan.due_date) < today]


def mark_overdue_loans(db: Session, notifier: RealtimeNotifier) -> List[Loan]:
    """Daily due-date sweep.

    ACTIVE loans past their due date become OVERDUE and the borrower gets a
    FINE notification; loans due tomorrow get a WARNING reminder. The fine
    itself is still charged when the return is confirmed. Returns the loans
    flagged by this run.
    """
    today = now_local().date()
    tomorrow = today + timedelta(days=1)
    flagged = []
    notifications = []
    with transaction(db):
        active = db.query(Loan).filter(Loan.status == 'ACTIVE').with_for_update().all()
        for loan in active:
            due = local_date(loan.due_date)
            if due < today:
                loan.status = 'OVERDUE'
                flagged.append(loan)
                notifications.append(notification_service.create_notification(
                    db,
                    loan.user_id,
                    f'"{loan.book.title}" is past its due date. A fine may apply when it is returned.',
                    type='FINE',
                ))
            elif due == tomorrow:
                notifications.append(notification_service.create_notification(
                    db,
                    loan.user_id,
                    f'"{loan.book.title}" is due back tomorrow.',
                    type='WARNING',
                ))

    for notification in notifications:
        notification_service.push_notification(notifier, notification)
    logger.info(f"Overdue sweep: {len(flagged)} loan(s) flagged, {len(notifications) - len(flagged)} reminder(s) sent")
    return flagged


def initiate_return(db: Session, notifier: RealtimeNotifier, loan_id: int, user_id: int) -> Loan:
    """Borrower hands the book back; the copy stays BORROWED until a librarian confirms."""
    with transaction(db):
        loan = _get_loan(db, loan_id, lock=True)
        if loan.user_id != user_id:
            raise ForbiddenError("You can only return your own loans.")
        if loan.status not in HELD_STATUSES:
            raise BadRequestError("This loan is already being returned or has been completed.")

        loan.status = 'RETURN_PENDING'
        # A pending renewal cannot outlive the hand-in
        loan.renewal_requested = False
        librarian_ids = notification_service.notify_librarians(
            db, f'{loan.user.full_name} marked "{loan.book.title}" for return.'
        )

    db.refresh(loan)
    notification_service.push_refetch(notifier, librarian_ids)
    return loan


def confirm_return(db: Session, notifier: RealtimeNotifier, loan_id: int) -> Loan:
    """Librarian confirms the physical return: frees the copy and charges any overdue fine."""
    notification = None
    with transaction(db):
        loan = _get_loan(db, loan_id, lock=True)
        if loan.status != 'RETURN_PENDING':
            raise BadRequestError("This loan has not been marked for return.")

        book_copy = db.query(BookCopy).filter(
            BookCopy.copy_id == loan.copy_id
        ).with_for_update().first()
        book_copy.status = 'AVAILABLE'

        now = now_local()
        loan.status = 'RETURNED'
        loan.returned_at = now
        loan.renewal_requested = False

        overdue_days = max(0, (now.date() - local_date(loan.due_date)).days)
        library_settings = get_settings(db, commit=False)
        if library_settings.enable_fines and overdue_days > 0:
            amount = compute_fine_amount(overdue_days, library_settings)
            db.add(Fine(
                user_id=loan.user_id,
                loan_id=loan.loan_id,
                book_id=loan.book_id,
                amount=amount,
                reason=f"Returned {overdue_days} day(s) late",
            ))
            notification = notification_service.create_notification(
                db,
                loan.user_id,
                f'"{loan.book.title}" was returned {overdue_days} day(s) late. A fine of {amount} was issued.',
                type='FINE',
            )
            logger.info(f"Loan {loan_id} returned {overdue_days} day(s) late; fine {amount}")

        recompute_book_status(db, loan.book_id)

    db.refresh(loan)
    if notification is not None:
        notification_service.push_notification(notifier, notification)
    return loan


def request_renewal(db: Session, notifier: RealtimeNotifier, loan_id: int, user_id: int) -> Loan:
    with transaction(db):
        loan = _get_loan(db, loan_id, lock=True)
        if loan.user_id != user_id:
            raise ForbiddenError("You can only request renewal for your own loans.")
        if loan.status != 'ACTIVE':
            raise BadRequestError("Only active loans can be renewed.")
        if loan.renewal_requested:
            raise BadRequestError("You have already requested a renewal for this loan.")

        loan.renewal_requested = True
        librarian_ids = notification_service.notify_librarians(
            db, f'{loan.user.full_name} requested a renewal for "{loan.book.title}".'
        )

    db.refresh(loan)
    notification_service.push_refetch(notifier, librarian_ids)
    return loan


def _get_renewable_loan(db: Session, loan_id: int) -> Loan:
    loan = _get_loan(db, loan_id, lock=True)
    if loan.status not in HELD_STATUSES:
        raise BadRequestError("This loan is already being returned or has been completed.")
    if not loan.renewal_requested:
        raise BadRequestError("A renewal has not been requested for this loan.")
    return loan


def approve_renewal(db: Session, notifier: RealtimeNotifier, loan_id: int) -> Loan:
    with transaction(db):
        loan = _get_renewable_loan(db, loan_id)

        loan.due_date = loan.due_date + timedelta(days=RENEWAL_DURATION_DAYS)
        if local_date(loan.due_date) >= now_local().date():
            loan.status = 'ACTIVE'
        loan.renewal_requested = False
        loan.renewal_count += 1
        notification = notification_service.create_notification(
            db, loan.user_id, f'Your renewal request for "{loan.book.title}" was approved.'
        )

    db.refresh(loan)
    notification_service.push_notification(notifier, notification)
    return loan


def reject_renewal(db: Session, notifier: RealtimeNotifier, loan_id: int) -> Loan:
    with transaction(db):
        loan = _get_renewable_loan(db, loan_id)

        loan.renewal_requested = False
        notification = notification_service.create_notification(
            db, loan.user_id, f'Your renewal request for "{loan.book.title}" was rejected.', type='WARNING'
        )

    db.refresh(loan)
    notification_service.push_notification(notifier, notification)
    return loan
