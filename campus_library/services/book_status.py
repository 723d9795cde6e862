from sqlalchemy import func
from sqlalchemy.orm import Session
from campus_library.models.book import Book, BookCopy
from campus_library.models.loan import Reservation


def derive_book_status(available_copies: int, awaiting_pickups: int) -> str:
    """Aggregate availability of a title.

    A copy held for pickup outranks plain availability, so RESERVED wins over
    AVAILABLE; with no free copy and no pending pickup the title is BORROWED.
    """
    if awaiting_pickups > 0:
        return 'RESERVED'
    if available_copies > 0:
        return 'AVAILABLE'
    return 'BORROWED'


def recompute_book_status(db: Session, book_id: int) -> bool:
    """Refresh the copy counters and status of one book from its copies and reservations.

    Returns True when the stored row changed. The caller owns the transaction;
    this only flushes pending changes so the counts see them.
    """
    db.flush()
    book = db.query(Book).filter(Book.book_id == book_id).first()
    if book is None:
        return False

    total = db.query(func.count(BookCopy.copy_id)).filter(BookCopy.book_id == book_id).scalar()
    available = db.query(func.count(BookCopy.copy_id)).filter(
        BookCopy.book_id == book_id,
        BookCopy.status == 'AVAILABLE'
    ).scalar()
    awaiting = db.query(func.count(Reservation.reservation_id)).filter(
        Reservation.book_id == book_id,
        Reservation.status == 'AWAITING_PICKUP'
    ).scalar()

    new_status = derive_book_status(available, awaiting)
    if (book.status, book.total_copies, book.available_copies) == (new_status, total, available):
        return False

    book.status = new_status
    book.total_copies = total
    book.available_copies = available
    db.flush()
    return True
