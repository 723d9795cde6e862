import logging
import uuid
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session
from campus_library.database import transaction
from campus_library.models.book import Book, BookCopy, Category
from campus_library.models.engagement import Favorite
from campus_library.models.loan import Loan, Reservation
from campus_library.services import notification_service
from campus_library.services.book_status import recompute_book_status
from campus_library.services.realtime import RealtimeNotifier
from campus_library.utils.constants import ROLE_USER
from campus_library.utils.errors import BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

OPEN_LOAN_STATUSES = ('ACTIVE', 'OVERDUE', 'RETURN_PENDING')
BOOK_FIELDS = ('title', 'author', 'isbn', 'description', 'cover_image', 'published_year', 'category_id')


def _new_barcode(book_id: int) -> str:
    return f"BK{book_id:06d}-{uuid.uuid4().hex[:8].upper()}"


def get_book(db: Session, book_id: int) -> Book:
    book = db.query(Book).filter(Book.book_id == book_id).first()
    if not book:
        raise NotFoundError("Book not found.")
    return book


def _check_references(db: Session, category_id: Optional[int], isbn: Optional[str], exclude_id: Optional[int] = None):
    if category_id is not None and not db.query(Category).filter(Category.category_id == category_id).first():
        raise NotFoundError("Category not found.")
    if isbn:
        query = db.query(Book).filter(Book.isbn == isbn)
        if exclude_id is not None:
            query = query.filter(Book.book_id != exclude_id)
        if query.first():
            raise ConflictError("A book with this ISBN already exists.")


def create_book(db: Session, notifier: RealtimeNotifier, copies: int = 1, **fields) -> Book:
    """Catalogue a new title with its physical copies and tell every reader about it."""
    with transaction(db):
        _check_references(db, fields.get('category_id'), fields.get('isbn'))
        book = Book(**{k: v for k, v in fields.items() if k in BOOK_FIELDS})
        db.add(book)
        db.flush()
        db.add_all([BookCopy(book_id=book.book_id, barcode=_new_barcode(book.book_id)) for _ in range(copies)])
        recompute_book_status(db, book.book_id)
        reader_ids = notification_service.notify_role(
            db, ROLE_USER, f'A new book was added to the library: "{book.title}"!'
        )

    db.refresh(book)
    notification_service.push_refetch(notifier, reader_ids)
    logger.info(f"Book {book.book_id} created with {copies} copies")
    return book


def list_books(
    db: Session,
    search: Optional[str] = None,
    status: Optional[str] = None,
    category_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Book], int]:
    query = db.query(Book)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Book.title.ilike(search_term),
                Book.author.ilike(search_term),
                Book.isbn.ilike(search_term)
            )
        )
    if status:
        query = query.filter(Book.status == status)
    if category_id:
        query = query.filter(Book.category_id == category_id)

    total = query.count()
    books = query.order_by(Book.created_at.desc(), Book.book_id.desc()).offset((page - 1) * limit).limit(limit).all()
    return books, total


def update_book(db: Session, book_id: int, **fields) -> Book:
    book = get_book(db, book_id)
    _check_references(db, fields.get('category_id'), fields.get('isbn'), exclude_id=book_id)
    for key, value in fields.items():
        if key in BOOK_FIELDS:
            setattr(book, key, value)
    db.commit()
    db.refresh(book)
    return book


def delete_book(db: Session, book_id: int):
    with transaction(db):
        book = get_book(db, book_id)
        open_loan = db.query(Loan).filter(
            Loan.book_id == book_id,
            Loan.status.in_(OPEN_LOAN_STATUSES)
        ).first()
        if book.status != 'AVAILABLE' or open_loan:
            raise BadRequestError(
                "You can only delete books that are currently available. This book is either on loan or reserved."
            )
        # Loan history goes with the title; fines keep their amount but lose the link
        db.query(Loan).filter(Loan.book_id == book_id).delete(synchronize_session=False)
        db.query(Reservation).filter(Reservation.book_id == book_id).delete(synchronize_session=False)
        db.query(Favorite).filter(Favorite.book_id == book_id).delete(synchronize_session=False)
        db.delete(book)
    logger.info(f"Book {book_id} deleted")


def list_copies(db: Session, book_id: int) -> List[BookCopy]:
    get_book(db, book_id)
    return db.query(BookCopy).filter(BookCopy.book_id == book_id).order_by(BookCopy.copy_id).all()


def add_copies(db: Session, book_id: int, count: int) -> Book:
    with transaction(db):
        book = get_book(db, book_id)
        db.add_all([BookCopy(book_id=book_id, barcode=_new_barcode(book_id)) for _ in range(count)])
        recompute_book_status(db, book_id)
    db.refresh(book)
    return book


def set_copy_status(db: Session, copy_id: int, status: str) -> BookCopy:
    """Move a copy in or out of circulation (MAINTENANCE, LOST, back to AVAILABLE)."""
    with transaction(db):
        book_copy = db.query(BookCopy).filter(BookCopy.copy_id == copy_id).with_for_update().first()
        if not book_copy:
            raise NotFoundError("Book copy not found.")
        if book_copy.status == 'BORROWED':
            raise BadRequestError("A borrowed copy changes status through its loan.")
        book_copy.status = status
        recompute_book_status(db, book_copy.book_id)
    db.refresh(book_copy)
    return book_copy
