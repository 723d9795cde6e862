from sqlalchemy import func
from sqlalchemy.orm import Session
from campus_library.models.book import Book, BookCopy
from campus_library.models.engagement import BookSuggestion
from campus_library.models.loan import Fine, Loan
from campus_library.models.user import User
from campus_library.utils.constants import ROLE_USER


def get_librarian_stats(db: Session) -> dict:
    copy_counts = dict(
        db.query(BookCopy.status, func.count(BookCopy.copy_id)).group_by(BookCopy.status).all()
    )
    stats = {
        "totalBookTitles": db.query(func.count(Book.book_id)).scalar(),
        "totalBookCopies": sum(copy_counts.values()),
        "borrowedCopies": copy_counts.get('BORROWED', 0),
        "availableCopies": copy_counts.get('AVAILABLE', 0),
        "totalUsers": db.query(func.count(User.user_id)).filter(User.role == ROLE_USER).scalar(),
        "newSuggestions": db.query(func.count(BookSuggestion.suggestion_id)).filter(
            BookSuggestion.status == 'PENDING'
        ).scalar(),
        "pendingReturns": db.query(func.count(Loan.loan_id)).filter(
            Loan.status == 'RETURN_PENDING'
        ).scalar(),
        "unpaidFinesTotal": float(
            db.query(func.coalesce(func.sum(Fine.amount), 0)).filter(Fine.is_paid.is_(False)).scalar()
        ),
    }
    return stats


def get_user_stats(db: Session, user_id: int) -> dict:
    return {
        "activeLoans": db.query(func.count(Loan.loan_id)).filter(
            Loan.user_id == user_id,
            Loan.status.in_(('ACTIVE', 'OVERDUE'))
        ).scalar(),
        "unpaidFines": db.query(func.count(Fine.fine_id)).filter(
            Fine.user_id == user_id,
            Fine.is_paid.is_(False)
        ).scalar(),
    }
