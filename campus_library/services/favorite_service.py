from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from campus_library.models.book import Book
from campus_library.models.engagement import Favorite
from campus_library.utils.errors import BadRequestError, NotFoundError


def _find(db: Session, user_id: int, book_id: int):
    return db.query(Favorite).filter(
        Favorite.user_id == user_id,
        Favorite.book_id == book_id
    ).first()


def add_favorite(db: Session, user_id: int, book_id: int) -> Favorite:
    if not db.query(Book).filter(Book.book_id == book_id).first():
        raise NotFoundError("Book not found.")
    if _find(db, user_id, book_id):
        raise BadRequestError("This book is already in your favorites.")

    favorite = Favorite(user_id=user_id, book_id=book_id)
    db.add(favorite)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same pair
        db.rollback()
        raise BadRequestError("This book is already in your favorites.")
    db.refresh(favorite)
    return favorite


def remove_favorite(db: Session, user_id: int, book_id: int):
    favorite = _find(db, user_id, book_id)
    if not favorite:
        raise NotFoundError("This book is not in your favorites.")
    db.delete(favorite)
    db.commit()


def list_user_favorites(db: Session, user_id: int) -> List[Favorite]:
    return db.query(Favorite).filter(
        Favorite.user_id == user_id
    ).order_by(Favorite.created_at.desc(), Favorite.favorite_id.desc()).all()


def is_favorite(db: Session, user_id: int, book_id: int) -> bool:
    return _find(db, user_id, book_id) is not None
