import math
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.book import BookCreate, BookUpdate, CopiesCreate, CopyStatusUpdate
from campus_library.services import book_service
from campus_library.services.auth import get_current_user, require_roles
from campus_library.services.favorite_service import is_favorite
from campus_library.services.realtime import RealtimeNotifier, get_notifier
from campus_library.utils.constants import DEFAULT_PAGE_LIMIT, DEFAULT_PAGE_NUMBER, MAX_PAGE_LIMIT, STAFF_ROLES

router = APIRouter(prefix="/api/v1/books", tags=["Books"])

staff_only = require_roles(*STAFF_ROLES)

@router.get("")
async def get_books(
    search: Optional[str] = Query(None, description="Search by title, author, or ISBN"),
    book_status: Optional[str] = Query(None, alias="status", pattern="^(AVAILABLE|BORROWED|RESERVED)$"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    page: int = Query(DEFAULT_PAGE_NUMBER, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db)
):
    """Get a page of books with optional search and filters."""
    books, total = book_service.list_books(db, search, book_status, category_id, page, limit)
    return {
        "data": [book.to_dict() for book in books],
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        },
    }

@router.get("/{book_id}")
async def get_book(
    book_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get book details, including whether the caller has it in favorites."""
    book = book_service.get_book(db, book_id)
    return {**book.to_dict(), "isFavorite": is_favorite(db, current_user.user_id, book_id)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    body: BookCreate,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    _: User = Depends(staff_only)
):
    fields = body.model_dump(exclude={"copies"})
    book = book_service.create_book(db, notifier, copies=body.copies, **fields)
    return book.to_dict()

@router.patch("/{book_id}")
async def update_book(
    book_id: int,
    body: BookUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    book = book_service.update_book(db, book_id, **body.model_dump(exclude_unset=True))
    return book.to_dict()

@router.delete("/{book_id}")
async def delete_book(book_id: int, db: Session = Depends(get_db), _: User = Depends(staff_only)):
    book_service.delete_book(db, book_id)
    return {"message": "Book deleted successfully."}

@router.get("/{book_id}/copies")
async def get_book_copies(book_id: int, db: Session = Depends(get_db), _: User = Depends(staff_only)):
    """Get all copies of a book."""
    return [copy.to_dict() for copy in book_service.list_copies(db, book_id)]

@router.post("/{book_id}/copies", status_code=status.HTTP_201_CREATED)
async def add_book_copies(
    book_id: int,
    body: CopiesCreate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    return book_service.add_copies(db, book_id, body.count).to_dict()

@router.patch("/copies/{copy_id}")
async def update_copy_status(
    copy_id: int,
    body: CopyStatusUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    return book_service.set_copy_status(db, copy_id, body.status).to_dict()
