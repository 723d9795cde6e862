from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.engagement import FavoriteCreate
from campus_library.services import favorite_service
from campus_library.services.auth import get_current_user

router = APIRouter(prefix="/api/v1/favorites", tags=["Favorites"])

@router.get("")
async def get_favorites(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [f.to_dict() for f in favorite_service.list_user_favorites(db, current_user.user_id)]

@router.post("", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    body: FavoriteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return favorite_service.add_favorite(db, current_user.user_id, body.book_id).to_dict()

@router.get("/{book_id}/check")
async def check_favorite(book_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"isFavorite": favorite_service.is_favorite(db, current_user.user_id, book_id)}

@router.delete("/{book_id}")
async def remove_favorite(book_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    favorite_service.remove_favorite(db, current_user.user_id, book_id)
    return {"message": "Book removed from favorites."}
