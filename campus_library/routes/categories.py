from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
import redis
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.book import CategoryCreate, CategoryUpdate
from campus_library.services import category_service
from campus_library.services.auth import require_roles
from campus_library.services.cache import get_cache
from campus_library.utils.constants import STAFF_ROLES

router = APIRouter(prefix="/api/v1/categories", tags=["Categories"])

staff_only = require_roles(*STAFF_ROLES)

@router.get("")
async def get_categories(db: Session = Depends(get_db), cache: Optional[redis.Redis] = Depends(get_cache)):
    """All categories sorted by name, served from the cache when possible."""
    return category_service.find_all_categories(db, cache)

@router.get("/{category_id}")
async def get_category(category_id: int, db: Session = Depends(get_db)):
    return category_service.get_category(db, category_id).to_dict()

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    cache: Optional[redis.Redis] = Depends(get_cache),
    _: User = Depends(staff_only)
):
    return category_service.create_category(db, cache, body.name, body.description).to_dict()

@router.patch("/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    db: Session = Depends(get_db),
    cache: Optional[redis.Redis] = Depends(get_cache),
    _: User = Depends(staff_only)
):
    category = category_service.update_category(db, cache, category_id, name=body.name, description=body.description)
    return category.to_dict()

@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    cache: Optional[redis.Redis] = Depends(get_cache),
    _: User = Depends(staff_only)
):
    category_service.delete_category(db, cache, category_id)
    return {"message": "Category deleted successfully."}
