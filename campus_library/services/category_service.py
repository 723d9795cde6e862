import logging
from typing import List, Optional
import redis
from sqlalchemy.orm import Session
from campus_library.config import settings
from campus_library.models.book import Book, Category
from campus_library.services.cache import cache_delete, cache_get_json, cache_set_json
from campus_library.utils.constants import CATEGORIES_CACHE_KEY
from campus_library.utils.errors import BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def find_all_categories(db: Session, cache: Optional[redis.Redis]) -> List[dict]:
    cached = cache_get_json(cache, CATEGORIES_CACHE_KEY)
    if cached is not None:
        logger.debug("Categories served from cache")
        return cached

    logger.debug("Categories read from database")
    categories = [c.to_dict() for c in db.query(Category).order_by(Category.name.asc()).all()]
    cache_set_json(cache, CATEGORIES_CACHE_KEY, categories, settings.category_cache_ttl_seconds)
    return categories


def get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.category_id == category_id).first()
    if not category:
        raise NotFoundError("Category not found.")
    return category


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(Category).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.category_id != exclude_id)
    if query.first():
        raise ConflictError("A category with this name already exists.")


def create_category(db: Session, cache: Optional[redis.Redis], name: str, description: Optional[str] = None) -> Category:
    _ensure_unique_name(db, name)
    category = Category(name=name, description=description)
    db.add(category)
    db.commit()
    db.refresh(category)
    cache_delete(cache, CATEGORIES_CACHE_KEY)
    return category


def update_category(
    db: Session,
    cache: Optional[redis.Redis],
    category_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Category:
    category = get_category(db, category_id)
    if name is not None and name != category.name:
        _ensure_unique_name(db, name, exclude_id=category_id)
        category.name = name
    if description is not None:
        category.description = description
    db.commit()
    db.refresh(category)
    cache_delete(cache, CATEGORIES_CACHE_KEY)
    return category


def delete_category(db: Session, cache: Optional[redis.Redis], category_id: int):
    category = get_category(db, category_id)
    if db.query(Book.book_id).filter(Book.category_id == category_id).first():
        raise BadRequestError("This category still has books and cannot be deleted.")
    db.delete(category)
    db.commit()
    cache_delete(cache, CATEGORIES_CACHE_KEY)
