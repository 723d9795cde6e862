from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.services.auth import get_current_user
from campus_library.services.feed_service import get_user_feed
from campus_library.utils.constants import DEFAULT_PAGE_LIMIT, DEFAULT_PAGE_NUMBER, MAX_PAGE_LIMIT

router = APIRouter(prefix="/api/v1/feed", tags=["Feed"])

@router.get("")
async def get_feed(
    page: int = Query(DEFAULT_PAGE_NUMBER, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Newest posts from the channels the caller follows."""
    return get_user_feed(db, current_user.user_id, page, limit)
