import math
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.social import ChannelCreate, ChannelUpdate
from campus_library.services import channel_service, post_service
from campus_library.services.auth import get_current_user
from campus_library.utils.constants import DEFAULT_PAGE_LIMIT, DEFAULT_PAGE_NUMBER, MAX_PAGE_LIMIT

router = APIRouter(prefix="/api/v1/channels", tags=["Channels"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_channel(
    body: ChannelCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Open a channel. Only premium users may own one."""
    channel = channel_service.create_channel(db, current_user, body.name, body.link_name, body.description)
    return channel.to_dict()

@router.get("")
async def get_channels(
    search: Optional[str] = Query(None),
    page: int = Query(DEFAULT_PAGE_NUMBER, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user)
):
    channels, total = channel_service.list_channels(db, search, page, limit)
    return {
        "data": [channel.to_dict() for channel in channels],
        "meta": {"total": total, "page": page, "limit": limit, "totalPages": math.ceil(total / limit)},
    }

@router.get("/my")
async def get_my_channel(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return channel_service.get_my_channel(db, current_user.user_id).to_dict()

@router.patch("/my")
async def update_my_channel(
    body: ChannelUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    channel = channel_service.update_my_channel(db, current_user.user_id, **body.model_dump(exclude_unset=True))
    return channel.to_dict()

@router.delete("/my")
async def delete_my_channel(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    channel_service.delete_my_channel(db, current_user.user_id)
    return {"message": "Channel deleted successfully."}

@router.get("/followed")
async def get_followed_channels(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [channel.to_dict() for channel in channel_service.list_followed_channels(db, current_user.user_id)]

@router.get("/link/{link_name}")
async def get_channel_by_link_name(
    link_name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    channel, is_followed = channel_service.get_channel_by_link_name(db, link_name, current_user.user_id)
    return {**channel.to_dict(), "isFollowed": is_followed}

@router.get("/{channel_id}")
async def get_channel(channel_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return channel_service.get_channel(db, channel_id).to_dict()

@router.post("/{channel_id}/follow")
async def toggle_follow(channel_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    following = channel_service.toggle_follow(db, channel_id, current_user.user_id)
    return {
        "message": "Channel followed." if following else "Channel unfollowed.",
        "isFollowed": following,
    }

@router.get("/{channel_id}/posts")
async def get_channel_posts(channel_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    channel_service.get_channel(db, channel_id)
    return [post.to_dict() for post in post_service.list_channel_posts(db, channel_id)]
