from typing import List, Optional, Tuple
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from campus_library.models.social import Channel, Follow, Post, PostComment
from campus_library.models.user import User
from campus_library.utils.errors import ConflictError, ForbiddenError, NotFoundError

CHANNEL_FIELDS = ('name', 'link_name', 'description')


def create_channel(db: Session, user: User, name: str, link_name: str, description: Optional[str] = None) -> Channel:
    if not user.is_premium:
        raise ForbiddenError("Only premium users can open a channel.")
    if db.query(Channel).filter(Channel.owner_id == user.user_id).first():
        raise ConflictError("You already have a channel.")
    if db.query(Channel).filter(Channel.link_name == link_name).first():
        raise ConflictError("This link name is taken. Please choose another one.")

    channel = Channel(owner_id=user.user_id, name=name, link_name=link_name, description=description)
    db.add(channel)
    db.commit()
    db.refresh(channel)
    return channel


def get_my_channel(db: Session, user_id: int) -> Channel:
    channel = db.query(Channel).filter(Channel.owner_id == user_id).first()
    if not channel:
        raise NotFoundError("You do not have a channel.")
    return channel


def get_channel(db: Session, channel_id: int) -> Channel:
    channel = db.query(Channel).filter(Channel.channel_id == channel_id).first()
    if not channel:
        raise NotFoundError("Channel not found.")
    return channel


def get_channel_by_link_name(db: Session, link_name: str, current_user_id: Optional[int] = None) -> Tuple[Channel, bool]:
    """Return the channel and whether the current user follows it."""
    channel = db.query(Channel).filter(Channel.link_name == link_name).first()
    if not channel:
        raise NotFoundError("Channel not found.")
    is_followed = False
    if current_user_id is not None:
        is_followed = db.query(Follow).filter(
            Follow.channel_id == channel.channel_id,
            Follow.user_id == current_user_id
        ).first() is not None
    return channel, is_followed


def update_my_channel(db: Session, user_id: int, **fields) -> Channel:
    channel = get_my_channel(db, user_id)
    link_name = fields.get('link_name')
    if link_name and link_name != channel.link_name:
        if db.query(Channel).filter(Channel.link_name == link_name).first():
            raise ConflictError("This link name is taken. Please choose another one.")
    for key, value in fields.items():
        if key in CHANNEL_FIELDS and value is not None:
            setattr(channel, key, value)
    db.commit()
    db.refresh(channel)
    return channel


def delete_my_channel(db: Session, user_id: int):
    # Posts, their comments and reactions, and follows go with the channel
    channel = get_my_channel(db, user_id)
    post_ids = select(Post.post_id).where(Post.channel_id == channel.channel_id)
    db.query(PostComment).filter(PostComment.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.expire(channel)
    db.delete(channel)
    db.commit()


def toggle_follow(db: Session, channel_id: int, user_id: int) -> bool:
    """Follow or unfollow; returns the new follow state."""
    get_channel(db, channel_id)
    existing = db.query(Follow).filter(
        Follow.channel_id == channel_id,
        Follow.user_id == user_id
    ).first()
    if existing:
        db.delete(existing)
        db.commit()
        return False

    db.add(Follow(channel_id=channel_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
    return True


def list_followed_channels(db: Session, user_id: int) -> List[Channel]:
    follows = db.query(Follow).filter(
        Follow.user_id == user_id
    ).order_by(Follow.created_at.desc(), Follow.follow_id.desc()).all()
    return [follow.channel for follow in follows]


def list_channels(db: Session, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Tuple[List[Channel], int]:
    query = db.query(Channel)
    if search:
        search_term = f"%{search}%"
        query = query.filter(or_(Channel.name.ilike(search_term), Channel.link_name.ilike(search_term)))
    total = query.count()
    channels = query.order_by(Channel.created_at.desc(), Channel.channel_id.desc()).offset((page - 1) * limit).limit(limit).all()
    return channels, total
