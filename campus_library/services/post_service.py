import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from campus_library.models.social import Channel, Post, PostComment
from campus_library.utils.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


def get_post(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.post_id == post_id).first()
    if not post:
        raise NotFoundError("Post not found.")
    return post


def create_post(db: Session, user_id: int, content: str, post_image: Optional[str] = None) -> Post:
    channel = db.query(Channel).filter(Channel.owner_id == user_id).first()
    if not channel:
        raise ForbiddenError("You need a channel to publish posts.")
    post = Post(channel_id=channel.channel_id, author_id=user_id, content=content, post_image=post_image)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def list_channel_posts(db: Session, channel_id: int) -> List[Post]:
    return db.query(Post).filter(
        Post.channel_id == channel_id
    ).order_by(Post.created_at.desc(), Post.post_id.desc()).all()


def update_post(db: Session, post_id: int, user_id: int, content: Optional[str] = None, post_image: Optional[str] = None) -> Post:
    post = get_post(db, post_id)
    if post.author_id != user_id:
        raise ForbiddenError("You can only edit your own posts.")
    if content is not None:
        post.content = content
    if post_image is not None:
        post.post_image = post_image
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post_id: int, user_id: int):
    post = get_post(db, post_id)
    if post.author_id != user_id:
        raise ForbiddenError("You can only delete your own posts.")
    # One statement removes the whole comment tree, so reply rows never outlive their parents
    db.query(PostComment).filter(PostComment.post_id == post_id).delete(synchronize_session=False)
    db.expire(post)
    db.delete(post)
    db.commit()
    logger.info(f"Post {post_id} deleted by user {user_id}")
