import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from campus_library.database import transaction
from campus_library.models.social import PostComment
from campus_library.services.post_service import get_post
from campus_library.services.realtime import RealtimeNotifier, post_comments_room
from campus_library.utils.errors import BadRequestError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


def build_comment_tree(comments: List[PostComment]) -> List[dict]:
    """Nest a flat, oldest-first list of comments under their parents."""
    children = {}
    for comment in comments:
        children.setdefault(comment.parent_id, []).append(comment)

    def build(parent_id: Optional[int]) -> List[dict]:
        return [
            {**comment.to_dict(), "replies": build(comment.comment_id)}
            for comment in children.get(parent_id, [])
        ]

    return build(None)


def get_comments_by_post(db: Session, post_id: int) -> List[dict]:
    get_post(db, post_id)
    comments = db.query(PostComment).filter(
        PostComment.post_id == post_id
    ).order_by(PostComment.created_at.asc(), PostComment.comment_id.asc()).all()
    return build_comment_tree(comments)


def create_comment(
    db: Session,
    notifier: RealtimeNotifier,
    post_id: int,
    user_id: int,
    content: str,
    parent_id: Optional[int] = None,
) -> dict:
    get_post(db, post_id)
    if parent_id is not None:
        parent = db.query(PostComment).filter(PostComment.comment_id == parent_id).first()
        if not parent or parent.post_id != post_id:
            raise BadRequestError("The comment you are replying to does not belong to this post.")

    comment = PostComment(post_id=post_id, user_id=user_id, parent_id=parent_id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    payload = {**comment.to_dict(), "replies": []}
    notifier.emit(post_comments_room(post_id), 'new_comment', payload)
    return payload


def _subtree_ids(db: Session, root_id: int) -> List[List[int]]:
    """Comment ids below root, grouped by depth (direct replies first)."""
    levels = []
    frontier = [root_id]
    while frontier:
        frontier = [
            row.comment_id for row in
            db.query(PostComment.comment_id).filter(PostComment.parent_id.in_(frontier)).all()
        ]
        if frontier:
            levels.append(frontier)
    return levels


def delete_comment(db: Session, notifier: RealtimeNotifier, comment_id: int, user_id: int):
    comment = db.query(PostComment).filter(PostComment.comment_id == comment_id).first()
    if not comment:
        raise NotFoundError("Comment not found.")

    # Only the author of the comment or the owner of the channel may delete it
    if comment.user_id != user_id and comment.post.channel.owner_id != user_id:
        raise ForbiddenError("You are not allowed to delete this comment.")

    post_id = comment.post_id
    parent_id = comment.parent_id
    with transaction(db):
        # Replies go before the comment they answer, deepest first
        for level in reversed(_subtree_ids(db, comment_id)):
            db.query(PostComment).filter(PostComment.comment_id.in_(level)).delete(synchronize_session=False)
        db.delete(comment)

    notifier.emit(post_comments_room(post_id), 'comment_deleted', {
        "commentId": str(comment_id),
        "parentId": str(parent_id) if parent_id else None,
    })
    logger.info(f"Comment {comment_id} deleted by user {user_id}")
