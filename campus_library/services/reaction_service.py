from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from campus_library.models.social import PostReaction
from campus_library.services.post_service import get_post
from campus_library.services.realtime import RealtimeNotifier, post_reactions_room


def _find(db: Session, post_id: int, user_id: int) -> Optional[PostReaction]:
    return db.query(PostReaction).filter(
        PostReaction.post_id == post_id,
        PostReaction.user_id == user_id
    ).first()


def get_reaction_summary(db: Session, post_id: int) -> List[dict]:
    rows = db.query(PostReaction.emoji, func.count(PostReaction.reaction_id)).filter(
        PostReaction.post_id == post_id
    ).group_by(PostReaction.emoji).order_by(PostReaction.emoji).all()
    return [{"emoji": emoji, "count": count} for emoji, count in rows]


def toggle_reaction(db: Session, notifier: RealtimeNotifier, post_id: int, user_id: int, emoji: str) -> Optional[PostReaction]:
    """Add, switch or remove the user's single reaction on a post.

    Same emoji again removes it, a different emoji replaces it. Returns the
    reaction now in place, or None when it was removed.
    """
    get_post(db, post_id)
    existing = _find(db, post_id, user_id)

    reaction = None
    if existing and existing.emoji == emoji:
        db.delete(existing)
        db.commit()
    elif existing:
        existing.emoji = emoji
        reaction = existing
        db.commit()
    else:
        reaction = PostReaction(post_id=post_id, user_id=user_id, emoji=emoji)
        db.add(reaction)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent first click inserted the row; keep this click's emoji on it
            db.rollback()
            reaction = _find(db, post_id, user_id)
            reaction.emoji = emoji
            db.commit()
    if reaction is not None:
        db.refresh(reaction)

    notifier.emit(post_reactions_room(post_id), 'reactions_updated', {
        "postId": str(post_id),
        "reactions": get_reaction_summary(db, post_id),
    })
    return reaction
