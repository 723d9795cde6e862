import math
from sqlalchemy.orm import Session, joinedload, selectinload
from campus_library.models.social import Follow, Post


def get_user_feed(db: Session, user_id: int, page: int, limit: int) -> dict:
    """Newest posts from the channels a user follows, one page at a time."""
    followed_ids = [
        row.channel_id for row in db.query(Follow.channel_id).filter(Follow.user_id == user_id).all()
    ]

    total = 0
    posts = []
    if followed_ids:
        query = db.query(Post).filter(Post.channel_id.in_(followed_ids))
        total = query.count()
        posts = query.options(
            joinedload(Post.author),
            joinedload(Post.channel),
            selectinload(Post.reactions),
        ).order_by(Post.created_at.desc(), Post.post_id.desc()).offset((page - 1) * limit).limit(limit).all()

    return {
        "data": [post.to_dict() for post in posts],
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }
