import logging
from typing import List, Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from campus_library.database import transaction
from campus_library.models.engagement import BookSuggestion, Favorite, Notification
from campus_library.models.loan import Fine, Loan, Reservation
from campus_library.models.social import Channel, Follow, Post, PostComment, PostReaction
from campus_library.models.user import User
from campus_library.services.auth import get_password_hash
from campus_library.utils.constants import ROLE_USER
from campus_library.utils.errors import BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

USER_FIELDS = ('first_name', 'last_name', 'role', 'status', 'is_premium', 'profile_picture')


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found.")
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.user_id.desc()).all()


def search_users(db: Session, term: Optional[str]) -> List[User]:
    if not term:
        return []
    search_term = f"%{term}%"
    return db.query(User).filter(
        User.role == ROLE_USER,
        or_(
            User.first_name.ilike(search_term),
            User.last_name.ilike(search_term),
            User.email.ilike(search_term)
        )
    ).order_by(User.first_name).limit(10).all()


def create_user(
    db: Session,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
) -> User:
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("This email is already in use.")
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        status='ACTIVE',
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.user_id} created with role {role}")
    return user


def update_user(db: Session, user_id: int, **fields) -> User:
    user = get_user(db, user_id)
    for key, value in fields.items():
        if key in USER_FIELDS and value is not None:
            setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, acting_user_id: int):
    """Remove a user together with everything that belongs to them."""
    if user_id == acting_user_id:
        raise BadRequestError("You cannot delete your own account.")
    with transaction(db):
        user = get_user(db, user_id)
        if db.query(Loan).filter(Loan.user_id == user_id, Loan.status != 'RETURNED').first():
            raise BadRequestError("This user still has books on loan.")

        channel_posts = select(Post.post_id).join(Channel).where(Channel.owner_id == user_id)
        own_comments = select(PostComment.comment_id).where(PostComment.user_id == user_id)
        # Other people's replies to this user's comments become top-level comments
        db.query(PostComment).filter(
            PostComment.parent_id.in_(own_comments),
            PostComment.user_id != user_id
        ).update({PostComment.parent_id: None}, synchronize_session=False)
        db.query(PostComment).filter(
            or_(PostComment.user_id == user_id, PostComment.post_id.in_(channel_posts))
        ).delete(synchronize_session=False)
        channel = db.query(Channel).filter(Channel.owner_id == user_id).first()
        if channel:
            db.delete(channel)
            db.flush()
        for model in (PostReaction, Follow, Notification, Fine, Reservation, Favorite, BookSuggestion):
            db.query(model).filter(model.user_id == user_id).delete(synchronize_session=False)
        db.query(Loan).filter(Loan.user_id == user_id).delete(synchronize_session=False)
        db.expire(user)
        db.delete(user)
    logger.info(f"User {user_id} deleted")
