from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.social import PostCreate, PostUpdate
from campus_library.services import comment_service, post_service, reaction_service
from campus_library.services.auth import get_current_user

router = APIRouter(prefix="/api/v1/posts", tags=["Posts"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(body: PostCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Publish a post to the caller's own channel."""
    return post_service.create_post(db, current_user.user_id, body.content, body.post_image).to_dict()

@router.get("/{post_id}")
async def get_post(post_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return post_service.get_post(db, post_id).to_dict()

@router.patch("/{post_id}")
async def update_post(
    post_id: int,
    body: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    post = post_service.update_post(db, post_id, current_user.user_id, body.content, body.post_image)
    return post.to_dict()

@router.delete("/{post_id}")
async def delete_post(post_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    post_service.delete_post(db, post_id, current_user.user_id)
    return {"message": "Post deleted successfully."}

@router.get("/{post_id}/comments")
async def get_post_comments(post_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    """Comments of a post as a tree of replies."""
    return comment_service.get_comments_by_post(db, post_id)

@router.get("/{post_id}/reactions")
async def get_post_reactions(post_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    post_service.get_post(db, post_id)
    return reaction_service.get_reaction_summary(db, post_id)
