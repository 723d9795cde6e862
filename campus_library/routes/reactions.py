from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.social import ReactionToggle
from campus_library.services import reaction_service
from campus_library.services.auth import get_current_user
from campus_library.services.realtime import RealtimeNotifier, get_notifier

router = APIRouter(prefix="/api/v1/reactions", tags=["Reactions"])

@router.post("")
async def toggle_reaction(
    body: ReactionToggle,
    db: Session = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    """Add, switch or remove the caller's reaction on a post."""
    reaction = reaction_service.toggle_reaction(db, notifier, body.post_id, current_user.user_id, body.emoji)
    return {
        "reaction": reaction.to_dict() if reaction else None,
        "reactions": reaction_service.get_reaction_summary(db, body.post_id),
    }
