from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.services import dashboard_service
from campus_library.services.auth import get_current_user, require_roles
from campus_library.utils.constants import STAFF_ROLES

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])

@router.get("/librarian")
async def get_librarian_dashboard(db: Session = Depends(get_db), _: User = Depends(require_roles(*STAFF_ROLES))):
    """Catalogue, circulation and fine totals for the staff dashboard."""
    return dashboard_service.get_librarian_stats(db)

@router.get("/user")
async def get_user_dashboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return dashboard_service.get_user_stats(db, current_user.user_id)
