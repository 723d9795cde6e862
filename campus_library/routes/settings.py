from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.loan import SettingsUpdate
from campus_library.services import settings_service
from campus_library.services.auth import get_current_user, require_roles
from campus_library.utils.constants import STAFF_ROLES

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])

@router.get("")
async def get_library_settings(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return settings_service.get_settings(db).to_dict()

@router.patch("")
async def update_library_settings(
    body: SettingsUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(*STAFF_ROLES))
):
    """Change fine rules. A CUSTOM interval needs a positive fineIntervalDays."""
    library_settings = settings_service.update_settings(db, **body.model_dump(exclude_unset=True))
    return library_settings.to_dict()
