import logging
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
from campus_library.database import get_db
from campus_library.models.user import User
from campus_library.schemas.auth import UserCreate, UserUpdate
from campus_library.services import user_service
from campus_library.services.auth import require_roles
from campus_library.services.hr_client import HrClient, HrSourceError
from campus_library.services.user_import import import_users_from_workbook, sync_users_from_hr
from campus_library.utils.constants import ROLE_MANAGER, STAFF_ROLES
from campus_library.utils.errors import ApiError, BadRequestError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

staff_only = require_roles(*STAFF_ROLES)
manager_only = require_roles(ROLE_MANAGER)

@router.get("")
async def get_users(db: Session = Depends(get_db), _: User = Depends(staff_only)):
    return [user.to_dict() for user in user_service.list_users(db)]

@router.get("/search")
async def search_users(
    q: Optional[str] = Query(None, description="Search by name or e-mail"),
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    """Readers matching a search term, used when issuing a loan."""
    return [user.to_summary() for user in user_service.search_users(db, q)]

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, db: Session = Depends(get_db), _: User = Depends(manager_only)):
    user = user_service.create_user(
        db,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email.lower(),
        password=body.password,
        role=body.role,
    )
    return user.to_dict()

@router.post("/import")
async def import_users(
    file: UploadFile = File(..., description="Excel workbook (.xlsx) with an email column"),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only)
):
    """Create or refresh reader accounts from a spreadsheet."""
    if not (file.filename or "").lower().endswith(".xlsx"):
        raise BadRequestError("Please upload an .xlsx file.")
    logger.info(f"User import from {file.filename} started by user {current_user.user_id}")
    result = import_users_from_workbook(db, file.file)
    return {"message": "Users imported successfully.", "data": result}

@router.post("/sync")
async def sync_users(db: Session = Depends(get_db), current_user: User = Depends(manager_only)):
    """Create or refresh reader accounts from the HR record source."""
    try:
        client = HrClient()
        result = sync_users_from_hr(db, client)
    except HrSourceError as e:
        logger.error(f"HR sync failed: {e}")
        raise ApiError(502, str(e))
    logger.info(f"HR sync run by user {current_user.user_id}")
    return {"message": "Users synchronised successfully.", "data": result}

@router.get("/{user_id}")
async def get_user(user_id: int, db: Session = Depends(get_db), _: User = Depends(staff_only)):
    return user_service.get_user(db, user_id).to_dict()

@router.patch("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(staff_only)
):
    user = user_service.update_user(db, user_id, **body.model_dump(exclude_unset=True))
    return user.to_dict()

@router.delete("/{user_id}")
async def delete_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(manager_only)):
    user_service.delete_user(db, user_id, current_user.user_id)
    return {"message": "User deleted successfully."}
