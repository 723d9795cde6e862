from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import timedelta
from campus_library.database import get_db
from campus_library.config import settings
from campus_library.models.user import User
from campus_library.schemas.auth import UserLogin, ProfileUpdate, PasswordChange
from campus_library.services.auth import (
    authenticate_user,
    change_password,
    create_access_token,
    get_current_user
)
from campus_library.services.user_service import update_user

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

@router.post("/login")
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Authenticate user and return access token."""
    user = authenticate_user(db, credentials.email.lower(), credentials.password)

    access_token_expires = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": str(user.user_id), "role": user.role}, expires_delta=access_token_expires
    )
    return {
        "accessToken": access_token,
        "tokenType": "bearer",
        "user": user.to_dict(),
    }

@router.get("/me")
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return current_user.to_dict()

@router.patch("/me")
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = update_user(db, current_user.user_id, **profile.model_dump(exclude_unset=True))
    return user.to_dict()

@router.post("/change-password")
async def update_password(
    body: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    change_password(db, current_user, body.current_password, body.new_password)
    return {"message": "Password changed successfully."}
