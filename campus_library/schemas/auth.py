from pydantic import EmailStr, Field, model_validator
from typing import Optional
from .base import CamelModel

class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class ProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)

class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self

class UserCreate(CamelModel):
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Optional[str] = Field("USER", pattern="^(USER|LIBRARIAN|MANAGER)$")

class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[str] = Field(None, pattern="^(USER|LIBRARIAN|MANAGER)$")
    status: Optional[str] = Field(None, pattern="^(ACTIVE|INACTIVE)$")
    is_premium: Optional[bool] = None
