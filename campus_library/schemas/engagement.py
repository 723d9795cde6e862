from pydantic import Field
from typing import Optional
from .base import CamelModel

class SuggestionCreate(CamelModel):
    title: str = Field(..., min_length=2, max_length=255)
    author: Optional[str] = Field(None, max_length=255)
    note: Optional[str] = Field(None, max_length=2000)

class SuggestionStatusUpdate(CamelModel):
    status: str = Field(..., pattern="^(PENDING|APPROVED|REJECTED)$")

class FavoriteCreate(CamelModel):
    book_id: int
