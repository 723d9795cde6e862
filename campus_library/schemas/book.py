from pydantic import Field
from typing import Optional
from .base import CamelModel

class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None

class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None

class BookBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    isbn: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    cover_image: Optional[str] = Field(None, max_length=500)
    published_year: Optional[int] = Field(None, ge=0, le=3000)
    category_id: Optional[int] = None

class BookCreate(BookBase):
    copies: int = Field(1, ge=1, le=100)

class BookUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    isbn: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    cover_image: Optional[str] = Field(None, max_length=500)
    published_year: Optional[int] = Field(None, ge=0, le=3000)
    category_id: Optional[int] = None

class CopiesCreate(CamelModel):
    count: int = Field(..., ge=1, le=100)

class CopyStatusUpdate(CamelModel):
    status: str = Field(..., pattern="^(AVAILABLE|MAINTENANCE|LOST)$")
