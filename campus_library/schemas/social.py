from pydantic import Field
from typing import Optional
from .base import CamelModel

LINK_NAME_PATTERN = "^[a-z0-9_-]{3,50}$"

class ChannelCreate(CamelModel):
    name: str = Field(..., min_length=3, max_length=100)
    link_name: str = Field(..., pattern=LINK_NAME_PATTERN)
    description: Optional[str] = Field(None, max_length=1000)

class ChannelUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    link_name: Optional[str] = Field(None, pattern=LINK_NAME_PATTERN)
    description: Optional[str] = Field(None, max_length=1000)

class PostCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)
    post_image: Optional[str] = Field(None, max_length=500)

class PostUpdate(CamelModel):
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    post_image: Optional[str] = Field(None, max_length=500)

class CommentCreate(CamelModel):
    post_id: int
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[int] = None

class ReactionToggle(CamelModel):
    post_id: int
    emoji: str = Field(..., min_length=1, max_length=16)
