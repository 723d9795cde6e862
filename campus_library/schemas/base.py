from pydantic import BaseModel
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Request body accepting camelCase keys (bookId) as well as snake_case (book_id)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
