from .auth import UserLogin, ProfileUpdate, PasswordChange, UserCreate, UserUpdate
from .book import (
    CategoryCreate, CategoryUpdate,
    BookBase, BookCreate, BookUpdate,
    CopiesCreate, CopyStatusUpdate
)
from .loan import LoanCreate, ManualFineCreate, FineAmountUpdate, SettingsUpdate
from .engagement import SuggestionCreate, SuggestionStatusUpdate, FavoriteCreate
from .social import (
    ChannelCreate, ChannelUpdate,
    PostCreate, PostUpdate,
    CommentCreate, ReactionToggle
)

__all__ = [
    "UserLogin", "ProfileUpdate", "PasswordChange", "UserCreate", "UserUpdate",
    "CategoryCreate", "CategoryUpdate",
    "BookBase", "BookCreate", "BookUpdate",
    "CopiesCreate", "CopyStatusUpdate",
    "LoanCreate", "ManualFineCreate", "FineAmountUpdate", "SettingsUpdate",
    "SuggestionCreate", "SuggestionStatusUpdate", "FavoriteCreate",
    "ChannelCreate", "ChannelUpdate",
    "PostCreate", "PostUpdate",
    "CommentCreate", "ReactionToggle",
]
