from .user import User
from .book import Category, Book, BookCopy
from .loan import Loan, Fine, Reservation, LibrarySettings
from .engagement import Favorite, BookSuggestion, Notification
from .social import Channel, Follow, Post, PostComment, PostReaction

__all__ = [
    "User",
    "Category",
    "Book",
    "BookCopy",
    "Loan",
    "Fine",
    "Reservation",
    "LibrarySettings",
    "Favorite",
    "BookSuggestion",
    "Notification",
    "Channel",
    "Follow",
    "Post",
    "PostComment",
    "PostReaction",
]
