from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from campus_library.database import Base
from campus_library.utils.timezone import now_local

class Favorite(Base):
    __tablename__ = "favorite"

    favorite_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("book.book_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    book = relationship("Book")

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_favorite_user_book"),
    )

    def to_dict(self):
        return {
            "id": str(self.favorite_id),
            "userId": str(self.user_id),
            "bookId": str(self.book_id),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "book": self.book.to_dict() if self.book else None,
        }

class BookSuggestion(Base):
    __tablename__ = "book_suggestion"

    suggestion_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)
    note = Column(Text, nullable=True)
    status = Column(String(20), default='PENDING', nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("status IN ('PENDING', 'APPROVED', 'REJECTED')", name="chk_suggestion_status"),
    )

    def to_dict(self):
        return {
            "id": str(self.suggestion_id),
            "userId": str(self.user_id),
            "title": self.title,
            "author": self.author,
            "note": self.note,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "user": self.user.to_summary() if self.user else None,
        }

class Notification(Base):
    __tablename__ = "notification"

    notification_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(String(30), default='INFO', nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        CheckConstraint(
            "type IN ('INFO', 'WARNING', 'FINE', 'RESERVATION_AVAILABLE')",
            name="chk_notification_type",
        ),
    )

    def to_dict(self):
        return {
            "id": str(self.notification_id),
            "userId": str(self.user_id),
            "message": self.message,
            "type": self.type,
            "isRead": self.is_read,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
