from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from campus_library.database import Base
from campus_library.utils.timezone import now_local

class Category(Base):
    __tablename__ = "category"

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    books = relationship("Book", back_populates="category")

    def to_dict(self):
        return {
            "id": str(self.category_id),
            "name": self.name,
            "description": self.description,
        }

class Book(Base):
    __tablename__ = "book"

    book_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    isbn = Column(String(20), unique=True, nullable=True)
    description = Column(Text, nullable=True)
    cover_image = Column(String(500), nullable=True)
    published_year = Column(Integer, nullable=True)
    category_id = Column(Integer, ForeignKey("category.category_id", ondelete="SET NULL"), nullable=True, index=True)
    # Derived from copies and pending pickups; only book_status.recompute_book_status writes it
    status = Column(String(20), default='BORROWED', nullable=False, index=True)
    total_copies = Column(Integer, default=0, nullable=False)
    available_copies = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_local)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local)

    # Relationships
    category = relationship("Category", back_populates="books")
    copies = relationship("BookCopy", back_populates="book", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("status IN ('AVAILABLE', 'BORROWED', 'RESERVED')", name="chk_book_status"),
    )

    def to_dict(self):
        return {
            "id": str(self.book_id),
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "description": self.description,
            "coverImage": self.cover_image,
            "publishedYear": self.published_year,
            "categoryId": str(self.category_id) if self.category_id else None,
            "category": self.category.to_dict() if self.category else None,
            "status": self.status,
            "totalCopies": self.total_copies,
            "availableCopies": self.available_copies,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_summary(self):
        return {
            "id": str(self.book_id),
            "title": self.title,
            "author": self.author,
            "coverImage": self.cover_image,
        }

class BookCopy(Base):
    __tablename__ = "book_copy"

    copy_id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, ForeignKey("book.book_id", ondelete="CASCADE"), nullable=False, index=True)
    barcode = Column(String(100), unique=True, nullable=False, index=True)
    status = Column(String(20), default='AVAILABLE', nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    book = relationship("Book", back_populates="copies")
    loans = relationship("Loan", back_populates="copy")

    __table_args__ = (
        CheckConstraint("status IN ('AVAILABLE', 'BORROWED', 'MAINTENANCE', 'LOST')", name="chk_copy_status"),
    )

    def to_dict(self):
        return {
            "id": str(self.copy_id),
            "bookId": str(self.book_id),
            "barcode": self.barcode,
            "status": self.status,
        }
