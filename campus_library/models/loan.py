from sqlalchemy import Column, String, DateTime, Integer, Numeric, Boolean, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from campus_library.database import Base
from campus_library.utils.timezone import now_local

class Loan(Base):
    __tablename__ = "loan"

    loan_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("book.book_id", ondelete="CASCADE"), nullable=False, index=True)
    copy_id = Column(Integer, ForeignKey("book_copy.copy_id", ondelete="RESTRICT"), nullable=False, index=True)
    borrowed_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    returned_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), default='ACTIVE', nullable=False, index=True)
    renewal_requested = Column(Boolean, default=False, nullable=False)
    renewal_count = Column(Integer, default=0, nullable=False)

    # Relationships
    user = relationship("User", back_populates="loans")
    book = relationship("Book")
    copy = relationship("BookCopy", back_populates="loans")
    fines = relationship("Fine", back_populates="loan")

    __table_args__ = (
        CheckConstraint("status IN ('ACTIVE', 'OVERDUE', 'RETURN_PENDING', 'RETURNED')", name="chk_loan_status"),
    )

    def to_dict(self):
        return {
            "id": str(self.loan_id),
            "userId": str(self.user_id),
            "bookId": str(self.book_id),
            "copyId": str(self.copy_id),
            "borrowedAt": self.borrowed_at.isoformat() if self.borrowed_at else None,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "returnedAt": self.returned_at.isoformat() if self.returned_at else None,
            "status": self.status,
            "renewalRequested": self.renewal_requested,
            "renewalCount": self.renewal_count,
            "barcode": self.copy.barcode if self.copy else None,
            "book": self.book.to_summary() if self.book else None,
            "user": self.user.to_summary() if self.user else None,
        }

class Fine(Base):
    __tablename__ = "fine"

    fine_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    loan_id = Column(Integer, ForeignKey("loan.loan_id", ondelete="SET NULL"), nullable=True, index=True)
    book_id = Column(Integer, ForeignKey("book.book_id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(Text, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    user = relationship("User", back_populates="fines")
    loan = relationship("Loan", back_populates="fines")
    book = relationship("Book")

    def to_dict(self):
        return {
            "id": str(self.fine_id),
            "userId": str(self.user_id),
            "loanId": str(self.loan_id) if self.loan_id else None,
            "bookId": str(self.book_id) if self.book_id else None,
            "amount": float(self.amount),
            "reason": self.reason,
            "isPaid": self.is_paid,
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "user": self.user.to_summary() if self.user else None,
            "book": self.book.to_summary() if self.book else None,
        }

class Reservation(Base):
    """Hold on a book for one user. Only read by the book status recompute; no routes create these."""
    __tablename__ = "reservation"

    reservation_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("book.book_id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default='ACTIVE', nullable=False, index=True)
    reserved_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'AWAITING_PICKUP', 'FULFILLED', 'CANCELLED')",
            name="chk_reservation_status",
        ),
    )

class LibrarySettings(Base):
    __tablename__ = "library_settings"

    settings_id = Column(Integer, primary_key=True, autoincrement=True)
    enable_fines = Column(Boolean, default=True, nullable=False)
    fine_amount_per_day = Column(Numeric(12, 2), nullable=False)
    fine_interval_unit = Column(String(20), default='DAILY', nullable=False)
    fine_interval_days = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local)

    __table_args__ = (
        CheckConstraint(
            "fine_interval_unit IN ('DAILY', 'WEEKLY', 'MONTHLY', 'CUSTOM')",
            name="chk_fine_interval_unit",
        ),
    )

    def to_dict(self):
        return {
            "id": str(self.settings_id),
            "enableFines": self.enable_fines,
            "fineAmountPerDay": float(self.fine_amount_per_day),
            "fineIntervalUnit": self.fine_interval_unit,
            "fineIntervalDays": self.fine_interval_days,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
