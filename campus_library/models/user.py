from sqlalchemy import Column, String, DateTime, Integer, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from campus_library.database import Base
from campus_library.utils.timezone import now_local

class User(Base):
    __tablename__ = "user"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default='USER', nullable=False, index=True)
    status = Column(String(20), default='ACTIVE', nullable=False)
    is_premium = Column(Boolean, default=False, nullable=False)
    profile_picture = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local)

    # Relationships
    loans = relationship("Loan", back_populates="user")
    fines = relationship("Fine", back_populates="user")
    notifications = relationship("Notification", back_populates="user")
    channel = relationship("Channel", back_populates="owner", uselist=False)

    __table_args__ = (
        CheckConstraint("role IN ('USER', 'LIBRARIAN', 'MANAGER')", name="chk_user_role"),
        CheckConstraint("status IN ('ACTIVE', 'INACTIVE')", name="chk_user_status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": str(self.user_id),
            "firstName": self.first_name,
            "lastName": self.last_name,
            "name": self.full_name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "isPremium": self.is_premium,
            "profilePicture": self.profile_picture,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_summary(self):
        return {
            "id": str(self.user_id),
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profilePicture": self.profile_picture,
        }
