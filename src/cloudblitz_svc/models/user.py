from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship, validates
from sqlalchemy import Enum as SAEnum

from .base import Base
from .enums import UserRole


def utcnow() -> datetime:
    # naive UTC with microseconds; SQLite drops tzinfo on round-trip anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(
        SAEnum(UserRole, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.User,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    has_seen_tutorial = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    assigned_enquiries = relationship(
        "Enquiry", back_populates="assigned_to", foreign_keys="Enquiry.assigned_to_id"
    )
    created_enquiries = relationship(
        "Enquiry", back_populates="created_by", foreign_keys="Enquiry.created_by_id"
    )

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', name='{self.name}', role='{self.role}')>"
