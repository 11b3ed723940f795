from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship, validates
from sqlalchemy import Enum as SAEnum

from .base import Base
from .enums import EnquiryPriority, EnquiryStatus
from .user import utcnow


class Enquiry(Base):
    __tablename__ = "enquiries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(100), nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String(17), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(
        SAEnum(EnquiryStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EnquiryStatus.New,
        index=True,
    )
    priority = Column(
        SAEnum(EnquiryPriority, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EnquiryPriority.Medium,
        index=True,
    )
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    notes = Column(JSON, nullable=False, default=list)
    deleted_at = Column(DateTime, nullable=True, default=None, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    assigned_to = relationship("User", back_populates="assigned_enquiries", foreign_keys=[assigned_to_id])
    created_by = relationship("User", back_populates="created_enquiries", foreign_keys=[created_by_id])

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Enquiry(id={self.id}, customer_name='{self.customer_name}', status='{self.status}')>"
