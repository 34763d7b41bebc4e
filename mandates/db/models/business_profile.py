import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship

from mandates.db.base import Base


class BusinessProfile(Base):
    """A company whose decisions are kept in the register (the tenant)."""
    __tablename__ = "business_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    nip = Column(String(10), unique=True, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    users = relationship("User", back_populates="business_profile")
    decisions = relationship("Decision", back_populates="business_profile")
