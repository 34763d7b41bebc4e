"""Decision (corporate resolution) model.

Every operational document of the company traces back to an authorizing
decision. Decisions are never deleted; revocation only changes ``status``.
"""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Date, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from mandates.db.base import Base


class DecisionType(str, Enum):
    """Body that adopted the decision."""
    STRATEGIC_SHAREHOLDERS = "strategic_shareholders"  # Shareholders' resolution
    OPERATIONAL_BOARD = "operational_board"            # Management board resolution
    SUPERVISORY_BOARD = "supervisory_board"            # Supervisory board resolution


class DecisionStatus(str, Enum):
    """Lifecycle status of a decision."""
    ACTIVE = "active"                      # Currently valid
    EXPIRED = "expired"                    # Past valid_to date
    REVOKED = "revoked"                    # Revoked after approval
    SUPERSEDED = "superseded"              # Replaced by a newer decision
    REVOKE_REQUESTED = "revoke_requested"  # Revocation awaiting approval
    REVOKE_REJECTED = "revoke_rejected"    # Revocation request was rejected


class Decision(Base):
    __tablename__ = "decisions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_profile_id = Column(Uuid, ForeignKey("business_profiles.id"), nullable=False, index=True)
    decision_number = Column(String(100), nullable=True)
    
    # Metadata
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    decision_type = Column(String(50), nullable=False)
    category = Column(String(50), nullable=False, default="other")
    
    # Validity window
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)
    
    status = Column(String(50), nullable=False, default=DecisionStatus.ACTIVE.value, index=True)
    
    # Audit
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    business_profile = relationship("BusinessProfile", back_populates="decisions")
    revocation_requests = relationship(
        "RevocationRequest",
        back_populates="decision",
        order_by="RevocationRequest.created_at",
    )

    def __repr__(self) -> str:
        return f"<Decision {self.decision_number or self.id} [{self.status}]>"
