"""Revocation workflow database models.

Stores revocation requests for decisions and their state transition history.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, JSON, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from mandates.db.base import Base


class RevocationRequest(Base):
    """
    One attempt to revoke a decision.
    
    ``required_approvers`` holds user IDs (as strings) fixed at creation.
    ``approvals`` is an append-only list of
    ``{"user_id", "approved_at", "signature"}`` entries and
    ``signature_verification`` is the snapshot produced by the signature
    verifier. Both JSON columns are replaced wholesale on every change.
    """
    __tablename__ = "revocation_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    decision_id = Column(Uuid, ForeignKey("decisions.id"), nullable=False, index=True)
    business_profile_id = Column(Uuid, ForeignKey("business_profiles.id"), nullable=False, index=True)
    
    reason = Column(Text, nullable=False)
    
    # Request tracking
    requested_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    required_approvers = Column(JSON, nullable=False, default=list)
    
    # Revoking document
    document_url = Column(Text, nullable=True)
    document_name = Column(String(255), nullable=True)
    document_content_type = Column(String(100), nullable=True)
    document_uploaded_at = Column(DateTime, nullable=True)
    signature_verification = Column(JSON, nullable=True)
    
    approvals = Column(JSON, nullable=False, default=list)
    
    # Workflow state
    status = Column(String(50), nullable=False, default="pending", index=True)
    
    # Resolution (terminal states only)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolution_notes = Column(Text, nullable=True)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    decision = relationship("Decision", back_populates="revocation_requests")
    requester = relationship("User", foreign_keys=[requested_by])
    resolver = relationship("User", foreign_keys=[resolved_by])
    history = relationship(
        "RevocationHistory",
        back_populates="request",
        order_by="RevocationHistory.sequence",
        cascade="all, delete-orphan",
    )
    
    def __repr__(self) -> str:
        return f"<RevocationRequest decision={self.decision_id} [{self.status}]>"


class RevocationHistory(Base):
    """
    Records all state transitions for revocation requests.
    
    Creation is recorded with an empty ``from_state``.
    """
    __tablename__ = "revocation_history"
    __table_args__ = (
        UniqueConstraint("request_id", "sequence", name="uq_revocation_history_request_id_sequence"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(Uuid, ForeignKey("revocation_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)  # 1-based position within the request
    
    # Transition details
    from_state = Column(String(50), nullable=True)
    to_state = Column(String(50), nullable=False)
    transition = Column(String(50), nullable=False)
    
    # Actor
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    
    comment = Column(Text, nullable=True)
    extra_data = Column(JSON, nullable=False, default=dict)
    
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    
    # Relationships
    request = relationship("RevocationRequest", back_populates="history")
    user = relationship("User")
    
    def __repr__(self) -> str:
        return f"<RevocationHistory {self.from_state} -> {self.to_state}>"
