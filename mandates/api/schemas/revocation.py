"""Revocation request schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SignatureVerificationPayload(BaseModel):
    has_signature: bool
    crypto_valid: bool
    signer_subject: Optional[str] = None
    signing_time: Optional[str] = None
    notes: List[str] = []
    verified_at: Optional[datetime] = None


class RevocationApprovalResponse(BaseModel):
    user_id: UUID
    approved_at: datetime
    signature: str


class RevocationRequestResponse(BaseModel):
    id: UUID
    decision_id: UUID
    business_profile_id: UUID
    reason: str
    requested_by: Optional[UUID]
    requested_at: datetime
    required_approvers: List[UUID]
    document_url: Optional[str]
    document_name: Optional[str]
    document_content_type: Optional[str]
    document_uploaded_at: Optional[datetime]
    signature_verification: Optional[SignatureVerificationPayload]
    approvals: List[RevocationApprovalResponse]
    status: str
    resolved_at: Optional[datetime]
    resolved_by: Optional[UUID]
    resolution_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RevocationHistoryResponse(BaseModel):
    id: UUID
    sequence: int
    from_state: Optional[str]
    to_state: str
    transition: str
    user_id: Optional[UUID]
    comment: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class RevocationListResponse(BaseModel):
    items: List[RevocationRequestResponse]
    total: int
    page: int
    per_page: int


class RevocationCreate(BaseModel):
    decision_id: UUID
    reason: str = Field(..., min_length=1)
    required_approvers: List[UUID] = Field(..., min_length=1)
    document_url: Optional[str] = None
    document_name: Optional[str] = None


class ApproveAction(BaseModel):
    signature: str = Field(..., min_length=1)


class RejectAction(BaseModel):
    notes: Optional[str] = None


class RevocationActionsResponse(BaseModel):
    status: str
    actions: List[str]
