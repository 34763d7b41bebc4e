"""Decision schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from mandates.db.models.decision import DecisionType


class DecisionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    decision_type: DecisionType
    category: str = "other"
    decision_number: Optional[str] = None
    description: Optional[str] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None


class DecisionResponse(BaseModel):
    id: UUID
    business_profile_id: UUID
    decision_number: Optional[str]
    title: str
    description: Optional[str]
    decision_type: str
    category: str
    status: str
    valid_from: Optional[date]
    valid_to: Optional[date]
    created_by: Optional[UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DecisionListResponse(BaseModel):
    items: List[DecisionResponse]
    total: int
    page: int
    per_page: int
