"""Decision register API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import and_

from mandates.api.deps import get_db, get_current_user, get_revocation_service
from mandates.api.schemas.decision import DecisionCreate, DecisionResponse, DecisionListResponse
from mandates.api.schemas.revocation import RevocationRequestResponse
from mandates.core.revocation import RevocationService
from mandates.db.models import Decision, DecisionStatus, User

router = APIRouter(prefix="/decisions", tags=["decisions"])


@router.get("", response_model=DecisionListResponse)
async def list_decisions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status_filter: Optional[DecisionStatus] = Query(None, alias="status"),
):
    """List decisions of the current business profile."""
    query = db.query(Decision).filter(Decision.business_profile_id == current_user.business_profile_id)
    
    if status_filter:
        query = query.filter(Decision.status == status_filter.value)
    
    total = query.count()
    decisions = query.order_by(Decision.created_at.desc()).offset((page - 1) * per_page).limit(per_page).all()
    
    return DecisionListResponse(
        items=[DecisionResponse.model_validate(d) for d in decisions],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=DecisionResponse, status_code=status.HTTP_201_CREATED)
async def create_decision(
    payload: DecisionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Register a new active decision."""
    if payload.valid_from and payload.valid_to and payload.valid_to < payload.valid_from:
        raise HTTPException(status_code=400, detail="valid_to must not precede valid_from")
    
    decision = Decision(
        business_profile_id=current_user.business_profile_id,
        decision_number=payload.decision_number,
        title=payload.title,
        description=payload.description,
        decision_type=payload.decision_type.value,
        category=payload.category,
        valid_from=payload.valid_from,
        valid_to=payload.valid_to,
        status=DecisionStatus.ACTIVE.value,
        created_by=current_user.id,
    )
    db.add(decision)
    db.commit()
    db.refresh(decision)
    
    return DecisionResponse.model_validate(decision)


@router.get("/{decision_id}", response_model=DecisionResponse)
async def get_decision(
    decision_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a specific decision."""
    decision = db.query(Decision).filter(
        and_(Decision.id == decision_id, Decision.business_profile_id == current_user.business_profile_id)
    ).first()
    
    if not decision:
        raise HTTPException(status_code=404, detail="Decision not found")
    
    return DecisionResponse.model_validate(decision)


@router.get("/{decision_id}/revocation", response_model=RevocationRequestResponse)
async def get_decision_revocation(
    decision_id: UUID,
    service: RevocationService = Depends(get_revocation_service),
):
    """Get the most recent revocation request for a decision."""
    request = service.get_latest_for_decision(decision_id)
    if not request:
        raise HTTPException(status_code=404, detail="No revocation request for this decision")
    
    return RevocationRequestResponse.model_validate(request)
