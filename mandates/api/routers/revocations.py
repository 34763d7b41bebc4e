"""Decision revocation workflow API endpoints."""

from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, status, Query, UploadFile
from sqlalchemy.orm import Session

from mandates.api.deps import get_db, get_current_user, get_revocation_service
from mandates.api.errors import to_http_exception
from mandates.api.schemas.revocation import (
    ApproveAction,
    RejectAction,
    RevocationCreate,
    RevocationActionsResponse,
    RevocationHistoryResponse,
    RevocationListResponse,
    RevocationRequestResponse,
    SignatureVerificationPayload,
)
from mandates.core.revocation import RevocationError, RevocationService, RevocationState
from mandates.core.signature import SignatureVerification
from mandates.db.models import User
from mandates.services import validate_document

router = APIRouter(prefix="/revocations", tags=["revocations"])


def _respond(db: Session, request) -> RevocationRequestResponse:
    db.commit()
    db.refresh(request)
    return RevocationRequestResponse.model_validate(request)


async def read_upload(file: UploadFile, *, max_size: int, allowed_types: Iterable[str]) -> bytes:
    """Read an uploaded document, never buffering more than ``max_size + 1`` bytes.

    Uploads whose declared size is already too large are refused unread.
    """
    if file.size is not None:
        validate_document(
            file.filename or "",
            file.content_type or "",
            file.size,
            allowed_types=allowed_types,
            max_size=max_size,
        )
    return await file.read(max_size + 1)


@router.post("", response_model=RevocationRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_revocation(
    payload: RevocationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Open a revocation request for a decision."""
    try:
        request = service.create_revocation_request(
            payload.decision_id,
            payload.reason,
            payload.required_approvers,
            requested_by=current_user.id,
            document_url=payload.document_url,
            document_name=payload.document_name,
        )
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.get("", response_model=RevocationListResponse)
async def list_revocations(
    service: RevocationService = Depends(get_revocation_service),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status_filter: Optional[RevocationState] = Query(None, alias="status"),
    decision_id: Optional[UUID] = None,
):
    """List revocation requests for the current business profile."""
    items, total = service.list_revocation_requests(
        status=status_filter,
        decision_id=decision_id,
        limit=per_page,
        offset=(page - 1) * per_page,
    )
    return RevocationListResponse(
        items=[RevocationRequestResponse.model_validate(r) for r in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{request_id}", response_model=RevocationRequestResponse)
async def get_revocation(
    request_id: UUID,
    db: Session = Depends(get_db),
    service: RevocationService = Depends(get_revocation_service),
):
    """Get a specific revocation request."""
    try:
        return RevocationRequestResponse.model_validate(service.get_revocation_request(request_id))
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.get("/{request_id}/history", response_model=List[RevocationHistoryResponse])
async def get_revocation_history(
    request_id: UUID,
    db: Session = Depends(get_db),
    service: RevocationService = Depends(get_revocation_service),
):
    """Get the state transition history for a revocation request."""
    try:
        history = service.get_history(request_id)
    except RevocationError as e:
        raise to_http_exception(db, e)
    
    return [RevocationHistoryResponse.model_validate(h) for h in history]


@router.get("/{request_id}/actions", response_model=RevocationActionsResponse)
async def get_revocation_actions(
    request_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """List the workflow actions the current user may take."""
    try:
        request = service.get_revocation_request(request_id)
        transitions = service.get_available_transitions(request_id, current_user.id)
    except RevocationError as e:
        raise to_http_exception(db, e)
    
    return RevocationActionsResponse(status=request.status, actions=[t.value for t in transitions])


@router.post("/{request_id}/document", response_model=RevocationRequestResponse)
async def upload_revocation_document(
    request_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Attach the signed revoking-resolution document."""
    try:
        content = await read_upload(
            file,
            max_size=service.settings.max_document_size,
            allowed_types=service.settings.allowed_document_types_list,
        )
        request = service.upload_document(
            request_id,
            file.filename or "",
            file.content_type or "",
            content,
            user_id=current_user.id,
        )
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.post("/{request_id}/verification", response_model=RevocationRequestResponse)
async def store_verification(
    request_id: UUID,
    payload: SignatureVerificationPayload,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Store a signature verification result obtained by the client."""
    verification = SignatureVerification(
        has_signature=payload.has_signature,
        crypto_valid=payload.crypto_valid,
        signer_subject=payload.signer_subject,
        signing_time=payload.signing_time,
        notes=payload.notes,
    )
    if payload.verified_at:
        verification.verified_at = payload.verified_at.isoformat()
    
    try:
        request = service.store_signature_verification(request_id, verification, user_id=current_user.id)
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.post("/{request_id}/verify", response_model=RevocationRequestResponse)
async def verify_revocation_document(
    request_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Run the signature verifier over the attached document."""
    if service.verifier is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Signature verification is not configured",
        )
    
    try:
        request = await service.verify_document(request_id, user_id=current_user.id)
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.post("/{request_id}/approve", response_model=RevocationRequestResponse)
async def approve_revocation(
    request_id: UUID,
    action: ApproveAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Approve the revocation as one of the required approvers."""
    try:
        request = service.add_approval(request_id, current_user.id, action.signature)
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.post("/{request_id}/reject", response_model=RevocationRequestResponse)
async def reject_revocation(
    request_id: UUID,
    action: RejectAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Reject the revocation as one of the required approvers."""
    try:
        request = service.reject(request_id, current_user.id, action.notes)
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)


@router.post("/{request_id}/cancel", response_model=RevocationRequestResponse)
async def cancel_revocation(
    request_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: RevocationService = Depends(get_revocation_service),
):
    """Withdraw the revocation request (requester only)."""
    try:
        request = service.cancel(request_id, current_user.id)
        return _respond(db, request)
    except RevocationError as e:
        raise to_http_exception(db, e)
