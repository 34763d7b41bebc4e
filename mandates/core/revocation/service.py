"""Revocation service for managing decision revocation workflows.

Provides the high-level API over the revocation state machine, including
database persistence, transition history and decision status projection.
None of the methods commit: the caller owns the transaction, so the request
update, its history row and the decision status change are committed or
rolled back together.
"""

import logging
import mimetypes
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Dict, Any, List, Iterable
from uuid import UUID
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import and_, func

from mandates.core.config import Settings, get_settings
from mandates.core.signature import SignatureVerification, failed_verification, summarize_signatures
from mandates.db.models import Decision, RevocationRequest, RevocationHistory, User
from .states import (
    RevocationState,
    RevocationTransition,
    ActorRole,
    OPEN_STATES,
    TERMINAL_STATES,
)
from .machine import RevocationStateMachine
from .projector import DecisionStatusProjector, is_revocable
from .errors import (
    DecisionNotRevocableError,
    DuplicateApprovalError,
    InvalidTransitionError,
    InvalidRevocationInputError,
    NotFoundError,
    UnverifiedSignatureError,
)

if TYPE_CHECKING:
    from mandates.services.document_storage import DocumentStorage
    from mandates.services.signature_verifier import SignatureVerifier

logger = logging.getLogger(__name__)

CREATE_TRANSITION = "create"


class RevocationService:
    """
    High-level service for decision revocation requests.

    Handles:
    - Creating revocation requests and flagging the decision
    - Attaching and verifying the revoking document
    - Collecting approvals until the quorum is complete
    - Rejection and cancellation
    - Querying requests and their history
    """

    def __init__(
        self,
        db: Session,
        business_profile_id: UUID,
        *,
        storage: Optional["DocumentStorage"] = None,
        verifier: Optional["SignatureVerifier"] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the revocation service.

        Args:
            db: Database session
            business_profile_id: Business profile for scoping
            storage: Document storage used for uploads and verification
            verifier: Signature verifier used by ``verify_document``
            settings: Application settings (document limits)
        """
        self.db = db
        self.business_profile_id = business_profile_id
        self.storage = storage
        self.verifier = verifier
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_revocation_request(
        self,
        decision_id: UUID,
        reason: str,
        required_approvers: Iterable[UUID],
        *,
        requested_by: UUID,
        document_url: Optional[str] = None,
        document_name: Optional[str] = None,
    ) -> RevocationRequest:
        """
        Open a revocation request for a decision.

        The request starts in ``pending_verification`` when a document is
        already attached and in ``pending`` otherwise. The decision is
        flagged as ``revoke_requested``.

        Raises:
            NotFoundError: If the decision is not in this business profile
            DecisionNotRevocableError: If the decision cannot be revoked now
            InvalidRevocationInputError: If the reason or approvers are invalid
        """
        reason = (reason or "").strip()
        if not reason:
            raise InvalidRevocationInputError("A reason is required to revoke a decision")

        approvers = self._normalize_approvers(required_approvers)

        decision = self._load_decision(decision_id)
        if not is_revocable(decision):
            raise DecisionNotRevocableError(decision.id, decision.status)
        if self._has_open_request(decision.id):
            raise DecisionNotRevocableError(decision.id, decision.status)

        now = datetime.utcnow()
        has_document = bool(document_url)
        state = RevocationState.PENDING_VERIFICATION if has_document else RevocationState.PENDING

        request = RevocationRequest(
            id=uuid.uuid4(),
            decision_id=decision.id,
            business_profile_id=self.business_profile_id,
            reason=reason,
            requested_by=requested_by,
            requested_at=now,
            required_approvers=approvers,
            document_url=document_url if has_document else None,
            document_name=document_name if has_document else None,
            document_content_type=_content_type(document_name) if has_document else None,
            document_uploaded_at=now if has_document else None,
            approvals=[],
            status=state.value,
        )
        self.db.add(request)

        DecisionStatusProjector(self.db, decision).mark_requested()

        self._record_history(
            request,
            from_state=None,
            to_state=state,
            transition=CREATE_TRANSITION,
            user_id=requested_by,
            comment=reason,
            metadata={"required_approvers": approvers},
        )
        self.db.flush()

        logger.info(
            "Revocation request %s opened for decision %s by %s (%d approver(s), state %s)",
            request.id, decision.id, requested_by, len(approvers), state.value,
        )
        return request

    def upload_document(
        self,
        request_id: UUID,
        filename: str,
        content_type: str,
        content: bytes,
        *,
        user_id: Optional[UUID] = None,
    ) -> RevocationRequest:
        """
        Attach the revoking-resolution document.

        Any earlier verification snapshot is discarded; the request waits
        for a new verification in ``pending_verification``.

        Raises:
            DocumentRejectedError: If the file type or size is not allowed
            InvalidTransitionError: If the request no longer accepts documents
        """
        from mandates.services.document_storage import validate_document

        validate_document(
            filename,
            content_type,
            len(content),
            allowed_types=self.settings.allowed_document_types_list,
            max_size=self.settings.max_document_size,
        )
        if self.storage is None:
            raise ValueError("No document storage configured")

        request = self._load_request(request_id)
        machine = self._machine(request, user_id)
        # Validate the transition before anything is written to storage
        machine.check(RevocationTransition.ATTACH_DOCUMENT, user_id=user_id)

        url = self.storage.save(request.id, filename, content)

        request.document_url = url
        request.document_name = filename
        request.document_content_type = content_type
        request.document_uploaded_at = datetime.utcnow()
        request.signature_verification = None

        self._apply(
            request,
            machine,
            RevocationTransition.ATTACH_DOCUMENT,
            user_id=user_id,
            metadata={"document_name": filename, "document_url": url, "size": len(content)},
        )
        return request

    def store_signature_verification(
        self,
        request_id: UUID,
        verification: SignatureVerification,
        *,
        user_id: Optional[UUID] = None,
        document_url: Optional[str] = None,
    ) -> RevocationRequest:
        """
        Record the verifier's result for the attached document.

        A valid signature moves the request to ``verified``; anything else
        sends it back to ``pending`` until a new document is attached.

        Raises:
            InvalidTransitionError: If ``document_url`` is given and another
                document was attached since it was read
        """
        request = self._load_request(request_id)
        machine = self._machine(request, user_id)
        if document_url is not None and request.document_url != document_url:
            raise InvalidTransitionError(
                f"Document of revocation request {request.id} was replaced during verification",
                RevocationState(request.status),
                RevocationTransition.PASS_VERIFICATION,
            )

        def write():
            request.signature_verification = verification.to_dict()

        transition = (
            RevocationTransition.PASS_VERIFICATION
            if verification.is_valid
            else RevocationTransition.FAIL_VERIFICATION
        )
        self._apply(
            request,
            machine,
            transition,
            user_id=user_id,
            metadata={"signature_verification": verification.to_dict()},
            before_commit=write,
        )
        return request

    async def verify_document(self, request_id: UUID, *, user_id: Optional[UUID] = None) -> RevocationRequest:
        """
        Run the signature verifier over the attached document and store the result.

        The verifier is awaited before the request row is locked; the result
        is only stored if the same document is still attached. A verifier
        failure is stored as an invalid result.
        """
        from mandates.services.signature_verifier import SignatureVerifierError

        if self.verifier is None:
            raise ValueError("No signature verifier configured")

        request = self._load_request(request_id, for_update=False)
        self._machine(request, user_id).check(RevocationTransition.PASS_VERIFICATION, user_id=user_id)

        document_url = request.document_url
        content = self.storage.read(document_url)
        content_type = request.document_content_type or _content_type(request.document_name)
        try:
            signatures = await self.verifier.verify(content, request.document_name, content_type)
            verification = summarize_signatures(signatures)
        except SignatureVerifierError as e:
            logger.warning("Signature verification of request %s failed: %s", request.id, e)
            verification = failed_verification()

        return self.store_signature_verification(
            request.id, verification, user_id=user_id, document_url=document_url
        )

    def add_approval(self, request_id: UUID, user_id: UUID, signature: str) -> RevocationRequest:
        """
        Record a required approver's sign-off.

        When the last required approver signs, the signature snapshot is
        checked once more and the request becomes ``approved`` with the
        decision ``revoked``.

        Raises:
            InvalidTransitionError: If the request is not ``verified``
            ActorNotPermittedError: If the user is not a required approver
            DuplicateApprovalError: If the user already approved
            UnverifiedSignatureError: If the quorum completes without a valid signature
        """
        signature = (signature or "").strip()
        if not signature:
            raise InvalidRevocationInputError("A signature is required to approve")

        request = self._load_request(request_id)
        machine = self._machine(request, user_id)

        # State and role are checked before duplicates
        machine.check(RevocationTransition.ADD_APPROVAL, user_id=user_id)

        approvals = list(request.approvals or [])
        if any(a.get("user_id") == str(user_id) for a in approvals):
            logger.warning("Duplicate approval by %s on revocation request %s", user_id, request.id)
            raise DuplicateApprovalError(request.id, user_id)

        now = datetime.utcnow()
        updated_approvals = approvals + [{
            "user_id": str(user_id),
            "approved_at": now.isoformat(),
            "signature": signature,
        }]

        approved_ids = {a["user_id"] for a in updated_approvals}
        quorum_complete = all(a in approved_ids for a in request.required_approvers)

        if quorum_complete:
            verification = SignatureVerification.from_dict(request.signature_verification)
            if verification is None or not verification.is_valid:
                logger.warning(
                    "Quorum reached on revocation request %s without a verified signature", request.id
                )
                raise UnverifiedSignatureError(request.id)
            transition = RevocationTransition.COMPLETE_QUORUM
        else:
            transition = RevocationTransition.ADD_APPROVAL

        def write():
            request.approvals = updated_approvals
            if quorum_complete:
                request.resolved_at = now
                request.resolved_by = user_id

        self._apply(
            request,
            machine,
            transition,
            user_id=user_id,
            metadata={"approvals": len(updated_approvals), "required": len(request.required_approvers)},
            before_commit=write,
        )
        return request

    def reject(self, request_id: UUID, user_id: UUID, notes: Optional[str] = None) -> RevocationRequest:
        """Reject the revocation; the decision becomes ``revoke_rejected``."""
        request = self._load_request(request_id)
        notes = notes.strip() if notes else None

        def write():
            request.resolved_at = datetime.utcnow()
            request.resolved_by = user_id
            request.resolution_notes = notes

        self._apply(
            request,
            self._machine(request, user_id),
            RevocationTransition.REJECT,
            user_id=user_id,
            comment=notes,
            before_commit=write,
        )
        return request

    def cancel(self, request_id: UUID, user_id: UUID) -> RevocationRequest:
        """Withdraw the revocation; the decision becomes ``active`` again."""
        request = self._load_request(request_id)

        def write():
            request.resolved_at = datetime.utcnow()
            request.resolved_by = user_id

        self._apply(
            request,
            self._machine(request, user_id),
            RevocationTransition.CANCEL,
            user_id=user_id,
            before_commit=write,
        )
        return request

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_revocation_request(self, request_id: UUID) -> RevocationRequest:
        """Get a revocation request by ID, raising NotFoundError if absent."""
        return self._load_request(request_id, for_update=False)

    def get_latest_for_decision(self, decision_id: UUID) -> Optional[RevocationRequest]:
        """Get the most recent revocation request for a decision."""
        return self.db.query(RevocationRequest).filter(
            and_(
                RevocationRequest.decision_id == decision_id,
                RevocationRequest.business_profile_id == self.business_profile_id,
            )
        ).order_by(RevocationRequest.created_at.desc()).first()

    def list_revocation_requests(
        self,
        *,
        status: Optional[RevocationState] = None,
        decision_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[List[RevocationRequest], int]:
        """List revocation requests in the business profile, newest first."""
        query = self.db.query(RevocationRequest).filter(
            RevocationRequest.business_profile_id == self.business_profile_id
        )
        if status:
            query = query.filter(RevocationRequest.status == status.value)
        if decision_id:
            query = query.filter(RevocationRequest.decision_id == decision_id)

        total = query.count()
        items = query.order_by(RevocationRequest.created_at.desc()).offset(offset).limit(limit).all()
        return items, total

    def get_available_transitions(self, request_id: UUID, user_id: UUID) -> List[RevocationTransition]:
        """Transitions the user may perform on the request right now."""
        request = self._load_request(request_id, for_update=False)
        transitions = self._machine(request, user_id).get_available_transitions()

        if any(a.get("user_id") == str(user_id) for a in request.approvals or []):
            transitions = [
                t for t in transitions
                if t not in (RevocationTransition.ADD_APPROVAL, RevocationTransition.COMPLETE_QUORUM)
            ]
        return transitions

    def get_history(self, request_id: UUID) -> List[RevocationHistory]:
        """Get the state transition history for a revocation request."""
        request = self._load_request(request_id, for_update=False)
        return self.db.query(RevocationHistory).filter(
            RevocationHistory.request_id == request.id
        ).order_by(RevocationHistory.sequence.asc()).all()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _normalize_approvers(self, required_approvers: Iterable[UUID]) -> List[str]:
        approvers: List[str] = []
        for approver in required_approvers or []:
            key = str(approver)
            if key not in approvers:
                approvers.append(key)

        if not approvers:
            raise InvalidRevocationInputError("At least one required approver must be given")

        known = {
            str(user_id) for (user_id,) in self.db.query(User.id).filter(
                and_(
                    User.business_profile_id == self.business_profile_id,
                    User.id.in_([UUID(a) for a in approvers]),
                )
            ).all()
        }
        unknown = [a for a in approvers if a not in known]
        if unknown:
            raise InvalidRevocationInputError(
                f"Required approvers not found in business profile: {', '.join(unknown)}"
            )
        return approvers

    def _load_decision(self, decision_id: UUID) -> Decision:
        decision = self.db.query(Decision).filter(
            and_(
                Decision.id == decision_id,
                Decision.business_profile_id == self.business_profile_id,
            )
        ).with_for_update().first()
        if not decision:
            raise NotFoundError("Decision", decision_id)
        return decision

    def _has_open_request(self, decision_id: UUID) -> bool:
        return self.db.query(RevocationRequest.id).filter(
            RevocationRequest.decision_id == decision_id,
            RevocationRequest.status.in_([s.value for s in OPEN_STATES]),
        ).first() is not None

    def _load_request(self, request_id: UUID, for_update: bool = True) -> RevocationRequest:
        query = self.db.query(RevocationRequest).filter(
            and_(
                RevocationRequest.id == request_id,
                RevocationRequest.business_profile_id == self.business_profile_id,
            )
        )
        if for_update:
            # Reload attributes so state read before an await is not reused
            query = query.with_for_update().populate_existing()
        request = query.first()
        if not request:
            raise NotFoundError("Revocation request", request_id)
        return request

    def _machine(self, request: RevocationRequest, user_id: Optional[UUID]) -> RevocationStateMachine:
        roles = set()
        if user_id is not None:
            if str(user_id) in (request.required_approvers or []):
                roles.add(ActorRole.APPROVER)
            if request.requested_by == user_id:
                roles.add(ActorRole.REQUESTER)

        machine = RevocationStateMachine(
            entity_id=request.id,
            current_state=RevocationState(request.status),
            business_profile_id=self.business_profile_id,
            actor_roles=roles,
        )
        DecisionStatusProjector(self.db, request.decision).attach(machine)
        return machine

    def _apply(
        self,
        request: RevocationRequest,
        machine: RevocationStateMachine,
        transition: RevocationTransition,
        *,
        user_id: Optional[UUID] = None,
        comment: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        before_commit=None,
    ) -> RevocationState:
        """Run a transition and persist its effects on the request.

        ``before_commit`` writes transition-specific fields once the machine
        has accepted the transition.
        """
        old_state = RevocationState(request.status)
        new_state = machine.transition(
            transition,
            comment=comment,
            user_id=user_id,
            metadata=metadata,
        )

        if before_commit is not None:
            before_commit()

        request.status = new_state.value
        request.updated_at = datetime.utcnow()

        self._record_history(
            request,
            from_state=old_state,
            to_state=new_state,
            transition=transition.value,
            user_id=user_id,
            comment=comment,
            metadata=metadata,
        )
        self.db.flush()

        logger.info(
            "Revocation request %s: %s %s -> %s by %s%s",
            request.id, transition.value, old_state.value, new_state.value, user_id,
            " (terminal)" if new_state in TERMINAL_STATES else "",
        )
        return new_state

    def _record_history(
        self,
        request: RevocationRequest,
        *,
        from_state: Optional[RevocationState],
        to_state: RevocationState,
        transition: str,
        user_id: Optional[UUID],
        comment: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RevocationHistory:
        count = self.db.query(func.count(RevocationHistory.id)).filter(
            RevocationHistory.request_id == request.id
        ).scalar() or 0

        history = RevocationHistory(
            id=uuid.uuid4(),
            request_id=request.id,
            sequence=count + 1,
            from_state=from_state.value if from_state else None,
            to_state=to_state.value,
            transition=transition,
            user_id=user_id,
            comment=comment,
            extra_data=metadata or {},
        )
        self.db.add(history)
        return history


def _content_type(filename: Optional[str]) -> str:
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or "application/octet-stream"
