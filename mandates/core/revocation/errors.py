"""Domain errors raised by the revocation workflow.

Every failure the workflow reports is one of the classes below, so callers
can branch on the error kind instead of parsing messages.
"""

from typing import Optional
from uuid import UUID


class RevocationError(Exception):
    """Base class for revocation workflow errors."""


class InvalidTransitionError(RevocationError):
    """Raised when a transition is not allowed from the current state."""

    def __init__(self, message: str, from_state, transition):
        super().__init__(message)
        self.from_state = from_state
        self.transition = transition


class ActorNotPermittedError(RevocationError):
    """Raised when the acting user does not hold the role a transition requires."""

    def __init__(self, user_id: Optional[UUID], required_role):
        role = getattr(required_role, "value", required_role)
        super().__init__(f"User {user_id} is not permitted to act as {role}")
        self.user_id = user_id
        self.required_role = required_role


class DuplicateApprovalError(RevocationError):
    """Raised when a user approves the same revocation request twice."""

    def __init__(self, request_id: UUID, user_id: UUID):
        super().__init__(f"User {user_id} has already approved revocation request {request_id}")
        self.request_id = request_id
        self.user_id = user_id


class UnverifiedSignatureError(RevocationError):
    """Raised when the quorum is reached but the document signature is not valid."""

    def __init__(self, request_id: UUID):
        super().__init__(
            f"Revocation request {request_id} cannot be approved without a verified document signature"
        )
        self.request_id = request_id


class NotFoundError(RevocationError):
    """Raised when a revocation request or decision does not exist in the business profile."""

    def __init__(self, resource_type: str, resource_id: UUID):
        super().__init__(f"{resource_type} {resource_id} not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class DecisionNotRevocableError(RevocationError):
    """Raised when a revocation is requested for a decision in a non-revocable status."""

    def __init__(self, decision_id: UUID, status: str):
        super().__init__(f"Decision {decision_id} in status '{status}' cannot be revoked")
        self.decision_id = decision_id
        self.status = status


class InvalidRevocationInputError(RevocationError):
    """Raised when request data is missing or malformed."""


class DocumentRejectedError(InvalidRevocationInputError):
    """Raised when an uploaded document has a disallowed type or size."""
