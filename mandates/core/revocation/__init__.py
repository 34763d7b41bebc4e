"""Decision revocation workflow.

Implements the revocation state machine, approver quorum and the projection
of workflow outcomes onto the revoked decision.
"""

from .states import RevocationState, RevocationTransition, ActorRole, VALID_TRANSITIONS
from .errors import (
    RevocationError,
    InvalidTransitionError,
    ActorNotPermittedError,
    DuplicateApprovalError,
    UnverifiedSignatureError,
    NotFoundError,
    DecisionNotRevocableError,
    InvalidRevocationInputError,
    DocumentRejectedError,
)
from .machine import RevocationStateMachine
from .projector import DecisionStatusProjector
from .service import RevocationService

__all__ = [
    "RevocationState",
    "RevocationTransition",
    "ActorRole",
    "VALID_TRANSITIONS",
    "RevocationError",
    "InvalidTransitionError",
    "ActorNotPermittedError",
    "DuplicateApprovalError",
    "UnverifiedSignatureError",
    "NotFoundError",
    "DecisionNotRevocableError",
    "InvalidRevocationInputError",
    "DocumentRejectedError",
    "RevocationStateMachine",
    "DecisionStatusProjector",
    "RevocationService",
]
