"""Mirrors revocation workflow outcomes onto the parent decision's status."""

import logging
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from mandates.db.models.decision import Decision, DecisionStatus
from .states import RevocationTransition
from .machine import RevocationStateMachine

logger = logging.getLogger(__name__)


# Decision status after each resolving transition
DECISION_STATUS_ON_TRANSITION: Dict[RevocationTransition, DecisionStatus] = {
    RevocationTransition.COMPLETE_QUORUM: DecisionStatus.REVOKED,
    RevocationTransition.REJECT: DecisionStatus.REVOKE_REJECTED,
    RevocationTransition.CANCEL: DecisionStatus.ACTIVE,
}

# Decision statuses from which a new revocation may be requested
REVOCABLE_DECISION_STATUSES = {
    DecisionStatus.ACTIVE,
    DecisionStatus.REVOKE_REJECTED,
}


def is_revocable(decision: Decision) -> bool:
    return decision.status in {s.value for s in REVOCABLE_DECISION_STATUSES}


class DecisionStatusProjector:
    """
    Writes decision status changes in the caller's session.

    The projector never commits; the decision update lands in the same
    transaction as the revocation request update.
    """

    def __init__(self, db: Session, decision: Decision):
        self.db = db
        self.decision = decision

    def mark_requested(self) -> None:
        """Flag the decision as awaiting revocation."""
        self._set_status(DecisionStatus.REVOKE_REQUESTED)

    def project(self, transition: RevocationTransition) -> Optional[DecisionStatus]:
        """Apply the decision status implied by a transition, if any."""
        status = DECISION_STATUS_ON_TRANSITION.get(transition)
        if status is not None:
            self._set_status(status)
        return status

    def attach(self, machine: RevocationStateMachine) -> None:
        """Register the projection as a callback on every resolving transition."""
        for transition in DECISION_STATUS_ON_TRANSITION:
            machine.register_callback(
                transition,
                lambda record, t=transition: self.project(t),
            )

    def _set_status(self, status: DecisionStatus) -> None:
        old_status = self.decision.status
        self.decision.status = status.value
        logger.info(
            "Decision %s status %s -> %s", self.decision.id, old_status, status.value
        )
