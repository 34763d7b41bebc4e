"""Revocation workflow states and transitions.

State Machine Diagram:

    ┌──────────┐  attach_document   ┌──────────────────────┐
    │ PENDING  │───────────────────►│ PENDING_VERIFICATION │◄─┐ attach_document
    └────▲─────┘                    └───┬──────────┬───────┘──┘
         │        fail_verification     │          │
         └──────────────────────────────┘          │ pass_verification
                                                   │
                                              ┌────▼─────┐
                                              │ VERIFIED │◄─┐ add_approval
                                              └────┬─────┘──┘
                                                   │ complete_quorum
                                              ┌────▼─────┐
                                              │ APPROVED │
                                              └──────────┘

    PENDING_VERIFICATION / VERIFIED ──reject──► REJECTED
    PENDING_VERIFICATION / VERIFIED ──cancel──► CANCELLED

APPROVED, REJECTED and CANCELLED are terminal: no transition leaves them.
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple


class RevocationState(str, Enum):
    """States in the decision revocation workflow."""

    PENDING = "pending"                             # Awaiting the revoking document
    PENDING_VERIFICATION = "pending_verification"   # Document attached, signature not yet verified
    VERIFIED = "verified"                           # Signature verified, collecting approvals

    # Terminal states
    APPROVED = "approved"      # All required approvers signed off, decision revoked
    REJECTED = "rejected"      # Rejected by a required approver
    CANCELLED = "cancelled"    # Withdrawn by the requester


class RevocationTransition(str, Enum):
    """Actions that trigger state transitions."""

    # Document lifecycle
    ATTACH_DOCUMENT = "attach_document"        # PENDING/PENDING_VERIFICATION → PENDING_VERIFICATION
    PASS_VERIFICATION = "pass_verification"    # PENDING_VERIFICATION → VERIFIED
    FAIL_VERIFICATION = "fail_verification"    # PENDING_VERIFICATION → PENDING

    # Sign-off
    ADD_APPROVAL = "add_approval"              # VERIFIED → VERIFIED (quorum not yet reached)
    COMPLETE_QUORUM = "complete_quorum"        # VERIFIED → APPROVED

    # Resolution
    REJECT = "reject"                          # PENDING_VERIFICATION/VERIFIED → REJECTED
    CANCEL = "cancel"                          # PENDING_VERIFICATION/VERIFIED → CANCELLED


class ActorRole(str, Enum):
    """Relationship of the acting user to a revocation request."""

    APPROVER = "approver"      # Listed in required_approvers
    REQUESTER = "requester"    # Created the request


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: RevocationState
    to_state: RevocationState
    transition: RevocationTransition
    requires_role: Optional[ActorRole] = None


TRANSITION_RULES: list[TransitionRule] = [
    # Document lifecycle
    TransitionRule(RevocationState.PENDING, RevocationState.PENDING_VERIFICATION,
                   RevocationTransition.ATTACH_DOCUMENT),
    TransitionRule(RevocationState.PENDING_VERIFICATION, RevocationState.PENDING_VERIFICATION,
                   RevocationTransition.ATTACH_DOCUMENT),
    TransitionRule(RevocationState.PENDING_VERIFICATION, RevocationState.VERIFIED,
                   RevocationTransition.PASS_VERIFICATION),
    TransitionRule(RevocationState.PENDING_VERIFICATION, RevocationState.PENDING,
                   RevocationTransition.FAIL_VERIFICATION),

    # Sign-off by required approvers
    TransitionRule(RevocationState.VERIFIED, RevocationState.VERIFIED,
                   RevocationTransition.ADD_APPROVAL, ActorRole.APPROVER),
    TransitionRule(RevocationState.VERIFIED, RevocationState.APPROVED,
                   RevocationTransition.COMPLETE_QUORUM, ActorRole.APPROVER),

    # Rejection by an approver, withdrawal by the requester
    TransitionRule(RevocationState.PENDING_VERIFICATION, RevocationState.REJECTED,
                   RevocationTransition.REJECT, ActorRole.APPROVER),
    TransitionRule(RevocationState.VERIFIED, RevocationState.REJECTED,
                   RevocationTransition.REJECT, ActorRole.APPROVER),
    TransitionRule(RevocationState.PENDING_VERIFICATION, RevocationState.CANCELLED,
                   RevocationTransition.CANCEL, ActorRole.REQUESTER),
    TransitionRule(RevocationState.VERIFIED, RevocationState.CANCELLED,
                   RevocationTransition.CANCEL, ActorRole.REQUESTER),
]

# Build lookup tables for efficient access
VALID_TRANSITIONS: Dict[RevocationState, Set[RevocationTransition]] = {}
TRANSITION_TARGETS: Dict[tuple[RevocationState, RevocationTransition], TransitionRule] = {}

for rule in TRANSITION_RULES:
    if rule.from_state not in VALID_TRANSITIONS:
        VALID_TRANSITIONS[rule.from_state] = set()
    VALID_TRANSITIONS[rule.from_state].add(rule.transition)

    TRANSITION_TARGETS[(rule.from_state, rule.transition)] = rule


TERMINAL_STATES: Set[RevocationState] = {
    RevocationState.APPROVED,
    RevocationState.REJECTED,
    RevocationState.CANCELLED,
}

# States in which the request is still open
OPEN_STATES: Set[RevocationState] = set(RevocationState) - TERMINAL_STATES


def can_transition(from_state: RevocationState, transition: RevocationTransition) -> bool:
    """Check if a transition is valid from the given state."""
    valid = VALID_TRANSITIONS.get(from_state, set())
    return transition in valid


def get_transition_rule(
    from_state: RevocationState, transition: RevocationTransition
) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, transition))

