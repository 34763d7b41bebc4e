"""Revocation state machine implementation.

Handles state transitions with validation, actor role checking and
callbacks.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, Callable, Iterable
from uuid import UUID
import uuid

from .states import (
    RevocationState,
    RevocationTransition,
    ActorRole,
    TransitionRule,
    can_transition,
    get_transition_rule,
    TERMINAL_STATES,
)
from .errors import InvalidTransitionError, ActorNotPermittedError

logger = logging.getLogger(__name__)


class RevocationStateMachine:
    """
    State machine for a single revocation request.

    Manages transitions between revocation states with:
    - Validation of valid transitions
    - Actor role checking for approver-only and requester-only transitions
    - Callback hooks for side effects (decision status projection)
    """

    def __init__(
        self,
        entity_id: UUID,
        current_state: RevocationState,
        business_profile_id: UUID,
        *,
        actor_roles: Optional[Iterable[ActorRole]] = None,
    ):
        """
        Initialize the state machine.

        Args:
            entity_id: ID of the revocation request
            current_state: Current revocation state
            business_profile_id: Business profile the request belongs to
            actor_roles: Roles the acting user holds on this request
        """
        self.entity_id = entity_id
        self._state = current_state
        self.business_profile_id = business_profile_id
        self.actor_roles = set(actor_roles or [])
        self._callbacks: Dict[RevocationTransition, list[Callable]] = {}

    @property
    def state(self) -> RevocationState:
        """Current state of the request."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal (no further transitions)."""
        return self._state in TERMINAL_STATES

    def can_perform(self, transition: RevocationTransition) -> bool:
        """Check if a transition can be performed from current state by this actor."""
        if not can_transition(self._state, transition):
            return False

        rule = get_transition_rule(self._state, transition)
        if rule and rule.requires_role and rule.requires_role not in self.actor_roles:
            return False

        return True

    def get_available_transitions(self) -> list[RevocationTransition]:
        """Get list of transitions available from current state."""
        return [t for t in RevocationTransition if self.can_perform(t)]

    def check(self, transition: RevocationTransition, *, user_id: Optional[UUID] = None) -> TransitionRule:
        """
        Validate a transition without performing it.

        Returns:
            The matching transition rule

        Raises:
            InvalidTransitionError: If the transition is invalid from the current state
            ActorNotPermittedError: If the user lacks the required role
        """
        rule = get_transition_rule(self._state, transition)
        if not rule:
            logger.warning(
                "Refused %s on revocation request %s in state %s",
                transition.value, self.entity_id, self._state.value,
            )
            raise InvalidTransitionError(
                f"Cannot perform {transition.value} from state {self._state.value}",
                self._state,
                transition,
            )

        if rule.requires_role and rule.requires_role not in self.actor_roles:
            logger.warning(
                "User %s lacks role %s for %s on revocation request %s",
                user_id, rule.requires_role.value, transition.value, self.entity_id,
            )
            raise ActorNotPermittedError(user_id, rule.requires_role)

        return rule

    def transition(
        self,
        transition: RevocationTransition,
        *,
        comment: Optional[str] = None,
        user_id: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RevocationState:
        """
        Perform a state transition.

        Args:
            transition: The transition to perform
            comment: Optional comment (rejection notes)
            user_id: ID of user performing the transition
            metadata: Additional metadata to record

        Returns:
            The new state after transition

        Raises:
            InvalidTransitionError: If the transition is invalid
            ActorNotPermittedError: If the user lacks the required role
        """
        rule = self.check(transition, user_id=user_id)

        from_state = self._state
        to_state = rule.to_state

        transition_record = {
            "id": uuid.uuid4(),
            "entity_id": self.entity_id,
            "from_state": from_state.value,
            "to_state": to_state.value,
            "transition": transition.value,
            "user_id": user_id,
            "comment": comment,
            "metadata": metadata or {},
            "timestamp": datetime.utcnow(),
        }

        self._state = to_state

        self._execute_callbacks(transition, transition_record)

        return self._state

    def register_callback(
        self,
        transition: RevocationTransition,
        callback: Callable[[Dict[str, Any]], None],
    ) -> None:
        """
        Register a callback to be executed after a transition.

        Callback errors propagate to the caller of ``transition`` so that the
        surrounding database transaction is rolled back as a whole.

        Args:
            transition: The transition to hook
            callback: Function to call with transition record
        """
        if transition not in self._callbacks:
            self._callbacks[transition] = []
        self._callbacks[transition].append(callback)

    def _execute_callbacks(self, transition: RevocationTransition, record: Dict[str, Any]) -> None:
        """Execute registered callbacks for a transition."""
        for callback in self._callbacks.get(transition, []):
            try:
                callback(record)
            except Exception:
                logger.exception("Callback error for %s on %s", transition.value, self.entity_id)
                raise
