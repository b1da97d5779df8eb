"""Inspection state machine implementation.

Validates a single transition for one inspection and one acting principal.
It holds no database handle: the service feeds it the current row and
persists the result with a guarded write.
"""

from typing import Optional
from uuid import UUID

from inspectflow.core.errors import Forbidden, InvalidState, NotFound, ValidationFailure
from inspectflow.core.rbac.checker import AuthorizationGate, Principal
from .states import (
    InspectionStatus,
    InspectionAction,
    TransitionRule,
    ACTION_SOURCE_STATES,
    INVALID_SOURCE_MESSAGES,
    TERMINAL_STATES,
    can_transition,
    get_transition_rule,
)

COMMENT_REQUIRED_MESSAGE = "Comment is required for return/reject"
NOT_FOUND_MESSAGE = "Inspection not found"


class InspectionStateMachine:
    """
    State machine for the inspection approval workflow.

    Checks, in order:
    - the principal is authenticated and holds the action's capability
    - a comment is present when the action requires one
    - the inspection is visible to the principal (same organization, and
      owned by them for owner-only actions)
    - the current status allows the action
    """

    def __init__(
        self,
        inspection_id: UUID,
        current_state: InspectionStatus,
        *,
        organization_id: UUID,
        inspector_id: UUID,
        principal: Optional[Principal],
    ):
        """
        Initialize the state machine.

        Args:
            inspection_id: ID of the inspection
            current_state: Status as last read from storage
            organization_id: Owning organization of the inspection
            inspector_id: Creator of the inspection
            principal: Acting user
        """
        self.inspection_id = inspection_id
        self._state = InspectionStatus(current_state)
        self.organization_id = organization_id
        self.inspector_id = inspector_id
        self.gate = AuthorizationGate(principal)

    @property
    def state(self) -> InspectionStatus:
        """Current state of the inspection."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def can_perform(self, action: InspectionAction, comment: Optional[str] = None) -> bool:
        """Check whether ``action`` would pass every guard."""
        try:
            self.check(action, comment=comment)
        except (Forbidden, InvalidState, NotFound, ValidationFailure):
            return False
        return True

    def available_actions(self) -> list[InspectionAction]:
        """Actions the principal could take now, ignoring comment requirements."""
        return [
            action for action in InspectionAction
            if self.can_perform(action, comment="-")
        ]

    @staticmethod
    def preflight(
        principal: Optional[Principal],
        action: InspectionAction,
        *,
        comment: Optional[str] = None,
    ) -> tuple[TransitionRule, Principal]:
        """
        Checks that need no inspection row: capability and comment.

        The service runs this before loading the row so that a caller
        without the capability gets Forbidden rather than NotFound.
        """
        action = InspectionAction(action)
        rule = get_transition_rule(ACTION_SOURCE_STATES[action], action)
        principal = AuthorizationGate(principal).require(rule.capability)
        if rule.requires_comment and not (comment and comment.strip()):
            raise ValidationFailure(COMMENT_REQUIRED_MESSAGE)
        return rule, principal

    def check(self, action: InspectionAction, *, comment: Optional[str] = None) -> TransitionRule:
        """
        Validate a transition without performing it.

        Returns:
            The matching transition rule

        Raises:
            Unauthenticated: No active principal
            Forbidden: Principal lacks the capability for the action
            ValidationFailure: Required comment missing
            NotFound: Inspection outside the principal's scope
            InvalidState: Current status does not allow the action
        """
        rule, principal = self.preflight(self.gate.principal, action, comment=comment)

        if self.organization_id != principal.organization_id:
            raise NotFound(NOT_FOUND_MESSAGE)
        if rule.owner_only and self.inspector_id != principal.id:
            raise NotFound(NOT_FOUND_MESSAGE)

        if not can_transition(self._state, action):
            raise InvalidState(INVALID_SOURCE_MESSAGES[action])

        return rule

    def transition(self, action: InspectionAction, *, comment: Optional[str] = None) -> InspectionStatus:
        """
        Perform a state transition in memory.

        Returns:
            The new state after transition
        """
        rule = self.check(action, comment=comment)
        self._state = rule.to_state
        return self._state
