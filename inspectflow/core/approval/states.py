"""Inspection workflow states and transitions.

State Machine Diagram:

    ┌──────────┐   submit    ┌──────────────────┐   approve   ┌──────────┐
    │  DRAFT   │────────────►│ PENDING_APPROVAL │────────────►│ APPROVED │
    └──────────┘             └────────┬─────────┘             └──────────┘
         ▲                            │
         │   return / withdraw        │   reject              ┌──────────┐
         └────────────────────────────┴──────────────────────►│ REJECTED │
                                                              └──────────┘

Editing and deleting are not transitions: they are only allowed while the
inspection is in one of the EDITABLE_STATES and never change the status.
"""

from enum import Enum
from typing import Dict, FrozenSet, NamedTuple, Optional, Set

from inspectflow.core.rbac.permissions import Capability


class InspectionStatus(str, Enum):
    """States in the inspection approval workflow."""

    DRAFT = "draft"                         # Being filled in by the inspector
    PENDING_APPROVAL = "pending_approval"   # Submitted, awaiting an approver
    APPROVED = "approved"                   # Accepted by an approver
    REJECTED = "rejected"                   # Refused by an approver


class InspectionAction(str, Enum):
    """Actions that trigger state transitions. Values double as approval log actions."""

    SUBMIT = "submit"        # DRAFT → PENDING_APPROVAL
    APPROVE = "approve"      # PENDING_APPROVAL → APPROVED
    RETURN = "return"        # PENDING_APPROVAL → DRAFT (sent back for fixes)
    REJECT = "reject"        # PENDING_APPROVAL → REJECTED
    WITHDRAW = "withdraw"    # PENDING_APPROVAL → DRAFT (by the inspector)


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: InspectionStatus
    to_state: InspectionStatus
    action: InspectionAction
    capability: Capability
    requires_comment: bool = False
    owner_only: bool = False


TRANSITION_RULES: list[TransitionRule] = [
    # Inspector lifecycle
    TransitionRule(InspectionStatus.DRAFT, InspectionStatus.PENDING_APPROVAL, InspectionAction.SUBMIT,
                   Capability.SUBMIT, owner_only=True),
    TransitionRule(InspectionStatus.PENDING_APPROVAL, InspectionStatus.DRAFT, InspectionAction.WITHDRAW,
                   Capability.WITHDRAW, owner_only=True),

    # Approver review
    TransitionRule(InspectionStatus.PENDING_APPROVAL, InspectionStatus.APPROVED, InspectionAction.APPROVE,
                   Capability.APPROVE),
    TransitionRule(InspectionStatus.PENDING_APPROVAL, InspectionStatus.DRAFT, InspectionAction.RETURN,
                   Capability.RETURN, requires_comment=True),
    TransitionRule(InspectionStatus.PENDING_APPROVAL, InspectionStatus.REJECTED, InspectionAction.REJECT,
                   Capability.REJECT, requires_comment=True),
]

# Build lookup tables for efficient access
VALID_TRANSITIONS: Dict[InspectionStatus, Set[InspectionAction]] = {}
TRANSITION_TARGETS: Dict[tuple[InspectionStatus, InspectionAction], TransitionRule] = {}
ACTION_SOURCE_STATES: Dict[InspectionAction, InspectionStatus] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault(rule.from_state, set()).add(rule.action)
    TRANSITION_TARGETS[(rule.from_state, rule.action)] = rule
    ACTION_SOURCE_STATES[rule.action] = rule.from_state


# Error message when an action is attempted from the wrong status
INVALID_SOURCE_MESSAGES: Dict[InspectionAction, str] = {
    InspectionAction.SUBMIT: "Only draft inspections can be submitted",
    InspectionAction.APPROVE: "Only pending inspections can be approved/rejected",
    InspectionAction.RETURN: "Only pending inspections can be approved/rejected",
    InspectionAction.REJECT: "Only pending inspections can be approved/rejected",
    InspectionAction.WITHDRAW: "承認待ちの確認記録のみ取り下げできます",
}

# Approver decisions share one endpoint
REVIEW_ACTIONS: FrozenSet[InspectionAction] = frozenset([
    InspectionAction.APPROVE,
    InspectionAction.RETURN,
    InspectionAction.REJECT,
])

# No outgoing transitions
TERMINAL_STATES: FrozenSet[InspectionStatus] = frozenset([
    InspectionStatus.APPROVED,
    InspectionStatus.REJECTED,
])

# Content may be changed, and the record deleted, only here
EDITABLE_STATES: FrozenSet[InspectionStatus] = frozenset([
    InspectionStatus.DRAFT,
])

# Display labels, including the legacy "submitted" status still found in old
# report data. "submitted" is not reachable through any transition.
STATUS_LABELS: Dict[str, str] = {
    InspectionStatus.DRAFT.value: "下書き",
    InspectionStatus.PENDING_APPROVAL.value: "承認待ち",
    InspectionStatus.APPROVED.value: "承認済み",
    InspectionStatus.REJECTED.value: "却下",
    "submitted": "提出済み",
}


def can_transition(from_state: InspectionStatus, action: InspectionAction) -> bool:
    """Check if an action is valid from the given state."""
    return action in VALID_TRANSITIONS.get(from_state, set())


def get_transition_rule(from_state: InspectionStatus, action: InspectionAction) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, action))


def get_target_state(from_state: InspectionStatus, action: InspectionAction) -> Optional[InspectionStatus]:
    """Get the target state for a transition."""
    rule = get_transition_rule(from_state, action)
    return rule.to_state if rule else None


def status_label(status: str) -> str:
    """Human-readable label for a stored status value."""
    return STATUS_LABELS.get(status, status)
