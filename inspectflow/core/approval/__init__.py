"""Inspection approval workflow for InspectFlow.

Implements the inspection state machine, its persistence service and the
append-only approval log.
"""

from .states import InspectionStatus, InspectionAction, TransitionRule, TRANSITION_RULES
from .machine import InspectionStateMachine
from .log import ApprovalLogRecorder
from .service import InspectionService, ItemAnswer

__all__ = [
    "InspectionStatus",
    "InspectionAction",
    "TransitionRule",
    "TRANSITION_RULES",
    "InspectionStateMachine",
    "ApprovalLogRecorder",
    "InspectionService",
    "ItemAnswer",
]
