"""Capability model for InspectFlow.

Each workflow operation maps to a capability, and each capability to the
minimum role allowed to exercise it. Ownership rules (only the creator may
submit, withdraw or delete) are layered on top by the state machine and
the inspection service, not encoded here.
"""

from enum import Enum
from typing import Dict, FrozenSet

from .roles import Role


class Capability(str, Enum):
    """Operations guarded by the authorization gate."""
    
    # Inspector lifecycle
    CREATE = "create"
    EDIT = "edit"
    SUBMIT = "submit"
    WITHDRAW = "withdraw"
    DELETE = "delete"
    VIEW = "view"
    
    # Approver actions
    APPROVE = "approve"
    RETURN = "return"
    REJECT = "reject"
    LIST_PENDING = "list_pending"
    
    # Administration
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_USERS = "manage_users"


CAPABILITY_ROLES: Dict[Capability, Role] = {
    Capability.CREATE: Role.INSPECTOR,
    Capability.EDIT: Role.INSPECTOR,
    Capability.SUBMIT: Role.INSPECTOR,
    Capability.WITHDRAW: Role.INSPECTOR,
    Capability.DELETE: Role.INSPECTOR,
    Capability.VIEW: Role.INSPECTOR,
    Capability.APPROVE: Role.APPROVER,
    Capability.RETURN: Role.APPROVER,
    Capability.REJECT: Role.APPROVER,
    Capability.LIST_PENDING: Role.APPROVER,
    Capability.MANAGE_SETTINGS: Role.ADMIN,
    Capability.MANAGE_USERS: Role.ADMIN,
}

ADMIN_CAPABILITIES: FrozenSet[Capability] = frozenset(
    cap for cap, role in CAPABILITY_ROLES.items() if role is Role.ADMIN
)


def required_role(capability: Capability) -> Role:
    """Minimum role for a capability."""
    return CAPABILITY_ROLES[capability]
