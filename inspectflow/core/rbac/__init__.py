"""Authorization for InspectFlow.

Role hierarchy, capability table, the authorization gate, and the
organization approval-level policy.
"""

from .roles import Role, ROLE_RANK, parse_role, role_rank, role_satisfies
from .permissions import Capability, CAPABILITY_ROLES, ADMIN_CAPABILITIES, required_role
from .checker import (
    Principal,
    AuthorizationGate,
    authorize,
    ensure_not_self_deactivation,
    require_capability,
)
from .levels import (
    ApprovalLevelPolicy,
    clamp_approval_level,
    effective_user_level,
    MAX_APPROVAL_LEVEL,
)

__all__ = [
    "Role",
    "ROLE_RANK",
    "parse_role",
    "role_rank",
    "role_satisfies",
    "Capability",
    "CAPABILITY_ROLES",
    "ADMIN_CAPABILITIES",
    "required_role",
    "Principal",
    "AuthorizationGate",
    "authorize",
    "ensure_not_self_deactivation",
    "require_capability",
    "ApprovalLevelPolicy",
    "clamp_approval_level",
    "effective_user_level",
    "MAX_APPROVAL_LEVEL",
]
