"""Role hierarchy for InspectFlow.

Three fixed roles, strictly ordered::

    inspector (1)  <  approver (2)  <  admin (3)

A role satisfies a requirement when its rank is greater than or equal to
the required rank, so admins pass every approver check.
"""

from enum import Enum
from typing import Dict, Union


class Role(str, Enum):
    """User roles within an organization."""
    
    INSPECTOR = "inspector"   # Creates and fills in inspections
    APPROVER = "approver"     # Reviews submitted inspections
    ADMIN = "admin"           # Manages organization settings and users


ROLE_RANK: Dict[Role, int] = {
    Role.INSPECTOR: 1,
    Role.APPROVER: 2,
    Role.ADMIN: 3,
}


def parse_role(value: Union[str, Role]) -> Role:
    """Convert a stored role string to a Role, raising ValueError if unknown."""
    if isinstance(value, Role):
        return value
    return Role(value)


def role_rank(role: Union[str, Role, None]) -> int:
    """Rank of a role; unknown or missing roles rank 0."""
    if role is None:
        return 0
    try:
        return ROLE_RANK[parse_role(role)]
    except ValueError:
        return 0


def role_satisfies(role: Union[str, Role, None], required: Union[str, Role]) -> bool:
    """Check the hierarchy: ``rank(role) >= rank(required)``."""
    return role_rank(role) >= role_rank(required)
