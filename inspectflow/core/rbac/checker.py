"""Authorization gate for InspectFlow.

Decides whether an acting principal may exercise a capability. The
principal is always passed in explicitly; nothing here looks up the
"current user" on its own.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional
from uuid import UUID

from fastapi import Depends

from inspectflow.core.errors import Forbidden, Unauthenticated
from .permissions import ADMIN_CAPABILITIES, Capability, required_role
from .roles import Role, parse_role, role_satisfies

ADMIN_ONLY_MESSAGE = "管理者のみが実行できます"
SELF_DEACTIVATION_MESSAGE = "自分自身を無効化することはできません"


@dataclass(frozen=True)
class Principal:
    """Resolved identity of the caller."""
    
    id: UUID
    organization_id: UUID
    role: Role
    approval_level: int = 0
    is_active: bool = True
    email: Optional[str] = None
    
    @classmethod
    def from_user(cls, user: Any) -> "Principal":
        """Build a principal from a ``User`` row (or anything shaped like one)."""
        return cls(
            id=user.id,
            organization_id=user.organization_id,
            role=parse_role(user.role),
            approval_level=user.approval_level or 0,
            is_active=bool(user.is_active),
            email=getattr(user, "email", None),
        )
    
    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class AuthorizationGate:
    """Checks a principal against the capability table."""
    
    def __init__(self, principal: Optional[Principal]):
        self.principal = principal
    
    def authenticated(self) -> Principal:
        """Return the principal or raise Unauthenticated."""
        if self.principal is None or not self.principal.is_active:
            raise Unauthenticated()
        return self.principal
    
    def has_capability(self, capability: Capability) -> bool:
        if self.principal is None or not self.principal.is_active:
            return False
        return role_satisfies(self.principal.role, required_role(capability))
    
    def require(self, capability: Capability) -> Principal:
        """
        Enforce a capability.
        
        Raises:
            Unauthenticated: No principal, or the principal is deactivated
            Forbidden: Role rank below the capability's minimum role
        """
        principal = self.authenticated()
        if not self.has_capability(capability):
            if capability in ADMIN_CAPABILITIES:
                raise Forbidden(ADMIN_ONLY_MESSAGE)
            raise Forbidden()
        return principal
    
    def is_owner(self, inspection: Any) -> bool:
        return self.principal is not None and inspection.inspector_id == self.principal.id
    
    def can_access_draft(self, inspection: Any) -> bool:
        """Draft content is editable by its creator or an admin of the same organization."""
        if self.principal is None or inspection.organization_id != self.principal.organization_id:
            return False
        return self.is_owner(inspection) or self.principal.is_admin


def authorize(principal: Optional[Principal], capability: Capability) -> Principal:
    """Shorthand for ``AuthorizationGate(principal).require(capability)``."""
    return AuthorizationGate(principal).require(capability)


def ensure_not_self_deactivation(actor: Principal, target_id: UUID, is_active: Optional[bool]) -> None:
    """An admin may not set ``is_active=False`` on their own account."""
    if is_active is False and actor.id == target_id:
        raise Forbidden(SELF_DEACTIVATION_MESSAGE)


def require_capability(capability: Capability) -> Callable[..., Principal]:
    """
    FastAPI dependency factory for capability checks.
    
    Usage:
        @router.get("/approvals/pending")
        async def list_pending(
            principal: Principal = Depends(require_capability(Capability.LIST_PENDING)),
        ):
            ...
    """
    # Imported here to avoid a circular import with the API layer
    from inspectflow.api.deps import get_current_principal
    
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return authorize(principal, capability)
    
    return dependency
