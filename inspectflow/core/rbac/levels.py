"""Organization approval-level policy.

An organization configures an approval depth between 0 and 3. Every user
carries an ``approval_level`` that may never exceed that ceiling. Lowering
the ceiling is a two-step operation performed in one transaction:

1. store the new (clamped) organization ceiling
2. clamp every user of the organization that is above it

Step 2 is a single conditional UPDATE and is idempotent, so re-running it
with the same ceiling (e.g. after a stale read or a retry) is harmless.
"""

import logging
import math
from typing import Any, Iterable, List, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from inspectflow.core.errors import NotFound
from inspectflow.db.models import Organization, User
from .checker import Principal, authorize
from .permissions import Capability

logger = logging.getLogger(__name__)

MIN_APPROVAL_LEVEL = 0
MAX_APPROVAL_LEVEL = 3


def clamp_approval_level(level: Any) -> int:
    """
    Normalize client-supplied approval levels.
    
    Rounds down, maps negatives, NaN and non-numbers to 0, caps at 3.
    """
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        return MIN_APPROVAL_LEVEL
    if math.isnan(level):
        return MIN_APPROVAL_LEVEL
    if math.isinf(level):
        return MAX_APPROVAL_LEVEL if level > 0 else MIN_APPROVAL_LEVEL
    return max(MIN_APPROVAL_LEVEL, min(MAX_APPROVAL_LEVEL, math.floor(level)))


def effective_user_level(requested: Any, ceiling: Any) -> int:
    """Level actually stored for a user: ``min(clamp(ceiling), clamp(requested))``."""
    return min(clamp_approval_level(ceiling), clamp_approval_level(requested))


class ApprovalLevelPolicy:
    """Reads and mutates organization and user approval levels."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def get_organization_level(self, actor: Principal) -> int:
        org = self._get_organization(actor.organization_id)
        return clamp_approval_level(org.approval_levels)
    
    def set_organization_level(self, actor: Principal, new_level: Any) -> int:
        """
        Set the organization ceiling and clamp users down to it.
        
        Args:
            actor: Admin performing the change
            new_level: Requested depth, clamped to [0, 3]
            
        Returns:
            The stored ceiling
            
        Raises:
            Forbidden: actor is not an admin
        """
        authorize(actor, Capability.MANAGE_SETTINGS)
        level = clamp_approval_level(new_level)
        
        updated = self.db.query(Organization).filter(
            Organization.id == actor.organization_id
        ).update({Organization.approval_levels: level}, synchronize_session=False)
        if not updated:
            self.db.rollback()
            raise NotFound("Organization not found")
        
        clamped = self.clamp_users_to_ceiling(actor.organization_id, level)
        self.db.commit()
        
        logger.info(
            "Organization %s approval levels set to %d by %s (%d users clamped)",
            actor.organization_id, level, actor.id, clamped,
        )
        return level
    
    def clamp_users_to_ceiling(self, organization_id: UUID, ceiling: int) -> int:
        """
        Lower every user above ``ceiling`` to exactly ``ceiling``.
        
        Does not commit; callers run it inside their own transaction.
        
        Returns:
            Number of users adjusted
        """
        ceiling = clamp_approval_level(ceiling)
        return self.db.query(User).filter(
            User.organization_id == organization_id,
            User.approval_level > ceiling,
        ).update({User.approval_level: ceiling}, synchronize_session=False)
    
    def set_user_level(self, actor: Principal, user_id: UUID, level: Any) -> int:
        """Set one user's level, never above the organization ceiling."""
        authorize(actor, Capability.MANAGE_USERS)
        stored = self._apply_user_levels(actor, [(user_id, level)])[0]
        self.db.commit()
        return stored
    
    def set_user_levels(self, actor: Principal, entries: Iterable[Tuple[UUID, Any]]) -> List[int]:
        """
        Bulk form of ``set_user_level``. All rows change or none do.
        
        Raises:
            NotFound: any user id is not a member of the actor's organization
        """
        authorize(actor, Capability.MANAGE_USERS)
        stored = self._apply_user_levels(actor, list(entries))
        self.db.commit()
        return stored
    
    def resolve_user_level(self, organization_id: UUID, requested: Any) -> int:
        """Clamp a requested level against the organization's current ceiling."""
        org = self._get_organization(organization_id)
        return effective_user_level(requested, org.approval_levels)
    
    def _apply_user_levels(self, actor: Principal, entries: List[Tuple[UUID, Any]]) -> List[int]:
        org = self._get_organization(actor.organization_id)
        stored_levels = []
        for user_id, requested in entries:
            level = effective_user_level(requested, org.approval_levels)
            updated = self.db.query(User).filter(
                User.id == user_id,
                User.organization_id == actor.organization_id,
            ).update({User.approval_level: level}, synchronize_session=False)
            if not updated:
                self.db.rollback()
                logger.warning("Approval level update for unknown user %s in org %s", user_id, actor.organization_id)
                raise NotFound("User not found")
            stored_levels.append(level)
        return stored_levels
    
    def _get_organization(self, organization_id: UUID) -> Organization:
        org = self.db.query(Organization).filter(Organization.id == organization_id).first()
        if not org:
            raise NotFound("Organization not found")
        return org
