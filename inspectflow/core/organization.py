"""Organization administration.

Member listing, user updates (role, active flag, approval level) and the
default approver assigned to submitted inspections. Approval-level
changes go through ``ApprovalLevelPolicy`` so the organization ceiling
always holds.
"""

import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from inspectflow.core.errors import NotFound, ValidationFailure
from inspectflow.core.rbac import (
    ApprovalLevelPolicy,
    Capability,
    Principal,
    Role,
    authorize,
    ensure_not_self_deactivation,
    parse_role,
    role_satisfies,
)
from inspectflow.db.models import OrganizationSettings, User

logger = logging.getLogger(__name__)

NO_UPDATE_FIELDS_MESSAGE = "更新項目が指定されていません"
DEFAULT_APPROVER_ROLE_MESSAGE = "承認者以上の権限を持つユーザーを指定してください"

_UNSET = object()


class OrganizationService:
    """Administrative operations scoped to the actor's organization."""

    def __init__(self, db: Session):
        self.db = db
        self.levels = ApprovalLevelPolicy(db)

    def list_users(self, actor: Principal) -> List[User]:
        """All users of the organization. Admin only."""
        principal = authorize(actor, Capability.MANAGE_USERS)
        return self._members(principal.organization_id)

    def list_approvers(self, actor: Principal) -> List[User]:
        """Active members with their approval levels."""
        principal = authorize(actor, Capability.VIEW)
        return [
            user for user in self._members(principal.organization_id)
            if user.is_active
        ]

    def update_user(
        self,
        actor: Principal,
        user_id: UUID,
        *,
        role: Union[Role, str, None] = None,
        is_active: Optional[bool] = None,
        approval_level=_UNSET,
    ) -> User:
        """
        Update a member's role, active flag or approval level.

        Raises:
            Forbidden: actor is not an admin, or deactivates themself
            ValidationFailure: nothing to update, or unknown role
            NotFound: user is not a member of the organization
        """
        principal = authorize(actor, Capability.MANAGE_USERS)
        if role is None and is_active is None and approval_level is _UNSET:
            raise ValidationFailure(NO_UPDATE_FIELDS_MESSAGE)
        ensure_not_self_deactivation(principal, user_id, is_active)

        user = self._member(principal.organization_id, user_id)

        if role is not None:
            try:
                user.role = parse_role(role).value
            except ValueError:
                raise ValidationFailure(f"Unknown role: {role}")
        if is_active is not None:
            user.is_active = is_active
        if approval_level is not _UNSET:
            user.approval_level = self.levels.resolve_user_level(
                principal.organization_id, approval_level
            )

        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s updated by %s", user_id, principal.id)
        return user

    def get_default_approver(self, actor: Principal) -> Optional[UUID]:
        principal = authorize(actor, Capability.VIEW)
        settings = self.db.query(OrganizationSettings).filter(
            OrganizationSettings.organization_id == principal.organization_id
        ).first()
        return settings.default_approver_id if settings else None

    def set_default_approver(self, actor: Principal, approver_id: Optional[UUID]) -> Optional[UUID]:
        """
        Set (or clear, with None) the approver assigned on submit.

        The approver must be an active member with approver rank or above.
        """
        principal = authorize(actor, Capability.MANAGE_SETTINGS)
        if approver_id is not None:
            user = self._member(principal.organization_id, approver_id)
            if not user.is_active or not role_satisfies(user.role, Role.APPROVER):
                raise ValidationFailure(DEFAULT_APPROVER_ROLE_MESSAGE)

        settings = self.db.query(OrganizationSettings).filter(
            OrganizationSettings.organization_id == principal.organization_id
        ).first()
        if settings is None:
            settings = OrganizationSettings(organization_id=principal.organization_id)
            self.db.add(settings)
        settings.default_approver_id = approver_id
        self.db.commit()

        logger.info(
            "Default approver of organization %s set to %s by %s",
            principal.organization_id, approver_id, principal.id,
        )
        return approver_id

    def _members(self, organization_id: UUID) -> List[User]:
        return self.db.query(User).filter(
            User.organization_id == organization_id
        ).order_by(User.created_at.asc()).all()

    def _member(self, organization_id: UUID, user_id: UUID) -> User:
        user = self.db.query(User).filter(
            User.id == user_id,
            User.organization_id == organization_id,
        ).first()
        if not user:
            raise NotFound("User not found")
        return user
