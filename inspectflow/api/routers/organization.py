"""Organization administration endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from inspectflow.api.deps import get_db, get_current_principal
from inspectflow.api.schemas.common import ERROR_RESPONSES, SuccessResponse
from inspectflow.api.schemas.organization import (
    ApprovalSettings,
    ApprovalSettingsResponse,
    ApproversUpdate,
    DefaultApprover,
    MemberResponse,
    UserUpdate,
)
from inspectflow.core.organization import OrganizationService
from inspectflow.core.rbac import ApprovalLevelPolicy, Capability, Principal, require_capability

router = APIRouter(prefix="/organization", tags=["organization"], responses=ERROR_RESPONSES)


@router.get("/approval-settings", response_model=ApprovalSettingsResponse)
async def get_approval_settings(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    level = ApprovalLevelPolicy(db).get_organization_level(principal)
    return ApprovalSettingsResponse(approval_levels=level)


@router.put("/approval-settings", response_model=ApprovalSettingsResponse)
async def update_approval_settings(
    data: ApprovalSettings,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(Capability.MANAGE_SETTINGS)),
):
    """Set the approval depth; users above it are lowered to it."""
    level = ApprovalLevelPolicy(db).set_organization_level(principal, data.approval_levels)
    return ApprovalSettingsResponse(approval_levels=level)


@router.get("/approvers", response_model=List[MemberResponse])
async def list_approvers(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    users = OrganizationService(db).list_approvers(principal)
    return [MemberResponse.model_validate(u) for u in users]


@router.put("/approvers", response_model=SuccessResponse)
async def update_approvers(
    data: ApproversUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
):
    """Bulk update approval levels, capped at the organization ceiling."""
    ApprovalLevelPolicy(db).set_user_levels(
        principal, [(entry.id, entry.approval_level) for entry in data.users]
    )
    return SuccessResponse(success=True)


@router.get("/users", response_model=List[MemberResponse])
async def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
):
    users = OrganizationService(db).list_users(principal)
    return [MemberResponse.model_validate(u) for u in users]


@router.patch("/users/{user_id}", response_model=MemberResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
):
    """Change a member's role, active flag or approval level."""
    update_data = data.model_dump(exclude_unset=True)
    user = OrganizationService(db).update_user(principal, user_id, **update_data)
    return MemberResponse.model_validate(user)


@router.get("/default-approver", response_model=DefaultApprover)
async def get_default_approver(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    approver_id = OrganizationService(db).get_default_approver(principal)
    return DefaultApprover(approver_id=approver_id)


@router.put("/default-approver", response_model=DefaultApprover)
async def set_default_approver(
    data: DefaultApprover,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(Capability.MANAGE_SETTINGS)),
):
    """Approver assigned to inspections on submit. ``null`` clears it."""
    approver_id = OrganizationService(db).set_default_approver(principal, data.approver_id)
    return DefaultApprover(approver_id=approver_id)
