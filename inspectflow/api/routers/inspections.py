"""Inspection API endpoints.

Drafts are created, edited and deleted here; workflow transitions
(submit, approve/return/reject, withdraw) and the audit trail hang off
the inspection resource.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from inspectflow.api.deps import get_db, get_current_principal
from inspectflow.api.schemas.common import ERROR_RESPONSES, SuccessResponse
from inspectflow.api.schemas.inspection import (
    ApprovalLogResponse,
    EditLogResponse,
    InspectionCreate,
    InspectionDetailResponse,
    InspectionResponse,
    InspectionUpdate,
    ReviewRequest,
)
from inspectflow.core.approval import (
    ApprovalLogRecorder,
    InspectionAction,
    InspectionService,
    InspectionStatus,
    ItemAnswer,
)
from inspectflow.core.rbac import Principal

router = APIRouter(prefix="/inspections", tags=["inspections"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[InspectionResponse])
async def list_inspections(
    status: Optional[InspectionStatus] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """List inspections of the caller's organization."""
    inspections = InspectionService(db).list(principal, status=status)
    return [InspectionResponse.model_validate(i) for i in inspections]


@router.post("", response_model=InspectionDetailResponse, status_code=201)
async def create_inspection(
    data: InspectionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Create a draft inspection owned by the caller."""
    inspection = InspectionService(db).create(principal, **data.model_dump())
    return InspectionDetailResponse.model_validate(inspection)


@router.get("/{inspection_id}", response_model=InspectionDetailResponse)
async def get_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    inspection = InspectionService(db).get(principal, inspection_id)
    return InspectionDetailResponse.model_validate(inspection)


@router.put("/{inspection_id}", response_model=InspectionDetailResponse)
async def update_inspection(
    inspection_id: UUID,
    data: InspectionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Edit a draft. Only fields present in the body are changed."""
    update_data = data.model_dump(exclude_unset=True, exclude={"items"})
    items = [
        ItemAnswer(
            template_item_id=item.template_item_id,
            value=item.value,
            metadata=item.metadata,
        )
        for item in (data.items or [])
    ]
    inspection = InspectionService(db).update_draft(
        principal, inspection_id, update_data, items=items
    )
    return InspectionDetailResponse.model_validate(inspection)


@router.delete("/{inspection_id}", response_model=SuccessResponse)
async def delete_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Delete a draft created by the caller."""
    InspectionService(db).delete(principal, inspection_id)
    return SuccessResponse(success=True)


@router.post("/{inspection_id}/submit", response_model=InspectionResponse)
async def submit_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Submit a completed draft for approval."""
    inspection = InspectionService(db).submit(principal, inspection_id)
    return InspectionResponse.model_validate(inspection)


@router.post("/{inspection_id}/approve", response_model=InspectionResponse)
async def review_inspection(
    inspection_id: UUID,
    data: ReviewRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Approve, return or reject a pending inspection."""
    inspection = InspectionService(db).review(
        principal, inspection_id, InspectionAction(data.action), data.comment
    )
    return InspectionResponse.model_validate(inspection)


@router.post("/{inspection_id}/withdraw", response_model=InspectionResponse)
async def withdraw_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Pull a pending inspection back to draft."""
    inspection = InspectionService(db).withdraw(principal, inspection_id)
    return InspectionResponse.model_validate(inspection)


@router.get("/{inspection_id}/logs", response_model=List[ApprovalLogResponse])
async def get_approval_logs(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Approval history, newest first."""
    logs = ApprovalLogRecorder(db).list_for_inspection(principal, inspection_id)
    return [ApprovalLogResponse.model_validate(log) for log in logs]


@router.get("/{inspection_id}/edit-logs", response_model=List[EditLogResponse])
async def get_edit_logs(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    logs = ApprovalLogRecorder(db).list_edit_logs(principal, inspection_id)
    return [EditLogResponse.model_validate(log) for log in logs]
