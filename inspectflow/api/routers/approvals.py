"""Approver work queue."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from inspectflow.api.deps import get_db
from inspectflow.api.schemas.common import ERROR_RESPONSES
from inspectflow.api.schemas.inspection import InspectionResponse
from inspectflow.core.approval import InspectionService
from inspectflow.core.rbac import Capability, Principal, require_capability

router = APIRouter(prefix="/approvals", tags=["approvals"], responses=ERROR_RESPONSES)


@router.get("/pending", response_model=List[InspectionResponse])
async def list_pending_approvals(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(Capability.LIST_PENDING)),
):
    """Inspections awaiting review, oldest submission first."""
    inspections = InspectionService(db).list_pending(principal)
    return [InspectionResponse.model_validate(i) for i in inspections]
