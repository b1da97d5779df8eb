"""Organization administration schemas."""

from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel

from inspectflow.core.rbac import Role


class ApprovalSettings(BaseModel):
    # Any number is accepted and clamped to 0..3 server side
    approval_levels: Union[int, float]


class ApprovalSettingsResponse(BaseModel):
    approval_levels: int


class ApproverLevel(BaseModel):
    id: UUID
    approval_level: Union[int, float]


class ApproversUpdate(BaseModel):
    users: List[ApproverLevel]


class MemberResponse(BaseModel):
    id: UUID
    email: str
    name: Optional[str]
    role: str
    approval_level: int
    is_active: bool

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    approval_level: Optional[Union[int, float]] = None


class DefaultApprover(BaseModel):
    approver_id: Optional[UUID] = None
