"""Inspection and approval log schemas."""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class InspectionItemInput(BaseModel):
    template_item_id: UUID
    # Ratings arrive as numbers from some clients; stored as text
    value: Optional[Union[str, int, float]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("value")
    @classmethod
    def value_as_text(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)


class InspectionCreate(BaseModel):
    site_id: UUID
    template_id: UUID
    inspection_date: date
    summary: Optional[str] = None
    overview_metadata: Optional[Dict[str, Any]] = None


class InspectionUpdate(BaseModel):
    """Partial draft edit. Only fields present in the body are changed."""
    summary: Optional[str] = None
    inspection_date: Optional[date] = None
    overview_metadata: Optional[Dict[str, Any]] = None
    items: Optional[List[InspectionItemInput]] = None

    @field_validator("inspection_date")
    @classmethod
    def inspection_date_not_null(cls, v):
        if v is None:
            raise ValueError("inspection_date cannot be null")
        return v


class ReviewRequest(BaseModel):
    action: Literal["approve", "return", "reject"]
    comment: Optional[str] = None


class InspectionItemResponse(BaseModel):
    id: UUID
    template_item_id: UUID
    value: Optional[str]
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="item_metadata")

    class Config:
        from_attributes = True


class InspectionResponse(BaseModel):
    id: UUID
    organization_id: UUID
    site_id: UUID
    template_id: UUID
    inspector_id: UUID
    status: str
    approver_id: Optional[UUID]
    submitted_at: Optional[datetime]
    approved_at: Optional[datetime]
    summary: Optional[str]
    inspection_date: date
    overview_metadata: Optional[Dict[str, Any]]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class InspectionDetailResponse(InspectionResponse):
    items: List[InspectionItemResponse] = []


class LogActor(BaseModel):
    id: UUID
    name: Optional[str]
    email: str

    class Config:
        from_attributes = True


class ApprovalLogResponse(BaseModel):
    id: UUID
    inspection_id: UUID
    actor_id: UUID
    actor: Optional[LogActor] = None
    action: str
    comment: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class EditLogResponse(BaseModel):
    id: UUID
    inspection_id: UUID
    editor_id: UUID
    action: str
    changed_fields: List[str]
    changes: Optional[Dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True
