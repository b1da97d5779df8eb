"""Inspection record models.

An inspection is created as a draft by its inspector, filled in item by
item, then routed through the approval workflow (see
``inspectflow.core.approval``).
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, JSON, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from inspectflow.db.base import Base


class Inspection(Base):
    __tablename__ = "inspections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)
    site_id = Column(UUID(as_uuid=True), ForeignKey("sites.id"), nullable=False, index=True)
    template_id = Column(UUID(as_uuid=True), ForeignKey("templates.id"), nullable=False)
    
    # Creator, immutable
    inspector_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    
    # Workflow state
    status = Column(String(30), nullable=False, default="draft", index=True)
    approver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    
    # Overview
    summary = Column(Text, nullable=True)
    inspection_date = Column(Date, nullable=False)
    overview_metadata = Column(JSON, nullable=True)  # time window + attendee list
    
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    site = relationship("Site")
    template = relationship("Template")
    inspector = relationship("User", foreign_keys=[inspector_id], back_populates="inspections")
    approver = relationship("User", foreign_keys=[approver_id])
    items = relationship("InspectionItem", back_populates="inspection", cascade="all, delete-orphan")
    photos = relationship("Photo", back_populates="inspection", cascade="all, delete-orphan")
    approval_logs = relationship("ApprovalLog", back_populates="inspection", passive_deletes=True)
    edit_logs = relationship("InspectionEditLog", back_populates="inspection", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Inspection {self.id} [{self.status}]>"


class InspectionItem(Base):
    """Answer to one template item. At most one per (inspection, template item)."""
    __tablename__ = "inspection_items"
    __table_args__ = (
        UniqueConstraint("inspection_id", "template_item_id", name="uq_inspection_items_inspection_template_item"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inspection_id = Column(UUID(as_uuid=True), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True)
    template_item_id = Column(UUID(as_uuid=True), ForeignKey("template_items.id"), nullable=False)
    # Numeric rating, free text, or the sentinel "na"
    value = Column(Text, nullable=True)
    item_metadata = Column("metadata", JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    inspection = relationship("Inspection", back_populates="items")
    template_item = relationship("TemplateItem")


class Photo(Base):
    """Photo metadata. The binary lives in external blob storage."""
    __tablename__ = "photos"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inspection_id = Column(UUID(as_uuid=True), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True)
    inspection_item_id = Column(UUID(as_uuid=True), ForeignKey("inspection_items.id", ondelete="SET NULL"), nullable=True)
    file_path = Column(String(512), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(100), nullable=False)
    sort_order = Column(Integer, nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow)

    inspection = relationship("Inspection", back_populates="photos")
