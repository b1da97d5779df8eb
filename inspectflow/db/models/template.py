"""Checklist template models.

Templates are maintained by a separate CRUD surface; the workflow only
reads them to decide which answers are mandatory.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Boolean, JSON, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from inspectflow.db.base import Base


class Template(Base):
    __tablename__ = "templates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # NULL for system templates shared by every organization
    organization_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship(
        "TemplateItem",
        back_populates="template",
        order_by="TemplateItem.sort_order",
        cascade="all, delete-orphan",
    )


class TemplateItem(Base):
    __tablename__ = "template_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    template_id = Column(UUID(as_uuid=True), ForeignKey("templates.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(String(30), nullable=False)  # text, textarea, select, number, date, photo, section_header, rating_1_5_na
    label = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    options = Column(JSON, nullable=True)
    required = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    display_facility_types = Column(JSON, nullable=False, default=list)

    template = relationship("Template", back_populates="items")

    def __repr__(self) -> str:
        return f"<TemplateItem {self.label} [{self.item_type}]>"
