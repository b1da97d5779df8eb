"""Approval audit trail models.

``approval_logs`` is APPEND-ONLY: ORM listeners refuse updates and
deletes of loaded rows. Entries only disappear together with their
inspection, which is only possible while it is a draft.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Text, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from inspectflow.db.base import Base


class ApprovalLog(Base):
    """One row per lifecycle action (submit/approve/return/reject/withdraw)."""
    __tablename__ = "approval_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inspection_id = Column(UUID(as_uuid=True), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    action = Column(String(20), nullable=False)
    comment = Column(Text, nullable=True)  # required for return/reject
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    inspection = relationship("Inspection", back_populates="approval_logs")
    actor = relationship("User")

    def __repr__(self) -> str:
        return f"<ApprovalLog {self.action} by {self.actor_id}>"


class InspectionEditLog(Base):
    """Field-level change set for edits made to a draft's overview."""
    __tablename__ = "inspection_edit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inspection_id = Column(UUID(as_uuid=True), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True)
    editor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    action = Column(String(50), nullable=False)
    changed_fields = Column(JSON, nullable=False, default=list)
    changes = Column(JSON, nullable=True)  # {field: {"before": ..., "after": ...}}
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    inspection = relationship("Inspection", back_populates="edit_logs")
    editor = relationship("User")


class ImmutableRecordError(Exception):
    """Raised when code tries to modify an append-only audit row."""


@event.listens_for(ApprovalLog, "before_update")
def _reject_approval_log_update(mapper, connection, target):
    raise ImmutableRecordError(f"approval_logs rows are append-only (id={target.id})")


@event.listens_for(ApprovalLog, "before_delete")
def _reject_approval_log_delete(mapper, connection, target):
    raise ImmutableRecordError(f"approval_logs rows are append-only (id={target.id})")
