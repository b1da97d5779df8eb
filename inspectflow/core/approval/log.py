"""Approval log recorder.

Appends one immutable ``approval_logs`` row per lifecycle action. The
append always happens after the status change has been committed, in its
own transaction. If it fails the status change stands: the error is logged
and the caller still gets its successful result.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from inspectflow.core.errors import NotFound
from inspectflow.core.rbac.checker import AuthorizationGate, Principal
from inspectflow.db.models import ApprovalLog, Inspection, InspectionEditLog
from .states import InspectionAction

logger = logging.getLogger(__name__)


class ApprovalLogRecorder:
    """Append-only writer and reader for the approval audit trail."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        inspection_id: UUID,
        actor_id: UUID,
        action: Union[InspectionAction, str],
        comment: Optional[str] = None,
    ) -> Optional[ApprovalLog]:
        """
        Append a log entry and commit it.

        Returns:
            The new entry, or None if the write failed (already logged)
        """
        action_value = InspectionAction(action).value
        entry = ApprovalLog(
            inspection_id=inspection_id,
            actor_id=actor_id,
            action=action_value,
            comment=comment or None,
            created_at=datetime.utcnow(),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to record approval log (inspection=%s actor=%s action=%s)",
                inspection_id, actor_id, action_value,
            )
            return None
        return entry

    def list_for_inspection(self, actor: Principal, inspection_id: UUID) -> List[ApprovalLog]:
        """Entries for an inspection in the actor's organization, newest first."""
        self._ensure_visible(actor, inspection_id)
        return self.db.query(ApprovalLog).options(joinedload(ApprovalLog.actor)).filter(
            ApprovalLog.inspection_id == inspection_id
        ).order_by(ApprovalLog.created_at.desc()).all()

    def list_edit_logs(self, actor: Principal, inspection_id: UUID) -> List[InspectionEditLog]:
        """Overview edit change-sets for an inspection, newest first."""
        self._ensure_visible(actor, inspection_id)
        return self.db.query(InspectionEditLog).filter(
            InspectionEditLog.inspection_id == inspection_id
        ).order_by(InspectionEditLog.created_at.desc()).all()

    def _ensure_visible(self, actor: Principal, inspection_id: UUID) -> None:
        principal = AuthorizationGate(actor).authenticated()
        exists = self.db.query(Inspection.id).filter(
            Inspection.id == inspection_id,
            Inspection.organization_id == principal.organization_id,
        ).first()
        if not exists:
            raise NotFound("Inspection not found")
