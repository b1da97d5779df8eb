"""Inspection service.

Loads inspections scoped to the acting principal's organization, runs the
state machine against the stored status, and persists every change with
a conditional UPDATE/DELETE whose WHERE clause repeats the expected prior
status. A write that matches no row means another request changed the
inspection first; it is rolled back and reported as PersistenceConflict.

The approval log entry is appended after the status change commits.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inspectflow.core.checklist import ensure_complete, is_answered
from inspectflow.core.errors import Forbidden, InvalidState, NotFound, PersistenceConflict, ValidationFailure
from inspectflow.core.rbac.checker import AuthorizationGate, Principal, authorize
from inspectflow.core.rbac.permissions import Capability
from inspectflow.db.models import (
    ApprovalLog,
    Inspection,
    InspectionEditLog,
    InspectionItem,
    OrganizationSettings,
    Photo,
    Site,
    Template,
    TemplateItem,
)
from .log import ApprovalLogRecorder
from .machine import InspectionStateMachine, NOT_FOUND_MESSAGE
from .states import InspectionAction, InspectionStatus, REVIEW_ACTIONS

logger = logging.getLogger(__name__)

OVERVIEW_FIELDS = ("summary", "inspection_date", "overview_metadata")
EDIT_ACTION_UPDATE_OVERVIEW = "update_overview"

EDIT_NOT_DRAFT_MESSAGE = "下書き以外の確認記録は編集できません"
EDIT_FORBIDDEN_MESSAGE = "作成者または管理者のみ編集できます"
DELETE_NOT_DRAFT_MESSAGE = "下書きの確認記録のみ削除できます"
DELETE_NOT_OWNER_MESSAGE = "作成者のみ削除できます"
# Answer recorded for a photo item that has an attached photo but no value
PHOTO_ATTACHED = "photo"


@dataclass
class ItemAnswer:
    """One validated item answer from a draft edit."""
    template_item_id: UUID
    value: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def _canonical(value: Any) -> str:
    """Serialized form used for deep equality of overview fields."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def diff_overview(inspection: Any, changes: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Compare requested overview values with the stored ones.

    Returns:
        ``{field: {"before": old, "after": new}}`` for changed fields only
    """
    diff: Dict[str, Dict[str, Any]] = {}
    for name in OVERVIEW_FIELDS:
        if name not in changes:
            continue
        before = _jsonable(getattr(inspection, name))
        after = _jsonable(changes[name])
        if _canonical(before) != _canonical(after):
            diff[name] = {"before": before, "after": after}
    return diff


class InspectionService:
    """Inspection lifecycle operations for one database session."""

    def __init__(self, db: Session, recorder: Optional[ApprovalLogRecorder] = None):
        self.db = db
        self.recorder = recorder or ApprovalLogRecorder(db)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, actor: Principal, inspection_id: UUID) -> Inspection:
        """Fetch one inspection of the actor's organization."""
        principal = AuthorizationGate(actor).authenticated()
        return self._load(principal, inspection_id)

    def list(self, actor: Principal, status: Optional[InspectionStatus] = None) -> List[Inspection]:
        """Inspections of the actor's organization, most recent inspection date first."""
        principal = AuthorizationGate(actor).authenticated()
        query = self.db.query(Inspection).filter(
            Inspection.organization_id == principal.organization_id
        )
        if status is not None:
            query = query.filter(Inspection.status == InspectionStatus(status).value)
        return query.order_by(
            Inspection.inspection_date.desc(), Inspection.created_at.desc()
        ).all()

    def list_pending(self, actor: Principal) -> List[Inspection]:
        """Pending inspections of the organization, oldest submission first."""
        principal = authorize(actor, Capability.LIST_PENDING)
        return self.db.query(Inspection).filter(
            Inspection.organization_id == principal.organization_id,
            Inspection.status == InspectionStatus.PENDING_APPROVAL.value,
        ).order_by(Inspection.submitted_at.asc()).all()

    # =========================================================================
    # Draft lifecycle
    # =========================================================================

    def create(
        self,
        actor: Principal,
        *,
        site_id: UUID,
        template_id: UUID,
        inspection_date: date,
        summary: Optional[str] = None,
        overview_metadata: Optional[Dict[str, Any]] = None,
    ) -> Inspection:
        """Create a draft owned by the actor."""
        principal = authorize(actor, Capability.CREATE)

        site = self.db.query(Site).filter(
            Site.id == site_id,
            Site.organization_id == principal.organization_id,
        ).first()
        if not site:
            raise NotFound("Site not found")

        # System templates have no organization
        template = self.db.query(Template).filter(
            Template.id == template_id,
            or_(
                Template.organization_id == principal.organization_id,
                Template.organization_id.is_(None),
            ),
        ).first()
        if not template:
            raise NotFound("Template not found")

        inspection = Inspection(
            organization_id=principal.organization_id,
            site_id=site.id,
            template_id=template.id,
            inspector_id=principal.id,
            status=InspectionStatus.DRAFT.value,
            inspection_date=inspection_date,
            summary=summary,
            overview_metadata=overview_metadata,
        )
        self.db.add(inspection)
        self.db.commit()
        self.db.refresh(inspection)

        logger.info("Inspection %s created by %s", inspection.id, principal.id)
        return inspection

    def update_draft(
        self,
        actor: Principal,
        inspection_id: UUID,
        changes: Optional[Dict[str, Any]] = None,
        items: Sequence[ItemAnswer] = (),
    ) -> Inspection:
        """
        Edit a draft's overview fields and item answers.

        Item answers are upserted on ``(inspection_id, template_item_id)``.
        Overview changes are diffed against the stored values and, when
        anything changed, written to ``inspection_edit_logs``. Everything is
        committed together with a status-guarded touch of the inspection,
        so an edit racing a submit either lands before it or not at all.

        Raises:
            NotFound: Inspection not in the actor's organization
            Forbidden: Actor is neither the creator nor an admin
            InvalidState: Inspection is no longer a draft
            ValidationFailure: Unknown field or template item
            PersistenceConflict: Status changed while editing
        """
        principal = authorize(actor, Capability.EDIT)
        changes = dict(changes or {})
        unknown = set(changes) - set(OVERVIEW_FIELDS)
        if unknown:
            raise ValidationFailure(f"Unknown fields: {', '.join(sorted(unknown))}")

        inspection = self._load(principal, inspection_id)
        if not AuthorizationGate(principal).can_access_draft(inspection):
            raise Forbidden(EDIT_FORBIDDEN_MESSAGE)
        if inspection.status != InspectionStatus.DRAFT.value:
            raise InvalidState(EDIT_NOT_DRAFT_MESSAGE)

        diff = diff_overview(inspection, changes)

        try:
            if items:
                self._upsert_items(inspection, items)

            values: Dict[Any, Any] = {getattr(Inspection, name): changes[name] for name in diff}
            self._guarded_update(
                inspection,
                expected=InspectionStatus.DRAFT,
                values=values,
                commit=False,
            )

            if diff:
                self.db.add(InspectionEditLog(
                    inspection_id=inspection.id,
                    editor_id=principal.id,
                    action=EDIT_ACTION_UPDATE_OVERVIEW,
                    changed_fields=list(diff),
                    changes=diff,
                    created_at=datetime.utcnow(),
                ))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Concurrent item write on inspection %s", inspection_id)
            raise PersistenceConflict()

        self.db.expire(inspection)
        if diff:
            logger.info(
                "Inspection %s overview edited by %s (%s)",
                inspection_id, principal.id, ", ".join(diff),
            )
        return inspection

    def delete(self, actor: Principal, inspection_id: UUID) -> None:
        """
        Delete a draft and everything hanging off it.

        Raises:
            NotFound: Inspection not in the actor's organization
            Forbidden: Not a draft, or actor is not the creator
            PersistenceConflict: Status changed before the delete ran
        """
        principal = authorize(actor, Capability.DELETE)
        inspection = self._load(principal, inspection_id)
        if inspection.status != InspectionStatus.DRAFT.value:
            raise Forbidden(DELETE_NOT_DRAFT_MESSAGE)
        if inspection.inspector_id != principal.id:
            raise Forbidden(DELETE_NOT_OWNER_MESSAGE)

        # Bulk deletes: children first, then the guarded parent row
        for model in (Photo, InspectionItem, ApprovalLog, InspectionEditLog):
            self.db.query(model).filter(
                model.inspection_id == inspection_id
            ).delete(synchronize_session=False)

        deleted = self.db.query(Inspection).filter(
            Inspection.id == inspection_id,
            Inspection.organization_id == principal.organization_id,
            Inspection.status == InspectionStatus.DRAFT.value,
            Inspection.inspector_id == principal.id,
        ).delete(synchronize_session=False)
        if deleted != 1:
            self.db.rollback()
            logger.warning("Guarded delete of inspection %s matched no row", inspection_id)
            raise PersistenceConflict()

        self.db.commit()
        self.db.expunge(inspection)
        logger.info("Inspection %s deleted by %s", inspection_id, principal.id)

    # =========================================================================
    # Workflow transitions
    # =========================================================================

    def submit(self, actor: Principal, inspection_id: UUID) -> Inspection:
        """
        Submit a draft for approval.

        Requires every required template item to be answered. The
        organization's default approver, if any, is assigned.
        """
        InspectionStateMachine.preflight(actor, InspectionAction.SUBMIT)
        inspection = self._load(actor, inspection_id)
        self._machine(inspection, actor).check(InspectionAction.SUBMIT)

        template_items = self.db.query(TemplateItem).filter(
            TemplateItem.template_id == inspection.template_id
        ).all()
        ensure_complete(template_items, self._answers_with_photos(inspection))

        settings = self.db.query(OrganizationSettings).filter(
            OrganizationSettings.organization_id == actor.organization_id
        ).first()
        approver_id = settings.default_approver_id if settings else None

        self._guarded_update(
            inspection,
            expected=InspectionStatus.DRAFT,
            values={
                Inspection.status: InspectionStatus.PENDING_APPROVAL.value,
                Inspection.submitted_at: datetime.utcnow(),
                Inspection.approver_id: approver_id,
            },
            owner_id=actor.id,
        )
        return self._after_transition(inspection, actor, InspectionAction.SUBMIT)

    def review(
        self,
        actor: Principal,
        inspection_id: UUID,
        action: InspectionAction,
        comment: Optional[str] = None,
    ) -> Inspection:
        """
        Approve, return or reject a pending inspection.

        Return and reject require a non-blank comment.
        """
        try:
            action = InspectionAction(action)
        except ValueError:
            raise ValidationFailure("Invalid action")
        if action not in REVIEW_ACTIONS:
            raise ValidationFailure("Invalid action")

        rule, principal = InspectionStateMachine.preflight(actor, action, comment=comment)
        inspection = self._load(principal, inspection_id)
        self._machine(inspection, principal).check(action, comment=comment)

        values: Dict[Any, Any] = {
            Inspection.status: rule.to_state.value,
            Inspection.approver_id: principal.id,
        }
        if action is InspectionAction.APPROVE:
            values[Inspection.approved_at] = datetime.utcnow()

        self._guarded_update(inspection, expected=rule.from_state, values=values)
        return self._after_transition(inspection, principal, action, comment)

    def withdraw(self, actor: Principal, inspection_id: UUID) -> Inspection:
        """Pull a pending inspection back to draft. Creator only."""
        InspectionStateMachine.preflight(actor, InspectionAction.WITHDRAW)
        inspection = self._load(actor, inspection_id)
        self._machine(inspection, actor).check(InspectionAction.WITHDRAW)

        self._guarded_update(
            inspection,
            expected=InspectionStatus.PENDING_APPROVAL,
            values={
                Inspection.status: InspectionStatus.DRAFT.value,
                Inspection.submitted_at: None,
                Inspection.approver_id: None,
            },
            owner_id=actor.id,
        )
        return self._after_transition(inspection, actor, InspectionAction.WITHDRAW)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, principal: Principal, inspection_id: UUID) -> Inspection:
        inspection = self.db.query(Inspection).filter(
            Inspection.id == inspection_id,
            Inspection.organization_id == principal.organization_id,
        ).first()
        if not inspection:
            raise NotFound(NOT_FOUND_MESSAGE)
        return inspection

    def _answers_with_photos(self, inspection: Inspection) -> List[Dict[str, Any]]:
        """Item answers where an attached photo stands in for an empty value."""
        photographed = {
            row.inspection_item_id
            for row in self.db.query(Photo.inspection_item_id).filter(
                Photo.inspection_id == inspection.id,
                Photo.inspection_item_id.isnot(None),
            )
        }
        answers = []
        for item in inspection.items:
            value = item.value
            if not is_answered(value) and item.id in photographed:
                value = PHOTO_ATTACHED
            answers.append({"template_item_id": item.template_item_id, "value": value})
        return answers

    def _machine(self, inspection: Inspection, principal: Principal) -> InspectionStateMachine:
        try:
            status = InspectionStatus(inspection.status)
        except ValueError:
            raise InvalidState(f"Unknown inspection status: {inspection.status}")
        return InspectionStateMachine(
            inspection.id,
            status,
            organization_id=inspection.organization_id,
            inspector_id=inspection.inspector_id,
            principal=principal,
        )

    def _guarded_update(
        self,
        inspection: Inspection,
        *,
        expected: InspectionStatus,
        values: Dict[Any, Any],
        owner_id: Optional[UUID] = None,
        commit: bool = True,
    ) -> None:
        """
        UPDATE the inspection only if it still has the expected status.

        Raises:
            PersistenceConflict: zero rows matched
        """
        query = self.db.query(Inspection).filter(
            Inspection.id == inspection.id,
            Inspection.organization_id == inspection.organization_id,
            Inspection.status == expected.value,
        )
        if owner_id is not None:
            query = query.filter(Inspection.inspector_id == owner_id)

        values = dict(values)
        values[Inspection.updated_at] = datetime.utcnow()
        updated = query.update(values, synchronize_session=False)
        if updated != 1:
            self.db.rollback()
            logger.warning(
                "Guarded update of inspection %s expected status %s, matched no row",
                inspection.id, expected.value,
            )
            raise PersistenceConflict()
        if commit:
            self.db.commit()

    def _upsert_items(self, inspection: Inspection, items: Sequence[ItemAnswer]) -> None:
        known = {
            row.id for row in self.db.query(TemplateItem.id).filter(
                TemplateItem.template_id == inspection.template_id
            )
        }
        unknown = [str(a.template_item_id) for a in items if a.template_item_id not in known]
        if unknown:
            raise ValidationFailure(f"Unknown template items: {', '.join(unknown)}")

        for answer in items:
            existing = self.db.query(InspectionItem).filter(
                InspectionItem.inspection_id == inspection.id,
                InspectionItem.template_item_id == answer.template_item_id,
            ).first()
            if existing:
                existing.value = answer.value
                existing.item_metadata = dict(answer.metadata or {})
            else:
                self.db.add(InspectionItem(
                    inspection_id=inspection.id,
                    template_item_id=answer.template_item_id,
                    value=answer.value,
                    item_metadata=dict(answer.metadata or {}),
                ))
        # Unique (inspection_id, template_item_id) rejects a concurrent insert here
        self.db.flush()

    def _after_transition(
        self,
        inspection: Inspection,
        principal: Principal,
        action: InspectionAction,
        comment: Optional[str] = None,
    ) -> Inspection:
        self.recorder.append(inspection.id, principal.id, action, comment)
        logger.info("Inspection %s: %s by %s", inspection.id, action.value, principal.id)
        # Bulk UPDATE bypassed the identity map
        self.db.refresh(inspection)
        return inspection
