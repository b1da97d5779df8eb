"""Tests for the inspection state machine."""

import pytest
from uuid import uuid4

from inspectflow.core.approval.states import (
    InspectionStatus, InspectionAction,
    TRANSITION_RULES, TERMINAL_STATES, EDITABLE_STATES, STATUS_LABELS,
    can_transition, get_target_state, get_transition_rule, status_label,
)
from inspectflow.core.approval.machine import (
    InspectionStateMachine, COMMENT_REQUIRED_MESSAGE,
)
from inspectflow.core.errors import Forbidden, InvalidState, NotFound, Unauthenticated, ValidationFailure
from inspectflow.core.rbac import Principal, Role


ORG_ID = uuid4()


def make_principal(role=Role.INSPECTOR, org_id=ORG_ID, **kwargs):
    return Principal(id=kwargs.pop("id", uuid4()), organization_id=org_id, role=role, **kwargs)


def make_machine(state, principal, inspector_id=None, org_id=ORG_ID):
    return InspectionStateMachine(
        uuid4(),
        state,
        organization_id=org_id,
        inspector_id=inspector_id or uuid4(),
        principal=principal,
    )


class TestInspectionStates:
    """Test state and transition definitions."""

    def test_all_states_defined(self):
        assert {s.value for s in InspectionStatus} == {
            "draft", "pending_approval", "approved", "rejected",
        }

    def test_legacy_submitted_only_labelled(self):
        assert "submitted" not in {s.value for s in InspectionStatus}
        assert status_label("submitted") == STATUS_LABELS["submitted"]
        assert all(rule.from_state.value != "submitted" for rule in TRANSITION_RULES)

    def test_unknown_status_label_passthrough(self):
        assert status_label("archived") == "archived"

    def test_terminal_states(self):
        assert TERMINAL_STATES == {InspectionStatus.APPROVED, InspectionStatus.REJECTED}
        for state in TERMINAL_STATES:
            assert all(not can_transition(state, action) for action in InspectionAction)

    def test_only_draft_is_editable(self):
        assert EDITABLE_STATES == {InspectionStatus.DRAFT}

    def test_transition_table(self):
        assert get_target_state(InspectionStatus.DRAFT, InspectionAction.SUBMIT) == InspectionStatus.PENDING_APPROVAL
        assert get_target_state(InspectionStatus.PENDING_APPROVAL, InspectionAction.APPROVE) == InspectionStatus.APPROVED
        assert get_target_state(InspectionStatus.PENDING_APPROVAL, InspectionAction.RETURN) == InspectionStatus.DRAFT
        assert get_target_state(InspectionStatus.PENDING_APPROVAL, InspectionAction.REJECT) == InspectionStatus.REJECTED
        assert get_target_state(InspectionStatus.PENDING_APPROVAL, InspectionAction.WITHDRAW) == InspectionStatus.DRAFT

    def test_invalid_transitions(self):
        assert not can_transition(InspectionStatus.DRAFT, InspectionAction.APPROVE)
        assert not can_transition(InspectionStatus.PENDING_APPROVAL, InspectionAction.SUBMIT)
        assert get_transition_rule(InspectionStatus.DRAFT, InspectionAction.WITHDRAW) is None

    def test_comment_required_only_for_return_and_reject(self):
        requiring = {rule.action for rule in TRANSITION_RULES if rule.requires_comment}
        assert requiring == {InspectionAction.RETURN, InspectionAction.REJECT}


class TestInspectionStateMachine:
    """Test guard ordering and outcomes of single transitions."""

    def test_owner_submits_draft(self):
        inspector = make_principal()
        machine = make_machine(InspectionStatus.DRAFT, inspector, inspector_id=inspector.id)
        assert machine.transition(InspectionAction.SUBMIT) == InspectionStatus.PENDING_APPROVAL
        assert machine.state == InspectionStatus.PENDING_APPROVAL

    @pytest.mark.parametrize("state", [
        InspectionStatus.PENDING_APPROVAL, InspectionStatus.APPROVED, InspectionStatus.REJECTED,
    ])
    def test_submit_outside_draft_fails(self, state):
        inspector = make_principal()
        machine = make_machine(state, inspector, inspector_id=inspector.id)
        with pytest.raises(InvalidState, match="Only draft inspections can be submitted"):
            machine.transition(InspectionAction.SUBMIT)
        assert machine.state == state

    def test_submit_by_non_owner_is_not_found(self):
        machine = make_machine(InspectionStatus.DRAFT, make_principal())
        with pytest.raises(NotFound):
            machine.check(InspectionAction.SUBMIT)

    def test_approve_requires_approver_rank(self):
        machine = make_machine(InspectionStatus.PENDING_APPROVAL, make_principal(Role.INSPECTOR))
        with pytest.raises(Forbidden):
            machine.check(InspectionAction.APPROVE)

    @pytest.mark.parametrize("role", [Role.APPROVER, Role.ADMIN])
    def test_approver_and_admin_can_approve(self, role):
        machine = make_machine(InspectionStatus.PENDING_APPROVAL, make_principal(role))
        assert machine.transition(InspectionAction.APPROVE) == InspectionStatus.APPROVED
        assert machine.is_terminal

    def test_approve_draft_fails(self):
        machine = make_machine(InspectionStatus.DRAFT, make_principal(Role.APPROVER))
        with pytest.raises(InvalidState, match="Only pending inspections"):
            machine.check(InspectionAction.APPROVE)

    @pytest.mark.parametrize("action", [InspectionAction.RETURN, InspectionAction.REJECT])
    @pytest.mark.parametrize("comment", [None, "", "   "])
    def test_return_and_reject_need_comment(self, action, comment):
        machine = make_machine(InspectionStatus.PENDING_APPROVAL, make_principal(Role.APPROVER))
        with pytest.raises(ValidationFailure, match=COMMENT_REQUIRED_MESSAGE):
            machine.check(action, comment=comment)

    def test_return_with_comment(self):
        machine = make_machine(InspectionStatus.PENDING_APPROVAL, make_principal(Role.APPROVER))
        assert machine.transition(InspectionAction.RETURN, comment="needs fix") == InspectionStatus.DRAFT

    def test_comment_checked_before_state(self):
        machine = make_machine(InspectionStatus.DRAFT, make_principal(Role.APPROVER))
        with pytest.raises(ValidationFailure):
            machine.check(InspectionAction.REJECT)

    def test_withdraw_by_non_owner_is_not_found(self):
        machine = make_machine(InspectionStatus.PENDING_APPROVAL, make_principal(Role.ADMIN))
        with pytest.raises(NotFound):
            machine.check(InspectionAction.WITHDRAW)

    def test_withdraw_draft_fails(self):
        inspector = make_principal()
        machine = make_machine(InspectionStatus.DRAFT, inspector, inspector_id=inspector.id)
        with pytest.raises(InvalidState, match="承認待ち"):
            machine.check(InspectionAction.WITHDRAW)

    def test_other_organization_is_not_found(self):
        approver = make_principal(Role.APPROVER, org_id=uuid4())
        machine = make_machine(InspectionStatus.PENDING_APPROVAL, approver)
        with pytest.raises(NotFound):
            machine.check(InspectionAction.APPROVE)

    def test_missing_principal_is_unauthenticated(self):
        machine = make_machine(InspectionStatus.DRAFT, None)
        with pytest.raises(Unauthenticated):
            machine.check(InspectionAction.SUBMIT)

    def test_inactive_principal_is_unauthenticated(self):
        inspector = make_principal(is_active=False)
        machine = make_machine(InspectionStatus.DRAFT, inspector, inspector_id=inspector.id)
        with pytest.raises(Unauthenticated):
            machine.check(InspectionAction.SUBMIT)

    def test_available_actions(self):
        inspector = make_principal()
        pending = make_machine(InspectionStatus.PENDING_APPROVAL, inspector, inspector_id=inspector.id)
        assert pending.available_actions() == [InspectionAction.WITHDRAW]

        approver = make_principal(Role.APPROVER)
        review = make_machine(InspectionStatus.PENDING_APPROVAL, approver)
        assert set(review.available_actions()) == {
            InspectionAction.APPROVE, InspectionAction.RETURN, InspectionAction.REJECT,
        }
