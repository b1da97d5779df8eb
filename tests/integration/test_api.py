"""HTTP-level tests for the inspection and organization endpoints."""

import pytest
from uuid import uuid4
from fastapi.testclient import TestClient

from inspectflow.core.config import get_settings
from inspectflow.core.security import create_access_token

from tests.factories import (
    answer_items,
    create_inspection,
    create_organization,
    create_site,
    create_template,
    create_template_item,
    create_user,
)


pytestmark = [pytest.mark.db, pytest.mark.integration]


@pytest.fixture()
def org(db_session):
    return create_organization(db_session, approval_levels=2)


@pytest.fixture()
def inspector(db_session, org):
    return create_user(db_session, org=org, role="inspector")


@pytest.fixture()
def approver(db_session, org):
    return create_user(db_session, org=org, role="approver", approval_level=2)


@pytest.fixture()
def admin(db_session, org):
    return create_user(db_session, org=org, role="admin")


@pytest.fixture()
def template(db_session, org):
    template = create_template(db_session, org=org)
    create_template_item(db_session, template=template, item_type="text", label="Temperature", required=True)
    create_template_item(db_session, template=template, item_type="textarea", label="Notes")
    return template


@pytest.fixture()
def site(db_session, org):
    return create_site(db_session, org=org)


@pytest.fixture()
def seeded(db_session, inspector, approver, admin, template, site):
    """Commit all arranged rows so request sessions can see them."""
    db_session.commit()


class TestAuthentication:

    def test_missing_token(self, client: TestClient, seeded):
        response = client.get("/api/inspections")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_invalid_token(self, client: TestClient, seeded):
        response = client.get("/api/inspections", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_unknown_user(self, client: TestClient, seeded):
        token = create_access_token(uuid4())
        response = client.get("/api/inspections", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_inactive_user(self, client: TestClient, db_session, org, auth_headers):
        user = create_user(db_session, org=org, is_active=False)
        db_session.commit()
        response = client.get("/api/inspections", headers=auth_headers(user))
        assert response.status_code == 401

    def test_session_cookie(self, client: TestClient, seeded, inspector):
        client.cookies.set(get_settings().session_cookie_name, create_access_token(inspector.id))
        response = client.get("/api/inspections")
        assert response.status_code == 200
        assert response.json() == []


class TestInspectionFlow:

    def test_full_approval_flow(self, client: TestClient, seeded, inspector, approver, template, site, auth_headers):
        response = client.post(
            "/api/inspections",
            json={"site_id": str(site.id), "template_id": str(template.id), "inspection_date": "2026-09-01"},
            headers=auth_headers(inspector),
        )
        assert response.status_code == 201
        inspection = response.json()
        assert inspection["status"] == "draft"
        inspection_id = inspection["id"]

        # Submitting without the required answer fails
        response = client.post(f"/api/inspections/{inspection_id}/submit", headers=auth_headers(inspector))
        assert response.status_code == 400
        assert response.json()["missing_count"] == 1

        required_id = str(template.items[0].id)
        response = client.put(
            f"/api/inspections/{inspection_id}",
            json={"summary": "Cold room checked", "items": [{"template_item_id": required_id, "value": 4}]},
            headers=auth_headers(inspector),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == "Cold room checked"
        assert body["items"][0]["value"] == "4"

        response = client.post(f"/api/inspections/{inspection_id}/submit", headers=auth_headers(inspector))
        assert response.status_code == 200
        assert response.json()["status"] == "pending_approval"
        assert response.json()["submitted_at"] is not None

        response = client.get("/api/approvals/pending", headers=auth_headers(approver))
        assert [i["id"] for i in response.json()] == [inspection_id]

        response = client.post(
            f"/api/inspections/{inspection_id}/approve",
            json={"action": "approve"},
            headers=auth_headers(approver),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["approved_at"] is not None

        response = client.get(f"/api/inspections/{inspection_id}/logs", headers=auth_headers(inspector))
        assert [log["action"] for log in response.json()] == ["approve", "submit"]
        actors = [log["actor"] for log in response.json()]
        assert actors[0] == {"id": str(approver.id), "name": approver.name, "email": approver.email}
        assert actors[1]["email"] == inspector.email

        response = client.get(f"/api/inspections/{inspection_id}/edit-logs", headers=auth_headers(inspector))
        assert response.json()[0]["changed_fields"] == ["summary"]

    def test_return_without_comment(self, client: TestClient, db_session, inspector, approver, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector, status="pending_approval")
        db_session.commit()

        response = client.post(
            f"/api/inspections/{inspection.id}/approve",
            json={"action": "return"},
            headers=auth_headers(approver),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Comment is required for return/reject"

        response = client.post(
            f"/api/inspections/{inspection.id}/approve",
            json={"action": "return", "comment": "needs fix"},
            headers=auth_headers(approver),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "draft"

    def test_unknown_action_rejected(self, client: TestClient, db_session, inspector, approver, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector, status="pending_approval")
        db_session.commit()

        response = client.post(
            f"/api/inspections/{inspection.id}/approve",
            json={"action": "submit"},
            headers=auth_headers(approver),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid action"}

    def test_inspector_cannot_approve(self, client: TestClient, db_session, inspector, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector, status="pending_approval")
        db_session.commit()

        response = client.post(
            f"/api/inspections/{inspection.id}/approve",
            json={"action": "approve"},
            headers=auth_headers(inspector),
        )
        assert response.status_code == 403

    def test_withdraw_by_other_user(self, client: TestClient, db_session, inspector, admin, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector, status="pending_approval")
        db_session.commit()

        response = client.post(f"/api/inspections/{inspection.id}/withdraw", headers=auth_headers(admin))
        assert response.status_code == 404

        response = client.post(f"/api/inspections/{inspection.id}/withdraw", headers=auth_headers(inspector))
        assert response.status_code == 200
        assert response.json()["status"] == "draft"
        assert response.json()["approver_id"] is None

    def test_other_tenant_sees_not_found(self, client: TestClient, db_session, inspector, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector)
        outsider = create_user(db_session, role="admin")
        db_session.commit()

        response = client.get(f"/api/inspections/{inspection.id}", headers=auth_headers(outsider))
        assert response.status_code == 404
        assert response.json() == {"error": "Inspection not found"}

    def test_malformed_inspection_id(self, client: TestClient, seeded, inspector, auth_headers):
        response = client.get("/api/inspections/not-a-uuid", headers=auth_headers(inspector))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid inspection_id"}

    def test_pending_list_requires_approver(self, client: TestClient, seeded, inspector, auth_headers):
        response = client.get("/api/approvals/pending", headers=auth_headers(inspector))
        assert response.status_code == 403

    def test_null_inspection_date_rejected(self, client: TestClient, db_session, inspector, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector)
        db_session.commit()

        response = client.put(
            f"/api/inspections/{inspection.id}",
            json={"inspection_date": None},
            headers=auth_headers(inspector),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid inspection_date"}


class TestDeleteInspection:

    def test_delete_draft(self, client: TestClient, db_session, inspector, template, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector, template=template)
        answer_items(db_session, inspection, template.items)
        db_session.commit()

        response = client.delete(f"/api/inspections/{inspection.id}", headers=auth_headers(inspector))
        assert response.status_code == 200
        assert response.json() == {"success": True}

        response = client.get(f"/api/inspections/{inspection.id}", headers=auth_headers(inspector))
        assert response.status_code == 404

    def test_delete_pending_forbidden(self, client: TestClient, db_session, inspector, auth_headers):
        inspection = create_inspection(db_session, inspector=inspector, status="pending_approval")
        db_session.commit()

        response = client.delete(f"/api/inspections/{inspection.id}", headers=auth_headers(inspector))
        assert response.status_code == 403
        assert response.json()["error"] == "下書きの確認記録のみ削除できます"


class TestOrganizationEndpoints:

    def test_approval_settings(self, client: TestClient, seeded, admin, approver, auth_headers):
        response = client.put(
            "/api/organization/approval-settings",
            json={"approval_levels": 1},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json() == {"approval_levels": 1}

        response = client.get("/api/organization/approvers", headers=auth_headers(approver))
        levels = {m["id"]: m["approval_level"] for m in response.json()}
        assert levels[str(approver.id)] == 1

    def test_approval_settings_clamped(self, client: TestClient, seeded, admin, auth_headers):
        response = client.put(
            "/api/organization/approval-settings",
            json={"approval_levels": 9},
            headers=auth_headers(admin),
        )
        assert response.json() == {"approval_levels": 3}

    def test_approval_settings_admin_only(self, client: TestClient, seeded, approver, auth_headers):
        response = client.put(
            "/api/organization/approval-settings",
            json={"approval_levels": 1},
            headers=auth_headers(approver),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "管理者のみが実行できます"

    @pytest.mark.parametrize("body,message", [
        ({"approval_levels": "abc"}, "Invalid approval_levels"),
        ({}, "approval_levels must be provided"),
    ])
    def test_approval_settings_malformed(self, client: TestClient, seeded, admin, auth_headers, body, message):
        response = client.put(
            "/api/organization/approval-settings",
            json=body,
            headers=auth_headers(admin),
        )
        assert response.status_code == 400
        assert response.json() == {"error": message}

    def test_bulk_approver_levels(self, client: TestClient, seeded, admin, approver, inspector, auth_headers):
        response = client.put(
            "/api/organization/approvers",
            json={"users": [
                {"id": str(approver.id), "approval_level": 3},
                {"id": str(inspector.id), "approval_level": 1},
            ]},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

        response = client.get("/api/organization/users", headers=auth_headers(admin))
        levels = {m["id"]: m["approval_level"] for m in response.json()}
        assert levels[str(approver.id)] == 2
        assert levels[str(inspector.id)] == 1

    def test_bulk_unknown_user(self, client: TestClient, seeded, admin, auth_headers):
        response = client.put(
            "/api/organization/approvers",
            json={"users": [{"id": str(uuid4()), "approval_level": 1}]},
            headers=auth_headers(admin),
        )
        assert response.status_code == 404

    def test_self_deactivation(self, client: TestClient, seeded, admin, inspector, auth_headers):
        response = client.patch(
            f"/api/organization/users/{admin.id}",
            json={"is_active": False},
            headers=auth_headers(admin),
        )
        assert response.status_code == 403

        response = client.patch(
            f"/api/organization/users/{inspector.id}",
            json={"is_active": False},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_default_approver(self, client: TestClient, seeded, admin, approver, inspector, auth_headers):
        response = client.put(
            "/api/organization/default-approver",
            json={"approver_id": str(approver.id)},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200

        response = client.get("/api/organization/default-approver", headers=auth_headers(inspector))
        assert response.json() == {"approver_id": str(approver.id)}

        response = client.put(
            "/api/organization/default-approver",
            json={"approver_id": str(inspector.id)},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400


class TestOpenAPI:

    def test_error_body_documented(self, client: TestClient):
        spec = client.get("/openapi.json").json()
        responses = spec["paths"]["/api/inspections/{inspection_id}/approve"]["post"]["responses"]
        for status in ("400", "401", "403", "404"):
            schema = responses[status]["content"]["application/json"]["schema"]
            assert schema == {"$ref": "#/components/schemas/ErrorResponse"}
