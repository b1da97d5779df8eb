"""Factory functions for creating test database records.

Each factory creates a model instance, adds it to the session, and flushes
so that defaults (id, created_at, etc.) are populated. All fields have
sensible defaults but can be overridden via keyword arguments. Commit the
session before handing data to another session or the API client.

Usage::

    from tests.factories import create_organization, create_user

    def test_something(db_session):
        org = create_organization(db_session, approval_levels=2)
        approver = create_user(db_session, org=org, role="approver")
        assert approver.organization.approval_levels == 2
"""

from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from inspectflow.core.rbac import Principal
from inspectflow.db.models import (
    Inspection,
    InspectionItem,
    Organization,
    OrganizationSettings,
    Photo,
    Site,
    Template,
    TemplateItem,
    User,
)


_counter = 0


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------


def create_organization(
    session: Session,
    *,
    name: Optional[str] = None,
    approval_levels: int = 0,
) -> Organization:
    n = _next_id()
    org = Organization(
        name=name or f"Test Org {n}",
        approval_levels=approval_levels,
    )
    session.add(org)
    session.flush()
    return org


def set_default_approver(session: Session, org: Organization, approver: Optional[User]) -> OrganizationSettings:
    settings = OrganizationSettings(
        organization_id=org.id,
        default_approver_id=approver.id if approver else None,
    )
    session.add(settings)
    session.flush()
    return settings


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def create_user(
    session: Session,
    *,
    org: Optional[Organization] = None,
    role: str = "inspector",
    approval_level: int = 0,
    email: Optional[str] = None,
    name: Optional[str] = None,
    is_active: bool = True,
) -> User:
    if org is None:
        org = create_organization(session)
    n = _next_id()
    user = User(
        organization_id=org.id,
        role=role,
        approval_level=approval_level,
        email=email or f"user-{n}@example.com",
        name=name or f"Test User {n}",
        is_active=is_active,
    )
    session.add(user)
    session.flush()
    return user


def principal_for(user: User) -> Principal:
    return Principal.from_user(user)


# ---------------------------------------------------------------------------
# Site / Template
# ---------------------------------------------------------------------------


def create_site(
    session: Session,
    *,
    org: Optional[Organization] = None,
    name: Optional[str] = None,
    facility_type: Optional[str] = "restaurant",
) -> Site:
    if org is None:
        org = create_organization(session)
    n = _next_id()
    site = Site(
        organization_id=org.id,
        name=name or f"Site {n}",
        facility_type=facility_type,
    )
    session.add(site)
    session.flush()
    return site


def create_template(
    session: Session,
    *,
    org: Optional[Organization] = None,
    name: Optional[str] = None,
    system: bool = False,
) -> Template:
    """Create an organization template, or a system template with ``system=True``."""
    if org is None and not system:
        org = create_organization(session)
    n = _next_id()
    template = Template(
        organization_id=None if system else org.id,
        name=name or f"Template {n}",
    )
    session.add(template)
    session.flush()
    return template


def create_template_item(
    session: Session,
    *,
    template: Template,
    item_type: str = "text",
    label: Optional[str] = None,
    required: bool = False,
    sort_order: Optional[int] = None,
) -> TemplateItem:
    n = _next_id()
    item = TemplateItem(
        template_id=template.id,
        item_type=item_type,
        label=label or f"Item {n}",
        required=required,
        sort_order=n if sort_order is None else sort_order,
        display_facility_types=[],
    )
    session.add(item)
    session.flush()
    return item


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


def create_inspection(
    session: Session,
    *,
    inspector: User,
    site: Optional[Site] = None,
    template: Optional[Template] = None,
    status: str = "draft",
    inspection_date: Optional[date] = None,
    summary: Optional[str] = None,
    overview_metadata: Optional[dict] = None,
    approver: Optional[User] = None,
    submitted_at: Optional[datetime] = None,
) -> Inspection:
    if site is None:
        site = create_site(session, org=inspector.organization)
    if template is None:
        template = create_template(session, org=inspector.organization)
    if status == "pending_approval" and submitted_at is None:
        submitted_at = datetime.utcnow()
    inspection = Inspection(
        organization_id=inspector.organization_id,
        site_id=site.id,
        template_id=template.id,
        inspector_id=inspector.id,
        status=status,
        inspection_date=inspection_date or date(2026, 9, 1),
        summary=summary,
        overview_metadata=overview_metadata,
        approver_id=approver.id if approver else None,
        submitted_at=submitted_at,
    )
    session.add(inspection)
    session.flush()
    return inspection


def answer_items(
    session: Session,
    inspection: Inspection,
    template_items: Iterable[TemplateItem],
    value: Optional[str] = "ok",
) -> list:
    """Create an InspectionItem with ``value`` for each template item."""
    rows = []
    for template_item in template_items:
        row = InspectionItem(
            inspection_id=inspection.id,
            template_item_id=template_item.id,
            value=value,
            item_metadata={},
        )
        session.add(row)
        rows.append(row)
    session.flush()
    return rows


def create_photo(
    session: Session,
    *,
    inspection: Inspection,
    inspection_item: Optional[InspectionItem] = None,
    file_name: Optional[str] = None,
) -> Photo:
    """Attach photo metadata to an inspection, optionally linked to one item."""
    n = _next_id()
    file_name = file_name or f"photo-{n}.jpg"
    photo = Photo(
        inspection_id=inspection.id,
        inspection_item_id=inspection_item.id if inspection_item else None,
        file_path=f"inspections/{inspection.id}/{file_name}",
        file_name=file_name,
        file_size=1024,
        mime_type="image/jpeg",
        sort_order=n,
    )
    session.add(photo)
    session.flush()
    return photo
