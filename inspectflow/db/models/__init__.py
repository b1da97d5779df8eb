"""Database models for InspectFlow."""

from inspectflow.db.models.org import Organization, OrganizationSettings
from inspectflow.db.models.user import User
from inspectflow.db.models.site import Site
from inspectflow.db.models.template import Template, TemplateItem
from inspectflow.db.models.inspection import Inspection, InspectionItem, Photo
from inspectflow.db.models.approval import ApprovalLog, ImmutableRecordError, InspectionEditLog

__all__ = [
    "Organization",
    "OrganizationSettings",
    "User",
    "Site",
    "Template",
    "TemplateItem",
    "Inspection",
    "InspectionItem",
    "Photo",
    "ApprovalLog",
    "InspectionEditLog",
    "ImmutableRecordError",
]
