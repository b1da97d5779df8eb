"""API routers for InspectFlow."""

from . import health
from . import inspections
from . import approvals
from . import organization

__all__ = [
    "health",
    "inspections",
    "approvals",
    "organization",
]
