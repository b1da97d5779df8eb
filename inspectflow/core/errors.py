"""Error taxonomy for inspection workflow operations.

Every business-rule violation raised by the core is one of these classes.
The API layer maps them to HTTP responses through a single exception
handler, using ``status_code`` and ``to_dict()``. Approval log append failures are
not part of this hierarchy: they are logged and swallowed by the recorder.
"""

from typing import Any, Dict, List, Optional


class InspectFlowError(Exception):
    """Base class for all classified workflow errors."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, **extras: Any):
        self.message = message or self.default_message
        self.extras = extras
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        payload.update({k: v for k, v in self.extras.items() if v is not None})
        return payload


class Unauthenticated(InspectFlowError):
    """No resolvable principal. Never discloses why."""

    status_code = 401
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)


class Forbidden(InspectFlowError):
    """Authenticated, but rank or ownership is insufficient."""

    status_code = 403
    default_message = "Forbidden"


class NotFound(InspectFlowError):
    """Entity absent, or outside the caller's tenant or ownership scope."""

    status_code = 404
    default_message = "Not found"


class InvalidState(InspectFlowError):
    """Action attempted from a status that does not allow it."""

    status_code = 400
    default_message = "Invalid state for this action"


class PersistenceConflict(InvalidState):
    """A guarded write matched zero rows because another writer got there first."""

    default_message = "Inspection state changed, please reload and try again"


class ValidationFailure(InspectFlowError):
    """Missing comment, missing required fields, or malformed payload."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        missing_item_ids: Optional[List[str]] = None,
        missing_count: Optional[int] = None,
    ):
        super().__init__(
            message,
            missing_item_ids=missing_item_ids,
            missing_count=missing_count,
        )
        self.missing_item_ids = missing_item_ids or []
        self.missing_count = missing_count
