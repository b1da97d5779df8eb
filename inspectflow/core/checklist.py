"""Required-field completeness check for inspection submission.

A template item is a candidate when it is marked ``required`` and is not a
``section_header``. Photo items are candidates too unless the caller opts
out with ``count_photo=False``. A candidate is answered when some
submitted item references it with a value that is neither ``None`` nor the
empty string; the ``"na"`` sentinel counts as an answer.

Both ORM rows and plain mappings are accepted, so the check can run on
``TemplateItem``/``InspectionItem`` instances or on request payloads.
"""

from enum import Enum
from typing import Any, Iterable, List, Set

from inspectflow.core.errors import ValidationFailure


class ItemType(str, Enum):
    """Template item types."""

    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    NUMBER = "number"
    DATE = "date"
    PHOTO = "photo"
    SECTION_HEADER = "section_header"
    RATING_1_5_NA = "rating_1_5_na"


NOT_APPLICABLE = "na"

# Never answerable, never counted
NON_ANSWERABLE_TYPES = frozenset([ItemType.SECTION_HEADER.value])


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _key(value: Any) -> str:
    return str(value) if value is not None else ""


def is_answered(value: Any) -> bool:
    return value is not None and value != ""


def required_candidates(template_items: Iterable[Any], *, count_photo: bool = True) -> List[Any]:
    """Template items that must be answered before submission, in sort order."""
    excluded = set(NON_ANSWERABLE_TYPES)
    if not count_photo:
        excluded.add(ItemType.PHOTO.value)

    candidates = [
        item for item in template_items
        if _field(item, "required", False) and _field(item, "item_type") not in excluded
    ]
    return sorted(candidates, key=lambda item: _field(item, "sort_order", 0) or 0)


def find_missing(
    template_items: Iterable[Any],
    submitted_items: Iterable[Any],
    *,
    count_photo: bool = True,
) -> List[str]:
    """
    Return the ids of required template items without an answer.

    Args:
        template_items: Template item rows or dicts (``id``, ``item_type``,
            ``required``, optional ``sort_order``)
        submitted_items: Inspection item rows or dicts (``template_item_id``, ``value``)
        count_photo: Whether required photo items need an answer

    Returns:
        Missing template item ids as strings, in template order
    """
    answered: Set[str] = {
        _key(_field(item, "template_item_id"))
        for item in submitted_items
        if is_answered(_field(item, "value"))
    }
    return [
        _key(_field(item, "id"))
        for item in required_candidates(template_items, count_photo=count_photo)
        if _key(_field(item, "id")) not in answered
    ]


def ensure_complete(
    template_items: Iterable[Any],
    submitted_items: Iterable[Any],
    *,
    count_photo: bool = True,
) -> None:
    """Raise ValidationFailure naming how many required items are unanswered."""
    missing = find_missing(template_items, submitted_items, count_photo=count_photo)
    if missing:
        raise ValidationFailure(
            f"必須項目が入力されていません（{len(missing)}件）",
            missing_item_ids=missing,
            missing_count=len(missing),
        )
