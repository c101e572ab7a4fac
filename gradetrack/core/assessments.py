"""
Due-date helpers for listing dated and upcoming assessments.
"""

from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional, Union


DEFAULT_UPCOMING_DAYS = 30
MAX_UPCOMING_DAYS = 3650


def normalize_due_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Calendar date of a due-date value, or None when it cannot be read.

    Accepts ``YYYY-MM-DD`` and full ISO timestamps (the time part is dropped).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def is_completed(item: Any) -> bool:
    """An assessment is done once it has both a positive weight and a grade."""
    grade_input = getattr(item, 'grade_input', None) or ''
    return getattr(item, 'weight', 0) > 0 and bool(grade_input.strip())


def dated_assessments(items: Iterable[Any]) -> List[Any]:
    """Items that carry a due date, earliest first."""
    dated = [item for item in items if normalize_due_date(item.due_date) is not None]
    return sorted(dated, key=lambda item: (normalize_due_date(item.due_date), item.created_at))


def upcoming_assessments(items: Iterable[Any], today: date,
                         days: int = DEFAULT_UPCOMING_DAYS) -> List[Any]:
    """Ungraded items due between ``today`` and ``today + days`` inclusive.

    Overdue items are left out.
    """
    try:
        window_end = today + timedelta(days=days)
    except OverflowError:
        window_end = date.max
    upcoming = []
    for item in dated_assessments(items):
        due = normalize_due_date(item.due_date)
        if due < today or due > window_end:
            continue
        if is_completed(item):
            continue
        upcoming.append(item)
    return upcoming
