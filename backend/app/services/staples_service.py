"""
Due-date calculations for staples (recurring household purchases).
"""

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from app.config import settings

FREQUENCY_DAYS = {
    "weekly": 7,
    "every_2_weeks": 14,
    "every_4_weeks": 28,
    "every_3_months": 91,
}

FREQUENCY_LABELS = {
    "weekly": "Weekly",
    "every_2_weeks": "Every 2 weeks",
    "every_4_weeks": "Every 4 weeks",
    "every_3_months": "Every 3 months",
}

DUE_STATUSES = ("overdue", "dueToday", "dueSoon", "notDue")

# Statuses that get pre-selected on import
DUE_FOR_IMPORT = ("overdue", "dueToday", "dueSoon")

_SORT_ORDER = {status: index for index, status in enumerate(DUE_STATUSES)}


def parse_frequency(value: Optional[str]) -> Optional[str]:
    """
    Accept a frequency key or its label ("Every 2 weeks", "every-2-weeks").
    Returns the key or None when unrecognized.
    """
    if not value:
        return None
    cleaned = value.strip().lower().replace("-", " ").replace("_", " ")
    for key, label in FREQUENCY_LABELS.items():
        if cleaned in (key.replace("_", " "), label.lower()):
            return key
    if cleaned in ("fortnightly", "biweekly"):
        return "every_2_weeks"
    if cleaned in ("monthly", "every month"):
        return "every_4_weeks"
    if cleaned in ("quarterly",):
        return "every_3_months"
    return None


def calculate_next_due_date(last_added_date: Optional[date], frequency: str) -> Optional[date]:
    """None when the staple was never added: it is due right away."""
    if last_added_date is None:
        return None
    return last_added_date + timedelta(days=FREQUENCY_DAYS.get(frequency, 7))


def calculate_days_until_due(next_due_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if next_due_date is None:
        return None
    today = today or date.today()
    return (next_due_date - today).days


def calculate_due_status(next_due_date: Optional[date], today: Optional[date] = None) -> str:
    days = calculate_days_until_due(next_due_date, today)
    if days is None or days == 0:
        return "dueToday"
    if days < 0:
        return "overdue"
    if days <= settings.STAPLE_DUE_SOON_DAYS:
        return "dueSoon"
    return "notDue"


def enrich_staple(staple, today: Optional[date] = None) -> Dict[str, Any]:
    """Staple row as a dict with nextDueDate, daysUntilDue and dueStatus."""
    next_due = calculate_next_due_date(staple.last_added_date, staple.frequency)
    return {
        "id": staple.id,
        "item_name": staple.item_name,
        "quantity": staple.quantity,
        "unit": staple.unit,
        "category": staple.category,
        "frequency": staple.frequency,
        "is_active": staple.is_active,
        "last_added_date": staple.last_added_date,
        "notes": staple.notes,
        "next_due_date": next_due,
        "days_until_due": calculate_days_until_due(next_due, today),
        "due_status": calculate_due_status(next_due, today),
        "created_at": staple.created_at,
        "updated_at": staple.updated_at,
    }


def sort_by_due_status(staples: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most urgent first, then by days until due, then by name."""
    return sorted(
        staples,
        key=lambda s: (
            _SORT_ORDER.get(s["due_status"], len(DUE_STATUSES)),
            s["days_until_due"] if s["days_until_due"] is not None else -10**6,
            s["item_name"].lower(),
        ),
    )


def is_preselected(enriched: Dict[str, Any], already_imported: bool) -> bool:
    return bool(
        enriched["is_active"]
        and enriched["due_status"] in DUE_FOR_IMPORT
        and not already_imported
    )
