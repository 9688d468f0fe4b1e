"""
Unit tests for staple due-date calculations.
"""
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from app.services.staples_service import (
    calculate_due_status,
    calculate_next_due_date,
    enrich_staple,
    is_preselected,
    parse_frequency,
    sort_by_due_status,
)

TODAY = date(2024, 1, 10)


def _staple(name, last_added=None, frequency="weekly", is_active=True):
    return SimpleNamespace(
        id=abs(hash(name)) % 1000,
        item_name=name,
        quantity=1.0,
        unit="piece",
        category=None,
        frequency=frequency,
        is_active=is_active,
        last_added_date=last_added,
        notes=None,
        created_at=datetime(2024, 1, 1),
        updated_at=datetime(2024, 1, 1),
    )


@pytest.mark.unit
class TestFrequency:

    def test_keys_and_labels(self):
        assert parse_frequency("weekly") == "weekly"
        assert parse_frequency("Every 2 weeks") == "every_2_weeks"
        assert parse_frequency("every-4-weeks") == "every_4_weeks"
        assert parse_frequency("fortnightly") == "every_2_weeks"
        assert parse_frequency("Quarterly") == "every_3_months"

    def test_unknown(self):
        assert parse_frequency("daily") is None
        assert parse_frequency("") is None


@pytest.mark.unit
class TestDueStatus:

    def test_never_added_is_due_today(self):
        """A staple never bought has no due date and is due right away."""
        assert calculate_next_due_date(None, "weekly") is None
        assert calculate_due_status(None, TODAY) == "dueToday"

    def test_next_due_date_follows_frequency(self):
        assert calculate_next_due_date(date(2024, 1, 1), "weekly") == date(2024, 1, 8)
        assert calculate_next_due_date(date(2024, 1, 1), "every_2_weeks") == date(2024, 1, 15)
        assert calculate_next_due_date(date(2024, 1, 1), "every_3_months") == date(2024, 4, 1)

    def test_status_boundaries(self):
        assert calculate_due_status(date(2024, 1, 8), TODAY) == "overdue"
        assert calculate_due_status(date(2024, 1, 10), TODAY) == "dueToday"
        assert calculate_due_status(date(2024, 1, 13), TODAY) == "dueSoon"
        assert calculate_due_status(date(2024, 1, 14), TODAY) == "notDue"

    def test_enrich_staple(self):
        enriched = enrich_staple(_staple("Milk", last_added=date(2024, 1, 5)), TODAY)

        assert enriched["next_due_date"] == date(2024, 1, 12)
        assert enriched["days_until_due"] == 2
        assert enriched["due_status"] == "dueSoon"

    def test_sort_most_urgent_first(self):
        staples = [
            enrich_staple(_staple("Rice", last_added=date(2024, 1, 9)), TODAY),
            enrich_staple(_staple("Bread"), TODAY),
            enrich_staple(_staple("Milk", last_added=date(2023, 12, 20)), TODAY),
            enrich_staple(_staple("Eggs", last_added=date(2024, 1, 5)), TODAY),
        ]

        ordered = [s["item_name"] for s in sort_by_due_status(staples)]

        assert ordered == ["Milk", "Bread", "Eggs", "Rice"]


@pytest.mark.unit
class TestPreselection:

    def test_due_and_active_is_preselected(self):
        enriched = enrich_staple(_staple("Bread"), TODAY)

        assert is_preselected(enriched, already_imported=False) is True

    def test_already_imported_is_not_preselected(self):
        enriched = enrich_staple(_staple("Bread"), TODAY)

        assert is_preselected(enriched, already_imported=True) is False

    def test_inactive_or_not_due_is_not_preselected(self):
        inactive = enrich_staple(_staple("Bread", is_active=False), TODAY)
        not_due = enrich_staple(_staple("Rice", last_added=date(2024, 1, 9)), TODAY)

        assert is_preselected(inactive, already_imported=False) is False
        assert is_preselected(not_due, already_imported=False) is False
