"""
Unit tests for shelf life lookups and expiry status.
"""
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from app.services.inventory_service import (
    expiring_threshold_days,
    expiry_status,
    infer_category,
    infer_location,
    lookup_shelf_life,
    shelf_life_days,
)

TODAY = date(2024, 5, 15)


def _item(name, expiry_date=None, purchase_date=None):
    return SimpleNamespace(item_name=name, expiry_date=expiry_date, purchase_date=purchase_date)


@pytest.mark.unit
class TestShelfLife:

    def test_exact_lookup(self):
        entry = lookup_shelf_life("Chicken breasts")

        assert entry.name == "chicken breast"
        assert entry.days == 2
        assert entry.location == "fridge"

    def test_containment_lookup(self):
        entry = lookup_shelf_life("Semi skimmed milk")

        assert entry.name == "milk"
        assert entry.days == 7

    def test_unknown_item(self):
        assert lookup_shelf_life("Unicorn dust") is None

    def test_infer_category_and_location(self):
        assert infer_category("Greek yoghurt") == "Dairy & Eggs"
        assert infer_category("Bin liners") == "Other"
        assert infer_location("Frozen") == "freezer"
        assert infer_location(None) == "pantry"


@pytest.mark.unit
class TestExpiryStatus:

    def test_threshold_is_a_fifth_of_shelf_life(self):
        """20% of the shelf life, never less than two days."""
        assert expiring_threshold_days(7) == 2
        assert expiring_threshold_days(30) == 6
        assert expiring_threshold_days(365) == 73

    def test_status_from_table_shelf_life(self):
        assert expiry_status(_item("Milk", TODAY + timedelta(days=1)), TODAY) == "expiringSoon"
        assert expiry_status(_item("Milk", TODAY + timedelta(days=10)), TODAY) == "fresh"
        assert expiry_status(_item("Milk", TODAY - timedelta(days=1)), TODAY) == "expired"

    def test_no_expiry_date(self):
        assert expiry_status(_item("Milk"), TODAY) is None

    def test_purchase_span_overrides_table(self):
        item = _item("Milk", expiry_date=date(2024, 1, 31), purchase_date=date(2024, 1, 1))

        assert shelf_life_days(item) == 30
        assert expiry_status(item, date(2024, 1, 26)) == "expiringSoon"
        assert expiry_status(item, date(2024, 1, 20)) == "fresh"
