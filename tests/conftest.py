"""Shared test fixtures for Stockroom."""

from datetime import date, datetime, timezone

import pytest

from stockroom.inventory_manager import InventoryManager
from stockroom.models import Profile, Role
from stockroom.receipt_manager import ReceiptManager
from stockroom.reminders import ReminderManager
from stockroom.reports import ReportManager
from stockroom.shopping_list import ShoppingListManager
from stockroom.sqlite_store import SQLiteStore
from stockroom.team import TeamManager


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def store(temp_data_dir):
    """Create a SQLiteStore with a temporary database."""
    return SQLiteStore(db_path=temp_data_dir / "test.db")


@pytest.fixture
def inventory(store):
    return InventoryManager(store)


@pytest.fixture
def shopping(store, inventory):
    return ShoppingListManager(store, inventory)


@pytest.fixture
def team(store):
    return TeamManager(store)


@pytest.fixture
def receipts(store, team):
    return ReceiptManager(store, team)


@pytest.fixture
def reminders(store):
    return ReminderManager(store)


@pytest.fixture
def admin(store):
    """An admin profile."""
    profile = Profile(id="admin-1", full_name="Ada Admin", role=Role.ADMIN)
    store.upsert_profile(profile)
    return profile


@pytest.fixture
def viewer(store):
    """A viewer profile."""
    profile = Profile(id="viewer-1", full_name="Vic Viewer", role=Role.VIEWER)
    store.upsert_profile(profile)
    return profile


@pytest.fixture
def today():
    return date(2024, 3, 15)


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def reports(store, inventory):
    return ReportManager(store, inventory)
