import pytest

from dashboard.tests.fakes import FakeRestaurantAPI


@pytest.fixture
def fake() -> FakeRestaurantAPI:
    """The 2025-01-10 floor: R1 (4 guests) on T1 at 18:00 for two hours."""
    api = FakeRestaurantAPI()
    api.add_table(1, "T1", 2, 6)
    api.add_table(2, "T2", 2, 4)
    api.add_table(3, "T3", 4, 8)
    api.add_reservation(1, 1, "18:00", 4, guest_name="Ana")
    return api


@pytest.fixture
def overnight() -> FakeRestaurantAPI:
    api = FakeRestaurantAPI(opening="22:00", closing="03:00")
    api.add_table(1, "Bar 1", 1, 4)
    api.add_table(2, "Bar 2", 1, 4)
    api.add_reservation(7, 1, "23:00", 2, guest_name="Luka")
    return api
