import pytest

from dashboard.app.services.drag import DragTracker
from dashboard.app.services.models import ReservationSummary, RestaurantProfile
from dashboard.app.services.validator import DropRejection, check_drop
from dashboard.tests.fakes import FakeRestaurantAPI


def _drag(api: FakeRestaurantAPI, table_id: int, time: str):
    schedule = api.schedule()
    session = DragTracker().start(schedule, table_id, time)
    return schedule, session, RestaurantProfile.model_validate(api.profile)


def test_drop_on_own_cell_is_ignored(fake):
    schedule, session, profile = _drag(fake, 1, "18:00")

    verdict = check_drop(schedule, session, 1, "18:00", profile)

    assert not verdict.valid
    assert verdict.reason is DropRejection.SAME_CELL
    assert verdict.affordance == "reject"


@pytest.mark.parametrize(
    ("table_id", "valid"),
    [
        (2, False),  # capacity 2-4
        (3, True),   # capacity 4-8
    ],
)
def test_capacity_gate(table_id, valid):
    api = FakeRestaurantAPI()
    api.add_table(1, "T1", 2, 6)
    api.add_table(2, "T2", 2, 4)
    api.add_table(3, "T3", 4, 8)
    api.add_reservation(5, 1, "18:00", 5)
    schedule, session, profile = _drag(api, 1, "18:00")

    verdict = check_drop(schedule, session, table_id, "18:00", profile)

    assert verdict.valid is valid
    if not valid:
        assert verdict.reason is DropRejection.CAPACITY


def test_capacity_bounds_are_inclusive(fake):
    schedule, session, profile = _drag(fake, 1, "18:00")

    # four guests: the upper bound of T2 and the lower bound of T3
    assert check_drop(schedule, session, 2, "19:00", profile).valid
    assert check_drop(schedule, session, 3, "19:00", profile).valid


def test_conflict_anywhere_in_the_window_rejects(fake):
    fake.add_reservation(2, 3, "20:00", 6, guest_name="Marko")
    schedule, session, profile = _drag(fake, 1, "18:00")

    verdict = check_drop(schedule, session, 3, "19:00", profile)

    assert not verdict.valid
    assert verdict.reason is DropRejection.CONFLICT
    assert "Marko" in verdict.detail


def test_overlap_with_itself_is_not_a_conflict(fake):
    schedule, session, profile = _drag(fake, 1, "18:00")

    assert check_drop(schedule, session, 1, "19:00", profile).valid


def test_canceled_reservations_do_not_block(fake):
    schedule, session, profile = _drag(fake, 1, "18:00")
    canceled = ReservationSummary(id=2, guest_name="Marko", guest_count=6, status="canceled")
    slot = schedule.slot("19:00")
    slot.tables = [
        table.model_copy(update={"status": "reserved", "reservation": canceled}) if table.id == 3 else table
        for table in slot.tables
    ]

    assert check_drop(schedule, session, 3, "19:00", profile).valid


def test_window_past_closing_is_rejected():
    api = FakeRestaurantAPI()
    api.add_table(1, "T1", 2, 6)
    api.add_table(2, "T2", 2, 6)
    api.add_reservation(9, 1, "17:00", 2, duration=180)
    schedule, session, profile = _drag(api, 1, "17:00")

    verdict = check_drop(schedule, session, 2, "21:00", profile)

    assert not verdict.valid
    assert verdict.reason is DropRejection.OUTSIDE_HOURS


def test_unknown_target_is_rejected(fake):
    schedule, session, profile = _drag(fake, 1, "18:00")

    verdict = check_drop(schedule, session, 42, "18:00", profile)

    assert verdict.reason is DropRejection.UNKNOWN_TARGET


def test_overnight_window_crossing_midnight_is_accepted(overnight):
    schedule, session, profile = _drag(overnight, 1, "23:00")

    assert check_drop(schedule, session, 2, "23:00", profile).valid
    assert check_drop(schedule, session, 2, "01:00", profile).valid

    late = check_drop(schedule, session, 2, "02:00", profile)
    assert late.reason is DropRejection.OUTSIDE_HOURS


def test_degraded_slot_in_the_window_counts_as_free(overnight):
    overnight.add_reservation(8, 2, "00:00", 2)
    schedule, session, profile = _drag(overnight, 1, "23:00")
    assert check_drop(schedule, session, 2, "23:00", profile).reason is DropRejection.CONFLICT

    schedule.slot("00:00").tables = []

    assert check_drop(schedule, session, 2, "23:00", profile).valid
