import pytest

from dashboard.app.services.drag import DragState, DragTracker
from dashboard.app.services.errors import DragError, ReservationBusy
from dashboard.app.services.models import RestaurantProfile
from dashboard.app.services.validator import DropRejection


def test_start_records_the_source(fake):
    tracker = DragTracker()

    session = tracker.start(fake.schedule(), 1, "18:00")

    assert tracker.state is DragState.DRAGGING
    assert (session.reservation_id, session.guest_name, session.guest_count) == (1, "Ana", 4)
    assert (session.source_table_id, session.source_time) == (1, "18:00")
    assert session.timezone == "Europe/Belgrade"


def test_empty_cell_is_not_a_drag_source(fake):
    tracker = DragTracker()

    with pytest.raises(DragError):
        tracker.start(fake.schedule(), 2, "18:00")
    assert tracker.state is DragState.IDLE


def test_only_one_gesture_at_a_time(fake):
    fake.add_reservation(2, 3, "20:00", 6)
    schedule = fake.schedule()
    tracker = DragTracker()
    tracker.start(schedule, 1, "18:00")

    with pytest.raises(DragError):
        tracker.start(schedule, 3, "20:00")


def test_hover_updates_target_but_not_source(fake):
    schedule = fake.schedule()
    profile = RestaurantProfile.model_validate(fake.profile)
    tracker = DragTracker()
    tracker.start(schedule, 1, "18:00")

    verdict = tracker.hover(schedule, profile, 2, "19:00")

    assert verdict.valid
    assert tracker.session.hover.table_id == 2
    assert tracker.session.hover.time == "19:00"
    assert tracker.session.source_table_id == 1
    assert tracker.state is DragState.DRAGGING


def test_drop_outside_returns_to_idle(fake):
    schedule = fake.schedule()
    profile = RestaurantProfile.model_validate(fake.profile)
    tracker = DragTracker()
    tracker.start(schedule, 1, "18:00")

    decision = tracker.drop(schedule, profile)

    assert not decision.commit
    assert decision.verdict is None
    assert tracker.state is DragState.IDLE


def test_drop_on_source_cell_is_not_committed(fake):
    schedule = fake.schedule()
    profile = RestaurantProfile.model_validate(fake.profile)
    tracker = DragTracker()
    tracker.start(schedule, 1, "18:00")

    decision = tracker.drop(schedule, profile, 1, "18:00")

    assert not decision.commit
    assert decision.verdict.reason is DropRejection.SAME_CELL
    assert tracker.state is DragState.IDLE


def test_valid_drop_hands_the_session_over(fake):
    schedule = fake.schedule()
    profile = RestaurantProfile.model_validate(fake.profile)
    tracker = DragTracker()
    tracker.start(schedule, 1, "18:00")

    decision = tracker.drop(schedule, profile, 2, "19:00")

    assert decision.commit
    assert decision.session.reservation_id == 1
    assert (decision.target.table_id, decision.target.time) == (2, "19:00")
    assert tracker.state is DragState.COMMITTING
    assert tracker.pending == {1}
    with pytest.raises(ReservationBusy):
        tracker.start(schedule, 1, "18:00")


def test_grabbing_a_later_cell_records_the_reservation_start(fake):
    schedule = fake.schedule()
    profile = RestaurantProfile.model_validate(fake.profile)
    tracker = DragTracker()

    session = tracker.start(schedule, 1, "19:00")
    assert (session.source_table_id, session.source_time) == (1, "18:00")

    decision = tracker.drop(schedule, profile, 1, "18:00")
    assert not decision.commit
    assert decision.verdict.reason is DropRejection.SAME_CELL
    assert tracker.pending == set()


def test_pending_reservation_cannot_be_picked_up(fake):
    fake.add_reservation(2, 3, "20:00", 6)
    schedule = fake.schedule()
    tracker = DragTracker()

    tracker.claim(1)
    assert tracker.state is DragState.COMMITTING
    with pytest.raises(ReservationBusy):
        tracker.start(schedule, 1, "18:00")
    with pytest.raises(ReservationBusy):
        tracker.claim(1)

    # a different reservation can still move
    tracker.start(schedule, 3, "20:00")
    assert tracker.state is DragState.DRAGGING

    tracker.cancel()
    tracker.settle(1)
    assert tracker.state is DragState.IDLE


def test_hover_without_a_gesture_fails(fake):
    with pytest.raises(DragError):
        DragTracker().hover(fake.schedule(), RestaurantProfile.model_validate(fake.profile), 2, "19:00")
