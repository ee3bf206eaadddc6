"""Tests for strict, all-or-nothing op application."""

import pytest

from conftest import WEDDING_ID, utc
from weddingday.exceptions import (
    DuplicateIdError,
    EventLockedError,
    EventNotFoundError,
    InvalidTimeRangeError,
    LaneNotFoundError,
    MissingRequiredFieldError,
)
from weddingday.schemas.patch import (
    CreateEventOp,
    CreateLaneOp,
    DeleteEventOp,
    DeleteLaneOp,
    UpdateEventLaneOp,
    UpdateEventTimeOp,
    UpdateEventTitleOp,
    UpdateLaneOp,
)
from weddingday.schemas.timeline import LaneType, TimelineEvent, TimelineLane
from weddingday.services.reconciliation import apply_canonical_ops


def new_event(event_id: str = "evt-toast", lane_id: str = "lane-ceremony", **kwargs) -> TimelineEvent:
    fields = {
        "id": event_id,
        "title": "Toasts",
        "start_utc": utc(2026, 10, 17, 23, 0),
        "end_utc": utc(2026, 10, 17, 23, 20),
        "lane_id": lane_id,
    }
    fields.update(kwargs)
    return TimelineEvent(**fields)


class TestApplyCanonicalOps:
    def test_create_event_defaults_category_to_lane_type(self, base_state, window):
        state = apply_canonical_ops(base_state, [CreateEventOp(event=new_event())], window)

        created = state.events["evt-toast"]
        assert created.category == LaneType.CEREMONY
        assert created.wedding_id == WEDDING_ID

    def test_create_event_snaps_and_clamps(self, base_state, window):
        event = new_event(start_utc=utc(2026, 10, 17, 6, 45), end_utc=utc(2026, 10, 17, 8, 0, 40))

        state = apply_canonical_ops(base_state, [CreateEventOp(event=event)], window)

        assert state.events["evt-toast"].start_utc == utc(2026, 10, 17, 7, 0)
        assert state.events["evt-toast"].end_utc == utc(2026, 10, 17, 8, 1)

    def test_original_state_is_untouched(self, base_state, window):
        apply_canonical_ops(base_state, [DeleteEventOp(event_id="evt-ceremony")], window)

        assert "evt-ceremony" in base_state.events

    def test_duplicate_event_id(self, base_state, window):
        with pytest.raises(DuplicateIdError):
            apply_canonical_ops(base_state, [CreateEventOp(event=new_event("evt-ceremony"))], window)

    def test_create_event_in_unknown_lane(self, base_state, window):
        with pytest.raises(LaneNotFoundError):
            apply_canonical_ops(base_state, [CreateEventOp(event=new_event(lane_id="lane-x"))], window)

    def test_blank_title_rejected(self, base_state, window):
        with pytest.raises(MissingRequiredFieldError):
            apply_canonical_ops(base_state, [CreateEventOp(event=new_event(title="  "))], window)

    def test_update_time_out_of_window(self, base_state, window):
        op = UpdateEventTimeOp(
            event_id="evt-ceremony", start_utc=utc(2026, 10, 18, 8, 0), end_utc=utc(2026, 10, 18, 9, 0)
        )

        with pytest.raises(InvalidTimeRangeError):
            apply_canonical_ops(base_state, [op], window)

    def test_update_lane_requires_existing_lane(self, base_state, window):
        with pytest.raises(LaneNotFoundError):
            apply_canonical_ops(
                base_state, [UpdateEventLaneOp(event_id="evt-ceremony", lane_id="lane-x")], window
            )

    def test_delete_unknown_event_is_not_found(self, base_state, window):
        with pytest.raises(EventNotFoundError) as exc_info:
            apply_canonical_ops(base_state, [DeleteEventOp(event_id="evt-missing")], window)

        assert exc_info.value.location.op_index == 0

    def test_deleting_twice_fails_on_second_op(self, base_state, window):
        ops = [DeleteEventOp(event_id="evt-ceremony"), DeleteEventOp(event_id="evt-ceremony")]

        with pytest.raises(EventNotFoundError) as exc_info:
            apply_canonical_ops(base_state, ops, window)

        assert exc_info.value.location.op_index == 1
        assert exc_info.value.location.event_id == "evt-ceremony"

    def test_delete_lane_cascades_to_events(self, base_state, window):
        state = apply_canonical_ops(base_state, [DeleteLaneOp(lane_id="lane-photo")], window)

        assert "lane-photo" not in state.lanes
        assert "evt-first-look" not in state.events
        assert "evt-ceremony" in state.events

    def test_locked_event_rejects_edits(self, base_state, window):
        base_state.events["evt-ceremony"] = base_state.events["evt-ceremony"].model_copy(
            update={"locked": True}
        )

        with pytest.raises(EventLockedError):
            apply_canonical_ops(
                base_state, [UpdateEventTitleOp(event_id="evt-ceremony", title="Vows")], window
            )
        with pytest.raises(EventLockedError):
            apply_canonical_ops(base_state, [DeleteEventOp(event_id="evt-ceremony")], window)

    def test_lane_cascade_removes_locked_events(self, base_state, window):
        base_state.events["evt-ceremony"] = base_state.events["evt-ceremony"].model_copy(
            update={"locked": True}
        )

        state = apply_canonical_ops(base_state, [DeleteLaneOp(lane_id="lane-ceremony")], window)

        assert "evt-ceremony" not in state.events

    def test_lane_create_update(self, base_state, window):
        ops = [
            CreateLaneOp(lane=TimelineLane(id="lane-music", name="Music", lane_type=LaneType.MUSIC)),
            UpdateLaneOp(lane_id="lane-music", name="Band", sort_order=3),
        ]

        state = apply_canonical_ops(base_state, ops, window)

        assert state.lanes["lane-music"].name == "Band"
        assert state.lanes["lane-music"].sort_order == 3
        assert state.lanes["lane-music"].wedding_id == WEDDING_ID

    def test_blank_lane_rename_rejected(self, base_state, window):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            apply_canonical_ops(base_state, [UpdateLaneOp(lane_id="lane-photo", name=" ")], window)

        assert exc_info.value.location.op_index == 0
        assert base_state.lanes["lane-photo"].name == "Photography"

    def test_duplicate_lane_id(self, base_state, window):
        with pytest.raises(DuplicateIdError):
            apply_canonical_ops(
                base_state, [CreateLaneOp(lane=TimelineLane(id="lane-photo", name="Again"))], window
            )

    def test_later_ops_see_created_event(self, base_state, window):
        ops = [
            CreateEventOp(event=new_event()),
            UpdateEventLaneOp(event_id="evt-toast", lane_id="lane-photo"),
        ]

        state = apply_canonical_ops(base_state, ops, window)

        assert state.events["evt-toast"].lane_id == "lane-photo"

    def test_sorted_views(self, base_state):
        assert [lane.id for lane in base_state.sorted_lanes()] == ["lane-photo", "lane-ceremony"]
        assert [e.id for e in base_state.sorted_events()] == ["evt-first-look", "evt-ceremony"]
