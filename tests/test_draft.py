"""Tests for the lenient draft reducer."""

from conftest import WEDDING_ID, utc
from weddingday.schemas.patch import (
    CreateEventOp,
    CreateLaneOp,
    DeleteEventOp,
    DeleteLaneOp,
    UpdateEventLaneOp,
    UpdateEventOwnerOp,
    UpdateEventTimeOp,
    UpdateEventTitleOp,
    UpdateLaneOp,
)
from weddingday.schemas.timeline import OwnerRef, OwnerType, TimelineEvent, TimelineLane
from weddingday.services.draft import (
    add_patch_ops,
    apply_patch_ops,
    clear_draft,
    create_draft,
    reset_draft,
    truncate_draft,
)


def make_event(event_id: str, lane_id: str = "lane-photo", hour: int = 19) -> TimelineEvent:
    return TimelineEvent(
        id=event_id,
        wedding_id=WEDDING_ID,
        title=f"Event {event_id}",
        start_utc=utc(2026, 10, 17, hour, 0),
        end_utc=utc(2026, 10, 17, hour, 30),
        lane_id=lane_id,
    )


class TestDraftState:
    def test_new_draft_is_clean(self):
        draft = create_draft(3)

        assert draft.base_version == 3
        assert draft.patch_ops == ()
        assert not draft.is_dirty

    def test_add_marks_dirty(self):
        draft = add_patch_ops(create_draft(3), [DeleteEventOp(event_id="evt-1")])

        assert draft.is_dirty
        assert len(draft.patch_ops) == 1

    def test_clear_keeps_base_version(self):
        draft = add_patch_ops(create_draft(3), [DeleteEventOp(event_id="evt-1")])

        cleared = clear_draft(draft)

        assert cleared.base_version == 3
        assert not cleared.is_dirty

    def test_reset_moves_base_version(self):
        assert reset_draft(4) == create_draft(4)

    def test_truncate(self):
        ops = [DeleteEventOp(event_id=f"evt-{i}") for i in range(3)]
        draft = add_patch_ops(create_draft(0), ops)

        assert truncate_draft(draft, 2).patch_ops == (ops[0],)
        assert truncate_draft(draft, 5).patch_ops == ()
        assert truncate_draft(draft, 0) is draft


class TestApplyPatchOps:
    def test_ops_see_earlier_ops_in_same_batch(self, first_look, photo_lane):
        new_event = make_event("evt-new", hour=21)
        ops = [
            CreateEventOp(event=new_event),
            UpdateEventTimeOp(
                event_id="evt-new", start_utc=utc(2026, 10, 17, 22, 0), end_utc=utc(2026, 10, 17, 23, 0)
            ),
        ]

        events, _ = apply_patch_ops([first_look], [photo_lane], ops)

        created = next(e for e in events if e.id == "evt-new")
        assert created.start_utc == utc(2026, 10, 17, 22, 0)
        assert created.end_utc == utc(2026, 10, 17, 23, 0)

    def test_event_field_updates(self, first_look, photo_lane, ceremony_lane):
        owner = OwnerRef(id="p-1", type=OwnerType.PLANNER, display_name="Pat")
        ops = [
            UpdateEventLaneOp(event_id=first_look.id, lane_id=ceremony_lane.id),
            UpdateEventTitleOp(event_id=first_look.id, title="Portraits"),
            UpdateEventOwnerOp(event_id=first_look.id, owner=owner),
        ]

        events, _ = apply_patch_ops([first_look], [photo_lane, ceremony_lane], ops)

        assert events[0].lane_id == ceremony_lane.id
        assert events[0].title == "Portraits"
        assert events[0].assigned_owner == owner

    def test_inputs_are_not_mutated(self, first_look, photo_lane):
        base_events = [first_look]
        ops = [UpdateEventTitleOp(event_id=first_look.id, title="Changed"), DeleteLaneOp(lane_id="lane-photo")]

        apply_patch_ops(base_events, [photo_lane], ops)

        assert base_events == [first_look]
        assert first_look.title == "First look"

    def test_replay_is_deterministic(self, first_look, ceremony, photo_lane, ceremony_lane):
        ops = [
            CreateLaneOp(lane=TimelineLane(id="lane-music", name="Music", sort_order=2)),
            CreateEventOp(event=make_event("evt-dj", lane_id="lane-music", hour=23)),
            UpdateEventTimeOp(
                event_id=ceremony.id, start_utc=utc(2026, 10, 17, 20, 15), end_utc=utc(2026, 10, 17, 21, 0)
            ),
            DeleteEventOp(event_id=first_look.id),
        ]
        base = ([first_look, ceremony], [photo_lane, ceremony_lane])

        assert apply_patch_ops(*base, ops) == apply_patch_ops(*base, ops)

    def test_delete_unknown_event_is_noop(self, first_look, photo_lane):
        ops = [DeleteEventOp(event_id=first_look.id), DeleteEventOp(event_id=first_look.id)]

        events, lanes = apply_patch_ops([first_look], [photo_lane], ops)

        assert events == []
        assert lanes == [photo_lane]

    def test_invalid_ops_are_skipped(self, first_look, photo_lane):
        ops = [
            UpdateEventTitleOp(event_id="evt-missing", title="Ghost"),
            CreateEventOp(event=first_look.model_copy(update={"title": "Duplicate"})),
            UpdateLaneOp(lane_id="lane-missing", name="Ghost lane"),
        ]

        events, lanes = apply_patch_ops([first_look], [photo_lane], ops)

        assert events == [first_look]
        assert lanes == [photo_lane]

    def test_update_lane_merges_only_given_fields(self, photo_lane):
        _, lanes = apply_patch_ops([], [photo_lane], [UpdateLaneOp(lane_id=photo_lane.id, sort_order=5)])

        assert lanes[0].sort_order == 5
        assert lanes[0].name == photo_lane.name
        assert lanes[0].owner == photo_lane.owner

    def test_lane_delete_does_not_cascade_in_preview(self, first_look, photo_lane):
        events, lanes = apply_patch_ops([first_look], [photo_lane], [DeleteLaneOp(lane_id=photo_lane.id)])

        assert lanes == []
        assert events == [first_look]
