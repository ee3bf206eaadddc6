"""Strict application of patch ops to canonical timeline state.

Unlike the draft reducer, every op here is validated against the state
accumulated so far and any failure aborts the whole batch. The error raised
carries the index of the offending op. Lane deletion cascades to the lane's
events and referential checks are enforced only here.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from weddingday.exceptions import (
    DuplicateIdError,
    EventLockedError,
    EventNotFoundError,
    LaneNotFoundError,
    MissingRequiredFieldError,
    WeddingDayError,
)
from weddingday.schemas.patch import (
    CreateEventOp,
    CreateLaneOp,
    DeleteEventOp,
    DeleteLaneOp,
    PatchOp,
    UpdateEventLaneOp,
    UpdateEventOwnerOp,
    UpdateEventTimeOp,
    UpdateEventTitleOp,
    UpdateLaneOp,
)
from weddingday.schemas.timeline import TimelineEvent, TimelineLane
from weddingday.services.snapping import enforce_event_times
from weddingday.services.time_window import TimelineWindow


@dataclass
class CanonicalState:
    """Mutable working copy of a wedding's lanes and events, keyed by id."""

    wedding_id: str
    lanes: dict[str, TimelineLane] = field(default_factory=dict)
    events: dict[str, TimelineEvent] = field(default_factory=dict)

    @classmethod
    def from_snapshot(
        cls, wedding_id: str, lanes: Sequence[TimelineLane], events: Sequence[TimelineEvent]
    ) -> "CanonicalState":
        return cls(
            wedding_id=wedding_id,
            lanes={lane.id: lane for lane in lanes},
            events={event.id: event for event in events},
        )

    def copy(self) -> "CanonicalState":
        return CanonicalState(self.wedding_id, dict(self.lanes), dict(self.events))

    def sorted_lanes(self) -> list[TimelineLane]:
        return sorted(self.lanes.values(), key=lambda lane: (lane.sort_order, lane.id))

    def sorted_events(self) -> list[TimelineEvent]:
        return sorted(self.events.values(), key=lambda event: (event.start_utc, event.id))


class CanonicalOpApplier:
    """Applies one op at a time to a CanonicalState, raising on invalid ops."""

    def __init__(self, state: CanonicalState, window: TimelineWindow):
        self.state = state
        self.window = window

    def _require_event(self, event_id: str, *, editable: bool = True) -> TimelineEvent:
        event = self.state.events.get(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if editable and event.locked:
            raise EventLockedError(event_id)
        return event

    def _require_lane(self, lane_id: str, event_id: str | None = None) -> TimelineLane:
        lane = self.state.lanes.get(lane_id)
        if lane is None:
            raise LaneNotFoundError(lane_id, event_id=event_id)
        return lane

    def apply(self, op: PatchOp) -> None:
        handler = getattr(self, f"_apply_{op.op}")
        handler(op)

    def _apply_create_event(self, op: CreateEventOp) -> None:
        event = op.event
        if event.id in self.state.events:
            raise DuplicateIdError("event", event.id)
        if not event.title.strip():
            raise MissingRequiredFieldError("title")
        lane = self._require_lane(event.lane_id, event_id=event.id)
        start, end = enforce_event_times(event.start_utc, event.end_utc, self.window, event_id=event.id)
        self.state.events[event.id] = event.model_copy(
            update={
                "wedding_id": self.state.wedding_id,
                "start_utc": start,
                "end_utc": end,
                "category": event.category or lane.lane_type,
            }
        )

    def _apply_update_event_time(self, op: UpdateEventTimeOp) -> None:
        event = self._require_event(op.event_id)
        start, end = enforce_event_times(op.start_utc, op.end_utc, self.window, event_id=event.id)
        self.state.events[event.id] = event.model_copy(update={"start_utc": start, "end_utc": end})

    def _apply_update_event_lane(self, op: UpdateEventLaneOp) -> None:
        event = self._require_event(op.event_id)
        self._require_lane(op.lane_id, event_id=event.id)
        self.state.events[event.id] = event.model_copy(update={"lane_id": op.lane_id})

    def _apply_update_event_title(self, op: UpdateEventTitleOp) -> None:
        event = self._require_event(op.event_id)
        self.state.events[event.id] = event.model_copy(update={"title": op.title})

    def _apply_update_event_owner(self, op: UpdateEventOwnerOp) -> None:
        event = self._require_event(op.event_id)
        self.state.events[event.id] = event.model_copy(update={"assigned_owner": op.owner})

    def _apply_delete_event(self, op: DeleteEventOp) -> None:
        event = self._require_event(op.event_id)
        del self.state.events[event.id]

    def _apply_create_lane(self, op: CreateLaneOp) -> None:
        lane = op.lane
        if lane.id in self.state.lanes:
            raise DuplicateIdError("lane", lane.id)
        if not lane.name.strip():
            raise MissingRequiredFieldError("name")
        self.state.lanes[lane.id] = lane.model_copy(update={"wedding_id": self.state.wedding_id})

    def _apply_update_lane(self, op: UpdateLaneOp) -> None:
        lane = self._require_lane(op.lane_id)
        if op.name is not None and not op.name.strip():
            raise MissingRequiredFieldError("name")
        changes = {
            key: value
            for key, value in (("name", op.name), ("owner", op.owner), ("sort_order", op.sort_order))
            if value is not None
        }
        self.state.lanes[lane.id] = lane.model_copy(update=changes)

    def _apply_delete_lane(self, op: DeleteLaneOp) -> None:
        lane = self._require_lane(op.lane_id)
        # Cascade ignores the locked flag: the events go with their lane
        for event_id in [e.id for e in self.state.events.values() if e.lane_id == lane.id]:
            del self.state.events[event_id]
        del self.state.lanes[lane.id]


def apply_canonical_ops(
    state: CanonicalState, ops: Sequence[PatchOp], window: TimelineWindow
) -> CanonicalState:
    """Apply ops in order to a copy of ``state`` and return the copy.

    Raises:
        WeddingDayError: The first failing op's error, with ``location.opIndex``
            set. ``state`` itself is never modified.
    """
    applier = CanonicalOpApplier(state.copy(), window)
    for index, op in enumerate(ops):
        try:
            applier.apply(op)
        except WeddingDayError as e:
            e.at_op(index)
            raise
    return applier.state
