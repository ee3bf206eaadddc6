"""Client-side draft: pending patch ops layered over a canonical snapshot.

The reducer here is deliberately lenient. It materializes a best-effort
preview and skips ops that cannot be applied to the accumulated state
(updates to unknown ids, duplicate creates). Authoritative validation,
referential checks and lane-deletion cascades belong to
``weddingday.services.reconciliation``; the two are not equivalent, and a
preview may show edits the server later rejects.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

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


@dataclass(frozen=True)
class DraftState:
    base_version: int
    patch_ops: tuple[PatchOp, ...] = field(default_factory=tuple)

    @property
    def is_dirty(self) -> bool:
        return bool(self.patch_ops)


def create_draft(base_version: int) -> DraftState:
    return DraftState(base_version=base_version)


def add_patch_ops(draft: DraftState, ops: Iterable[PatchOp]) -> DraftState:
    return replace(draft, patch_ops=draft.patch_ops + tuple(ops))


def truncate_draft(draft: DraftState, count: int) -> DraftState:
    """Drop the trailing ``count`` ops (used by undo)."""
    if count <= 0:
        return draft
    return replace(draft, patch_ops=draft.patch_ops[: max(len(draft.patch_ops) - count, 0)])


def clear_draft(draft: DraftState) -> DraftState:
    """Discard pending ops, keeping the base version."""
    return replace(draft, patch_ops=())


def reset_draft(new_base_version: int) -> DraftState:
    """Start a fresh draft after a successful publish."""
    return create_draft(new_base_version)


def _apply_event_op(events: dict[str, TimelineEvent], op: PatchOp) -> None:
    if isinstance(op, CreateEventOp):
        if op.event.id not in events:
            events[op.event.id] = op.event
        return
    if isinstance(op, DeleteEventOp):
        events.pop(op.event_id, None)
        return

    event = events.get(op.event_id)
    if event is None:
        return
    if isinstance(op, UpdateEventTimeOp):
        events[event.id] = event.model_copy(update={"start_utc": op.start_utc, "end_utc": op.end_utc})
    elif isinstance(op, UpdateEventLaneOp):
        events[event.id] = event.model_copy(update={"lane_id": op.lane_id})
    elif isinstance(op, UpdateEventTitleOp):
        events[event.id] = event.model_copy(update={"title": op.title})
    elif isinstance(op, UpdateEventOwnerOp):
        events[event.id] = event.model_copy(update={"assigned_owner": op.owner})


def _apply_lane_op(lanes: dict[str, TimelineLane], op: PatchOp) -> None:
    if isinstance(op, CreateLaneOp):
        if op.lane.id not in lanes:
            lanes[op.lane.id] = op.lane
    elif isinstance(op, UpdateLaneOp):
        lane = lanes.get(op.lane_id)
        if lane is None:
            return
        changes = {
            key: value
            for key, value in (("name", op.name), ("owner", op.owner), ("sort_order", op.sort_order))
            if value is not None
        }
        lanes[lane.id] = lane.model_copy(update=changes)
    elif isinstance(op, DeleteLaneOp):
        lanes.pop(op.lane_id, None)


_EVENT_OPS = (
    CreateEventOp,
    UpdateEventTimeOp,
    UpdateEventLaneOp,
    UpdateEventTitleOp,
    UpdateEventOwnerOp,
    DeleteEventOp,
)


def apply_patch_ops(
    base_events: Sequence[TimelineEvent],
    base_lanes: Sequence[TimelineLane],
    ops: Iterable[PatchOp],
) -> tuple[list[TimelineEvent], list[TimelineLane]]:
    """Fold ops over a base snapshot in order and return the preview state.

    Pure: the inputs are never mutated and the same base plus the same ops
    always yields the same result. Insertion order is preserved, with new
    items appended at the end.
    """
    events = {event.id: event for event in base_events}
    lanes = {lane.id: lane for lane in base_lanes}

    for op in ops:
        if isinstance(op, _EVENT_OPS):
            _apply_event_op(events, op)
        else:
            _apply_lane_op(lanes, op)

    return list(events.values()), list(lanes.values())
